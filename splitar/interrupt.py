"""
interrupt.py
Cooperative cancellation.
The first SIGINT/SIGTERM only sets a flag; the split loop looks at it between
entries, discards the volume in progress and stops. A second signal raises
KeyboardInterrupt to stop immediately.
"""

from __future__ import annotations
import logging, signal, threading
from typing import Callable, Iterable

logger = logging.getLogger(__name__)


class CancelFlag:
    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()


def install_signal_handlers(
    flag: CancelFlag, signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM)
) -> Callable[[], None]:
    """Route `signals` to `flag`. Returns a function restoring the previous handlers."""

    def handler(signum, frame):
        if flag.is_set():
            raise KeyboardInterrupt
        flag.set()
        logger.warning(
            "Received %s, stopping after the current entry (repeat to abort now)",
            signal.Signals(signum).name,
        )

    previous = {}
    for sig in signals:
        try:
            previous[sig] = signal.signal(sig, handler)
        except (ValueError, OSError) as e:
            # Not the main thread, or the platform lacks the signal.
            logger.error("failed to set %s handler: %s. Ignoring...", signal.Signals(sig).name, e)

    def restore() -> None:
        for sig, old in previous.items():
            signal.signal(sig, old)

    return restore
