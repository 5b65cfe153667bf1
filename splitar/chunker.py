"""
chunker.py
SplitEngine: one forward pass over the input entries, deciding where each one
goes and when a volume is closed.

  IDLE      no volume open; the next entry opens one
  FILLING   volume open and within its data budget
  DRAINING  an oversized file was admitted alone; its volume closes right after

Entries keep their input order. A regular file never straddles two volumes;
one larger than the limit gets a volume of its own (or aborts the run when
oversized files are refused). Cancellation is honoured between entries only.
"""

from __future__ import annotations
import enum, logging
from typing import Iterable, Iterator, Optional
from .accountant import SizeAccountant
from .errors import OversizedEntryError
from .interrupt import CancelFlag
from .registry import DirectoryRegistry, LinkRegistry
from .sink import OutputSink
from .types import Config, Entry, EntryKind, SplitResult, VolumeInfo
from .volume import EntryListener, VolumeBuilder

logger = logging.getLogger(__name__)


class State(enum.Enum):
    IDLE = "idle"
    FILLING = "filling"
    DRAINING = "draining"


class SplitEngine:
    def __init__(
        self,
        cfg: Config,
        sink: OutputSink,
        cancel: Optional[CancelFlag] = None,
        on_entry: Optional[EntryListener] = None,
    ):
        self.cfg = cfg
        self.sink = sink
        self.cancel = cancel or CancelFlag()
        self.on_entry = on_entry
        self.accountant = SizeAccountant(cfg.chunk_limit)
        self.dirs = DirectoryRegistry()
        self.links = LinkRegistry()
        self.state = State.IDLE
        self.volume: Optional[VolumeBuilder] = None
        self.next_index = 1
        self.result = SplitResult()

    def run(self, entries: Iterable[Entry]) -> SplitResult:
        it: Iterator[Entry] = iter(entries)
        try:
            while True:
                if self.cancel.is_set():
                    self._cancel()
                    break
                entry = next(it, None)
                if entry is None:
                    self._finish()
                    break
                self._feed(entry)
        except BaseException:
            # Nothing half-written may reach its final name.
            self._discard_volume()
            raise
        return self.result

    def _feed(self, entry: Entry) -> None:
        logger.debug("entry: %r@%d", entry.path, entry.size)
        is_file = entry.kind is EntryKind.REGULAR_FILE
        oversized = is_file and entry.size > self.cfg.chunk_limit

        if oversized and self.cfg.fail_on_oversized_file:
            raise OversizedEntryError(entry.path, entry.size, self.cfg.chunk_limit)

        if self.state is State.IDLE:
            self._open_volume()
        elif is_file and self.accountant.would_overflow(entry.size):
            self._close_volume()
            self._open_volume()

        crossed = self.volume.place(entry)
        if crossed is not None:
            self.result.cross_volume_links.append(crossed)
        if is_file:
            self.accountant.add(entry.size)

        if oversized:
            logger.warning(
                "File %r (%d bytes) exceeds the limit of %d bytes; it gets volume %d to itself",
                entry.path, entry.size, self.cfg.chunk_limit, self.volume.index,
            )
            self.state = State.DRAINING
            self._close_volume()

    def _open_volume(self) -> None:
        index = self.next_index
        handle = self.sink.open(index)
        logger.info("Starting new volume %d: %s", index, handle.target)
        self.volume = VolumeBuilder(
            index,
            handle,
            self.dirs,
            self.links,
            recreate_directories=self.cfg.recreate_directories,
            transfer_window=self.cfg.transfer_window,
            on_entry=self.on_entry,
        )
        self.accountant.reset()
        self.dirs.on_volume_rollover()
        self.state = State.FILLING

    def _close_volume(self) -> None:
        volume = self.volume
        written = volume.finalize()
        path = self.sink.commit(volume.handle)
        logger.info(
            "Finished volume %d: %s (%d entries, %d data bytes, %d bytes written)",
            volume.index, path, volume.entries, volume.data_bytes, written,
        )
        self.result.volumes.append(
            VolumeInfo(
                index=volume.index,
                path=str(path),
                entries=volume.entries,
                data_bytes=volume.data_bytes,
                bytes_written=written,
            )
        )
        self.volume = None
        self.next_index += 1
        self.state = State.IDLE

    def _finish(self) -> None:
        if self.volume is None:
            return
        if self.volume.entries:
            self._close_volume()
        else:
            self._discard_volume()

    def _cancel(self) -> None:
        logger.warning(
            "Cancelled; %d volume(s) completed%s",
            len(self.result.volumes),
            f", volume {self.volume.index} in progress discarded" if self.volume else "",
        )
        self._discard_volume()
        self.result.cancelled = True

    def _discard_volume(self) -> None:
        volume, self.volume = self.volume, None
        self.state = State.IDLE
        if volume is None:
            return
        volume.abort()
        self.sink.abort(volume.handle)
