"""
orchestrator.py
Coordinates one run end to end:
  - open the input (file or stdin)
  - build the output sink (with the compression filter, if any)
  - stream the entries through the SplitEngine
  - write the optional JSON run summary
"""

from __future__ import annotations
import contextlib, dataclasses, logging, os, sys, time
from typing import BinaryIO, ContextManager, Optional
from .archiver import read_entries
from .chunker import SplitEngine
from .interrupt import CancelFlag
from .sink import OutputSink, compressor_cmd
from .types import Config, SplitResult
from .util import utc_now_iso, write_json
from .volume import EntryListener

logger = logging.getLogger(__name__)

STDIN = "-"


def open_input(input_file: str) -> ContextManager[BinaryIO]:
    if input_file == STDIN:
        return contextlib.nullcontext(sys.stdin.buffer)
    return open(input_file, "rb")


def build_sink(cfg: Config) -> OutputSink:
    command = None
    if cfg.compression_filter:
        command = compressor_cmd(cfg.compression_filter, cfg.compression_level)
    return OutputSink(
        cfg.output_template,
        suffix_length=cfg.suffix_length,
        compression_filter=command,
        bufsize=cfg.transfer_window,
    )


def run_split(
    cfg: Config,
    input_file: str,
    cancel: Optional[CancelFlag] = None,
    on_entry: Optional[EntryListener] = None,
) -> SplitResult:
    started = time.time()
    started_utc = utc_now_iso()
    engine = SplitEngine(cfg, build_sink(cfg), cancel=cancel, on_entry=on_entry)

    with open_input(input_file) as f, contextlib.closing(read_entries(f)) as entries:
        result = engine.run(entries)

    logger.info(
        "%s: %d volume(s) written in %.2fs",
        "cancelled" if result.cancelled else "done",
        len(result.volumes),
        time.time() - started,
    )
    if cfg.summary_path is not None:
        write_json(cfg.summary_path, run_summary(cfg, input_file, result, started, started_utc))
    return result


def run_summary(cfg: Config, input_file: str, result: SplitResult, started: float, started_utc: str) -> dict:
    return {
        "started_utc": started_utc,
        "duration_sec": round(time.time() - started, 2),
        "host": os.uname().nodename,
        "input": input_file,
        "chunk_limit": cfg.chunk_limit,
        "cancelled": result.cancelled,
        "volumes": [dataclasses.asdict(v) for v in result.volumes],
        "cross_volume_links": [dataclasses.asdict(c) for c in result.cross_volume_links],
    }
