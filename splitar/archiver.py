"""
archiver.py
tarfile glue, stream mode only (no seeking on input or output):
- read_entries: lazily turn an input tar stream into Entry records
- open_writer: a tar stream writer over a volume handle
- directory_header: headers for directories recreated in a later volume
Note: an entry's payload must be consumed before the next entry is pulled.
"""

from __future__ import annotations
import copy, time, tarfile
from typing import BinaryIO, Iterator, Optional
from .registry import norm_path
from .types import Entry, EntryKind

IMPLICIT_DIR_MODE = 0o755


def read_entries(fileobj: BinaryIO) -> Iterator[Entry]:
    """
    Yield one Entry per tar member. Compressed input (gzip/bzip2/xz) is
    detected by tarfile. Malformed input raises tarfile.TarError.
    """
    with tarfile.open(fileobj=fileobj, mode="r|*") as tar:
        for info in tar:
            kind = EntryKind.of(info)
            payload = None
            if kind is EntryKind.REGULAR_FILE:
                payload = tar.extractfile(info)
                if info.issparse():
                    # Holes are expanded on read, so write the file back dense.
                    info = copy.copy(info)
                    info.type = tarfile.REGTYPE
                    info.sparse = None
                    # No sparse map precedes the dense data.
                    info.pax_headers = {
                        k: v for k, v in info.pax_headers.items() if not k.startswith("GNU.sparse.")
                    }
            elif info.size:
                # No payload is copied for these; the header must not promise one.
                info = copy.copy(info)
                info.size = 0
            yield Entry(
                path=norm_path(info.name),
                kind=kind,
                size=info.size if kind is EntryKind.REGULAR_FILE else 0,
                metadata=info,
                link_target=info.linkname if kind in (EntryKind.HARD_LINK, EntryKind.SYMLINK) else None,
                payload=payload,
            )


def open_writer(fileobj, copybufsize: int) -> tarfile.TarFile:
    return tarfile.open(
        fileobj=fileobj,
        mode="w|",
        format=tarfile.PAX_FORMAT,
        copybufsize=copybufsize,
    )


def directory_header(path: str, recorded: Optional[tarfile.TarInfo] = None) -> tarfile.TarInfo:
    """
    Header for a recreated directory: a copy of the last one seen in the input,
    or rwxr-xr-x stamped with the current time for a parent never seen.
    """
    if recorded is not None:
        info = copy.copy(recorded)
        info.name = path
        return info
    info = tarfile.TarInfo(path)
    info.type = tarfile.DIRTYPE
    info.mode = IMPLICIT_DIR_MODE
    info.mtime = int(time.time())
    return info
