"""
types.py
Dataclasses used across modules: Config, Entry, VolumeInfo, CrossVolumeLink, SplitResult.

These are intentionally lightweight, serializable, and stable for logging.
"""
from __future__ import annotations
import enum
import tarfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, List


@dataclass(frozen=True)
class Config:
    # split policy
    chunk_limit: int
    fail_on_oversized_file: bool
    recreate_directories: bool
    # output
    output_template: str
    suffix_length: int = 5
    compression_filter: Optional[str] = None
    compression_level: Optional[int] = None
    summary_path: Optional[Path] = None
    # runtime
    verbose: bool = False
    log_level: str = "WARNING"
    transfer_window: int = 1 << 13


class EntryKind(enum.Enum):
    REGULAR_FILE = "file"
    DIRECTORY = "dir"
    HARD_LINK = "hardlink"
    SYMLINK = "symlink"
    OTHER = "other"

    @classmethod
    def of(cls, info: tarfile.TarInfo) -> "EntryKind":
        if info.isreg():
            return cls.REGULAR_FILE
        if info.isdir():
            return cls.DIRECTORY
        if info.islnk():
            return cls.HARD_LINK
        if info.issym():
            return cls.SYMLINK
        return cls.OTHER


@dataclass
class Entry:
    path: str
    kind: EntryKind
    size: int
    metadata: tarfile.TarInfo
    link_target: Optional[str] = None
    payload: Optional[BinaryIO] = None


@dataclass
class CrossVolumeLink:
    path: str
    target: str
    volume: int
    # None when the target was never seen before the link
    target_volume: Optional[int]


@dataclass
class VolumeInfo:
    index: int
    path: str
    entries: int
    data_bytes: int
    bytes_written: int


@dataclass
class SplitResult:
    volumes: List[VolumeInfo] = field(default_factory=list)
    cross_volume_links: List[CrossVolumeLink] = field(default_factory=list)
    cancelled: bool = False
