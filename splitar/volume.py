"""
volume.py
VolumeBuilder: writes the entries of exactly one output volume as a tar stream
over a sink handle, recreating missing parent directories on request, and
closes it with the end-of-archive marker.
"""

from __future__ import annotations
import logging, tarfile
from typing import BinaryIO, Callable, Optional
from .archiver import directory_header, open_writer
from .registry import DirectoryRegistry, LinkRegistry, norm_path
from .sink import VolumeHandle
from .types import CrossVolumeLink, Entry, EntryKind

logger = logging.getLogger(__name__)

EntryListener = Callable[[int, tarfile.TarInfo], None]


class VolumeBuilder:
    def __init__(
        self,
        index: int,
        handle: VolumeHandle,
        dirs: DirectoryRegistry,
        links: LinkRegistry,
        *,
        recreate_directories: bool = False,
        transfer_window: int = 1 << 13,
        on_entry: Optional[EntryListener] = None,
    ):
        self.index = index
        self.handle = handle
        self.dirs = dirs
        self.links = links
        self.recreate_directories = recreate_directories
        self.on_entry = on_entry
        # input entries only; recreated directories are not counted
        self.entries = 0
        self.data_bytes = 0
        self._tar = open_writer(handle, transfer_window)
        self._closed = False

    def place(self, entry: Entry) -> Optional[CrossVolumeLink]:
        """
        Write `entry`, preceded by any parent directories missing from this
        volume when directory recreation is on. Regular file payload is copied
        through the transfer window. Returns a diagnostic for a hard link whose
        target lives in another volume; the link is written regardless.
        """
        if self._closed:
            raise RuntimeError(f"volume {self.index} is already closed")

        if self.recreate_directories:
            for dirpath, recorded in self.dirs.pending_for_volume(entry.path):
                logger.debug("Dirname %r is new for volume %d, inserting...", dirpath, self.index)
                self._write(directory_header(dirpath, recorded))

        crossed = None
        if entry.kind is EntryKind.DIRECTORY:
            self.dirs.record(entry.path, entry.metadata)
        elif entry.kind is EntryKind.HARD_LINK:
            crossed = self._check_link(entry)

        self._write(entry.metadata, entry.payload)
        self.entries += 1

        if entry.kind is EntryKind.DIRECTORY:
            self.dirs.mark_emitted(entry.path)
        elif entry.kind is EntryKind.REGULAR_FILE:
            self.links.mark_materialized(entry.path, self.index)
            self.data_bytes += entry.size
        return crossed

    def _check_link(self, entry: Entry) -> Optional[CrossVolumeLink]:
        target = norm_path(entry.link_target or "")
        target_volume = self.links.volume_of(target)
        if target_volume == self.index:
            self.links.mark_materialized(entry.path, self.index)
            return None
        if target_volume is None:
            logger.warning(
                "Hard link %r in volume %d points to %r, which was not seen before it",
                entry.path, self.index, target,
            )
        else:
            logger.warning(
                "Hard link %r in volume %d points to %r in volume %d; "
                "it cannot be extracted without that volume",
                entry.path, self.index, target, target_volume,
            )
        return CrossVolumeLink(entry.path, target, self.index, target_volume)

    def _write(self, info: tarfile.TarInfo, payload: Optional[BinaryIO] = None) -> None:
        if self.on_entry is not None:
            self.on_entry(self.index, info)
        self._tar.addfile(info, payload)

    def finalize(self) -> int:
        """Write the end-of-archive marker. Returns the volume's byte count."""
        self._closed = True
        self._tar.close()
        return self.handle.bytes_written

    def abort(self) -> None:
        # No end-of-archive marker; the sink discards the handle.
        self._closed = True
