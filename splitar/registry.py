"""
registry.py
Run-wide bookkeeping that survives volume rollover:
- DirectoryRegistry: prefix tree of every directory seen, with the last header
  observed for it and a per-volume "already written" mark
- LinkRegistry: volume index in which each file's content was written

Both only grow; nothing is removed or rolled back during a run.
"""

from __future__ import annotations
import tarfile
from typing import Dict, Iterator, List, Optional, Tuple


def norm_path(path: str) -> str:
    """Canonical archive path: no trailing or doubled slashes; '.' and a leading '/' are kept."""
    parts = [p for p in path.split("/") if p]
    joined = "/".join(parts)
    if path.startswith("/"):
        return "/" + joined
    return joined


def _split(path: str) -> Tuple[str, List[str]]:
    prefix = "/" if path.startswith("/") else ""
    return prefix, [p for p in path.split("/") if p]


class _Node:
    __slots__ = ("children", "info", "emitted")

    def __init__(self) -> None:
        self.children: Dict[str, _Node] = {}
        # None for a parent only known through its descendants
        self.info: Optional[tarfile.TarInfo] = None
        # generation of the volume this directory was last written to
        self.emitted = -1


class DirectoryRegistry:
    """
    Directories keyed by path component. Finding the ancestors of a path
    costs one step per component, independent of how many directories
    the registry holds.
    """

    def __init__(self) -> None:
        self._roots = {"": _Node(), "/": _Node()}
        self._generation = 0
        self._recorded = 0

    def _chain(self, path: str) -> Iterator[Tuple[str, _Node]]:
        """Yield (path, node) for every component of `path`, creating missing nodes."""
        prefix, parts = _split(path)
        node = self._roots[prefix]
        for i, part in enumerate(parts):
            child = node.children.get(part)
            if child is None:
                child = node.children[part] = _Node()
            node = child
            yield prefix + "/".join(parts[: i + 1]), node

    def _find(self, path: str) -> Optional[_Node]:
        prefix, parts = _split(path)
        node = self._roots[prefix]
        for part in parts:
            node = node.children.get(part)
            if node is None:
                return None
        return node

    def _leaf(self, path: str) -> Optional[_Node]:
        node = None
        for _, node in self._chain(path):
            pass
        return node

    def record(self, path: str, info: tarfile.TarInfo) -> None:
        node = self._leaf(path)
        if node is None:
            return
        if node.info is None:
            self._recorded += 1
        node.info = info

    def lookup(self, path: str) -> Optional[tarfile.TarInfo]:
        node = self._find(path)
        return node.info if node is not None else None

    def __contains__(self, path: str) -> bool:
        return self.lookup(path) is not None

    def __len__(self) -> int:
        return self._recorded

    @staticmethod
    def ancestors_of(path: str) -> List[str]:
        """Ancestor directories of `path`, root first, without `path` itself."""
        prefix, parts = _split(path)
        return [prefix + "/".join(parts[:i]) for i in range(1, len(parts))]

    def pending_for_volume(self, path: str) -> List[Tuple[str, Optional[tarfile.TarInfo]]]:
        """
        Ancestors of `path` not yet written to the current volume, root first,
        with their last recorded header (None for implicit parents).
        Marks them as written.
        """
        chain = list(self._chain(path))[:-1]
        pending = []
        for dirpath, node in chain:
            if node.emitted != self._generation:
                node.emitted = self._generation
                pending.append((dirpath, node.info))
        return pending

    def mark_emitted(self, path: str) -> None:
        node = self._leaf(path)
        if node is not None:
            node.emitted = self._generation

    def on_volume_rollover(self) -> None:
        # Bumping the generation invalidates every mark at once.
        self._generation += 1


class LinkRegistry:
    def __init__(self) -> None:
        self._volumes: Dict[str, int] = {}

    def mark_materialized(self, path: str, volume_index: int) -> None:
        self._volumes[norm_path(path)] = volume_index

    def volume_of(self, path: str) -> Optional[int]:
        return self._volumes.get(norm_path(path))

    def __len__(self) -> int:
        return len(self._volumes)
