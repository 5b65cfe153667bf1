"""
listing.py
`tar -tv`-like lines for --verbose, prefixed with the volume label:
  00001 -rw-r--r-- user group         4096 2024-01-31 12:00:00 path
"""

from __future__ import annotations
import stat, sys, tarfile
from datetime import datetime

_TYPE_CHARS = {
    tarfile.REGTYPE: "-",
    tarfile.AREGTYPE: "-",
    tarfile.CONTTYPE: "-",
    tarfile.GNUTYPE_SPARSE: "-",
    tarfile.LNKTYPE: "h",
    tarfile.SYMTYPE: "l",
    tarfile.CHRTYPE: "c",
    tarfile.BLKTYPE: "b",
    tarfile.DIRTYPE: "d",
    tarfile.FIFOTYPE: "p",
    tarfile.GNUTYPE_LONGNAME: "L",
    tarfile.GNUTYPE_LONGLINK: "L",
}


def entry_type_char(info: tarfile.TarInfo) -> str:
    return _TYPE_CHARS.get(info.type, "?")


def decode_mode(mode: int) -> str:
    # filemode() renders setuid/setgid/sticky too; drop its file-type column.
    return stat.filemode(mode & 0o7777)[1:]


def format_entry(volume_label: str, info: tarfile.TarInfo) -> str:
    if info.ischr() or info.isblk():
        size = f"{info.devmajor}:{info.devminor}"
    else:
        size = str(info.size)
    timestamp = datetime.fromtimestamp(info.mtime).strftime("%Y-%m-%d %H:%M:%S")
    path = info.name + "/" if info.isdir() and not info.name.endswith("/") else info.name
    line = (
        f"{volume_label} {entry_type_char(info)}{decode_mode(info.mode)} "
        f"{info.uname} {info.gname} {size:>12} {timestamp} {path}"
    )
    if info.islnk():
        line += f" link to {info.linkname}"
    elif info.issym():
        line += f" -> {info.linkname}"
    return line


def print_entry(volume_label: str, info: tarfile.TarInfo, stream=None) -> None:
    print(format_entry(volume_label, info), file=stream or sys.stderr)
