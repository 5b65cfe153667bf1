"""
util.py
Cross-cutting utilities:
- Size strings (300G, 30K, 100KB) to bytes
- Volume naming from the output template
- Logging setup, file mode fixup, atomic JSON writing
"""

from __future__ import annotations
import json, logging, os, sys
from datetime import datetime, timezone
from pathlib import Path

from .errors import ConfigError

# One-letter (300G), two-letter (300GB) and IEC (300GiB) units are all binary.
_BINARY = {"K": 1024, "M": 1024**2, "G": 1024**3, "T": 1024**4, "P": 1024**5}


def parse_size(value: str) -> int:
    """
    Parse a human-readable size into bytes.
    - No suffix or B: bytes
    - K/M/G/T/P, KB/MB/... and KiB/MiB/...: powers of 1024
    """
    text = str(value).strip()
    if not text:
        raise ConfigError("empty size")
    num = text.upper()

    for tail in ("IB", "B"):
        if num.endswith(tail) and num[: -len(tail)][-1:] in _BINARY:
            num = num[: -len(tail)]
            break
    multiplier = 1
    if num[-1:] in _BINARY:
        multiplier, num = _BINARY[num[-1]], num[:-1]
    elif num.endswith("B"):
        num = num[:-1]
    try:
        return int(float(num.strip()) * multiplier)
    except (ValueError, OverflowError):
        raise ConfigError(f"invalid size: {value!r}") from None


def volume_name(index: int, suffix_length: int) -> str:
    return f"{index:0{suffix_length}d}"


def volume_path(template: str, index: int, suffix_length: int) -> Path:
    """
    Final path of volume `index`.
    A template with an {index} placeholder is formatted; anything else is a
    prefix that gets the zero-padded index appended.
    """
    if "{index" in template:
        try:
            return Path(template.format(index=index))
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigError(f"invalid output template {template!r}: {e}") from None
    return Path(template + volume_name(index, suffix_length))


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    root = logging.getLogger("splitar")
    root.handlers[:] = [handler]
    root.setLevel(level.upper())


def current_umask() -> int:
    # There is no way to read the umask without setting it.
    mask = os.umask(0)
    os.umask(mask)
    return mask


def set_umasked_mode(path: Path, mode: int = 0o666) -> None:
    """Temp files are created owner-only; reset to the mode a plain open() would give."""
    os.chmod(path, mode & ~current_umask())


def ensure_dir(p: Path):
    """Create directory with better error reporting."""
    try:
        p.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        raise PermissionError(f"Cannot create directory {p} - insufficient permissions")
    except OSError as e:
        raise OSError(f"Cannot create directory {p}: {e}")


def write_json(path: Path, obj):
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(obj, indent=2, sort_keys=True))
    tmp.replace(path)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
