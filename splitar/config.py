"""
config.py
Load and validate configuration from TOML (Python 3.11+ tomllib), with
command-line values layered on top.
Search order:
  1) explicit --config path (must exist)
  2) ./splitar.toml
  3) built-in defaults only
"""

from __future__ import annotations
import tomllib
from pathlib import Path
from typing import Any, Dict
from .errors import ConfigError
from .sink import compressor_cmd
from .types import Config
from .util import parse_size, volume_path

DEFAULT_CONFIG_NAME = "splitar.toml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _gv(d: Dict[str, Any], path: list[str], default=None):
    cur = d
    for k in path:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _load_toml(path: Path) -> Dict[str, Any]:
    with open(path, "rb") as f:
        return tomllib.load(f)


def find_config(path_arg: str | None) -> Path | None:
    """Pick the config path based on CLI arg and availability."""
    if path_arg:
        # User explicitly specified a config - it must exist
        p = Path(path_arg)
        if not p.exists():
            raise FileNotFoundError(f"Specified config file does not exist: {path_arg}")
        return p
    p = Path(DEFAULT_CONFIG_NAME)
    if p.exists():
        return p
    return None


def load_config(path: Path | None, **overrides) -> Config:
    """
    Build the run configuration. Keyword overrides (CLI values) win over the
    file; None means "not given".
    """
    try:
        cfg = _load_toml(path) if path is not None else {}
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid configuration file {path}: {e}") from None

    def gv(keys, default=None):
        return _gv(cfg, keys, default)

    values = dict(
        chunk_limit=gv(["split", "max_size"]),
        fail_on_oversized_file=gv(["split", "fail_on_large_file"], False),
        recreate_directories=gv(["split", "recreate_dirs"], False),
        output_template=gv(["output", "template"]),
        suffix_length=gv(["output", "suffix_length"], 5),
        compression_filter=gv(["output", "compress"]),
        compression_level=gv(["output", "compression_level"]),
        summary_path=gv(["output", "summary"]),
        verbose=gv(["runtime", "verbose"], False),
        log_level=gv(["runtime", "log_level"], "WARNING"),
        transfer_window=gv(["runtime", "transfer_window"], 1 << 13),
    )
    unknown = set(overrides) - set(values)
    if unknown:
        raise TypeError(f"unknown configuration keys: {', '.join(sorted(unknown))}")
    values.update({k: v for k, v in overrides.items() if v is not None})

    if values["chunk_limit"] is None:
        raise ConfigError("max size is required (-S/--max-size or [split] max_size)")
    if values["output_template"] is None:
        raise ConfigError("output path is required")
    if isinstance(values["chunk_limit"], str):
        values["chunk_limit"] = parse_size(values["chunk_limit"])
    if isinstance(values["transfer_window"], str):
        values["transfer_window"] = parse_size(values["transfer_window"])
    for key in ("fail_on_oversized_file", "recreate_directories", "verbose"):
        if not isinstance(values[key], bool):
            raise ConfigError(f"{key} must be true or false, got {values[key]!r}")
    if values["summary_path"] is not None:
        values["summary_path"] = Path(values["summary_path"])

    return validate_config(
        Config(
            chunk_limit=int(values["chunk_limit"]),
            fail_on_oversized_file=values["fail_on_oversized_file"],
            recreate_directories=values["recreate_directories"],
            output_template=str(values["output_template"]),
            suffix_length=int(values["suffix_length"]),
            compression_filter=values["compression_filter"] or None,
            compression_level=values["compression_level"],
            summary_path=values["summary_path"],
            verbose=values["verbose"],
            log_level=str(values["log_level"]).upper(),
            transfer_window=int(values["transfer_window"]),
        )
    )


def validate_config(cfg: Config) -> Config:
    if cfg.chunk_limit <= 0:
        raise ConfigError(f"max size must be positive, got {cfg.chunk_limit}")
    if cfg.output_template == "-":
        raise ConfigError("writing volumes to standard output is not supported")
    if not 1 <= cfg.suffix_length <= 32:
        raise ConfigError(f"suffix length must be between 1 and 32, got {cfg.suffix_length}")
    if cfg.transfer_window <= 0:
        raise ConfigError(f"transfer window must be positive, got {cfg.transfer_window}")
    if cfg.log_level not in LOG_LEVELS:
        raise ConfigError(f"unknown log level {cfg.log_level!r}")
    if cfg.compression_filter and cfg.compression_level is not None:
        compressor_cmd(cfg.compression_filter, cfg.compression_level)
    if volume_path(cfg.output_template, 1, cfg.suffix_length) == volume_path(
        cfg.output_template, 2, cfg.suffix_length
    ):
        raise ConfigError(f"output template {cfg.output_template!r} gives every volume the same name")
    return cfg
