#!/usr/bin/env python3
"""
cli.py
Command-line interface for splitar.
Parses arguments, loads config, and invokes the orchestrator.
Exit codes: 0 ok, 1 error, 2 bad usage/config, 3 file too large, 130 cancelled.
"""
from __future__ import annotations
import argparse, logging, sys, tarfile
from . import __version__
from .config import DEFAULT_CONFIG_NAME, find_config, load_config
from .errors import ConfigError, OversizedEntryError, SplitarError
from .interrupt import CancelFlag, install_signal_handlers
from .listing import print_entry
from .orchestrator import run_split
from .util import configure_logging, parse_size, volume_name

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_FILE_TOO_LARGE = 3
EXIT_CANCELLED = 130


def _error(message, hint: str | None = None) -> None:
    print(f"❌ Error: {message}", file=sys.stderr)
    if hint:
        print(f"💡 Hint: {hint}", file=sys.stderr)


def _size_arg(value: str) -> int:
    try:
        return parse_size(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="splitar",
        description="splitar: split a tar stream into independently extractable, size-bounded volumes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="\nFiles are never split: a file larger than --max-size gets a volume of its own.",
    )
    ap.add_argument(
        "-S",
        "--max-size",
        type=_size_arg,
        default=None,
        help="max data size per output volume (e.g. 300G, 30K, 100MB)",
    )
    ap.add_argument(
        "--fail-on-large-file",
        action="store_true",
        default=None,
        help="fail if a file is too large to fit into single volume",
    )
    ap.add_argument(
        "-d", "--recreate-dirs", action="store_true", default=None, help="recreate dirs in new volumes"
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=None,
        help="output files info prefixed with volume number",
    )
    ap.add_argument("--compress", default=None, help="shell command each volume is piped through, e.g. 'zstd -T0'")
    ap.add_argument(
        "--compression-level", type=int, default=None, help="level for a bare --compress name like gzip or zstd"
    )
    ap.add_argument("-a", "--suffix-length", type=int, default=None, help="digits of the volume number (default 5)")
    ap.add_argument("--summary", default=None, help="write a JSON run summary to this path")
    ap.add_argument(
        "--config",
        default=None,
        help=f"path to splitar.toml (default: ./{DEFAULT_CONFIG_NAME} if present)",
    )
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default) or ERROR")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("input_file", help="input file path or `-` for stdin")
    ap.add_argument(
        "output_prefix",
        help="output path prefix (the volume number is appended) or a template with {index}",
    )
    return ap


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    try:
        cfg_path = find_config(args.config)
        cfg = load_config(
            cfg_path,
            chunk_limit=args.max_size,
            fail_on_oversized_file=args.fail_on_large_file,
            recreate_directories=args.recreate_dirs,
            output_template=args.output_prefix,
            suffix_length=args.suffix_length,
            compression_filter=args.compress,
            compression_level=args.compression_level,
            summary_path=args.summary,
            verbose=args.verbose,
            log_level=args.log_level,
        )
    except FileNotFoundError as e:
        _error(e, "Check the path passed to --config")
        return EXIT_USAGE
    except ConfigError as e:
        _error(e, "Run with --help to see the accepted options")
        return EXIT_USAGE

    configure_logging(cfg.log_level)
    logger.debug("Config: %r", cfg)

    on_entry = None
    if cfg.verbose:
        def on_entry(index, info):
            print_entry(volume_name(index, cfg.suffix_length), info)

    cancel = CancelFlag()
    restore = install_signal_handlers(cancel)
    try:
        result = run_split(cfg, args.input_file, cancel=cancel, on_entry=on_entry)
    except OversizedEntryError as e:
        _error(e, "Raise --max-size or drop --fail-on-large-file to give it a volume of its own")
        return EXIT_FILE_TOO_LARGE
    except KeyboardInterrupt:
        print("\n⚡ Interrupted. The volume in progress was discarded.", file=sys.stderr)
        return EXIT_CANCELLED
    except tarfile.TarError as e:
        _error(f"cannot read {args.input_file}: {e}", "Is the input a tar archive?")
        return EXIT_ERROR
    except (SplitarError, OSError) as e:
        _error(e)
        return EXIT_ERROR
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        print("💡 Hint: Run with --log-level DEBUG for the full traceback", file=sys.stderr)
        return EXIT_ERROR
    finally:
        restore()

    if result.cancelled:
        print(
            f"\n⚡ Interrupted after {len(result.volumes)} complete volume(s). No harm done!",
            file=sys.stderr,
        )
        return EXIT_CANCELLED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
