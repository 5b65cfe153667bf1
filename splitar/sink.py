"""
sink.py
Where finished volume bytes go.
- Every volume is written to a temp file next to its final name and renamed
  into place only after it is complete (and the filter, if any, succeeded).
- With a compression filter, volume bytes are piped through a shell command
  whose stdout is the temp file.
Both byte sinks expose write(data) / close_and_wait() -> exit status / kill().
"""

from __future__ import annotations
import logging, os, subprocess, tempfile
from pathlib import Path
from typing import Optional, Union
from .errors import ConfigError, FilterProcessError, VolumeWriteError
from .util import set_umasked_mode, volume_path

logger = logging.getLogger(__name__)

KNOWN_COMPRESSORS = ("gzip", "pigz", "zstd", "xz", "bzip2", "lz4")


def compressor_cmd(command: str, level: Optional[int]) -> str:
    """Append the level flag to a bare well-known compressor name."""
    if level is None:
        return command
    name = command.strip()
    if name not in KNOWN_COMPRESSORS:
        raise ConfigError(
            f"compression level needs a bare compressor name ({', '.join(KNOWN_COMPRESSORS)}), got {command!r}"
        )
    return f"{name} -{level}"


class FileByteSink:
    """Pass-through: bytes go straight to the temp file."""

    def __init__(self, fh):
        self._fh = fh

    def write(self, data) -> int:
        return self._fh.write(data)

    def close_and_wait(self) -> int:
        self._fh.close()
        return 0

    def kill(self) -> None:
        self._fh.close()


class FilterByteSink:
    """Bytes go to a shell command's stdin; its stdout is the temp file."""

    def __init__(self, command: str, out_fh, env: dict, bufsize: int):
        shell = os.environ.get("SHELL") or "/bin/sh"
        try:
            self._proc = subprocess.Popen(
                [shell, "-c", command],
                stdin=subprocess.PIPE,
                stdout=out_fh,
                env=env,
                bufsize=bufsize,
            )
        finally:
            # The child holds its own descriptor for the temp file.
            out_fh.close()
        logger.info("Executing subprocess %d: %s", self._proc.pid, command)

    def wait(self) -> int:
        return self._proc.wait()

    def write(self, data) -> int:
        return self._proc.stdin.write(data)

    def close_and_wait(self) -> int:
        try:
            self._proc.stdin.close()
        finally:
            logger.info("Waiting subprocess %d to finish", self._proc.pid)
            rc = self._proc.wait()
        return rc

    def kill(self) -> None:
        if self._proc.poll() is None:
            logger.warning("Killing subprocess %d", self._proc.pid)
            self._proc.kill()
        try:
            self._proc.stdin.close()
        except BrokenPipeError:
            pass
        self._proc.wait()


class VolumeHandle:
    """Writable handle for one volume; counts the bytes handed to the sink."""

    def __init__(self, index: int, target: Path, temp_path: Path, sink: Union[FileByteSink, FilterByteSink]):
        self.index = index
        self.target = target
        self.temp_path = temp_path
        self.sink = sink
        self.bytes_written = 0
        self.aborted = False
        self.committed = False

    def write(self, data) -> int:
        if self.aborted:
            # Leftovers flushed by a dropped tar writer; the volume is gone anyway.
            return len(data)
        try:
            self.sink.write(data)
        except OSError as e:
            raise self.failure(e) from e
        self.bytes_written += len(data)
        return len(data)

    def failure(self, exc: OSError) -> VolumeWriteError:
        """Best error for a failed write: a dead filter explains a broken pipe."""
        if isinstance(self.sink, FilterByteSink) and isinstance(exc, BrokenPipeError):
            rc = self.sink.wait()
            if rc:
                return FilterProcessError(self.index, rc)
        return VolumeWriteError(self.index, f"failed to write {self.temp_path}: {exc}")


class OutputSink:
    def __init__(
        self,
        template: str,
        suffix_length: int = 5,
        compression_filter: Optional[str] = None,
        bufsize: int = 1 << 13,
    ):
        self.template = template
        self.suffix_length = suffix_length
        self.compression_filter = compression_filter
        self.bufsize = bufsize

    def target_for(self, index: int) -> Path:
        return volume_path(self.template, index, self.suffix_length)

    def open(self, index: int) -> VolumeHandle:
        target = self.target_for(index)
        parent = target.parent
        try:
            fd, tmp = tempfile.mkstemp(prefix=target.name + ".", suffix=".tmp", dir=parent)
        except OSError as e:
            raise VolumeWriteError(index, f"failed to create temp file in {parent}: {e}") from e
        temp_path = Path(tmp)
        logger.debug("Output temp file %s", temp_path)
        fh = os.fdopen(fd, "wb", buffering=self.bufsize)

        if not self.compression_filter:
            return VolumeHandle(index, target, temp_path, FileByteSink(fh))

        env = dict(os.environ)
        env["SPLITAR_VOLUME_INDEX"] = str(index)
        env["SPLITAR_VOLUME_PATH"] = str(target)
        try:
            sink = FilterByteSink(self.compression_filter, fh, env, self.bufsize)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise VolumeWriteError(
                index, f"failed to start {self.compression_filter!r}: {e}"
            ) from e
        return VolumeHandle(index, target, temp_path, sink)

    def commit(self, handle: VolumeHandle) -> Path:
        """Wait for the filter and move the temp file to its final name."""
        try:
            rc = handle.sink.close_and_wait()
        except OSError as e:
            raise handle.failure(e) from e
        if rc != 0:
            raise FilterProcessError(handle.index, rc)

        logger.debug("Moving %s to %s", handle.temp_path, handle.target)
        try:
            os.replace(handle.temp_path, handle.target)
            set_umasked_mode(handle.target)
        except OSError as e:
            raise VolumeWriteError(
                handle.index,
                f"failed to rename temp file {handle.temp_path} to output file {handle.target}: {e}",
            ) from e
        handle.committed = True
        return handle.target

    def abort(self, handle: VolumeHandle) -> None:
        """Stop the filter and delete the temp file. Safe to call more than once."""
        if handle.committed:
            return
        handle.aborted = True
        handle.sink.kill()
        handle.temp_path.unlink(missing_ok=True)
        logger.debug("Discarded %s", handle.temp_path)
