"""
errors.py
Exception hierarchy rooted at SplitarError; the CLI maps each to an exit code.
"""


class SplitarError(Exception):
    """Base class for splitar-specific errors."""


class ConfigError(SplitarError):
    pass


class OversizedEntryError(SplitarError):
    """A regular file is larger than the chunk limit and oversized files are refused."""

    def __init__(self, path: str, size: int, limit: int):
        super().__init__(
            f"file {path!r} ({size} bytes) is larger than the chunk limit ({limit} bytes)"
        )
        self.path = path
        self.size = size
        self.limit = limit


# Output related
class VolumeWriteError(SplitarError):
    def __init__(self, volume_index: int, message: str):
        super().__init__(f"volume {volume_index}: {message}")
        self.volume_index = volume_index


class FilterProcessError(VolumeWriteError):
    def __init__(self, volume_index: int, returncode: int):
        super().__init__(
            volume_index, f"compression filter exited with status {returncode}"
        )
        self.returncode = returncode
