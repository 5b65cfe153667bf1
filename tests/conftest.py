"""
Pytest configuration and shared fixtures.
"""
import io
import tarfile
import pytest
from pathlib import Path
from splitar.archiver import read_entries
from splitar.chunker import SplitEngine
from splitar.sink import OutputSink
from splitar.types import Config


class TarBuilder:
    """Builds an input archive member by member."""

    def __init__(self, path: Path):
        self.path = path
        self.members = []

    def _info(self, name, type, mode, mtime=0):
        ti = tarfile.TarInfo(name)
        ti.type = type
        ti.mode = mode
        ti.mtime = mtime
        return ti

    def file(self, name, size, mode=0o644, type=tarfile.REGTYPE):
        ti = self._info(name, type, mode)
        ti.size = size
        self.members.append((ti, b"0" * size))
        return self

    def dir(self, name, mode=0o755):
        self.members.append((self._info(name, tarfile.DIRTYPE, mode), None))
        return self

    def hardlink(self, name, target):
        ti = self._info(name, tarfile.LNKTYPE, 0o644)
        ti.linkname = target
        self.members.append((ti, None))
        return self

    def symlink(self, name, target):
        ti = self._info(name, tarfile.SYMTYPE, 0o777)
        ti.linkname = target
        self.members.append((ti, None))
        return self

    def fifo(self, name):
        self.members.append((self._info(name, tarfile.FIFOTYPE, 0o644), None))
        return self

    def build(self) -> Path:
        with tarfile.open(self.path, mode="w") as tar:
            for ti, data in self.members:
                tar.addfile(ti, io.BytesIO(data) if data is not None else None)
        return self.path


@pytest.fixture
def tar_builder(tmp_path):
    """Factory: tar_builder().file("a", 10).dir("d").build() -> Path of the input tar."""
    def make(name="input.tar"):
        return TarBuilder(tmp_path / name)
    return make


@pytest.fixture
def outdir(tmp_path):
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def make_config(outdir):
    """Factory for a Config writing to out/output.tar.NNNNN."""
    def make(**kw):
        values = dict(
            chunk_limit=1000,
            fail_on_oversized_file=False,
            recreate_directories=False,
            output_template=str(outdir / "output.tar."),
        )
        values.update(kw)
        return Config(**values)
    return make


@pytest.fixture
def sample_config(make_config):
    return make_config()


@pytest.fixture
def run_engine():
    """Split `input_path` with `cfg`; `wrap` may decorate the entry iterator."""
    def run(cfg, input_path, cancel=None, wrap=None, on_entry=None):
        sink = OutputSink(cfg.output_template, cfg.suffix_length, cfg.compression_filter, cfg.transfer_window)
        engine = SplitEngine(cfg, sink, cancel=cancel, on_entry=on_entry)
        with open(input_path, "rb") as f:
            entries = read_entries(f)
            try:
                return engine.run(wrap(entries) if wrap else entries)
            finally:
                entries.close()
    return run


@pytest.fixture
def volume_names():
    def names(path):
        with tarfile.open(str(path), "r") as tar:
            return tar.getnames()
    return names


@pytest.fixture
def temp_config_file(tmp_path):
    """Create a temporary configuration file for testing."""
    toml_content = """
[split]
max_size = "30K"
fail_on_large_file = true
recreate_dirs = true

[output]
suffix_length = 3
compress = "gzip"
compression_level = 6
summary = "/tmp/splitar-test-summary.json"

[runtime]
log_level = "debug"
transfer_window = "16K"
"""
    path = tmp_path / "splitar.toml"
    path.write_text(toml_content)
    return path
