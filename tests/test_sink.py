"""
Tests for the output sink: temp files, atomic rename and the compression filter.
"""
import gzip
import os
import shutil
import pytest
from splitar.errors import ConfigError, FilterProcessError, VolumeWriteError
from splitar.sink import OutputSink, compressor_cmd

needs_gzip = pytest.mark.skipif(shutil.which("gzip") is None, reason="gzip not installed")


@pytest.fixture(autouse=True)
def plain_shell(monkeypatch):
    monkeypatch.setenv("SHELL", "/bin/sh")


def test_commit_renames_temp_file(outdir):
    """Test that bytes land in a temp file first and move into place on commit."""
    sink = OutputSink(str(outdir / "vol."))
    handle = sink.open(1)
    assert handle.target == outdir / "vol.00001"
    assert handle.temp_path.parent == outdir
    assert handle.temp_path.name.startswith("vol.00001.")

    handle.write(b"hello")
    assert not handle.target.exists()

    path = sink.commit(handle)

    assert path == outdir / "vol.00001"
    assert path.read_bytes() == b"hello"
    assert handle.bytes_written == 5
    assert os.listdir(outdir) == ["vol.00001"]


def test_committed_file_mode_follows_umask(outdir):
    old = os.umask(0o022)
    try:
        sink = OutputSink(str(outdir / "vol."))
        path = sink.commit(sink.open(1))
    finally:
        os.umask(old)
    assert path.stat().st_mode & 0o777 == 0o644


def test_abort_removes_temp_file(outdir):
    sink = OutputSink(str(outdir / "vol."))
    handle = sink.open(1)
    handle.write(b"partial")

    sink.abort(handle)
    sink.abort(handle)

    assert os.listdir(outdir) == []
    # Late writes are dropped silently.
    assert handle.write(b"more") == 4


def test_abort_after_commit_keeps_volume(outdir):
    sink = OutputSink(str(outdir / "vol."))
    handle = sink.open(1)
    sink.commit(handle)
    sink.abort(handle)
    assert os.listdir(outdir) == ["vol.00001"]


def test_open_in_missing_directory(tmp_path):
    sink = OutputSink(str(tmp_path / "missing" / "vol."))
    with pytest.raises(VolumeWriteError) as exc:
        sink.open(3)
    assert exc.value.volume_index == 3


@needs_gzip
def test_filter_compresses_volume(outdir):
    sink = OutputSink(str(outdir / "vol."), compression_filter="gzip -1")
    handle = sink.open(1)
    handle.write(b"abc" * 1000)
    path = sink.commit(handle)

    assert gzip.decompress(path.read_bytes()) == b"abc" * 1000
    # Counted before compression.
    assert handle.bytes_written == 3000


def test_filter_sees_volume_environment(outdir):
    cmd = """cat > /dev/null; printf '%s %s' "$SPLITAR_VOLUME_INDEX" "$SPLITAR_VOLUME_PATH" """
    sink = OutputSink(str(outdir / "vol."), suffix_length=2, compression_filter=cmd)
    path = sink.commit(sink.open(4))
    assert path.read_text() == f"4 {outdir / 'vol.04'}"


def test_failing_filter_keeps_nothing(outdir):
    sink = OutputSink(str(outdir / "vol."), compression_filter="cat > /dev/null; exit 7")
    handle = sink.open(1)
    handle.write(b"data")

    with pytest.raises(FilterProcessError) as exc:
        sink.commit(handle)
    assert exc.value.returncode == 7

    sink.abort(handle)
    assert os.listdir(outdir) == []


def test_filter_abort_kills_process(outdir):
    sink = OutputSink(str(outdir / "vol."), compression_filter="sleep 30")
    handle = sink.open(1)
    sink.abort(handle)
    assert os.listdir(outdir) == []


def test_compressor_cmd():
    assert compressor_cmd("zstd -T0", None) == "zstd -T0"
    assert compressor_cmd("gzip", 9) == "gzip -9"
    assert compressor_cmd(" xz ", 3) == "xz -3"
    with pytest.raises(ConfigError):
        compressor_cmd("zstd -T0", 3)
