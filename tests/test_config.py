"""
Tests for configuration loading and validation.
"""
import pytest
from pathlib import Path

from splitar.config import find_config, load_config
from splitar.errors import ConfigError
from splitar.types import Config


def test_load_config_basic(temp_config_file):
    """Test basic configuration loading."""
    config = load_config(temp_config_file, output_template="out/backup.tar.")

    assert isinstance(config, Config)
    assert config.chunk_limit == 30 * 1024
    assert config.fail_on_oversized_file is True
    assert config.recreate_directories is True
    assert config.output_template == "out/backup.tar."
    assert config.suffix_length == 3
    assert config.compression_filter == "gzip"
    assert config.compression_level == 6
    assert config.summary_path == Path("/tmp/splitar-test-summary.json")
    assert config.log_level == "DEBUG"
    assert config.transfer_window == 16 * 1024


def test_config_defaults():
    """Test that configuration uses proper defaults."""
    config = load_config(None, chunk_limit=1000, output_template="out.")

    assert config.fail_on_oversized_file is False
    assert config.recreate_directories is False
    assert config.suffix_length == 5
    assert config.compression_filter is None
    assert config.compression_level is None
    assert config.summary_path is None
    assert config.verbose is False
    assert config.log_level == "WARNING"
    assert config.transfer_window == 8192


def test_overrides_win_over_file(temp_config_file):
    """Test that CLI values replace file values and None leaves them alone."""
    config = load_config(
        temp_config_file,
        chunk_limit=5000,
        output_template="x.",
        suffix_length=None,
        compression_filter="zstd",
        compression_level=None,
    )
    assert config.chunk_limit == 5000
    assert config.suffix_length == 3
    assert config.compression_filter == "zstd"
    assert config.compression_level == 6


def test_template_from_file(tmp_path):
    path = tmp_path / "splitar.toml"
    path.write_text('[split]\nmax_size = 100\n[output]\ntemplate = "vol-{index}.tar"\n[runtime]\nverbose = true\n')
    config = load_config(path)
    assert config.output_template == "vol-{index}.tar"
    assert config.chunk_limit == 100
    assert config.verbose is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"output_template": "out."},
        {"chunk_limit": 1000},
        {"chunk_limit": 0, "output_template": "out."},
        {"chunk_limit": 1000, "output_template": "-"},
        {"chunk_limit": 1000, "output_template": "out.", "suffix_length": 0},
        {"chunk_limit": 1000, "output_template": "out.", "log_level": "chatty"},
        {"chunk_limit": "1Q", "output_template": "out."},
    ],
)
def test_invalid_config(overrides):
    """Test that bad values are reported as configuration errors."""
    with pytest.raises(ConfigError):
        load_config(None, **overrides)


def test_fixed_name_template_rejected():
    # Without a real placeholder every volume would overwrite the first.
    with pytest.raises(ConfigError, match="same name"):
        load_config(None, chunk_limit=1000, output_template="out/{{index}}.tar")


def test_unknown_override():
    with pytest.raises(TypeError):
        load_config(None, chunk_limit=1, output_template="o.", workers=3)


def test_invalid_toml(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("[split\nmax_size = ")
    with pytest.raises(ConfigError):
        load_config(path, output_template="o.")


def test_find_config(tmp_path, monkeypatch):
    """Test the config search order."""
    monkeypatch.chdir(tmp_path)
    assert find_config(None) is None

    (tmp_path / "splitar.toml").write_text("")
    assert find_config(None) == Path("splitar.toml")

    explicit = tmp_path / "other.toml"
    explicit.write_text("")
    assert find_config(str(explicit)) == explicit

    with pytest.raises(FileNotFoundError):
        find_config(str(tmp_path / "missing.toml"))


def test_level_needs_bare_compressor():
    with pytest.raises(ConfigError, match="bare compressor"):
        load_config(None, chunk_limit=1, output_template="o.", compression_filter="zstd -T0", compression_level=3)


@pytest.mark.parametrize(
    "section, key",
    [("split", "fail_on_large_file"), ("split", "recreate_dirs"), ("runtime", "verbose")],
)
def test_flags_must_be_booleans(tmp_path, section, key):
    """Test that quoted flags are refused rather than read as true."""
    path = tmp_path / "splitar.toml"
    tables = {"split": {"max_size": "100"}}
    tables.setdefault(section, {})[key] = '"false"'
    path.write_text("".join(
        f"[{name}]\n" + "".join(f"{k} = {v}\n" for k, v in body.items()) for name, body in tables.items()
    ))
    with pytest.raises(ConfigError, match="true or false"):
        load_config(path, output_template="o.")
