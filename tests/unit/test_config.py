"""Unit tests for configuration."""

from pathlib import Path

import pytest

from outliner.config import Config, load_config, save_config
from outliner.exceptions import ConfigParseError, ConfigValidationError


def test_default_config() -> None:
    """Test that default config has sensible values."""
    config = Config()
    assert config.colored_output is True
    assert config.default_format == "table"
    assert config.quick_search_limit == 10
    assert config.lenient is False
    assert config.config_path is None


def test_load_missing_config(temp_dir: Path) -> None:
    """Test loading when config file doesn't exist."""
    config_path = temp_dir / "nonexistent.toml"
    config, warnings = load_config(config_path)

    assert config is not None
    assert any("No config file found" in w for w in warnings)


def test_load_valid_config(sample_config: Path, sample_outline_path: Path) -> None:
    """Test loading a valid config file."""
    config, warnings = load_config(sample_config)

    assert config.outline == sample_outline_path
    assert config.colored_output is False
    assert config.default_format == "ids"
    assert config.quick_search_limit == 3
    assert config.config_path == sample_config.resolve()
    assert warnings == []


def test_load_invalid_toml(temp_dir: Path) -> None:
    """Test loading invalid TOML raises error."""
    config_path = temp_dir / "invalid.toml"
    config_path.write_text("this is not valid [ toml")

    with pytest.raises(ConfigParseError):
        load_config(config_path)


@pytest.mark.parametrize(
    "content",
    [
        '[display]\ncolored_output = "not a boolean"\n',
        "[paths]\noutline = 3\n",
        "[search]\nquick_search_limit = true\n",
        '[search]\nquick_search_limit = "10"\n',
        '[search]\nlenient = "yes"\n',
        "[search]\nfields = [1, 2]\n",
        "[search]\ndefault_format = 1\n",
    ],
)
def test_config_validation_invalid_type(temp_dir: Path, content: str) -> None:
    """Test that invalid types raise validation error."""
    config_path = temp_dir / "bad_types.toml"
    config_path.write_text(content)

    with pytest.raises(ConfigValidationError):
        load_config(config_path)


def test_unknown_format_warns_and_falls_back(temp_dir: Path) -> None:
    config_path = temp_dir / "config.toml"
    config_path.write_text('[search]\ndefault_format = "xml"\nquick_search_limit = 0\n')

    config, warnings = load_config(config_path)

    assert config.default_format == "table"
    assert config.quick_search_limit == 10
    assert any("default_format" in w for w in warnings)
    assert any("quick_search_limit" in w for w in warnings)


def test_missing_outline_warns(temp_dir: Path) -> None:
    config = Config(outline=temp_dir / "missing.json")
    warnings = config.validate()
    assert any("Outline not found" in w for w in warnings)


def test_config_path_expansion() -> None:
    """Test that paths are expanded."""
    config = Config(outline=Path("~/outline.json"))
    config.validate()

    assert "~" not in str(config.outline)


def test_save_and_reload(temp_dir: Path, sample_outline_path: Path) -> None:
    config = Config(
        outline=sample_outline_path,
        colored_output=False,
        default_format="jsonl",
        lenient=True,
        fields="id,path",
    )
    config_path = temp_dir / "nested" / "config.toml"
    save_config(config, config_path)

    loaded, warnings = load_config(config_path)

    assert warnings == []
    assert loaded.outline == sample_outline_path
    assert loaded.colored_output is False
    assert loaded.default_format == "jsonl"
    assert loaded.lenient is True
    assert loaded.fields == "id,path"
    assert loaded.quick_search_limit == 10


def test_save_omits_default_search_values(temp_dir: Path) -> None:
    config_path = temp_dir / "config.toml"
    save_config(Config(), config_path)
    assert "[search]" not in config_path.read_text()
