import json
import tempfile
from pathlib import Path

import pytest

from epicstyle.config import get_default_config, load_config


def test_load_config_with_defaults():
    """Test loading config with default values."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".epicstyle.json"
        config_path.write_text(json.dumps({}))

        config = load_config(config_path)

        assert config.include == ["**/*.c", "**/*.h"]
        assert config.exclude == [".git/**", "build/**"]
        assert config.max_line_length == 80
        assert config.max_function_lines == 25
        assert config.max_params == 4
        assert config.max_functions_per_file == 5
        assert config.indent_char == "tab"
        assert not config.allow_line_comments


def test_load_config_with_custom_values():
    """Test loading config with custom values."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".epicstyle.json"
        config_data = {
            "include": ["src/**/*.c"],
            "exclude": ["vendor/**"],
            "max_line_length": 100,
            "indent_char": "space",
        }
        config_path.write_text(json.dumps(config_data))

        config = load_config(config_path)

        assert config.include == ["src/**/*.c"]
        assert config.exclude == ["vendor/**"]
        assert config.max_line_length == 100
        assert config.indent_char == "space"


def test_load_config_camel_case_keys():
    """Test that camelCase keys are accepted."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".epicstyle.json"
        config_path.write_text(
            json.dumps({"maxFunctionLines": 40, "allowLineComments": True, "disabledRules": ["x"]})
        )

        config = load_config(config_path)

        assert config.max_function_lines == 40
        assert config.allow_line_comments
        assert config.disabled_rules == ["X"]


def test_load_config_missing_file():
    """Test loading config when file doesn't exist uses defaults."""
    config = load_config(Path("/nonexistent/.epicstyle.json"))

    assert config.include == ["**/*.c", "**/*.h"]
    assert config.level == 2


def test_load_config_invalid_json():
    """Test that malformed JSON is a ValueError."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".epicstyle.json"
        config_path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid JSON"):
            load_config(config_path)


def test_load_config_not_an_object():
    """Test that a JSON list is rejected."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / ".epicstyle.json"
        config_path.write_text("[1, 2]")

        with pytest.raises(ValueError, match="JSON object"):
            load_config(config_path)


def test_default_config_values():
    """Test default execution settings."""
    config = get_default_config()

    assert config.workers == 4
    assert config.max_file_size_mb == 1.0
    assert config.show_progress
    assert config.cache_file is None
    assert not config.require_main_comment
