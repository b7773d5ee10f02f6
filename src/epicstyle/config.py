"""Configuration management for epicstyle."""
import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

CONFIG_FILENAME = ".epicstyle.json"


class Config(BaseModel):
    """Settings consumed by the checker, with validation."""

    include: list[str] = Field(
        default_factory=lambda: ["**/*.c", "**/*.h"],
        min_length=1,
        description="File patterns searched inside directories",
    )
    exclude: list[str] = Field(default_factory=list, description="File patterns to exclude")

    max_line_length: int = Field(default=80, gt=0, description="Column limit per physical line")
    max_function_lines: int = Field(default=25, gt=0, description="Body lines per function")
    max_params: int = Field(default=4, ge=0, description="Parameters per function")
    max_functions_per_file: int = Field(default=5, gt=0, description="Functions per file")
    allow_line_comments: bool = Field(default=False, description="Accept // comments")
    indent_char: Literal["tab", "space"] = Field(default="tab", description="Indent character")
    tab_width: int = Field(default=4, gt=0, le=16, description="Tab width for line length")
    function_case: Literal["snake_case", "camel_case", "pascal_case"] = Field(
        default="snake_case", description="Required function naming convention"
    )
    require_main_comment: bool = Field(
        default=False, description="Require a documentation comment on main"
    )

    level: int = Field(default=2, ge=1, le=2, description="1 = base rules, 2 = all rules")
    disabled_rules: list[str] = Field(default_factory=list, description="Rule ids to skip")
    strict: bool = Field(default=False, description="Minor violations also fail the run")

    workers: int = Field(default=4, gt=0, le=64, description="Files analyzed in parallel")
    max_file_size_mb: float = Field(default=1.0, gt=0, le=10, description="Maximum file size in MB")
    show_progress: bool = Field(default=True, description="Show progress bar")
    cache_file: str | None = Field(default=None, description="Result cache location")

    @field_validator("include")
    @classmethod
    def validate_include_patterns(cls, v: list[str]) -> list[str]:
        """Ensure include patterns are non-empty strings."""
        for pattern in v:
            if not pattern.strip():
                raise ValueError("include patterns cannot be empty strings")
        return v

    @field_validator("disabled_rules")
    @classmethod
    def normalize_rule_ids(cls, v: list[str]) -> list[str]:
        """Rule ids are matched case-insensitively."""
        return sorted({rule_id.strip().upper() for rule_id in v if rule_id.strip()})

    model_config = {"frozen": False}


def get_default_config() -> Config:
    """Return default configuration.

    Returns:
        Config with default values
    """
    return Config(
        include=["**/*.c", "**/*.h"],
        exclude=[".git/**", "build/**"],
        max_line_length=80,
        max_function_lines=25,
        max_params=4,
        max_functions_per_file=5,
        allow_line_comments=False,
        indent_char="tab",
        tab_width=4,
        function_case="snake_case",
        require_main_comment=False,
        level=2,
        disabled_rules=[],
        strict=False,
        workers=4,
        max_file_size_mb=1.0,
        show_progress=True,
        cache_file=None,
    )


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def load_config(config_path: Path) -> Config:
    """Load configuration from file or return defaults.

    Supports both snake_case (preferred) and camelCase keys.

    Args:
        config_path: Path to .epicstyle.json file

    Returns:
        Config object with loaded or default values

    Raises:
        ValueError: If the file is not valid JSON or values are invalid
    """
    if not config_path.exists():
        return get_default_config()

    with config_path.open(encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Configuration in {config_path} must be a JSON object")

    defaults = get_default_config()
    config_data = {}
    for name in Config.model_fields:
        value = data.get(name, data.get(_camel_case(name), getattr(defaults, name)))
        config_data[name] = value

    return Config(**config_data)
