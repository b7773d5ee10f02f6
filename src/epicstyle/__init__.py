"""Epicstyle: C coding style checker."""

from epicstyle.__version__ import __version__
from epicstyle.analyzer import analyze_file, analyze_source, run_style_check
from epicstyle.config import Config, get_default_config, load_config
from epicstyle.registry import DEFAULT_REGISTRY, Rule, RuleRegistry, register_rule
from epicstyle.types import FileError, Report, Severity, Violation

__all__ = [
    "__version__",
    "Config",
    "load_config",
    "get_default_config",
    "run_style_check",
    "analyze_file",
    "analyze_source",
    "Rule",
    "RuleRegistry",
    "DEFAULT_REGISTRY",
    "register_rule",
    "Severity",
    "Violation",
    "FileError",
    "Report",
]
