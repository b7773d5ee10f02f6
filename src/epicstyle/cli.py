"""Command-line interface for epicstyle."""
import sys
from pathlib import Path

import click

from epicstyle.__version__ import __version__
from epicstyle.analyzer import run_style_check
from epicstyle.config import CONFIG_FILENAME, load_config
from epicstyle.logging_config import get_logger, setup_logging
from epicstyle.registry import DEFAULT_REGISTRY
from epicstyle.reporter import (
    EXIT_FATAL,
    EXIT_INTERRUPTED,
    format_detailed_report,
    format_json_report,
    format_text_report,
    get_exit_code,
)


def _list_rules() -> str:
    lines = []
    for rule in DEFAULT_REGISTRY:
        lines.append(
            f"{rule.rule_id:<24} {rule.severity.value:<6} level {rule.level}  {rule.description}"
        )
    return "\n".join(lines)


@click.command()
@click.version_option(version=__version__, prog_name="epicstyle")
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--detailed", is_flag=True, help="Per-file report with scores and metrics")
@click.option("--silent", is_flag=True, help="No output, exit code only")
@click.option("--verbose", is_flag=True, help="Enable verbose logging")
@click.option("--quiet", is_flag=True, help="Suppress warnings (errors only)")
@click.option("--config", type=click.Path(exists=True), help="Path to config file")
@click.option("--strict", is_flag=True, help="Minor violations also fail")
@click.option("--level", type=click.IntRange(1, 2), help="1 = base rules, 2 = all rules")
@click.option("--disable", multiple=True, metavar="RULE", help="Disable a rule (repeatable)")
@click.option("--jobs", "-j", type=int, help="Number of worker threads")
@click.option("--no-progress", is_flag=True, help="Never show the progress bar")
@click.option("--cache", "cache_file", type=click.Path(), help="Cache results in this file")
@click.option("--list-rules", is_flag=True, help="List available rules and exit")
def main(
    paths: tuple[Path, ...],
    output_json: bool,
    detailed: bool,
    silent: bool,
    verbose: bool,
    quiet: bool,
    config: str | None,
    strict: bool,
    level: int | None,
    disable: tuple[str, ...],
    jobs: int | None,
    no_progress: bool,
    cache_file: str | None,
    list_rules: bool,
) -> None:
    """Epicstyle: C coding style checker."""
    setup_logging(verbose=verbose, quiet=quiet or silent)

    if list_rules:
        click.echo(_list_rules())
        sys.exit(0)

    if output_json and detailed:
        click.echo("Error: --json and --detailed cannot be combined", err=True)
        sys.exit(EXIT_FATAL)

    try:
        config_path = Path(config) if config else Path.cwd() / CONFIG_FILENAME
        cfg = load_config(config_path)

        overrides: dict[str, object] = {}
        if strict:
            overrides["strict"] = True
        if level is not None:
            overrides["level"] = level
        if disable:
            overrides["disabled_rules"] = [*cfg.disabled_rules, *disable]
        if jobs is not None:
            overrides["workers"] = jobs
        if no_progress or silent or output_json:
            overrides["show_progress"] = False
        if cache_file:
            overrides["cache_file"] = cache_file
        if overrides:
            # Re-validate so command-line values obey the same constraints
            cfg = cfg.model_validate({**cfg.model_dump(), **overrides})

        report, metrics = run_style_check(list(paths), cfg)

        if not silent:
            if output_json:
                output = format_json_report(report, metrics)
            elif detailed:
                output = format_detailed_report(report, metrics)
            else:
                output = format_text_report(report)
            click.echo(output)

        sys.exit(get_exit_code(report, strict=cfg.strict))

    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FATAL)
    except Exception as e:
        logger = get_logger(__name__)
        logger.exception("Unexpected error during execution")
        click.echo(
            f"An unexpected error occurred: {e}\nRun with --verbose for details.", err=True
        )
        sys.exit(EXIT_FATAL)


if __name__ == "__main__":
    main()
