"""Input validation functions."""
from pathlib import Path
from typing import Container, Iterable


def validate_paths(paths: list[Path]) -> None:
    """Validate the paths to check.

    Args:
        paths: Files or directories given by the user

    Raises:
        ValueError: If no path is given or a path does not exist
    """
    if not paths:
        raise ValueError("No input paths given")

    for path in paths:
        if not path.exists():
            raise ValueError(f"Path does not exist: {path}")


def validate_workers(workers: int) -> None:
    """Validate worker count.

    Args:
        workers: Number of worker threads

    Raises:
        ValueError: If worker count is not positive
    """
    if workers <= 0:
        raise ValueError(f"Worker count must be positive, got: {workers}")


def validate_rule_ids(rule_ids: Iterable[str], known: Container[str]) -> None:
    """Validate that every rule id names a registered rule.

    Args:
        rule_ids: Rule ids to check, such as the disabled rules
        known: Registered rule ids

    Raises:
        ValueError: If a rule id is unknown
    """
    unknown = sorted(rule_id for rule_id in rule_ids if rule_id not in known)
    if unknown:
        raise ValueError(f"Unknown rule id: {', '.join(unknown)}")
