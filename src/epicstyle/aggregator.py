"""Merge per-file results into a single deterministic report."""
from typing import Iterable

from epicstyle.types import FileAnalysis, FileError, FileSummary, Report, Severity, Violation

MAJOR_PENALTY = 5
MINOR_PENALTY = 2


def compute_score(major: int, minor: int) -> float:
    """Score a file out of 100.

    Args:
        major: Number of major violations
        minor: Number of minor violations

    Returns:
        Score between 0 and 100
    """
    return float(max(0, 100 - MAJOR_PENALTY * major - MINOR_PENALTY * minor))


def deduplicate(violations: Iterable[Violation]) -> list[Violation]:
    """Keep one violation per (rule id, file, line), the lowest message wins."""
    kept: dict[tuple[str, str, int], Violation] = {}
    for violation in violations:
        current = kept.get(violation.key)
        if current is None or violation.message < current.message:
            kept[violation.key] = violation
    return sorted(kept.values(), key=lambda v: v.sort_key)


def merge_results(analyses: Iterable[FileAnalysis]) -> Report:
    """Combine file analyses, in any order, into a Report.

    The result depends only on the set of analyses, never on their order.

    Args:
        analyses: Per-file results

    Returns:
        Report with sorted violations, errors and file summaries
    """
    all_violations: list[Violation] = []
    errors: list[FileError] = []
    analyzed: list[FileAnalysis] = []

    for analysis in analyses:
        if analysis.error is not None:
            errors.append(FileError(path=analysis.path, message=analysis.error))
            continue
        analyzed.append(analysis)
        all_violations.extend(analysis.violations)

    violations = deduplicate(all_violations)

    counts: dict[str, list[int]] = {}
    for violation in violations:
        per_file = counts.setdefault(violation.path, [0, 0])
        per_file[0 if violation.severity is Severity.MAJOR else 1] += 1

    files = []
    for analysis in sorted(analyzed, key=lambda a: a.path):
        major, minor = counts.get(analysis.path, (0, 0))
        files.append(
            FileSummary(
                path=analysis.path,
                line_count=analysis.line_count,
                major=major,
                minor=minor,
                score=compute_score(major, minor),
            )
        )

    return Report(
        violations=tuple(violations),
        errors=tuple(sorted(errors, key=lambda e: (e.path, e.message))),
        files=tuple(files),
    )
