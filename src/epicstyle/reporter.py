"""Report formatting and output."""
import json

from epicstyle.metrics import AnalysisMetrics
from epicstyle.types import FileError, Report, Violation

EXIT_CLEAN = 0
EXIT_VIOLATIONS = 1
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130


def format_violation(violation: Violation) -> str:
    """Format one violation as `path:line: severity: RULE: message`."""
    return (
        f"{violation.path}:{violation.line}: {violation.severity.value}: "
        f"{violation.rule_id}: {violation.message}"
    )


def format_file_error(error: FileError) -> str:
    return f"{error.path}: error: {error.message}"


def format_summary_line(report: Report) -> str:
    return (
        f"{report.major_count} major, {report.minor_count} minor, {report.total} total "
        f"({len(report.files)} files, {len(report.errors)} errors)"
    )


def format_text_report(report: Report) -> str:
    """Format the report one violation per line, followed by a summary line.

    Args:
        report: Merged report

    Returns:
        Formatted report string
    """
    lines = [format_violation(v) for v in report.violations]
    lines.extend(format_file_error(e) for e in report.errors)
    lines.append(format_summary_line(report))
    return "\n".join(lines)


def format_detailed_report(report: Report, metrics: AnalysisMetrics) -> str:
    """Format the report as per-file blocks with scores and run metrics.

    Args:
        report: Merged report
        metrics: Analysis metrics

    Returns:
        Formatted report string
    """
    by_file: dict[str, list[Violation]] = {}
    for violation in report.violations:
        by_file.setdefault(violation.path, []).append(violation)

    lines = []
    lines.append("=" * 70)
    lines.append("C STYLE CONFORMANCE REPORT")
    lines.append("=" * 70)
    lines.append("")

    for summary in report.files:
        violations = by_file.get(summary.path, [])
        if violations:
            lines.append(f"[FILE] {summary.path} (score {summary.score:.1f})")
            lines.append(
                f"   {len(violations)} violation(s) found: "
                f"{summary.major} major, {summary.minor} minor"
            )
            lines.append("")

            for violation in violations:
                tag = violation.severity.value.upper()
                lines.append(f"   [{tag}] [{violation.rule_id}] (line {violation.line})")
                lines.append(f"      {violation.message}")
                lines.append("")
        else:
            lines.append(f"[OK] {summary.path} (score {summary.score:.1f})")
            lines.append("   No violations")
            lines.append("")

    for error in report.errors:
        lines.append(f"[ERROR] {error.path}")
        lines.append(f"   {error.message}")
        lines.append("")

    lines.append("=" * 70)
    lines.append("SUMMARY")
    lines.append("=" * 70)
    lines.append(format_summary_line(report))
    lines.append(f"Average score: {report.score:.1f}")
    lines.append("")

    lines.append("=" * 70)
    lines.append("ANALYSIS METRICS")
    lines.append("=" * 70)
    lines.append(f"Elapsed time: {metrics.elapsed_seconds:.2f}s")
    lines.append(f"Files collected: {metrics.total_files_collected}")
    lines.append(f"Files from cache: {metrics.files_from_cache}")
    lines.append(f"Files analyzed: {metrics.files_analyzed}")
    lines.append(f"Files failed: {metrics.files_failed}")
    lines.append(
        f"Lines scanned: {metrics.lines_scanned} ({metrics.lines_per_second:.0f} lines/s)"
    )
    lines.append(f"Cache hit rate: {metrics.cache_hit_rate:.1f}%")
    lines.append("")

    return "\n".join(lines)


def format_json_report(report: Report, metrics: AnalysisMetrics | None = None) -> str:
    """Format the report as JSON.

    Args:
        report: Merged report
        metrics: Analysis metrics, included when given

    Returns:
        JSON string
    """
    data = {
        "violations": [v.to_dict() for v in report.violations],
        "errors": [{"file": e.path, "message": e.message} for e in report.errors],
        "files": [f.to_dict() for f in report.files],
        "summary": get_summary(report),
    }
    if metrics is not None:
        data["metrics"] = metrics.to_dict()

    return json.dumps(data, indent=2)


def get_exit_code(report: Report, strict: bool = False) -> int:
    """Get exit code based on the report.

    Args:
        report: Merged report
        strict: Minor violations also fail the run

    Returns:
        0 if the run passes, 1 if it fails
    """
    if report.major_count:
        return EXIT_VIOLATIONS
    if strict and report.minor_count:
        return EXIT_VIOLATIONS
    return EXIT_CLEAN


def get_summary(report: Report) -> dict[str, int | float]:
    """Get summary statistics.

    Args:
        report: Merged report

    Returns:
        Dict with summary counts
    """
    return {
        "major": report.major_count,
        "minor": report.minor_count,
        "total": report.total,
        "files": len(report.files),
        "errors": len(report.errors),
        "files_with_violations": sum(1 for f in report.files if f.major or f.minor),
        "score": report.score,
    }
