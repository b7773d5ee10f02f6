"""Counters for one style-check run.

The analyzer feeds an `AnalysisMetrics` as the run progresses: once after
collection, once after the cache split, and once with the finished
per-file analyses. Reporters read it back through the properties or
`to_dict`.
"""
import time
from dataclasses import dataclass, field
from typing import Iterable

from epicstyle.types import FileAnalysis


@dataclass
class AnalysisMetrics:
    """Counters for a run.

    `lines_scanned` and `violations_found` cover every analysis in the
    report, cached or fresh. `files_failed` counts files that produced a
    file error instead of an analysis.
    """

    started_at: float = field(default_factory=time.time)
    finished_at: float | None = None

    total_files_collected: int = 0
    files_from_cache: int = 0
    files_analyzed: int = 0
    files_failed: int = 0
    lines_scanned: int = 0
    violations_found: int = 0

    cache_hits: int = 0
    cache_misses: int = 0

    def record_cache_split(self, cached: int, pending: int, cache_enabled: bool) -> None:
        """Account for files served from cache and files left to analyze."""
        self.files_from_cache = cached
        self.cache_hits = cached
        self.cache_misses = pending if cache_enabled else 0

    def record_analyses(
        self, fresh: Iterable[FileAnalysis], cached: Iterable[FileAnalysis] = ()
    ) -> None:
        """Add the per-file outcomes of a run."""
        for analysis in fresh:
            self._count(analysis)
            if analysis.error is None:
                self.files_analyzed += 1
        for analysis in cached:
            self._count(analysis)

    def _count(self, analysis: FileAnalysis) -> None:
        if analysis.error is not None:
            self.files_failed += 1
        self.lines_scanned += analysis.line_count
        self.violations_found += len(analysis.violations)

    def finish(self) -> None:
        self.finished_at = time.time()

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at or time.time()
        return end - self.started_at

    @property
    def lines_per_second(self) -> float:
        elapsed = self.elapsed_seconds
        if elapsed <= 0:
            return 0.0
        return self.lines_scanned / elapsed

    @property
    def cache_hit_rate(self) -> float:
        """Percentage of cache lookups that were hits, 0 without a cache."""
        lookups = self.cache_hits + self.cache_misses
        return (self.cache_hits / lookups) * 100 if lookups else 0.0

    def to_dict(self) -> dict:
        """Flatten the counters for the JSON report."""
        return {
            "total_files_collected": self.total_files_collected,
            "files_analyzed": self.files_analyzed,
            "files_from_cache": self.files_from_cache,
            "files_failed": self.files_failed,
            "lines_scanned": self.lines_scanned,
            "violations_found": self.violations_found,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_hit_rate": round(self.cache_hit_rate, 1),
            "elapsed_seconds": round(self.elapsed_seconds, 2),
            "lines_per_second": round(self.lines_per_second, 1),
        }
