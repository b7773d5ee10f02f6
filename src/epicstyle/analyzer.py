"""Per-file pipeline and the parallel run over a set of paths."""
import os
import sys
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable

from epicstyle.aggregator import merge_results
from epicstyle.cache import Cache, CacheEntry, compute_config_hash, load_cache, save_cache
from epicstyle.collector import collect_source_files, compute_file_hash
from epicstyle.config import Config
from epicstyle.engine import evaluate_rules
from epicstyle.file_reader import FileReadError, max_size_bytes, read_source
from epicstyle.indexer import index_source
from epicstyle.logging_config import get_logger
from epicstyle.metrics import AnalysisMetrics
from epicstyle.registry import DEFAULT_REGISTRY, RuleRegistry
from epicstyle.tokenizer import scan_source
from epicstyle.types import FileAnalysis, Report
from epicstyle.validation import validate_paths, validate_rule_ids, validate_workers

logger = get_logger(__name__)

NO_PROGRESS_ENV = "EPICSTYLE_NO_PROGRESS"


def analyze_source(
    path: str, text: str, config: Config, registry: RuleRegistry | None = None
) -> FileAnalysis:
    """Tokenize, index and check one file's text.

    Args:
        path: Path reported in violations
        text: File content
        config: Checker settings
        registry: Rules to evaluate, the default catalog when None

    Returns:
        FileAnalysis with the file's violations
    """
    source = scan_source(text, path)
    model = index_source(source)
    violations = evaluate_rules(source, model, config, registry)
    return FileAnalysis(path=path, line_count=source.line_count, violations=tuple(violations))


def analyze_file(
    file_path: Path, config: Config, registry: RuleRegistry | None = None
) -> FileAnalysis:
    """Read and check one file. Never raises for a per-file failure.

    Args:
        file_path: File to check
        config: Checker settings
        registry: Rules to evaluate, the default catalog when None

    Returns:
        FileAnalysis, with `error` set when the file could not be analyzed
    """
    path = str(file_path)
    try:
        text = read_source(file_path, max_size_bytes(config.max_file_size_mb))
    except FileReadError as e:
        logger.warning(f"Skipping {path}: {e}")
        return FileAnalysis(path=path, error=str(e))

    try:
        return analyze_source(path, text, config, registry)
    except Exception as e:
        logger.error(f"Internal error while analyzing {path}", exc_info=True)
        return FileAnalysis(path=path, error=f"internal error: {e}")


def should_show_progress(config: Config) -> bool:
    """Progress is drawn only for an interactive stderr."""
    if not config.show_progress or os.environ.get(NO_PROGRESS_ENV):
        return False
    return sys.stderr.isatty()


def _split_cached(
    files: list[Path], cache: Cache | None
) -> tuple[list[FileAnalysis], list[tuple[Path, str | None]]]:
    """Separate files served from cache from files needing analysis.

    Returns:
        Tuple of (cached analyses, [(file, current hash)] to analyze)
    """
    cached: list[FileAnalysis] = []
    pending: list[tuple[Path, str | None]] = []

    for file_path in files:
        if cache is None:
            pending.append((file_path, None))
            continue
        try:
            file_hash = compute_file_hash(file_path)
        except OSError:
            # The reader reports the failure
            pending.append((file_path, None))
            continue
        entry = cache.lookup(str(file_path), file_hash)
        if entry is None:
            pending.append((file_path, file_hash))
        else:
            cached.append(
                FileAnalysis(
                    path=str(file_path),
                    line_count=entry.line_count,
                    violations=tuple(entry.violations),
                )
            )

    return cached, pending


def _analyze_parallel(
    pending: list[Path],
    config: Config,
    registry: RuleRegistry,
    on_done: Callable[[FileAnalysis], None] | None = None,
) -> list[FileAnalysis]:
    """Analyze files on a thread pool.

    Raises:
        KeyboardInterrupt: After cancelling the pending work
    """
    results: list[FileAnalysis] = []
    executor = ThreadPoolExecutor(max_workers=config.workers)
    try:
        futures: list[Future[FileAnalysis]] = [
            executor.submit(analyze_file, file_path, config, registry) for file_path in pending
        ]
        for future in as_completed(futures):
            analysis = future.result()
            results.append(analysis)
            if on_done is not None:
                on_done(analysis)
    except KeyboardInterrupt:
        logger.warning("Interrupted, cancelling pending files")
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    executor.shutdown(wait=True)
    return results


def _analyze_with_progress(
    pending: list[Path], config: Config, registry: RuleRegistry
) -> list[FileAnalysis]:
    if not should_show_progress(config):
        return _analyze_parallel(pending, config, registry)

    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("[bold cyan]{task.fields[status]}"),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        task = progress.add_task("Checking files", total=len(pending), status="Starting...")

        def on_done(analysis: FileAnalysis) -> None:
            progress.update(task, advance=1, status=Path(analysis.path).name)

        return _analyze_parallel(pending, config, registry, on_done)


def run_style_check(
    paths: list[Path], config: Config, registry: RuleRegistry | None = None
) -> tuple[Report, AnalysisMetrics]:
    """Check every source file under the given paths.

    Args:
        paths: Files or directories to check
        config: Checker settings
        registry: Rules to evaluate, the default catalog when None

    Returns:
        Tuple of (report, metrics object)

    Raises:
        ValueError: If inputs are invalid
        KeyboardInterrupt: If the run is interrupted
    """
    registry = registry if registry is not None else DEFAULT_REGISTRY
    metrics = AnalysisMetrics()

    validate_paths(paths)
    validate_workers(config.workers)
    validate_rule_ids(config.disabled_rules, registry)

    files = collect_source_files(paths, config)
    metrics.total_files_collected = len(files)
    logger.info(f"Checking {len(files)} files with {config.workers} workers")

    cache: Cache | None = None
    cache_path = Path(config.cache_file) if config.cache_file else None
    if cache_path is not None:
        active_ids = [rule.rule_id for rule in registry.active_rules(config)]
        cache = load_cache(cache_path, compute_config_hash(config, active_ids))

    cached, pending = _split_cached(files, cache)
    metrics.record_cache_split(len(cached), len(pending), cache is not None)

    fresh = _analyze_with_progress([file_path for file_path, _ in pending], config, registry)

    if cache is not None and cache_path is not None:
        hashes = {str(file_path): file_hash for file_path, file_hash in pending}
        now = int(time.time())
        for analysis in fresh:
            file_hash = hashes.get(analysis.path)
            if analysis.error is None and file_hash is not None:
                cache.entries[analysis.path] = CacheEntry(
                    file_hash=file_hash,
                    line_count=analysis.line_count,
                    violations=list(analysis.violations),
                    timestamp=now,
                )
        try:
            save_cache(cache, cache_path)
        except OSError as e:
            logger.warning(f"Could not write cache {cache_path}: {e}")

    metrics.record_analyses(fresh, cached)
    report = merge_results(cached + fresh)
    metrics.finish()
    return report, metrics
