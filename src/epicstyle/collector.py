"""Source file collection with pattern matching."""
import hashlib
from pathlib import Path, PurePath

from epicstyle.config import Config
from epicstyle.logging_config import get_logger

logger = get_logger(__name__)


def collect_directory(root_path: Path, config: Config) -> list[Path]:
    """Collect files under a directory matching the include patterns.

    Args:
        root_path: Directory to search from
        config: Configuration with include/exclude patterns

    Returns:
        Sorted list of matching file paths
    """
    found: set[Path] = set()

    for pattern in config.include:
        if pattern.startswith("**/"):
            matching = root_path.rglob(pattern[3:])
        else:
            matching = root_path.glob(pattern)

        for file_path in matching:
            if not file_path.is_file():
                continue
            relative = file_path.relative_to(root_path)
            if not is_excluded(relative, config.exclude):
                found.add(file_path)

    return sorted(found)


def collect_source_files(paths: list[Path], config: Config) -> list[Path]:
    """Expand the given paths into the list of files to analyze.

    Directories are searched with the include/exclude patterns; an explicit
    file is kept whatever its extension.

    Args:
        paths: Files or directories given by the user
        config: Configuration with include/exclude patterns

    Returns:
        Sorted list of unique file paths
    """
    files: set[Path] = set()
    for path in paths:
        if path.is_dir():
            collected = collect_directory(path, config)
            logger.info(f"Collected {len(collected)} files under {path}")
            files.update(collected)
        else:
            files.add(path)
    return sorted(files)


def compute_file_hash(file_path: Path) -> str:
    """Compute SHA256 hash of file content.

    Args:
        file_path: Path to file

    Returns:
        Hex digest of file content hash

    Raises:
        OSError: If the file cannot be read
    """
    hash_obj = hashlib.sha256()
    try:
        with file_path.open("rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                hash_obj.update(chunk)
    except OSError as e:
        raise OSError(f"Failed to read file {file_path}: {e}") from e

    return hash_obj.hexdigest()


def is_excluded(relative_path: Path, exclude_patterns: list[str]) -> bool:
    """Check if file is excluded by patterns.

    Uses pathlib.PurePath.match() for glob-style matching. Supports `**`
    for recursive matching.

    Args:
        relative_path: File path relative to the searched directory
        exclude_patterns: List of exclude patterns

    Returns:
        True if file should be excluded
    """
    path_obj = PurePath(relative_path)

    for pattern in exclude_patterns:
        if path_obj.match(pattern):
            return True

        if "**" not in pattern:
            continue

        # "**/dirname/**": any path component
        if pattern.startswith("**/") and pattern.endswith("/**"):
            if pattern[3:-3] in path_obj.parts:
                return True

        # "dirname/**": path starts with dirname
        elif pattern.endswith("/**"):
            prefix = pattern[:-3]
            for parent in path_obj.parents:
                if parent != PurePath(".") and (parent.match(prefix) or str(parent) == prefix):
                    return True

        # "**/name.c": match anywhere, including the top level
        elif pattern.startswith("**/"):
            if path_obj.match(pattern[3:]):
                return True

    return False
