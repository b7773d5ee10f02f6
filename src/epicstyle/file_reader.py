"""File reading with encoding fallback and size limits."""
from pathlib import Path

from epicstyle.logging_config import get_logger

logger = get_logger(__name__)


class FileReadError(Exception):
    """A source file could not be read."""


def read_source(file_path: Path, max_size_bytes: int) -> str:
    """Read a source file with encoding fallback and size checking.

    Tries UTF-8 first, falls back to latin-1. Checks file size before reading.

    Args:
        file_path: Path to file
        max_size_bytes: Maximum allowed file size in bytes

    Returns:
        File content as string

    Raises:
        FileReadError: If the file is missing, too large or unreadable
    """
    try:
        file_size = file_path.stat().st_size
    except FileNotFoundError as e:
        raise FileReadError("file not found") from e
    except OSError as e:
        raise FileReadError(f"cannot stat file: {e.strerror or e}") from e

    if file_size > max_size_bytes:
        raise FileReadError(
            f"file exceeds size limit "
            f"({file_size / 1024 / 1024:.2f}MB > {max_size_bytes / 1024 / 1024:.2f}MB)"
        )

    try:
        raw = file_path.read_bytes()
    except OSError as e:
        raise FileReadError(f"cannot read file: {e.strerror or e}") from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        # latin-1 accepts all byte sequences
        logger.warning(f"File {file_path} is not valid UTF-8, reading as latin-1")
        return raw.decode("latin-1")


def max_size_bytes(max_size_mb: float) -> int:
    """Convert a megabyte limit to bytes."""
    return int(max_size_mb * 1024 * 1024)
