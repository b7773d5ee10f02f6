"""File operation utilities."""
import json
from pathlib import Path
from typing import Any


def atomic_write_json(data: Any, target_path: Path) -> None:
    """Write JSON data atomically so the target is never half-written.

    Args:
        data: Data to serialize as JSON
        target_path: Target file path

    Raises:
        OSError: If the write fails
        TypeError: If data cannot be serialized
    """
    # Same directory as the target, so the replace stays on one filesystem
    tmp_path = target_path.with_name(target_path.name + ".tmp")
    target_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
        tmp_path.replace(target_path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink()
        raise
