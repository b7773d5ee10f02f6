"""Cache management for per-file analysis results."""
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from epicstyle.config import Config
from epicstyle.file_utils import atomic_write_json
from epicstyle.logging_config import get_logger
from epicstyle.types import Violation

logger = get_logger(__name__)

CACHE_VERSION = 1


@dataclass
class CacheEntry:
    """Cache entry for a single file."""

    file_hash: str
    line_count: int
    violations: list[Violation]
    timestamp: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_hash": self.file_hash,
            "line_count": self.line_count,
            "violations": [v.to_dict() for v in self.violations],
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        return cls(
            file_hash=data["file_hash"],
            line_count=data["line_count"],
            violations=[Violation.from_dict(v) for v in data["violations"]],
            timestamp=data["timestamp"],
        )


@dataclass
class Cache:
    """Analysis results for files checked under one configuration."""

    config_hash: str
    entries: dict[str, CacheEntry] = field(default_factory=dict)

    def lookup(self, path: str, file_hash: str) -> CacheEntry | None:
        """Return the entry for path if the file is unchanged."""
        entry = self.entries.get(path)
        if entry is None or entry.file_hash != file_hash:
            return None
        return entry


def compute_config_hash(config: Config, rule_ids: list[str]) -> str:
    """Hash the settings that influence violations.

    Execution settings (workers, progress, cache location, discovery
    patterns) are left out so they do not invalidate the cache.

    Args:
        config: Checker settings
        rule_ids: Ids of the active rules

    Returns:
        Hex digest
    """
    relevant = config.model_dump(
        exclude={"include", "exclude", "workers", "show_progress", "cache_file", "strict"}
    )
    payload = json.dumps(
        {"version": CACHE_VERSION, "config": relevant, "rules": sorted(rule_ids)},
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def load_cache(cache_path: Path, config_hash: str) -> Cache:
    """Load cache from file or return an empty cache.

    A cache written under a different configuration is discarded.

    Args:
        cache_path: Path to cache file
        config_hash: Hash of the current configuration

    Returns:
        Cache object
    """
    if not cache_path.exists():
        return Cache(config_hash=config_hash)

    try:
        with cache_path.open(encoding="utf-8") as f:
            data = json.load(f)
        if data.get("configHash") != config_hash:
            logger.info("Configuration changed, ignoring cache")
            return Cache(config_hash=config_hash)
        entries = {
            path: CacheEntry.from_dict(entry_data)
            for path, entry_data in data.get("entries", {}).items()
        }
    except (OSError, json.JSONDecodeError, AttributeError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Ignoring unreadable cache {cache_path}: {e}")
        return Cache(config_hash=config_hash)

    return Cache(config_hash=config_hash, entries=entries)


def save_cache(cache: Cache, cache_path: Path) -> None:
    """Save cache to file atomically.

    Args:
        cache: Cache object to save
        cache_path: Path to cache file
    """
    data = {
        "configHash": cache.config_hash,
        "entries": {path: entry.to_dict() for path, entry in sorted(cache.entries.items())},
    }
    atomic_write_json(data, cache_path)
