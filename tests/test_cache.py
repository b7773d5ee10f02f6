import json
import tempfile
from pathlib import Path

from epicstyle.cache import Cache, CacheEntry, compute_config_hash, load_cache, save_cache
from epicstyle.config import Config
from epicstyle.types import Severity, Violation


def _entry(file_hash="filehash1", message="line is 90 columns wide (max 80)"):
    return CacheEntry(
        file_hash=file_hash,
        line_count=12,
        violations=[Violation("LINE_LENGTH", Severity.MINOR, "main.c", 3, message)],
        timestamp=1234567890,
    )


def test_load_cache_missing_file():
    """Test loading cache when file doesn't exist."""
    with tempfile.TemporaryDirectory() as tmpdir:
        cache = load_cache(Path(tmpdir) / "cache.json", "hash123")

        assert cache.entries == {}
        assert cache.config_hash == "hash123"


def test_save_and_load_cache():
    """Test saving and loading cache."""
    with tempfile.TemporaryDirectory() as tmpdir:
        cache_path = Path(tmpdir) / "cache.json"
        cache = Cache(config_hash="hash123", entries={"main.c": _entry()})

        save_cache(cache, cache_path)
        loaded = load_cache(cache_path, "hash123")

        assert loaded.entries["main.c"].file_hash == "filehash1"
        assert loaded.entries["main.c"].line_count == 12
        assert loaded.entries["main.c"].violations == _entry().violations


def test_cache_discarded_on_config_change():
    """Test that a cache written under other settings is ignored."""
    with tempfile.TemporaryDirectory() as tmpdir:
        cache_path = Path(tmpdir) / "cache.json"
        save_cache(Cache(config_hash="old_hash", entries={"main.c": _entry()}), cache_path)

        loaded = load_cache(cache_path, "new_hash")

        assert loaded.entries == {}
        assert loaded.config_hash == "new_hash"


def test_corrupt_cache_is_ignored():
    """Test that unreadable cache content yields an empty cache."""
    with tempfile.TemporaryDirectory() as tmpdir:
        cache_path = Path(tmpdir) / "cache.json"

        cache_path.write_text("{broken")
        assert load_cache(cache_path, "h").entries == {}

        cache_path.write_text(json.dumps({"configHash": "h", "entries": {"a.c": {"x": 1}}}))
        assert load_cache(cache_path, "h").entries == {}


def test_lookup_requires_same_file_hash():
    """Test that a changed file misses the cache."""
    cache = Cache(config_hash="h", entries={"main.c": _entry()})

    assert cache.lookup("main.c", "filehash1") is not None
    assert cache.lookup("main.c", "changed") is None
    assert cache.lookup("other.c", "filehash1") is None


def test_cache_handles_non_ascii_content(tmp_path):
    """Test that cache handles non-ASCII messages and paths."""
    cache = Cache(config_hash="h", entries={"café.c": _entry(message="nom café ☕")})
    cache_path = tmp_path / ".cache.json"

    save_cache(cache, cache_path)
    loaded = load_cache(cache_path, "h")

    assert loaded.entries["café.c"].violations[0].message == "nom café ☕"


def test_config_hash_ignores_execution_settings():
    """Test which settings invalidate the cache."""
    rules = ["LINE_LENGTH"]
    base = compute_config_hash(Config(), rules)

    assert compute_config_hash(Config(workers=16, show_progress=False), rules) == base
    assert compute_config_hash(Config(max_line_length=100), rules) != base
    assert compute_config_hash(Config(), rules + ["COMMENT_STYLE"]) != base
