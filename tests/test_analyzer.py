import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from epicstyle.analyzer import analyze_file, analyze_source, run_style_check, should_show_progress
from epicstyle.config import Config
from epicstyle.registry import RuleRegistry
from epicstyle.types import Severity

CLEAN = "/*\n** Entry point\n*/\nint main(void)\n{\n\treturn (0);\n}\n"
DIRTY = "int g_counter;\n// comment\n"


def test_analyze_source():
    """Test the in-memory pipeline."""
    analysis = analyze_source("dirty.c", DIRTY, Config())

    assert analysis.path == "dirty.c"
    assert analysis.line_count == 2
    assert analysis.error is None
    assert [v.rule_id for v in analysis.violations] == ["COMMENT_STYLE", "GLOBAL_MUTABLE"]


def test_analyze_file_missing_is_error():
    """Test that an unreadable file becomes an error record."""
    analysis = analyze_file(Path("/nonexistent/file.c"), Config())

    assert analysis.error == "file not found"
    assert analysis.violations == ()


def test_analyze_file_internal_error_is_recorded():
    """Test that an unexpected exception does not escape."""
    with tempfile.TemporaryDirectory() as tmpdir:
        file_path = Path(tmpdir) / "main.c"
        file_path.write_text(CLEAN)

        with patch("epicstyle.analyzer.index_source", side_effect=RuntimeError("boom")):
            analysis = analyze_file(file_path, Config())

        assert analysis.error == "internal error: boom"


def test_run_style_check_directory():
    """Test collecting and checking a directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        (tmpdir / "src").mkdir()
        (tmpdir / "src" / "clean.c").write_text(CLEAN)
        (tmpdir / "src" / "dirty.c").write_text(DIRTY)
        (tmpdir / "README.md").write_text("docs")

        report, metrics = run_style_check([tmpdir], Config(show_progress=False))

        assert [Path(f.path).name for f in report.files] == ["clean.c", "dirty.c"]
        assert report.major_count == 2
        assert metrics.total_files_collected == 2
        assert metrics.files_analyzed == 2
        assert metrics.lines_scanned == 9


def test_run_style_check_size_limit():
    """Test that oversized files are reported as errors and others continue."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        (tmpdir / "small.c").write_text(CLEAN)
        (tmpdir / "large.c").write_text("/* " + "x" * (2 * 1024 * 1024) + " */\n")

        report, metrics = run_style_check([tmpdir], Config(show_progress=False))

        assert [Path(e.path).name for e in report.errors] == ["large.c"]
        assert "size limit" in report.errors[0].message
        assert [Path(f.path).name for f in report.files] == ["small.c"]
        assert metrics.files_failed == 1


def test_run_style_check_validation():
    """Test fatal input errors."""
    with pytest.raises(ValueError, match="No input paths"):
        run_style_check([], Config())

    with pytest.raises(ValueError, match="does not exist"):
        run_style_check([Path("/nonexistent")], Config())

    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ValueError, match="Unknown rule id"):
            run_style_check([Path(tmpdir)], Config(disabled_rules=["NOT_A_RULE"]))


def test_run_style_check_custom_registry():
    """Test running a caller-supplied rule set."""
    registry = RuleRegistry()

    @registry.register("NO_MAIN", Severity.MINOR, "main is forbidden")
    def check_main(source, model, config):
        for function in model.functions:
            if function.name == "main":
                yield function.line, "main found"

    with tempfile.TemporaryDirectory() as tmpdir:
        file_path = Path(tmpdir) / "prog.c"
        file_path.write_text(CLEAN)

        report, _ = run_style_check([file_path], Config(show_progress=False), registry)

        assert [(v.rule_id, v.line) for v in report.violations] == [("NO_MAIN", 4)]


def test_cache_hits_reproduce_report():
    """Test that a second run served from cache gives the same report."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        (tmpdir / "clean.c").write_text(CLEAN)
        (tmpdir / "dirty.c").write_text(DIRTY)
        cache_file = tmpdir / "cache" / "results.json"
        config = Config(show_progress=False, cache_file=str(cache_file), include=["**/*.c"])

        fresh, first_metrics = run_style_check([tmpdir], config)
        cached, second_metrics = run_style_check([tmpdir], config)

        assert cache_file.exists()
        assert first_metrics.cache_misses == 2
        assert second_metrics.cache_hits == 2
        assert second_metrics.files_analyzed == 0
        assert cached == fresh


def test_cache_invalidated_by_file_change():
    """Test that editing a file re-analyzes it."""
    with tempfile.TemporaryDirectory() as tmpdir:
        tmpdir = Path(tmpdir)
        source = tmpdir / "prog.c"
        source.write_text(CLEAN)
        cache_file = tmpdir / "results.json"
        config = Config(show_progress=False, cache_file=str(cache_file))

        run_style_check([source], config)
        source.write_text(DIRTY)
        report, metrics = run_style_check([source], config)

        assert metrics.cache_hits == 0
        assert report.major_count == 2
        stored = json.loads(cache_file.read_text())
        assert len(stored["entries"][str(source)]["violations"]) == 2


def test_progress_disabled_by_config_and_environment():
    """Test when the progress bar is drawn."""
    assert not should_show_progress(Config(show_progress=False))

    with patch("epicstyle.analyzer.sys") as mock_sys:
        mock_sys.stderr.isatty.return_value = True

        with patch.dict(os.environ, {"EPICSTYLE_NO_PROGRESS": "1"}):
            assert not should_show_progress(Config())

        with patch.dict(os.environ, {}):
            os.environ.pop("EPICSTYLE_NO_PROGRESS", None)
            assert should_show_progress(Config())
            mock_sys.stderr.isatty.return_value = False
            assert not should_show_progress(Config())


def test_keyboard_interrupt_propagates():
    """Test that an interrupt cancels the run and propagates."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "a.c").write_text(CLEAN)

        with patch("epicstyle.analyzer.as_completed", side_effect=KeyboardInterrupt()):
            with pytest.raises(KeyboardInterrupt):
                run_style_check([Path(tmpdir)], Config(show_progress=False))


def test_run_with_progress_bar():
    """Test that the progress bar path produces the same report."""
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "a.c").write_text(DIRTY)
        config = Config(show_progress=False)

        plain, _ = run_style_check([Path(tmpdir)], config)
        with patch("epicstyle.analyzer.should_show_progress", return_value=True):
            drawn, _ = run_style_check([Path(tmpdir)], config)

        assert drawn == plain
