"""End-to-end tests over the fixture sources."""
import json
import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from epicstyle.analyzer import run_style_check
from epicstyle.cli import main
from epicstyle.config import Config

FIXTURES = Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def test_project(tmp_path):
    """Copy the fixture sources into a temporary project."""
    project_dir = tmp_path / "project"
    shutil.copytree(FIXTURES, project_dir)
    return project_dir


def _found(report, name):
    return [(v.line, v.rule_id) for v in report.violations if Path(v.path).name == name]


def test_conformant_files_have_no_violations(test_project):
    """Test that the clean fixtures pass."""
    report, _ = run_style_check(
        [test_project / "good_example.c", test_project / "header_example.h"],
        Config(show_progress=False),
    )

    assert report.violations == ()
    assert report.errors == ()
    assert len(report.files) == 2


def test_bad_example_violations(test_project):
    """Test the full violation list of the non-conformant fixture."""
    report, _ = run_style_check([test_project / "bad_example.c"], Config(show_progress=False))

    assert _found(report, "bad_example.c") == [
        (3, "COMMENT_STYLE"),
        (4, "MACRO_NAMING"),
        (6, "GLOBAL_MUTABLE"),
        (8, "FUNC_HEADER_COMMENT"),
        (8, "FUNC_NAMING"),
        (8, "FUNC_TOO_MANY_PARAMS"),
        (10, "INDENT_STYLE"),
        (10, "MULTI_DECL_LINE"),
        (12, "INDENT_STYLE"),
        (13, "INDENT_STYLE"),
        (13, "LATE_DECLARATION"),
        (14, "FOR_LOOP_DECLARATION"),
        (14, "INDENT_STYLE"),
        (15, "INDENT_STYLE"),
        (16, "INDENT_STYLE"),
        (17, "INDENT_STYLE"),
        (18, "INDENT_STYLE"),
        (19, "INDENT_STYLE"),
        (22, "FUNC_HEADER_COMMENT"),
        (24, "LINE_LENGTH"),
    ]


def test_mixed_errors_violations(test_project):
    """Test the mixed fixture."""
    report, _ = run_style_check([test_project / "mixed_errors.c"], Config(show_progress=False))

    assert _found(report, "mixed_errors.c") == [
        (3, "MACRO_NAMING"),
        (5, "FUNC_HEADER_COMMENT"),
        (5, "FUNC_NAMING"),
        (7, "MULTI_DECL_LINE"),
        (8, "COMMENT_STYLE"),
    ]


def test_bad_file_name(test_project):
    """Test that only the file name is reported for BadFileName.c."""
    report, _ = run_style_check([test_project / "BadFileName.c"], Config(show_progress=False))

    assert _found(report, "BadFileName.c") == [(1, "FILE_NAMING")]
    assert report.major_count == 0


def test_directory_scan_via_cli(test_project, monkeypatch):
    """Test a whole-directory run through the command line."""
    monkeypatch.chdir(test_project)

    result = CliRunner().invoke(main, [".", "--json", "--no-progress"])

    assert result.exit_code == 1
    data = json.loads(result.output)
    assert sorted(Path(f["file"]).name for f in data["files"]) == [
        "BadFileName.c",
        "bad_example.c",
        "good_example.c",
        "header_example.h",
        "mixed_errors.c",
    ]
    assert data["summary"]["errors"] == 0
    assert data["metrics"]["total_files_collected"] == 5


def test_repeated_runs_identical(test_project):
    """Test that two runs over the same input give the same report."""
    config = Config(show_progress=False, workers=3)

    first, _ = run_style_check([test_project], config)
    second, _ = run_style_check([test_project], config)

    assert first == second


def test_input_order_does_not_matter(test_project):
    """Test that the order of input paths does not change the report."""
    files = sorted(test_project.glob("*.[ch]"))
    config = Config(show_progress=False)

    forward, _ = run_style_check(files, config)
    backward, _ = run_style_check(list(reversed(files)), config)

    assert forward == backward
