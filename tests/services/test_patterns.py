from __future__ import annotations

import pytest

from devtidy.config.schema import PatternRule
from devtidy.services.patterns import (
    _segment_glob,
    classify_by_name,
    first_gitignore_match,
    gitignore_category,
    glob_match,
    matches_gitignore_line,
    parse_gitignore,
)


# ── classify_by_name ────────────────────────────────────────────────


@pytest.mark.parametrize(
    ("name", "category"),
    [
        ("node_modules", "Node.js dependencies"),
        ("target", "Rust build artifacts"),
        ("__pycache__", "Python cache"),
        (".venv", "Python virtual environment"),
        ("cmake-build-release", "CMake build artifacts"),
        ("DerivedData", "Xcode derived data"),
        ("server.log", "Log files"),
        ("scratch.tmp", "Temporary files"),
    ],
)
def test_classify_builtin_names(name: str, category: str) -> None:
    assert classify_by_name(name) == category


def test_classify_is_exact_for_literal_patterns() -> None:
    assert classify_by_name("node_modules_backup") is None
    assert classify_by_name("Build") is None
    assert classify_by_name("environment") is None


def test_classify_glob_applies_to_base_name_only() -> None:
    assert classify_by_name("/a/b/error.log") == "Log files"
    assert classify_by_name("/logs.log/inner") is None
    assert classify_by_name("error.log.txt") is None


def test_classify_first_rule_wins() -> None:
    rules = [PatternRule("*.out", "first"), PatternRule("a.out", "second")]
    assert classify_by_name("a.out", rules) == "first"


def test_classify_with_custom_rules() -> None:
    rules = [PatternRule("coverage", "Coverage reports")]
    assert classify_by_name("coverage", rules) == "Coverage reports"
    assert classify_by_name("node_modules", rules) is None


# ── glob_match ──────────────────────────────────────────────────────


def test_glob_star_does_not_cross_separator() -> None:
    assert glob_match("*.log", "error.log")
    assert not glob_match("*.log", "logs/error.log")
    assert glob_match("logs/*.log", "logs/error.log")


def test_glob_question_mark_and_classes() -> None:
    assert glob_match("file?.txt", "file1.txt")
    assert not glob_match("file?.txt", "file10.txt")
    assert glob_match("[abc].tmp", "b.tmp")
    assert not glob_match("[abc].tmp", "d.tmp")
    assert glob_match("[^abc].tmp", "d.tmp")
    assert glob_match("[!abc].tmp", "d.tmp")


def test_glob_escapes_regex_metacharacters() -> None:
    assert glob_match("a+b.(1)", "a+b.(1)")
    assert not glob_match("a.b", "axb")


def test_malformed_glob_never_matches() -> None:
    assert _segment_glob("[abc") is None
    assert not glob_match("[abc", "[abc")
    assert not glob_match("trailing\\", "trailing\\")


# ── gitignore parsing ───────────────────────────────────────────────


def test_parse_gitignore_drops_blank_comment_and_negated_lines() -> None:
    text = "\n".join(
        [
            "# build output",
            "build/",
            "",
            "   ",
            "!keep.log",
            "  *.log  ",
            "dist",
        ]
    )
    assert parse_gitignore(text) == ["build/", "*.log", "dist"]


# ── matches_gitignore_line ──────────────────────────────────────────


def test_directory_anchor_pattern() -> None:
    assert matches_gitignore_line("build/", "build")
    assert matches_gitignore_line("build/", "build/output")
    assert not matches_gitignore_line("build/", "src/builder")
    assert not matches_gitignore_line("build/", "builder")


def test_star_pattern_matches_base_name_or_full_path() -> None:
    assert matches_gitignore_line("*.log", "error.log")
    assert matches_gitignore_line("*.log", "logs/error.log")
    assert not matches_gitignore_line("*.log", "error.log.txt")
    assert matches_gitignore_line("src/*", "src/gen")
    assert not matches_gitignore_line("src/*", "lib/gen")


def test_literal_pattern_is_permissive() -> None:
    assert matches_gitignore_line("build", "build")
    assert matches_gitignore_line("build", "src/build")
    # Substring containment is intentional and over-matches.
    assert matches_gitignore_line("env", "environment-data")
    assert not matches_gitignore_line("dist", "src/lib")


def test_first_gitignore_match_short_circuits_in_order() -> None:
    lines = ["out/", "*.cache", "out"]
    assert first_gitignore_match(lines, "out/x") == "out/"
    assert first_gitignore_match(lines, "pkg/a.cache") == "*.cache"
    assert first_gitignore_match(lines, "src") is None


def test_gitignore_category_label() -> None:
    assert gitignore_category("build/") == "Gitignore pattern: build/"
