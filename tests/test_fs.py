from __future__ import annotations

import json
from pathlib import Path

import pytest

from aibuddy.fs import Artifacts, is_ignored, parse_ignore_patterns, read_json, safe_abs, write_file, write_json


def test_parse_ignore_patterns_skips_comments_and_blank_lines() -> None:
    rules = parse_ignore_patterns("# comment\n\nbuild/\n!keep.md\n/docs\n")

    assert [(r.negated, r.pattern, r.rooted, r.dir_only) for r in rules] == [
        (False, "build", False, True),
        (True, "keep.md", False, False),
        (False, "docs", True, False),
    ]


def test_is_ignored_directory_rule_matches_anywhere(tmp_path: Path) -> None:
    (tmp_path / ".aibuddyignore").write_text("vendor/\n", encoding="utf-8")

    assert is_ignored(tmp_path, "vendor/lib.js")
    assert is_ignored(tmp_path, "web/vendor/lib.js")
    assert not is_ignored(tmp_path, "vendor.js")


def test_is_ignored_rooted_rule_only_matches_at_root(tmp_path: Path) -> None:
    (tmp_path / ".aibuddyignore").write_text("/docs\n", encoding="utf-8")

    assert is_ignored(tmp_path, "docs/guide.md")
    assert not is_ignored(tmp_path, "src/docs/guide.md")


def test_is_ignored_double_star_prefix_matches_at_any_depth(tmp_path: Path) -> None:
    (tmp_path / ".aibuddyignore").write_text("**/build\n**/gen/*.py\n", encoding="utf-8")

    assert is_ignored(tmp_path, "build/out.js")
    assert is_ignored(tmp_path, "web/build/out.js")
    assert is_ignored(tmp_path, "gen/api.py")
    assert is_ignored(tmp_path, "pkg/gen/api.py")
    assert not is_ignored(tmp_path, "builder.py")


def test_is_ignored_last_rule_wins_and_negation_unignores(tmp_path: Path) -> None:
    (tmp_path / ".aibuddyignore").write_text("*.md\n!docs/keep.md\n", encoding="utf-8")

    assert is_ignored(tmp_path, "README.md")
    assert is_ignored(tmp_path, "docs/other.md")
    assert not is_ignored(tmp_path, "docs/keep.md")
    assert not is_ignored(tmp_path, "main.py")


def test_is_ignored_without_ignore_file(tmp_path: Path) -> None:
    assert not is_ignored(tmp_path, "anything/at/all.py")


def test_safe_abs_rejects_escape(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="escapes repo root"):
        safe_abs(tmp_path, "../outside.txt")


def test_write_file_creates_parent_directories(tmp_path: Path) -> None:
    written = write_file(tmp_path, "a/b/c.txt", "hello")

    assert written == (tmp_path / "a" / "b" / "c.txt").resolve()
    assert written.read_text(encoding="utf-8") == "hello"


def test_read_json_returns_default_for_missing_or_invalid(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    assert read_json(tmp_path / "missing.json", {"x": 1}) == {"x": 1}
    assert read_json(broken, {}) == {}


def test_write_json_is_pretty_printed(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "doc.json"
    write_json(target, {"k": ["v"]})

    assert json.loads(target.read_text(encoding="utf-8")) == {"k": ["v"]}
    assert "\n  " in target.read_text(encoding="utf-8")
    assert not (tmp_path / "nested" / "doc.json.tmp").exists()


def test_artifacts_removed_on_exit() -> None:
    with Artifacts() as artifacts:
        artifacts.write_prompt("prompt")
        artifacts.write_request({"model": "m"})
        artifacts.write_reply("{}")
        root = artifacts.root
        assert artifacts.prompt_file.read_text(encoding="utf-8") == "prompt"
    assert not root.exists()


def test_artifacts_kept_when_requested() -> None:
    with Artifacts(keep=True) as artifacts:
        artifacts.write_reply("{}")
    try:
        assert artifacts.reply_file.exists()
    finally:
        artifacts.keep = False
        artifacts.cleanup()
