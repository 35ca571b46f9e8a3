"""Tests for the scanner: file walks, header parsing, snapshot, subprocess helpers."""

import os
import time
from dataclasses import replace
from datetime import datetime

import pytest

from kbaudit.errors import AuditAbort
from kbaudit.scanner import MISSING, parse_frontmatter, scan_repo
from kbaudit.scanner.files import find_stale, list_files, modified_within, relpath
from kbaudit.scanner.frontmatter import has_frontmatter
from kbaudit.scanner.repo import recent_activity
from kbaudit.scanner.shell import git_count, run_command

from conftest import make_config, make_snapshot, write_doc


def test_list_files_sorted_and_skips_hidden(tmp_path):
    (tmp_path / "b.md").write_text("b")
    (tmp_path / "a.md").write_text("a")
    (tmp_path / "notes.txt").write_text("x")
    (tmp_path / ".hidden.md").write_text("h")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "inside.md").write_text("g")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.md").write_text("c")
    names = [relpath(p, tmp_path) for p in list_files(tmp_path)]
    assert names == ["a.md", "b.md", "sub/c.md"]


def test_list_files_missing_root_is_empty(tmp_path):
    assert list_files(tmp_path / "nope") == []


def test_list_files_symlink_loop_walked_once(tmp_path):
    (tmp_path / "a.md").write_text("a")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.md").write_text("c")
    (tmp_path / "loop").symlink_to(tmp_path, target_is_directory=True)
    (tmp_path / "sub" / "up").symlink_to(tmp_path, target_is_directory=True)
    names = [relpath(p, tmp_path) for p in list_files(tmp_path)]
    assert names == ["a.md", "sub/c.md"]


def test_list_files_multiple_extensions(tmp_path):
    (tmp_path / "run.sh").write_text("")
    (tmp_path / "sync.js").write_text("")
    (tmp_path / "readme.md").write_text("")
    names = [p.name for p in list_files(tmp_path, (".js", ".sh"))]
    assert names == ["run.sh", "sync.js"]


def test_find_stale_and_modified_within(tmp_path):
    old = tmp_path / "old.md"
    new = tmp_path / "new.md"
    old.write_text("o")
    new.write_text("n")
    past = time.time() - 40 * 86400
    os.utime(old, (past, past))
    now = datetime.now()
    assert find_stale([old, new], now, days=30) == [old]
    assert modified_within(new, now, 7)
    assert not modified_within(old, now, 7)


def test_parse_complete_header():
    meta = parse_frontmatter(
        "---\ntitle: \"Opening Range\"\ncategory: trading\ntags: [orb, 'intraday']\nsummary: x\n---\nbody"
    )
    assert meta is not None
    assert meta.scalar("title") == "Opening Range"
    assert meta.as_list("tags") == ["orb", "intraday"]
    assert meta.missing_keys() == []


def test_parse_missing_key_is_sentinel():
    meta = parse_frontmatter("---\ntitle: x\n---\n")
    assert meta.get("summary") is MISSING
    assert not meta.get("summary")
    assert meta.missing_keys() == ["category", "tags", "summary"]


def test_parse_empty_value_counts_as_missing():
    meta = parse_frontmatter("---\ntitle: x\ncategory: y\ntags: []\nsummary:\n---\n")
    assert "tags" in meta
    assert meta.missing_keys() == ["tags", "summary"]


def test_parse_no_header_or_unterminated():
    assert parse_frontmatter("# Just a heading\n") is None
    assert parse_frontmatter("---\ntitle: never closed\n") is None
    assert not has_frontmatter("plain")
    assert has_frontmatter("\n\n---\ntitle: x\n---")


def test_parse_skips_malformed_lines():
    meta = parse_frontmatter("---\ntitle: x\nthis line has no colon\n: empty key\n---\n")
    assert meta.keys() == ["title"]


def test_scan_repo_requires_repo_and_knowledge(config):
    with pytest.raises(AuditAbort, match="knowledge/ directory not found"):
        scan_repo(config)
    write_doc(config.repo_path, "research/a.md")
    snap = scan_repo(config)
    assert snap.name == "brain"


def test_scan_repo_missing_root(tmp_path):
    cfg = replace(make_config(tmp_path), repo_path=tmp_path / "absent")
    with pytest.raises(AuditAbort, match="Repository not found"):
        scan_repo(cfg)


def test_snapshot_stats_and_daily_logs(config, repo):
    write_doc(repo, "research/a.md")
    mem = repo / "memory"
    mem.mkdir()
    (mem / "2026-02-01.md").write_text("log")
    (mem / "MEMORY.md").write_text("distilled")
    scripts = repo / "scripts"
    (scripts / "_archive").mkdir(parents=True)
    (scripts / "sync.js").write_text("")
    (scripts / "_archive" / "sync-old.js").write_text("")
    snap = make_snapshot(config)
    stats = snap.stats()
    assert stats.kb_files == 1
    assert stats.memory_files == 2
    assert stats.daily_logs == 1
    assert stats.scripts == 2
    assert [p.name for p in snap.active_scripts] == ["sync.js"]


def test_run_command_missing_binary_degrades(tmp_path):
    result = run_command(["definitely-not-a-real-binary-kbaudit"], tmp_path, timeout=5)
    assert not result.ok
    assert result.output == ""


def test_git_count_outside_repo_is_zero(tmp_path):
    assert git_count(tmp_path, "HEAD..origin/master", timeout=5) == 0


def test_recent_activity_without_git(config, repo):
    write_doc(repo, "research/a.md")
    lines = recent_activity(make_snapshot(config))
    assert lines == ["No new commits in the last 24h."]
