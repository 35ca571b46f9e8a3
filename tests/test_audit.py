"""Integration tests: full audit pipeline on throwaway repositories."""

import json
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from kbaudit import fixes, notify
from kbaudit.audit import run_audit
from kbaudit.checks import CHECKS
from kbaudit.errors import AuditAbort
from kbaudit.fixes import REBUILD_INDEX
from kbaudit.format import ALL_CLEAR
from kbaudit.models import Grade, Severity
from kbaudit.scanner.shell import CommandResult

from conftest import healthy_repo, make_config, write_doc, write_indexes


def _trend_entries(config):
    return json.loads(config.trends_path.read_text())["entries"]


def test_missing_knowledge_aborts_without_report(config):
    with pytest.raises(AuditAbort):
        run_audit(config)
    assert not config.reports_dir.exists()


def test_healthy_repo_grades_a_and_is_idempotent(config, repo):
    healthy_repo(repo, 10)
    outcome = run_audit(config)
    run = outcome.run
    assert run.grade == Grade.A
    assert run.critical_count == 0
    assert run.warning_count == 0
    text = outcome.report_path.read_text()
    assert ALL_CLEAR in text
    assert outcome.report_path.name == "audit-2026-03-02.md"

    again = run_audit(config)
    assert again.report_path == outcome.report_path
    entries = _trend_entries(config)
    assert len(entries) == 1
    assert entries[0]["date"] == "2026-03-02"
    assert entries[0]["kbFileCount"] == 10
    assert entries[0]["grade"] == "A"
    assert again.run.tracked_days == 1
    assert again.run.delta is None


def test_second_day_shows_delta_and_regression(tmp_path):
    day1 = make_config(tmp_path, now=datetime(2026, 3, 2, 3, 0))
    repo = day1.repo_path
    rels = healthy_repo(repo, 10)
    run_audit(day1)

    write_doc(repo, "research/leak.md", "---\ntitle: x\ncategory: y\ntags: [a]\nsummary: s\n---\nAKIAABCDEFGHIJKLMNOP\n")
    write_indexes(repo, rels + ["research/leak.md"])
    day2 = make_config(tmp_path, now=datetime(2026, 3, 3, 3, 0))
    run = run_audit(day2).run
    assert run.grade == Grade.F
    assert run.previous.date == "2026-03-02"
    assert run.delta.kb_files == 1
    assert run.delta.grade_change == "A -> F"
    assert "Criticals increased: 0 -> 1" in run.regressions
    assert len(_trend_entries(day2)) == 2


def test_incomplete_metadata_single_warning(config, repo):
    rels = healthy_repo(repo, 5)
    for i in range(3):
        rel = f"research/partial-{i}.md"
        write_doc(repo, rel, "---\ntitle: x\n---\n")
        rels.append(rel)
    write_indexes(repo, rels)
    run = run_audit(config).run
    frontmatter = [f for f in run.findings if f.category == "Frontmatter"]
    assert [f.severity for f in frontmatter] == [Severity.WARNING]
    assert run.grade == Grade.B


def test_circuit_open_job_grades_f(config, repo):
    healthy_repo(repo, 3)
    config.job_health_path.parent.mkdir(parents=True)
    config.job_health_path.write_text(json.dumps({"jobs": [
        {"id": "kb-sync", "status": "error", "consecutiveFailures": 4, "circuitOpen": True,
         "lastRunAt": "2026-02-20T03:00:00"},
    ]}))
    run = run_audit(config).run
    job_findings = [f for f in run.findings if f.category == "Jobs"]
    assert len(job_findings) == 1
    assert job_findings[0].severity == Severity.CRITICAL
    assert run.grade == Grade.F


def test_corrupt_trend_file_is_critical_and_restarted(config, repo):
    healthy_repo(repo, 3)
    config.trends_path.parent.mkdir(parents=True)
    config.trends_path.write_text("not json at all")
    run = run_audit(config).run
    trend = [f for f in run.findings if f.category == "Trends"]
    assert [f.severity for f in trend] == [Severity.CRITICAL]
    assert run.grade == Grade.F
    assert config.trends_path.with_name("trends.json.corrupt").exists()
    assert len(_trend_entries(config)) == 1


def test_crashing_check_does_not_stop_the_run(config, repo):
    healthy_repo(repo, 3)

    def boom(snapshot):
        raise ValueError("bad state")

    run = run_audit(config, checks=[("boom", boom)] + CHECKS).run
    runner = [f for f in run.findings if f.category == "Runner"]
    assert runner[0].message == "Check 'boom' failed: ValueError"
    assert any(f.category == "Frontmatter" for f in run.findings)


def test_weekly_rollup_on_friday(tmp_path):
    cfg = make_config(tmp_path, now=datetime(2026, 3, 6, 3, 0))
    healthy_repo(cfg.repo_path, 3)
    outcome = run_audit(cfg)
    assert outcome.run.rollup is not None
    assert "## Weekly Rollup" in outcome.report_path.read_text()


def test_no_rollup_midweek(config, repo):
    healthy_repo(repo, 3)
    assert run_audit(config).run.rollup is None


def test_fix_mode_dedupes_and_keeps_pre_fix_grade(tmp_path):
    cfg = make_config(tmp_path, apply_fixes=True)
    repo = cfg.repo_path
    rels = healthy_repo(repo, 4)
    write_doc(repo, "research/new.md", "no header")
    write_indexes(repo, rels, total=4)
    calls = []

    def fake_run(args, cwd, timeout=30.0):
        calls.append(list(args))
        return CommandResult(ok=True, output="")

    with patch.object(fixes, "run_command", side_effect=fake_run):
        run = run_audit(cfg).run
    # freshness, frontmatter, orphans and reachability all queue the same rebuild
    assert calls == [list(cfg.index_command)]
    assert run.fix_report.applied == [REBUILD_INDEX]
    assert run.fix_report.queued >= 3
    assert not run.fix_report.committed
    assert run.grade == Grade.C


def test_notification_sent_when_credentials_present(tmp_path):
    cfg = make_config(tmp_path, notify=True)
    healthy_repo(cfg.repo_path, 3)
    cfg.credentials_path.parent.mkdir(parents=True)
    cfg.credentials_path.write_text(json.dumps({"bot_token": "t", "chat_id": "c"}))
    with patch.object(notify.requests, "post", return_value=MagicMock(status_code=200)) as post:
        outcome = run_audit(cfg)
    assert outcome.notified
    text = post.call_args.kwargs["json"]["text"]
    assert text.startswith("Daily Audit -- 2026-03-02")
    assert str(outcome.report_path) in text


def test_notification_skipped_without_credentials(tmp_path):
    cfg = make_config(tmp_path, notify=True)
    healthy_repo(cfg.repo_path, 3)
    with patch.object(notify.requests, "post") as post:
        outcome = run_audit(cfg)
    assert not outcome.notified
    post.assert_not_called()


def test_missing_directives_grades_f(config, repo):
    healthy_repo(repo, 3)
    (repo / "memory" / "directives.md").unlink()
    run = run_audit(config).run
    ops = [f for f in run.findings if f.category == "Operations"]
    assert [f.severity for f in ops] == [Severity.CRITICAL]
    assert run.grade == Grade.F
