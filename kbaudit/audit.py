"""Audit pipeline: scan, check, fix, grade, record trends, report, notify."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .checks.base import CheckFn
from .config import AuditConfig
from .engine import run_checks
from .errors import TrendStoreError
from .fixes import apply_fixes
from .format import render_notification, write_report
from .models import AuditRun, Finding, FixReport, Severity
from .notify import send_notification
from .scanner import recent_activity, scan_repo
from .scanner.files import find_stale
from .severity import grade_findings
from .trends import (
    TrendStore,
    compute_delta,
    detect_recurring,
    detect_regressions,
    is_rollup_day,
    make_entry,
    weekly_rollup,
)

log = logging.getLogger(__name__)

TRENDS_CATEGORY = "Trends"


@dataclass
class AuditOutcome:
    run: AuditRun
    report_path: Path
    notified: bool = False


def _open_trends(config: AuditConfig) -> tuple[TrendStore, Optional[Finding]]:
    """Load the series; an unreadable file becomes a Critical finding and a fresh start."""
    store = TrendStore(config.trends_path, capacity=config.trend_capacity)
    try:
        store.load()
    except TrendStoreError as e:
        moved = store.quarantine()
        return store, Finding(
            Severity.CRITICAL,
            TRENDS_CATEGORY,
            "Trend history unreadable; starting a new series",
            f"{e}\nMoved aside to {moved}" if moved else str(e),
        )
    return store, None


def run_audit(config: AuditConfig, checks: Sequence[tuple[str, CheckFn]] | None = None) -> AuditOutcome:
    """One full nightly run. Raises AuditAbort when the repository cannot be audited."""
    snapshot = scan_repo(config)
    now = snapshot.now
    today = now.date()
    log.info("Auditing %s", config.repo_path)

    store, trend_problem = _open_trends(config)
    output = run_checks(snapshot, checks)
    findings = list(output.findings)
    if trend_problem is not None:
        findings.append(trend_problem)

    fix_report: Optional[FixReport] = None
    if config.apply_fixes:
        fix_report = apply_fixes(output.fixes, config, today)

    # Grade reflects what the checks saw, before any fix ran.
    grade = grade_findings(findings)
    criticals = sum(1 for f in findings if f.severity == Severity.CRITICAL)
    warnings = sum(1 for f in findings if f.severity == Severity.WARNING)
    stats = snapshot.stats()

    previous = store.previous(today.isoformat())
    entries = store.record(make_entry(today, stats, criticals, warnings, grade))
    store.save()

    rollup = None
    if is_rollup_day(today, config.weekly_rollup_weekday):
        stale = find_stale(snapshot.kb_files, now, config.stale_days)
        rollup = weekly_rollup(
            entries,
            stale_files=[snapshot.kb_rel(p) for p in stale],
            stale_days=config.stale_days,
        )

    run = AuditRun(
        run_at=now,
        repo_name=snapshot.name,
        findings=tuple(findings),
        grade=grade,
        stats=stats,
        previous=previous,
        tracked_days=len(entries),
        delta=compute_delta(entries),
        regressions=tuple(detect_regressions(entries)),
        recurring=tuple(detect_recurring(entries)),
        rollup=rollup,
        fix_report=fix_report,
        activity=tuple(recent_activity(snapshot)),
    )
    report_path = write_report(run, config.reports_dir)
    log.info("Report written to %s (grade %s)", report_path, grade.value)

    notified = False
    if config.notify:
        notified = send_notification(
            config.credentials_path,
            render_notification(run, report_path),
        )
    return AuditOutcome(run=run, report_path=report_path, notified=notified)
