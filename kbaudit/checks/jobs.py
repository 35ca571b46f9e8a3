"""Check: scheduled-job health from the job-health document."""

import json
from datetime import datetime
from typing import Any

from ..models import CheckResult, Finding, Severity
from ..scanner.repo import RepoSnapshot
from .base import listing, plural

CATEGORY = "Jobs"
FAILED_STATUSES = {"error", "failed", "failure", "timeout"}


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _hours_since(then: datetime, now: datetime) -> float:
    if then.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    elif then.tzinfo is None and now.tzinfo is not None:
        then = then.replace(tzinfo=now.tzinfo)
    return (now - then).total_seconds() / 3600


def _job_findings(job: dict, index: int, snapshot: RepoSnapshot) -> list[Finding]:
    """Findings for one job. An open circuit breaker masks everything else."""
    cfg = snapshot.config
    job_id = job.get("id") or f"job #{index + 1}"
    failures = job.get("consecutiveFailures") or 0
    if not isinstance(failures, int):
        failures = 0
    if job.get("circuitOpen") is True or failures >= cfg.circuit_threshold:
        details = [f"status: {job.get('status', 'unknown')}", f"consecutive failures: {failures}"]
        if job.get("schedule"):
            details.append(f"schedule: {job['schedule']}")
        if job.get("lastRunAt"):
            details.append(f"last run: {job['lastRunAt']}")
        return [Finding(
            Severity.CRITICAL, CATEGORY,
            f"Job {job_id}: circuit breaker open ({plural(failures, 'consecutive failure')})",
            "\n".join(details),
        )]

    out = []
    status = str(job.get("status", "")).lower()
    if status in FAILED_STATUSES or failures > 0:
        out.append(Finding(
            Severity.WARNING, CATEGORY,
            f"Job {job_id}: last run {status or 'failed'} ({plural(failures, 'consecutive failure')})",
        ))
    last = _parse_time(job.get("lastRunAt"))
    if last is not None:
        age = _hours_since(last, snapshot.now)
        if age > cfg.job_overdue_hours:
            out.append(Finding(
                Severity.WARNING, CATEGORY,
                f"Job {job_id}: overdue, last ran {age:.0f}h ago",
                f"schedule: {job.get('schedule', 'unknown')}",
            ))
    return out


def check(snapshot: RepoSnapshot) -> CheckResult:
    path = snapshot.config.job_health_path
    if not path.exists():
        return CheckResult(findings=[Finding(Severity.INFO, CATEGORY, f"No job-health file at {path.name}; job checks skipped")])
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return CheckResult(findings=[Finding(Severity.CRITICAL, CATEGORY, f"Job-health file is corrupted: {e}")])
    jobs = data.get("jobs") if isinstance(data, dict) else None
    if not isinstance(jobs, list):
        return CheckResult(findings=[Finding(Severity.CRITICAL, CATEGORY, "Job-health file is corrupted: 'jobs' list missing")])

    findings: list[Finding] = []
    for i, job in enumerate(jobs):
        if isinstance(job, dict):
            findings.extend(_job_findings(job, i, snapshot))
    if findings:
        return CheckResult(findings=findings)
    summary = data.get("summary")
    details = listing([f"{k}: {v}" for k, v in summary.items()]) if isinstance(summary, dict) else None
    return CheckResult(findings=[Finding(
        Severity.OK, CATEGORY, f"All {plural(len(jobs), 'scheduled job')} healthy", details,
    )])
