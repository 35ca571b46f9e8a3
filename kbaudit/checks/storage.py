"""Checks on storage footprint: memory bloat and the growth snapshot."""

from datetime import datetime

from ..models import CheckResult, Finding, Severity
from ..scanner.repo import DAILY_LOG_RE, RepoSnapshot

MB = 1024 * 1024


def _mb(n: int) -> str:
    return f"{n / MB:.1f} MB"


def check_memory_bloat(snapshot: RepoSnapshot) -> CheckResult:
    """Absolute size threshold on memory/, plus a backlog of uncurated daily logs."""
    cat = "Memory"
    cfg = snapshot.config
    stats = snapshot.stats()
    logs = snapshot.daily_logs
    old = []
    for path in logs:
        m = DAILY_LOG_RE.search(path.name)
        try:
            day = datetime.strptime(m.group(1), "%Y-%m-%d")
        except ValueError:
            continue
        if (snapshot.now - day).days > cfg.daily_log_max_age_days:
            old.append(path)

    result = CheckResult()
    if stats.memory_bytes > cfg.memory_bloat_bytes:
        result.findings.append(Finding(
            Severity.WARNING, cat,
            f"Memory directory is {_mb(stats.memory_bytes)} ({stats.memory_files} files); consider curating",
            f"Daily logs: {len(logs)} ({len(old)} older than {cfg.daily_log_max_age_days} days)\n"
            "Consider: archive old logs, distill into MEMORY.md",
        ))
    if len(old) > cfg.old_daily_log_limit:
        result.findings.append(Finding(
            Severity.WARNING, cat,
            f"{len(old)} daily logs older than {cfg.daily_log_max_age_days} days should be distilled and archived",
        ))
    if not result.findings:
        result.findings.append(Finding(
            Severity.OK, cat,
            f"Memory directory: {_mb(stats.memory_bytes)}, {stats.memory_files} files, {len(logs)} daily logs",
        ))
    return result


def check_growth(snapshot: RepoSnapshot) -> CheckResult:
    """Informational size snapshot; trends are computed from the persisted series."""
    s = snapshot.stats()
    return CheckResult(findings=[Finding(
        Severity.INFO, "Growth",
        f"KB: {s.kb_files} files ({_mb(s.kb_bytes)}) | Memory: {s.memory_files} files "
        f"({_mb(s.memory_bytes)}) | Scripts: {s.scripts}",
    )])
