"""Report and notification rendering: Markdown file and terse alert text."""

from pathlib import Path
from typing import List

from . import __version__
from .models import AuditRun, Finding, Severity, TrendDelta, WeeklyRollup
from .severity import (
    GRADE_LABELS,
    ROUTE_AUTO,
    ROUTE_HUMAN,
    ROUTE_OWNER,
    ROUTE_TITLES,
    route_findings,
    sort_findings,
)

MB = 1024 * 1024
ALL_CLEAR = "All checks passed."
REPORT_PREFIX = "audit-"


def report_filename(day: str) -> str:
    return f"{REPORT_PREFIX}{day}.md"


def _mb(n: int) -> str:
    return f"{n / MB:.1f} MB"


def _signed(n: int, unit: str = "") -> str:
    return f"{'+' if n >= 0 else ''}{n}{unit}"


def _signed_mb(n: int) -> str:
    return f"{'+' if n >= 0 else '-'}{abs(n) / MB:.1f} MB"


def _finding_block(f: Finding) -> List[str]:
    lines = [f"### {f.category}: {f.message}"]
    if f.details:
        lines += ["```", f.details, "```"]
    lines.append("")
    return lines


def _bullets(findings: List[Finding]) -> List[str]:
    return [f"- **{f.category}:** {f.message}" for f in findings]


def _bucket_title(route: str, run: AuditRun) -> str:
    if route == ROUTE_AUTO and run.fix_report is None:
        return "Auto-fixable (run with --fix)"
    return ROUTE_TITLES[route]


def _stats_table(run: AuditRun) -> List[str]:
    s = run.stats
    passed = len(run.by_severity(Severity.OK))
    return [
        "| Metric | Value |",
        "|---|---|",
        f"| KB Files | {s.kb_files} ({_mb(s.kb_bytes)}) |",
        f"| Memory Files | {s.memory_files} ({_mb(s.memory_bytes)}) |",
        f"| Daily Logs | {s.daily_logs} |",
        f"| Scripts | {s.scripts} |",
        f"| Criticals | {run.critical_count} |",
        f"| Warnings | {run.warning_count} |",
        f"| Passed | {passed} |",
        "",
    ]


def _trend_section(run: AuditRun, delta: TrendDelta) -> List[str]:
    lines = [
        "## Trends",
        "",
        "| Metric | Change |",
        "|---|---|",
        f"| KB Files | {_signed(delta.kb_files)} |",
        f"| KB Size | {_signed_mb(delta.kb_bytes)} |",
        f"| Memory Files | {_signed(delta.memory_files)} |",
        f"| Memory Size | {_signed_mb(delta.memory_bytes)} |",
        f"| Scripts | {_signed(delta.scripts)} |",
    ]
    if delta.grade_change:
        lines.append(f"| Grade | {delta.grade_change} |")
    if delta.week_kb_growth is not None:
        lines.append(f"| KB Growth (7d) | {_signed(delta.week_kb_growth, ' files')} |")
        lines.append(f"| Memory Growth (7d) | {_signed(delta.week_memory_growth or 0, ' files')} |")
    lines.append("")
    if run.regressions:
        lines += ["### Regressions Detected", ""]
        lines += [f"- {r}" for r in run.regressions]
        lines.append("")
    if run.previous is not None:
        lines.append(f"*Compared with {run.previous.date}. Trend data: {run.tracked_days} days tracked*")
    else:
        lines.append(f"*Trend data: {run.tracked_days} days tracked*")
    lines.append("")
    return lines


def _rollup_section(rollup: WeeklyRollup) -> List[str]:
    best, worst = rollup.best_day, rollup.worst_day
    lines = [
        f"## Weekly Rollup (last {rollup.days} runs)",
        "",
        f"- Best day: {best.date} (grade {best.grade.value}, "
        f"{best.critical_count} criticals, {best.warning_count} warnings)",
        f"- Worst day: {worst.date} (grade {worst.grade.value}, "
        f"{worst.critical_count} criticals, {worst.warning_count} warnings)",
        f"- KB files this week: {_signed(rollup.kb_files_delta)}",
        f"- Memory files this week: {_signed(rollup.memory_files_delta)}",
        f"- Totals: {rollup.criticals_total} criticals, {rollup.warnings_total} warnings",
    ]
    if rollup.stale_files:
        lines.append(f"- Stale KB files (not modified in {rollup.stale_days} days): {len(rollup.stale_files)}")
        lines += [f"  - {f}" for f in rollup.stale_files[:10]]
        if len(rollup.stale_files) > 10:
            lines.append(f"  - ... +{len(rollup.stale_files) - 10} more")
    else:
        lines.append(f"- No KB files untouched for {rollup.stale_days} days")
    lines.append("")
    return lines


def render_report(run: AuditRun) -> str:
    """Full Markdown report for one run."""
    ordered = sort_findings(list(run.findings))
    criticals = [f for f in ordered if f.severity == Severity.CRITICAL]
    warnings = [f for f in ordered if f.severity == Severity.WARNING]
    passed = [f for f in ordered if f.severity == Severity.OK]
    notes = [f for f in ordered if f.severity == Severity.INFO]

    lines = [
        f"# Nightly Audit - {run.date}",
        "",
        f"**Grade: {GRADE_LABELS[run.grade]}**",
        f"**Repo:** {run.repo_name}",
        f"**Run at:** {run.run_at.isoformat(timespec='seconds')}",
        "",
    ]
    lines += _stats_table(run)
    lines += ["---", ""]

    if not criticals and not warnings:
        lines += [ALL_CLEAR, ""]
    if criticals:
        lines += ["## Critical Findings", ""]
        for f in criticals:
            lines += _finding_block(f)
    if warnings:
        lines += ["## Warning Findings", ""]
        for f in warnings:
            lines += _finding_block(f)

    buckets = route_findings(list(run.findings))
    if any(buckets.values()):
        lines += ["## Action Plan", ""]
        for route in (ROUTE_AUTO, ROUTE_OWNER, ROUTE_HUMAN):
            if not buckets[route]:
                continue
            lines += [f"### {_bucket_title(route, run)}", ""]
            lines += _bullets(buckets[route])
            lines.append("")

    if passed:
        lines += ["## Passed Checks", ""]
        lines += _bullets(passed)
        lines.append("")
    if notes:
        lines += ["## Notes", ""]
        for f in notes:
            lines.append(f"- **{f.category}:** {f.message}")
            if f.details:
                lines += [f"  - {d}" for d in f.details.splitlines()]
        lines.append("")

    fr = run.fix_report
    if fr is not None:
        lines += ["## Auto-Fixes Applied", ""]
        if not fr.applied and not fr.failed:
            lines.append("No auto-fixable issues found.")
        for d in fr.applied:
            lines.append(f"- Applied: {d}")
        for d, err in fr.failed:
            lines.append(f"- FAILED: {d} ({err})")
        if fr.committed:
            lines.append(f"- Changes committed{' and pushed' if fr.pushed else ' (push failed)'}")
        elif fr.applied:
            lines.append("- Working tree unchanged; nothing committed")
        lines.append("")

    if run.recurring:
        lines += ["## Recurring Issues", ""]
        lines += [f"- {r}" for r in run.recurring]
        lines.append("")

    if run.delta is not None:
        lines += _trend_section(run, run.delta)

    if run.rollup is not None:
        lines += _rollup_section(run.rollup)

    lines += ["---", "", f"*Generated by kbaudit {__version__}*", ""]
    return "\n".join(lines)


def write_report(run: AuditRun, reports_dir: Path) -> Path:
    """Write the day's report. A rerun on the same day replaces only that day's file."""
    reports_dir.mkdir(parents=True, exist_ok=True)
    path = reports_dir / report_filename(run.date)
    path.write_text(render_report(run), encoding="utf-8")
    return path


def render_notification(run: AuditRun, report_path: Path | None = None) -> str:
    """Condensed alert mirroring the top of the report."""
    s = run.stats
    lines = [f"Daily Audit -- {run.date}", f"Grade: {GRADE_LABELS[run.grade].replace(' - ', ' -- ')}", ""]
    if run.activity:
        lines += list(run.activity) + [""]
    lines += [f"KB: {s.kb_files} files | Memory: {s.memory_files} files | Scripts: {s.scripts}", ""]

    fr = run.fix_report
    if fr is not None and fr.applied:
        lines.append("Changes I made:")
        lines += [f"  {d}" for d in fr.applied]
        if fr.committed:
            lines.append("  (committed" + (" and pushed)" if fr.pushed else ", push failed)"))
        lines.append("")

    buckets = route_findings(list(run.findings))
    headers = {
        ROUTE_HUMAN: "NEEDS YOUR ATTENTION:",
        ROUTE_AUTO: "I handled:" if fr is not None else "Auto-fixable:",
        ROUTE_OWNER: "FYI:",
    }
    for route in (ROUTE_HUMAN, ROUTE_AUTO, ROUTE_OWNER):
        if not buckets[route]:
            continue
        lines.append(headers[route])
        for f in buckets[route]:
            tag = "[CRITICAL] " if f.severity == Severity.CRITICAL else ""
            lines.append(f"  {tag}{f.category}: {f.message}")
        lines.append("")

    if run.regressions:
        lines.append("REGRESSIONS:")
        lines += [f"  {r}" for r in run.regressions]
    if run.delta is not None:
        d = run.delta
        lines.append(f"Trend: KB {_signed(d.kb_files)} files | Mem {_signed(d.memory_files)} files")
    if run.recurring:
        lines.append("RECURRING:")
        lines += [f"  {r}" for r in run.recurring]
    if run.regressions or run.delta is not None or run.recurring:
        lines.append("")

    if run.critical_count == 0 and run.warning_count == 0:
        lines += [f"{ALL_CLEAR} No issues.", ""]
    if report_path is not None:
        lines.append(f"Full report: {report_path}")
    return "\n".join(lines).rstrip() + "\n"
