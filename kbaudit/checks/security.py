"""Checks: committed credentials, the credentials ignore rule, and content-risk signals."""

from pathlib import Path

from ..models import CheckResult, Finding, Severity
from ..patterns import (
    CATALOGUE_VERSION,
    SCOPE_CONTENT_RISK,
    SCOPE_CREDENTIAL,
    is_allowlisted,
    scan_text,
)
from ..scanner.files import modified_within
from ..scanner.repo import RepoSnapshot
from .base import files_text, listing, plural


def check_credentials(snapshot: RepoSnapshot) -> CheckResult:
    """Credential shapes anywhere in knowledge, memory or scripts. Never auto-fixed."""
    cat = "Security"
    files = snapshot.kb_files + snapshot.memory_files + snapshot.script_files
    hits = [
        f"{rel}: {rule.name}"
        for rel, text in files_text(snapshot, files)
        for rule in scan_text(text, SCOPE_CREDENTIAL)
    ]
    if not hits:
        return CheckResult(findings=[Finding(Severity.OK, cat, "No secrets detected in committed files")])
    return CheckResult(findings=[Finding(
        Severity.CRITICAL, cat,
        f"{plural(len(hits), 'potential secret')} found in committed files",
        listing(hits),
    )])


def _content_risk_candidates(snapshot: RepoSnapshot) -> list[Path]:
    # top-level operational docs (AGENTS.md, HEARTBEAT.md, ...) are not under a content dir
    root_docs = sorted(p for p in snapshot.root.glob("*.md") if p.is_file())
    return root_docs + snapshot.kb_files + snapshot.memory_files + snapshot.script_files


def check_content_risk(snapshot: RepoSnapshot) -> CheckResult:
    """
    Injection phrasing, exfiltration endpoints, invisible characters and
    destructive commands in files touched within the trailing window.
    Allow-listed operational docs legitimately describe such triggers.
    """
    cat = "Content Risk"
    cfg = snapshot.config
    window = cfg.content_risk_window_days
    recent = [p for p in _content_risk_candidates(snapshot) if modified_within(p, snapshot.now, window)]
    skipped = [p for p in recent if is_allowlisted(snapshot.repo_rel(p), cfg.content_risk_allowlist)]
    scanned = [p for p in recent if p not in skipped]

    by_severity: dict[Severity, list[str]] = {}
    for rel, text in files_text(snapshot, scanned):
        for rule in scan_text(text, SCOPE_CONTENT_RISK):
            by_severity.setdefault(rule.severity, []).append(f"{rel}: {rule.name} ({rule.kind})")

    if not by_severity:
        return CheckResult(findings=[Finding(
            Severity.OK, cat,
            f"No content-risk signals in {plural(len(scanned), 'file')} modified in the last {window} days"
            + (f" ({len(skipped)} allow-listed)" if skipped else ""),
        )])
    result = CheckResult()
    labels = {Severity.CRITICAL: "high-risk", Severity.WARNING: "suspicious"}
    for severity in (Severity.CRITICAL, Severity.WARNING, Severity.INFO):
        hits = by_severity.get(severity)
        if not hits:
            continue
        result.findings.append(Finding(
            severity, cat,
            f"{plural(len(hits), labels.get(severity, 'content') + ' signal')} in recently modified files",
            listing(hits) + f"\nPattern catalogue v{CATALOGUE_VERSION}",
        ))
    return result


def check_credentials_ignored(snapshot: RepoSnapshot) -> CheckResult:
    """The credentials directory must be git-ignored so tokens never get committed."""
    cat = "Security"
    path = snapshot.root / ".gitignore"
    if not path.is_file():
        return CheckResult(findings=[Finding(
            Severity.WARNING, cat, ".gitignore not found; .credentials is not protected from commits",
        )])
    patterns = [
        line.strip() for line in snapshot.read_text(path).splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ]
    if any("credentials" in p for p in patterns):
        return CheckResult(findings=[Finding(Severity.OK, cat, ".credentials is listed in .gitignore")])
    return CheckResult(findings=[Finding(
        Severity.WARNING, cat, ".credentials is not in .gitignore; tokens could be committed",
        "Add `.credentials/` to .gitignore",
    )])
