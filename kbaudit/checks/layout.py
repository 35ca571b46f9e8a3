"""Checks on knowledge/ layout: top-level directories and filenames."""

import re

from ..models import CheckResult, Finding, Severity
from ..scanner.files import HIDDEN_PREFIX
from ..scanner.repo import RepoSnapshot
from .base import listing, plural

_WHITESPACE = re.compile(r"\s")
_UPPER = re.compile(r"[A-Z]")


def check_structure(snapshot: RepoSnapshot) -> CheckResult:
    """Top-level directories under knowledge/ must be on the allow-list."""
    cat = "Structure"
    cfg = snapshot.config
    allowed = set(cfg.allowed_top_dirs)
    try:
        dirs = sorted(
            p.name for p in cfg.knowledge_dir.iterdir()
            if p.is_dir() and not p.name.startswith(HIDDEN_PREFIX)
        )
    except OSError:
        dirs = []
    violations = [d for d in dirs if d not in allowed]
    if not violations:
        return CheckResult(findings=[Finding(Severity.OK, cat, "All KB directories follow KB-STANDARDS.md")])
    kb = cfg.knowledge_dir_name
    noun = "directory" if len(violations) == 1 else "directories"
    return CheckResult(findings=[Finding(
        Severity.WARNING, cat,
        f"{len(violations)} non-standard top-level {noun} in {kb}/",
        listing([f"{kb}/{v}/ - should this be under research/?" for v in violations]),
    )])


def check_naming(snapshot: RepoSnapshot) -> CheckResult:
    """
    Whitespace in a filename breaks links and shell tooling: warning.
    Uppercase outside the allow-list is only noted; many scraped sources use it.
    """
    cat = "Naming"
    allowed_upper = set(snapshot.config.allowed_uppercase)
    spaced: list[str] = []
    upper: list[str] = []
    for path in snapshot.kb_files:
        name = path.name
        rel = snapshot.kb_rel(path)
        if _WHITESPACE.search(name):
            spaced.append(f"{rel}: spaces in filename")
        elif _UPPER.search(name) and name not in allowed_upper:
            upper.append(rel)

    if not spaced and not upper:
        return CheckResult(findings=[Finding(Severity.OK, cat, "All KB filenames follow conventions")])
    result = CheckResult()
    if spaced:
        result.findings.append(Finding(
            Severity.WARNING, cat,
            f"{plural(len(spaced), 'file')} with naming convention violations",
            listing(spaced, 15),
        ))
    if upper:
        result.findings.append(Finding(
            Severity.INFO, cat,
            f"{plural(len(upper), 'file')} with uppercase names outside the allow-list",
            listing(upper, 15),
        ))
    return result
