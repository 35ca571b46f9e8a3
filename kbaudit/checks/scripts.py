"""Check: several versions of the same script living side by side."""

import re
from pathlib import Path

from ..models import CheckResult, Finding, Severity
from ..scanner.repo import RepoSnapshot
from .base import listing, plural

_VERSION_SUFFIX = re.compile(r"[-_]v\d+$", re.IGNORECASE)
_QUALIFIER_SUFFIX = re.compile(r"[-_](simple|final|additional|old|backup|copy)$", re.IGNORECASE)


def base_name(path: Path) -> str:
    """'kb-update-v2.js' -> 'kb-update'; 'sync_old.sh' -> 'sync'."""
    stem = path.stem
    stem = _VERSION_SUFFIX.sub("", stem)
    return _QUALIFIER_SUFFIX.sub("", stem)


def check(snapshot: RepoSnapshot) -> CheckResult:
    cat = "Scripts"
    groups: dict[tuple[str, str], list[str]] = {}
    for path in snapshot.active_scripts:
        groups.setdefault((base_name(path), path.suffix), []).append(path.stem)

    sprawl = sorted((key, names) for key, names in groups.items() if len(names) > 1)
    if not sprawl:
        return CheckResult(findings=[Finding(Severity.OK, cat, "No version sprawl detected")])
    return CheckResult(findings=[Finding(
        Severity.WARNING, cat,
        f"{plural(len(sprawl), 'script')} with multiple versions (consider archiving old ones)",
        listing([f"{base}{ext}: {', '.join(sorted(names))}" for (base, ext), names in sprawl]),
    )])
