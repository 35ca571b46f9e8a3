"""Shared types and helpers for checks."""

from typing import Callable, Iterable, Sequence

from ..models import CheckResult, Finding, Severity
from ..scanner.repo import RepoSnapshot

CheckFn = Callable[[RepoSnapshot], CheckResult]

DETAIL_LIMIT = 20


def listing(items: Sequence[str], limit: int = DETAIL_LIMIT) -> str:
    """Newline list capped at `limit`, with a "+N more" tail."""
    shown = "\n".join(items[:limit])
    if len(items) > limit:
        shown += f"\n... +{len(items) - limit} more"
    return shown


def ok(category: str, message: str) -> CheckResult:
    return CheckResult(findings=[Finding(Severity.OK, category, message)])


def single(severity: Severity, category: str, message: str, details: str | None = None) -> CheckResult:
    return CheckResult(findings=[Finding(severity, category, message, details)])


def plural(n: int, word: str, suffix: str = "s") -> str:
    return f"{n} {word}{'' if n == 1 else suffix}"


def files_text(snapshot: RepoSnapshot, paths: Iterable) -> Iterable[tuple[str, str]]:
    """(repo-relative path, text) for each readable file."""
    for p in paths:
        try:
            yield snapshot.repo_rel(p), snapshot.read_text(p)
        except OSError:
            continue
