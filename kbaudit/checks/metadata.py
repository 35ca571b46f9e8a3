"""Check: every knowledge document carries a complete header block."""

from ..fixes import index_rebuild_fix
from ..models import CheckResult, Finding, Severity
from ..scanner.frontmatter import REQUIRED_KEYS, parse_frontmatter
from ..scanner.repo import RepoSnapshot
from .base import listing, plural

CATEGORY = "Frontmatter"


def check(snapshot: RepoSnapshot) -> CheckResult:
    """
    Files with no header block and files whose header lacks any of
    title/category/tags/summary are reported as two separate warnings.
    Both are repaired by the index tool, which tags untagged files.
    """
    missing: list[str] = []
    incomplete: list[str] = []
    for path in snapshot.kb_files:
        rel = snapshot.kb_rel(path)
        try:
            meta = parse_frontmatter(snapshot.read_text(path))
        except OSError:
            continue
        if meta is None:
            missing.append(rel)
            continue
        absent = meta.missing_keys(REQUIRED_KEYS)
        if absent:
            incomplete.append(f"{rel}: missing {', '.join(absent)}")

    total = len(snapshot.kb_files)
    if not missing and not incomplete:
        return CheckResult(findings=[
            Finding(Severity.OK, CATEGORY, f"All {total} KB files have complete frontmatter"),
        ])

    result = CheckResult()
    if missing:
        result.findings.append(Finding(
            Severity.WARNING, CATEGORY,
            f"{plural(len(missing), 'file')} missing frontmatter",
            listing(missing),
        ))
    if incomplete:
        result.findings.append(Finding(
            Severity.WARNING, CATEGORY,
            f"{plural(len(incomplete), 'file')} with incomplete frontmatter",
            listing(incomplete),
        ))
    result.fixes.append(index_rebuild_fix(snapshot.config))
    return result
