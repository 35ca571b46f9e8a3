"""Check: the documents that steer the agent point at the live KB tooling."""

from ..models import CheckResult, Finding, Severity
from ..scanner.repo import RepoSnapshot
from .base import listing, plural

# Directives that still send the agent to the retired single search index
LEGACY_SEARCH_HINT = "Read `knowledge/SEARCH-INDEX.json`"

# Optional startup docs at the repo root; when present they must mention these
STARTUP_DOC_REFERENCES = {
    "AGENTS.md": ("git pull",),
    "HEARTBEAT.md": ("git pull", "KB-STANDARDS.md", "kb-update.js"),
}


def _missing(text: str, needles) -> list[str]:
    return [n for n in needles if n not in text]


def check(snapshot: RepoSnapshot) -> CheckResult:
    """
    memory/directives.md must exist and name the index, standards and update
    tooling. AGENTS.md and HEARTBEAT.md, when present, must pull before work
    so the agent picks up repairs.
    """
    cat = "Operations"
    cfg = snapshot.config
    directives = cfg.directives_path
    if not directives.is_file():
        return CheckResult(findings=[Finding(
            Severity.CRITICAL, cat, f"{cfg.directives_file} not found; the agent has no directives",
        )])

    problems: list[str] = []
    text = snapshot.read_text(directives)
    missing = _missing(text, cfg.directive_references)
    if missing:
        problems.append(f"{cfg.directives_file}: does not reference {', '.join(missing)}")
    if LEGACY_SEARCH_HINT in text:
        problems.append(f"{cfg.directives_file}: still points at the legacy SEARCH-INDEX.json")

    checked = [cfg.directives_file]
    for name, needles in STARTUP_DOC_REFERENCES.items():
        path = snapshot.root / name
        if not path.is_file():
            continue
        checked.append(name)
        missing = _missing(snapshot.read_text(path), needles)
        if missing:
            problems.append(f"{name}: does not mention {', '.join(missing)}")

    if not problems:
        return CheckResult(findings=[Finding(
            Severity.OK, cat, f"Operational docs reference the KB tooling ({', '.join(checked)})",
        )])
    return CheckResult(findings=[Finding(
        Severity.WARNING, cat,
        f"{plural(len(problems), 'operational doc issue')}; the agent may miss KB updates",
        listing(problems),
    )])
