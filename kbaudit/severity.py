"""Severity ordering, grading and per-category routing."""

from .models import Finding, Grade, Severity


# Higher rank sorts first in reports.
SEVERITY_RANK = {
    Severity.CRITICAL: 3,
    Severity.WARNING: 2,
    Severity.INFO: 1,
    Severity.OK: 0,
}

# A > B > C > F. Used for trajectory comparison in trend analytics.
GRADE_RANK = {Grade.A: 3, Grade.B: 2, Grade.C: 1, Grade.F: 0}

GRADE_LABELS = {
    Grade.A: "A - All clear",
    Grade.B: "B - Minor issues",
    Grade.C: "C - Multiple warnings",
    Grade.F: "F - Critical issues found",
}

# More than this many warnings drops the grade from B to C
WARNING_GRADE_THRESHOLD = 3

# Action routes:
# auto  = the index tool can repair it (nightly --fix handles these)
# owner = content owner should curate (logs, scripts, names, growth)
# human = needs a judgment call (credentials, layout, git, broken jobs)
ROUTE_AUTO = "auto"
ROUTE_OWNER = "owner"
ROUTE_HUMAN = "human"

ROUTE_TITLES = {
    ROUTE_AUTO: "Handled automatically",
    ROUTE_OWNER: "For the content owner",
    ROUTE_HUMAN: "Needs a human decision",
}

# category -> (priority, route). Lower priority sorts first.
CATEGORY_TABLE: dict[str, tuple[int, str]] = {
    "Runner": (0, ROUTE_HUMAN),
    "Security": (1, ROUTE_HUMAN),
    "Content Risk": (2, ROUTE_HUMAN),
    "Jobs": (3, ROUTE_HUMAN),
    "Operations": (4, ROUTE_HUMAN),
    "Index": (5, ROUTE_AUTO),
    "Trends": (6, ROUTE_OWNER),
    "Git": (7, ROUTE_HUMAN),
    "Frontmatter": (8, ROUTE_AUTO),
    "Orphans": (9, ROUTE_AUTO),
    "Reachability": (10, ROUTE_AUTO),
    "Coverage": (11, ROUTE_AUTO),
    "Structure": (12, ROUTE_HUMAN),
    "Naming": (13, ROUTE_OWNER),
    "Scripts": (14, ROUTE_OWNER),
    "Memory": (15, ROUTE_OWNER),
    "Growth": (16, ROUTE_OWNER),
}
DEFAULT_PRIORITY = 99


def grade_for(criticals: int, warnings: int) -> Grade:
    """F on any critical, C above three warnings, B on any warning, else A."""
    if criticals > 0:
        return Grade.F
    if warnings > WARNING_GRADE_THRESHOLD:
        return Grade.C
    if warnings > 0:
        return Grade.B
    return Grade.A


def grade_findings(findings: list[Finding]) -> Grade:
    criticals = sum(1 for f in findings if f.severity == Severity.CRITICAL)
    warnings = sum(1 for f in findings if f.severity == Severity.WARNING)
    return grade_for(criticals, warnings)


def category_priority(category: str) -> int:
    return CATEGORY_TABLE.get(category, (DEFAULT_PRIORITY, ROUTE_HUMAN))[0]


def category_route(category: str) -> str:
    # Unknown categories go to a human rather than being silently auto-handled
    return CATEGORY_TABLE.get(category, (DEFAULT_PRIORITY, ROUTE_HUMAN))[1]


def sort_findings(findings: list[Finding]) -> list[Finding]:
    """Most severe first, then by category priority. Stable within a category."""
    return sorted(
        findings,
        key=lambda f: (-SEVERITY_RANK[f.severity], category_priority(f.category)),
    )


def route_findings(findings: list[Finding]) -> dict[str, list[Finding]]:
    """Split actionable (Critical/Warning) findings into the three action buckets."""
    buckets: dict[str, list[Finding]] = {ROUTE_AUTO: [], ROUTE_OWNER: [], ROUTE_HUMAN: []}
    for f in sort_findings(findings):
        if f.severity not in (Severity.CRITICAL, Severity.WARNING):
            continue
        buckets[category_route(f.category)].append(f)
    return buckets
