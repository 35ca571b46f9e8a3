"""Check registry: fixed run order and human-readable descriptions."""

from . import git_health, index, jobs, layout, metadata, operations, scripts, security, storage
from .base import CheckFn

# Cheap structural checks first, content scans and subprocess-heavy checks last.
CHECKS: list[tuple[str, CheckFn]] = [
    ("metadata", metadata.check),
    ("index_freshness", index.check_freshness),
    ("structure", layout.check_structure),
    ("naming", layout.check_naming),
    ("script_sprawl", scripts.check),
    ("memory_bloat", storage.check_memory_bloat),
    ("growth", storage.check_growth),
    ("orphans", index.check_orphans),
    ("reachability", index.check_reachability),
    ("index_coverage", index.check_coverage),
    ("credentials", security.check_credentials),
    ("credential_ignore", security.check_credentials_ignored),
    ("content_risk", security.check_content_risk),
    ("operational_docs", operations.check),
    ("git", git_health.check),
    ("jobs", jobs.check),
]

CHECK_INFO: dict[str, dict[str, str]] = {
    "metadata": {
        "category": "Frontmatter",
        "description": "Every knowledge document has a header block with title, category, tags and summary.",
        "fix": "Auto: index rebuild tags untagged files.",
    },
    "index_freshness": {
        "category": "Index",
        "description": "TOPICS-INDEX.json file count matches the documents on disk (behind and ahead are separate warnings).",
        "fix": "Auto: index rebuild.",
    },
    "structure": {
        "category": "Structure",
        "description": "Top-level knowledge/ directories are on the KB-STANDARDS allow-list.",
        "fix": "Manual: move or approve the directory.",
    },
    "naming": {
        "category": "Naming",
        "description": "Filenames have no whitespace; uppercase only for allow-listed names.",
        "fix": "Manual: rename the file and rebuild the index.",
    },
    "script_sprawl": {
        "category": "Scripts",
        "description": "No script exists in several versions (-v2, -old, -final, ...).",
        "fix": "Manual: archive superseded versions under scripts/_archive/.",
    },
    "memory_bloat": {
        "category": "Memory",
        "description": "memory/ stays under the size threshold and daily logs get curated.",
        "fix": "Manual: distill old logs into MEMORY.md and archive them.",
    },
    "growth": {
        "category": "Growth",
        "description": "Size and count snapshot of knowledge, memory and scripts.",
        "fix": "None: informational.",
    },
    "orphans": {
        "category": "Orphans",
        "description": "Every document on disk is listed in FILES-INDEX.json.",
        "fix": "Auto: index rebuild.",
    },
    "reachability": {
        "category": "Reachability",
        "description": "Every document is reachable through both the topic and the keyword index.",
        "fix": "Auto: index rebuild; add tags if still unreachable.",
    },
    "index_coverage": {
        "category": "Coverage",
        "description": "KEYWORDS-INDEX.json and FILES-INDEX.json exist; topic clusters with fewer than 3 files are noted.",
        "fix": "Auto: index rebuild recreates missing indexes; thin clusters need more content or merging.",
    },
    "credentials": {
        "category": "Security",
        "description": "No tokens, keys, passwords or connection strings in committed files.",
        "fix": "Manual: remove the secret, rotate it, rewrite history if pushed.",
    },
    "credential_ignore": {
        "category": "Security",
        "description": "The repository .gitignore keeps .credentials out of commits.",
        "fix": "Manual: add .credentials/ to .gitignore.",
    },
    "content_risk": {
        "category": "Content Risk",
        "description": "Recently modified files carry no injection phrasing, exfiltration endpoints, invisible characters or destructive commands.",
        "fix": "Manual: review the file; allow-list operational docs that describe triggers.",
    },
    "operational_docs": {
        "category": "Operations",
        "description": "memory/directives.md exists and references the KB index, standards and update tooling; AGENTS.md and HEARTBEAT.md pull before work.",
        "fix": "Manual: restore or update the directives and startup docs.",
    },
    "git": {
        "category": "Git",
        "description": "No uncommitted changes and no divergence from the remote branch.",
        "fix": "Manual: commit, pull or push.",
    },
    "jobs": {
        "category": "Jobs",
        "description": "Scheduled jobs are healthy; an open circuit breaker is critical.",
        "fix": "Manual: investigate the failing job and reset its breaker.",
    },
}
