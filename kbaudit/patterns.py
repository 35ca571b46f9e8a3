"""Pattern catalogue: credential shapes and content-risk signals.

The catalogue is an allow-list of recognizers, not an exhaustive detector.
False negatives are acceptable; false positives are tolerable because a human
reviews every finding. Bump CATALOGUE_VERSION when rules change so reports
can be compared across runs.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from .models import Severity

CATALOGUE_VERSION = "2"

SCOPE_CREDENTIAL = "credential"
SCOPE_CONTENT_RISK = "content_risk"


@dataclass(frozen=True)
class PatternRule:
    name: str
    pattern: re.Pattern
    severity: Severity
    scope: str
    kind: str = ""  # grouping label inside a scope, e.g. "injection"

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def _rule(name: str, regex: str, severity: Severity, scope: str, kind: str = "", flags: int = 0) -> PatternRule:
    return PatternRule(name, re.compile(regex, flags), severity, scope, kind)


CREDENTIAL_RULES: tuple[PatternRule, ...] = (
    _rule("GitHub Token", r"gh[pousr]_[A-Za-z0-9]{36}", Severity.CRITICAL, SCOPE_CREDENTIAL),
    _rule(
        "Generic API Key",
        r"(?:api[_-]?key|apikey)\s*[:=]\s*['\"][A-Za-z0-9]{20,}['\"]",
        Severity.CRITICAL, SCOPE_CREDENTIAL, flags=re.IGNORECASE,
    ),
    _rule(
        "Password in Plain Text",
        r"(?:password|passwd|pwd)\s*[:=]\s*['\"][^'\"]{8,}['\"]",
        Severity.CRITICAL, SCOPE_CREDENTIAL, flags=re.IGNORECASE,
    ),
    _rule("Bearer Token", r"Bearer\s+[A-Za-z0-9\-._~+/]{20,}", Severity.CRITICAL, SCOPE_CREDENTIAL),
    _rule("AWS Key", r"AKIA[0-9A-Z]{16}", Severity.CRITICAL, SCOPE_CREDENTIAL),
    _rule("Private Key", r"-----BEGIN (?:RSA |EC |OPENSSH )?PRIVATE KEY-----", Severity.CRITICAL, SCOPE_CREDENTIAL),
    _rule("Slack Token", r"xox[bprs]-[0-9A-Za-z-]{10,}", Severity.CRITICAL, SCOPE_CREDENTIAL),
    _rule("OpenAI Key", r"sk-[A-Za-z0-9]{48}", Severity.CRITICAL, SCOPE_CREDENTIAL),
    _rule(
        "Connection String",
        r"\b(?:postgres(?:ql)?|mysql|mongodb(?:\+srv)?|redis|amqp)://[^\s:/@]+:[^\s@/]+@[^\s/]+",
        Severity.CRITICAL, SCOPE_CREDENTIAL, flags=re.IGNORECASE,
    ),
)

CONTENT_RISK_RULES: tuple[PatternRule, ...] = (
    _rule(
        "Instruction Override",
        r"\b(?:ignore|disregard|forget)\s+(?:all\s+|any\s+)?(?:previous|prior|above|earlier)\s+"
        r"(?:instructions|directives|rules|prompts)",
        Severity.CRITICAL, SCOPE_CONTENT_RISK, kind="injection", flags=re.IGNORECASE,
    ),
    _rule(
        "System Prompt Tampering",
        r"\b(?:disregard|override|reveal|print)\s+(?:the\s+|your\s+)?system\s+prompt",
        Severity.CRITICAL, SCOPE_CONTENT_RISK, kind="injection", flags=re.IGNORECASE,
    ),
    _rule(
        "Role Reassignment",
        r"\byou\s+are\s+now\s+(?:a|an|in)\s+\w+",
        Severity.WARNING, SCOPE_CONTENT_RISK, kind="injection", flags=re.IGNORECASE,
    ),
    _rule(
        "Exfiltration Endpoint",
        r"\b(?:webhook\.site|requestbin\.(?:com|net)|pipedream\.net|[a-z0-9-]+\.ngrok(?:-free)?\.(?:io|app)"
        r"|interact\.sh|burpcollaborator\.net|pastebin\.com/raw)",
        Severity.CRITICAL, SCOPE_CONTENT_RISK, kind="exfiltration", flags=re.IGNORECASE,
    ),
    _rule(
        "Invisible Characters",
        "[\u200b\u200c\u200d\u200e\u200f\u2060\u2062\u2063\u2064\ufeff]",
        Severity.WARNING, SCOPE_CONTENT_RISK, kind="invisible",
    ),
    _rule(
        "Destructive Command",
        r"\brm\s+-(?:rf|fr)\s+(?:/|~|\$HOME)(?:\s|$)|\bgit\s+push\s+(?:-f|--force)\b"
        r"|\bDROP\s+(?:TABLE|DATABASE)\b|\bmkfs(?:\.\w+)?\s+/dev/",
        Severity.WARNING, SCOPE_CONTENT_RISK, kind="destructive", flags=re.IGNORECASE,
    ),
)

CATALOGUE: tuple[PatternRule, ...] = CREDENTIAL_RULES + CONTENT_RISK_RULES


def rules_for(scope: str) -> tuple[PatternRule, ...]:
    return tuple(r for r in CATALOGUE if r.scope == scope)


def scan_text(text: str, scope: str, rules: Iterable[PatternRule] | None = None) -> list[PatternRule]:
    """Rules of `scope` that match anywhere in text, in catalogue order."""
    candidates = rules if rules is not None else rules_for(scope)
    return [r for r in candidates if r.scope == scope and r.matches(text)]


def is_allowlisted(rel_path: str, allowlist: Iterable[str]) -> bool:
    """Exact repo-relative match, or bare-filename match for entries without a slash."""
    name = rel_path.rsplit("/", 1)[-1]
    for entry in allowlist:
        if rel_path == entry or ("/" not in entry and name == entry):
            return True
    return False
