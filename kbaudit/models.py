"""Structured records passed between scanner, checks, trend store and report."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional


class Severity(str, Enum):
    CRITICAL = "Critical"
    WARNING = "Warning"
    INFO = "Info"
    OK = "Ok"


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    F = "F"


@dataclass(frozen=True)
class Finding:
    """One reported observation. Only its counts outlive the run."""

    severity: Severity
    category: str  # one of severity.CATEGORY_TABLE keys
    message: str
    details: Optional[str] = None


@dataclass(frozen=True)
class AutoFix:
    """Idempotent remedial action. `description` is the dedup key."""

    description: str
    action: Callable[[], None] = field(compare=False, repr=False)


@dataclass
class CheckResult:
    """What a single check hands back to the runner."""

    findings: list[Finding] = field(default_factory=list)
    fixes: list[AutoFix] = field(default_factory=list)


@dataclass
class RepoStats:
    """Size/count snapshot of the content repository."""

    kb_files: int = 0
    kb_bytes: int = 0
    memory_files: int = 0
    memory_bytes: int = 0
    daily_logs: int = 0
    scripts: int = 0


# Legacy keys written by the original nightly tooling; sizes were in MB.
_LEGACY_KEYS = {
    "kbFiles": "kbFileCount",
    "memFiles": "memoryFileCount",
    "scriptFiles": "scriptCount",
    "criticals": "criticalCount",
    "warnings": "warningCount",
}
_MB = 1024 * 1024


@dataclass
class TrendEntry:
    """One calendar day's summary in the persisted series."""

    date: str  # YYYY-MM-DD, unique key
    kb_file_count: int = 0
    kb_size_bytes: int = 0
    memory_file_count: int = 0
    memory_size_bytes: int = 0
    script_count: int = 0
    critical_count: int = 0
    warning_count: int = 0
    grade: Grade = Grade.A

    @property
    def total_files(self) -> int:
        return self.kb_file_count + self.memory_file_count

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "kbFileCount": self.kb_file_count,
            "kbSizeBytes": self.kb_size_bytes,
            "memoryFileCount": self.memory_file_count,
            "memorySizeBytes": self.memory_size_bytes,
            "scriptCount": self.script_count,
            "criticalCount": self.critical_count,
            "warningCount": self.warning_count,
            "grade": self.grade.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrendEntry":
        """Build an entry from JSON, accepting the legacy MB-based layout."""
        d = dict(data)
        for old, new in _LEGACY_KEYS.items():
            if old in d and new not in d:
                d[new] = d[old]
        if "kbSizeMB" in d and "kbSizeBytes" not in d:
            d["kbSizeBytes"] = round(float(d["kbSizeMB"]) * _MB)
        if "memSizeMB" in d and "memorySizeBytes" not in d:
            d["memorySizeBytes"] = round(float(d["memSizeMB"]) * _MB)
        return cls(
            date=str(d["date"]),
            kb_file_count=int(d.get("kbFileCount", 0)),
            kb_size_bytes=int(d.get("kbSizeBytes", 0)),
            memory_file_count=int(d.get("memoryFileCount", 0)),
            memory_size_bytes=int(d.get("memorySizeBytes", 0)),
            script_count=int(d.get("scriptCount", 0)),
            critical_count=int(d.get("criticalCount", 0)),
            warning_count=int(d.get("warningCount", 0)),
            grade=Grade(str(d.get("grade", "A"))[:1]),
        )


@dataclass(frozen=True)
class TrendDelta:
    """Change between the two most recent trend entries."""

    kb_files: int
    kb_bytes: int
    memory_files: int
    memory_bytes: int
    scripts: int
    grade_change: Optional[str] = None  # "B -> F"
    week_kb_growth: Optional[int] = None
    week_memory_growth: Optional[int] = None


@dataclass(frozen=True)
class WeeklyRollup:
    """End-of-week summary over the trailing entries."""

    days: int
    best_day: TrendEntry
    worst_day: TrendEntry
    kb_files_delta: int
    memory_files_delta: int
    criticals_total: int
    warnings_total: int
    stale_files: list[str] = field(default_factory=list)
    stale_days: int = 30


@dataclass
class FixReport:
    """Outcome of one auto-fix batch."""

    queued: int = 0
    applied: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)  # (description, error)
    committed: bool = False
    pushed: bool = False


@dataclass(frozen=True)
class AuditRun:
    """Top-level result of one invocation; rendered, then discarded."""

    run_at: datetime
    repo_name: str
    findings: tuple[Finding, ...]
    grade: Grade
    stats: RepoStats
    previous: Optional[TrendEntry] = None
    tracked_days: int = 0
    delta: Optional[TrendDelta] = None
    regressions: tuple[str, ...] = ()
    recurring: tuple[str, ...] = ()
    rollup: Optional[WeeklyRollup] = None
    fix_report: Optional[FixReport] = None
    activity: tuple[str, ...] = ()

    @property
    def date(self) -> str:
        return self.run_at.date().isoformat()

    def by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self.findings if f.severity == severity]

    @property
    def critical_count(self) -> int:
        return len(self.by_severity(Severity.CRITICAL))

    @property
    def warning_count(self) -> int:
        return len(self.by_severity(Severity.WARNING))
