"""Trend store: one entry per day in a capped JSON series, plus analytics."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path
from statistics import mean

from .errors import TrendStoreError
from .models import Grade, RepoStats, TrendDelta, TrendEntry, WeeklyRollup
from .severity import GRADE_RANK

log = logging.getLogger(__name__)

DEFAULT_CAPACITY = 90
MB = 1024 * 1024

# Regression thresholds (two most recent entries)
WARNING_SPIKE = 2
MEMORY_GROWTH_FACTOR = 1.5
MEMORY_FLOOR_BYTES = 5 * MB

# Recurring-issue thresholds (trailing window)
RECURRING_WINDOW = 7
CRITICAL_DAYS_THRESHOLD = 2
GRADE_TRANSITIONS_THRESHOLD = 3
MEAN_WARNINGS_THRESHOLD = 3
RUNAWAY_FILE_GROWTH = 100

ROLLUP_WINDOW = 5


class TrendStore:
    """Bounded, date-ascending series persisted as {"entries": [...]}."""

    def __init__(self, path: Path, capacity: int = DEFAULT_CAPACITY):
        self.path = Path(path)
        self.capacity = capacity
        self.entries: list[TrendEntry] = []

    def load(self) -> list[TrendEntry]:
        """Read the file. Missing -> empty series. Unparseable -> TrendStoreError."""
        self.entries = []
        if not self.path.exists():
            return self.entries
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            raw = data["entries"] if isinstance(data, dict) else None
            if not isinstance(raw, list):
                raise TrendStoreError(f"{self.path.name}: 'entries' list missing")
            entries = [TrendEntry.from_dict(e) for e in raw]
        except TrendStoreError:
            raise
        except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError) as e:
            raise TrendStoreError(f"{self.path.name}: {e}") from e
        # collapse duplicate days (last write wins), keep ascending order
        by_date = {e.date: e for e in entries}
        self.entries = [by_date[d] for d in sorted(by_date)][-self.capacity:]
        return self.entries

    def quarantine(self) -> Path | None:
        """Move an unreadable trend file aside so a fresh series can start."""
        if not self.path.exists():
            return None
        target = self.path.with_suffix(self.path.suffix + ".corrupt")
        os.replace(self.path, target)
        log.warning("Trend file unreadable; moved to %s", target)
        self.entries = []
        return target

    def record(self, entry: TrendEntry) -> list[TrendEntry]:
        """Upsert by date, keep ascending order, evict oldest beyond capacity."""
        kept = [e for e in self.entries if e.date != entry.date]
        kept.append(entry)
        kept.sort(key=lambda e: e.date)
        self.entries = kept[-self.capacity:]
        return self.entries

    def save(self) -> None:
        """Write via temp file + rename so a crash never leaves a half-written series."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"entries": [e.to_dict() for e in self.entries]}, indent=2)
        fd, tmp = tempfile.mkstemp(prefix=".trends-", suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload + "\n")
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def previous(self, day: str) -> TrendEntry | None:
        """Most recent entry strictly before `day`."""
        earlier = [e for e in self.entries if e.date < day]
        return earlier[-1] if earlier else None


def make_entry(day: date, stats: RepoStats, criticals: int, warnings: int, grade: Grade) -> TrendEntry:
    return TrendEntry(
        date=day.isoformat(),
        kb_file_count=stats.kb_files,
        kb_size_bytes=stats.kb_bytes,
        memory_file_count=stats.memory_files,
        memory_size_bytes=stats.memory_bytes,
        script_count=stats.scripts,
        critical_count=criticals,
        warning_count=warnings,
        grade=grade,
    )


def compute_delta(entries: list[TrendEntry]) -> TrendDelta | None:
    """Change between the two most recent entries; week growth once 7 exist."""
    if len(entries) < 2:
        return None
    prev, curr = entries[-2], entries[-1]
    week_kb = week_mem = None
    if len(entries) >= RECURRING_WINDOW:
        week_ago = entries[-RECURRING_WINDOW]
        week_kb = curr.kb_file_count - week_ago.kb_file_count
        week_mem = curr.memory_file_count - week_ago.memory_file_count
    return TrendDelta(
        kb_files=curr.kb_file_count - prev.kb_file_count,
        kb_bytes=curr.kb_size_bytes - prev.kb_size_bytes,
        memory_files=curr.memory_file_count - prev.memory_file_count,
        memory_bytes=curr.memory_size_bytes - prev.memory_size_bytes,
        scripts=curr.script_count - prev.script_count,
        grade_change=f"{prev.grade.value} -> {curr.grade.value}" if prev.grade != curr.grade else None,
        week_kb_growth=week_kb,
        week_memory_growth=week_mem,
    )


def _mb(n: int) -> str:
    return f"{n / MB:.1f} MB"


def detect_regressions(entries: list[TrendEntry]) -> list[str]:
    """Compare only the two most recent entries."""
    if len(entries) < 2:
        return []
    prev, curr = entries[-2], entries[-1]
    out = []
    if curr.critical_count > prev.critical_count:
        out.append(f"Criticals increased: {prev.critical_count} -> {curr.critical_count}")
    if curr.warning_count > prev.warning_count + WARNING_SPIKE:
        out.append(f"Warnings spiked: {prev.warning_count} -> {curr.warning_count}")
    if (
        curr.memory_size_bytes > prev.memory_size_bytes * MEMORY_GROWTH_FACTOR
        and curr.memory_size_bytes > MEMORY_FLOOR_BYTES
    ):
        out.append(f"Memory bloat: {_mb(prev.memory_size_bytes)} -> {_mb(curr.memory_size_bytes)}")
    return out


def grade_transitions(entries: list[TrendEntry]) -> int:
    return sum(1 for a, b in zip(entries, entries[1:]) if a.grade != b.grade)


def detect_recurring(entries: list[TrendEntry], window: int = RECURRING_WINDOW) -> list[str]:
    """Patterns across the trailing window that a single day's diff cannot show."""
    recent = entries[-window:]
    if len(recent) < 2:
        return []
    out = []
    n = len(recent)
    critical_days = sum(1 for e in recent if e.critical_count > 0)
    if critical_days >= CRITICAL_DAYS_THRESHOLD:
        out.append(
            f"Recurring criticals: criticals occurred {critical_days} times in the last {n} days; "
            "look for a systemic cause rather than fixing each day"
        )
    transitions = grade_transitions(recent)
    if transitions >= GRADE_TRANSITIONS_THRESHOLD:
        grades = ", ".join(e.grade.value for e in recent)
        out.append(f"Unstable grade: {transitions} grade changes in {n} days ({grades})")
    avg_warnings = mean(e.warning_count for e in recent)
    if avg_warnings > MEAN_WARNINGS_THRESHOLD:
        out.append(f"Chronic warnings: {avg_warnings:.1f} warnings/day on average over {n} days")
    growth = recent[-1].total_files - recent[0].total_files
    if growth > RUNAWAY_FILE_GROWTH:
        out.append(
            f"Runaway content generation: +{growth} files in {n} days "
            f"({recent[0].total_files} -> {recent[-1].total_files})"
        )
    return out


def is_rollup_day(day: date, weekday: int) -> bool:
    return day.weekday() == weekday


def _badness(e: TrendEntry) -> tuple[int, int, int]:
    return (-GRADE_RANK[e.grade], e.critical_count, e.warning_count)


def weekly_rollup(
    entries: list[TrendEntry],
    stale_files: list[str] | None = None,
    stale_days: int = 30,
    window: int = ROLLUP_WINDOW,
) -> WeeklyRollup | None:
    """Best/worst day and week deltas over the trailing `window` entries."""
    recent = entries[-window:]
    if not recent:
        return None
    # min/max keep the first of equal entries, so ties go to the earliest day
    best = min(recent, key=_badness)
    worst = max(recent, key=_badness)
    first, last = recent[0], recent[-1]
    return WeeklyRollup(
        days=len(recent),
        best_day=best,
        worst_day=worst,
        kb_files_delta=last.kb_file_count - first.kb_file_count,
        memory_files_delta=last.memory_file_count - first.memory_file_count,
        criticals_total=sum(e.critical_count for e in recent),
        warnings_total=sum(e.warning_count for e in recent),
        stale_files=list(stale_files or []),
        stale_days=stale_days,
    )
