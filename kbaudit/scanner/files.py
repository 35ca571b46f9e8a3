"""Filesystem walk: deterministic, skips hidden entries, tolerates missing dirs."""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Iterator

HIDDEN_PREFIX = "."


def iter_files(root: Path, extensions: Iterable[str] = (".md",)) -> Iterator[Path]:
    """Yield files under root whose suffix is in extensions, sorted, recursively.

    Directories and files whose names start with "." are never entered or
    yielded. A missing root yields nothing. An empty extensions tuple means
    every file. A directory reached twice through symlinks is walked once.
    """
    yield from _walk(root, tuple(extensions), set())


def _walk(root: Path, exts: tuple[str, ...], seen: set[Path]) -> Iterator[Path]:
    if not root.is_dir():
        return
    try:
        real = root.resolve()
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except (OSError, RuntimeError):
        return
    if real in seen:
        return
    seen.add(real)
    for entry in entries:
        if entry.name.startswith(HIDDEN_PREFIX):
            continue
        if entry.is_dir():
            yield from _walk(entry, exts, seen)
        elif entry.is_file() and (not exts or entry.name.endswith(exts)):
            yield entry


def list_files(root: Path, extensions: Iterable[str] = (".md",)) -> list[Path]:
    return list(iter_files(root, extensions))


def relpath(path: Path, base: Path) -> str:
    """Forward-slash relative path; falls back to the full path outside base."""
    try:
        return path.relative_to(base).as_posix()
    except ValueError:
        return path.as_posix()


def file_size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def total_size(paths: Iterable[Path]) -> int:
    return sum(file_size(p) for p in paths)


def modified_at(path: Path) -> datetime | None:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime)
    except OSError:
        return None


def modified_within(path: Path, now: datetime, days: int) -> bool:
    mtime = modified_at(path)
    return mtime is not None and mtime >= now - timedelta(days=days)


def find_stale(paths: Iterable[Path], now: datetime, days: int = 30) -> list[Path]:
    """Files not modified in the last `days` days."""
    cutoff = now - timedelta(days=days)
    stale = []
    for p in paths:
        mtime = modified_at(p)
        if mtime is not None and mtime < cutoff:
            stale.append(p)
    return stale
