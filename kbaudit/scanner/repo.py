"""Repository snapshot: resolves content dirs once and caches file lists for checks."""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import cached_property
from pathlib import Path

from ..config import AuditConfig
from ..errors import AuditAbort
from ..models import RepoStats
from .files import list_files, relpath, total_size
from .shell import git

DAILY_LOG_RE = re.compile(r"(\d{4}-\d{2}-\d{2})\.md$")
SCRIPT_EXTENSIONS = (".js", ".sh")
ARCHIVE_DIR = "_archive"


@dataclass
class RepoSnapshot:
    """Read-only view of the content repository handed to every check."""

    config: AuditConfig
    now: datetime

    @property
    def root(self) -> Path:
        return self.config.repo_path

    @property
    def name(self) -> str:
        return self.root.name or "repository"

    @cached_property
    def kb_files(self) -> list[Path]:
        return list_files(self.config.knowledge_dir, (".md",))

    @cached_property
    def memory_files(self) -> list[Path]:
        return list_files(self.config.memory_dir, (".md",))

    @cached_property
    def script_files(self) -> list[Path]:
        return list_files(self.config.scripts_dir, SCRIPT_EXTENSIONS)

    @property
    def active_scripts(self) -> list[Path]:
        return [p for p in self.script_files if ARCHIVE_DIR not in p.relative_to(self.root).parts]

    @property
    def daily_logs(self) -> list[Path]:
        return [p for p in self.memory_files if DAILY_LOG_RE.search(p.name)]

    def kb_rel(self, path: Path) -> str:
        return relpath(path, self.config.knowledge_dir)

    def repo_rel(self, path: Path) -> str:
        return relpath(path, self.root)

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")

    def stats(self) -> RepoStats:
        return RepoStats(
            kb_files=len(self.kb_files),
            kb_bytes=total_size(self.kb_files),
            memory_files=len(self.memory_files),
            memory_bytes=total_size(self.memory_files),
            daily_logs=len(self.daily_logs),
            scripts=len(self.script_files),
        )


def scan_repo(config: AuditConfig) -> RepoSnapshot:
    """Validate the fatal preconditions and return a snapshot for the checks."""
    if not config.repo_path.is_dir():
        raise AuditAbort(
            f"Repository not found at {config.repo_path}. Use --repo-path to specify the location."
        )
    if not config.knowledge_dir.is_dir():
        raise AuditAbort(f"{config.knowledge_dir_name}/ directory not found in {config.repo_path}")
    return RepoSnapshot(config=config, now=config.now())


def recent_activity(snapshot: RepoSnapshot, hours: int = 24) -> list[str]:
    """Summary of commits and new knowledge files in the last `hours`."""
    cfg = snapshot.config
    since = (snapshot.now - timedelta(hours=hours)).isoformat()
    lines: list[str] = []
    log_out = git(snapshot.root, "log", f"--since={since}", "--oneline", "--no-merges",
                  timeout=cfg.command_timeout)
    commits = [c for c in log_out.splitlines() if c.strip()]
    if commits:
        lines.append(f"{len(commits)} commit(s) in the last {hours}h:")
        for c in commits[:5]:
            lines.append(f"  {c}")
        if len(commits) > 5:
            lines.append(f"  ... +{len(commits) - 5} more")
    else:
        lines.append(f"No new commits in the last {hours}h.")
    added_out = git(
        snapshot.root, "log", f"--since={since}", "--diff-filter=A", "--name-only",
        "--pretty=format:", "--", f"{cfg.knowledge_dir_name}/",
        timeout=cfg.command_timeout,
    )
    added = [a for a in added_out.splitlines() if a.strip()]
    if added:
        lines.append(f"New KB files: +{len(added)}")
    return lines
