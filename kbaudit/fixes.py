"""Auto-fix orchestration: dedupe, apply, and publish only the changes the fixes made."""

import hashlib
import logging
from datetime import date
from pathlib import Path
from typing import Iterable

from .config import AuditConfig
from .errors import FixError
from .models import AutoFix, FixReport
from .scanner.shell import git_changes, run_command

log = logging.getLogger(__name__)

# One index rebuild repairs stale counts, orphaned entries, unindexed files
# and untagged metadata, so every such finding shares this description.
REBUILD_INDEX = "Rebuild knowledge index (tags untagged files, refreshes all indexes)"

COMMIT_MESSAGE = "auto-fix: nightly audit repairs ({day})"


def index_rebuild_fix(config: AuditConfig) -> AutoFix:
    """AutoFix that runs the repository's own index tool."""

    def _rebuild() -> None:
        result = run_command(config.index_command, config.repo_path, config.command_timeout)
        if not result.ok:
            raise FixError(f"{' '.join(config.index_command)}: {result.error}")

    return AutoFix(REBUILD_INDEX, _rebuild)


def dedupe(fixes: Iterable[AutoFix]) -> list[AutoFix]:
    """First fix per description, in order."""
    seen: set[str] = set()
    unique = []
    for fix in fixes:
        if fix.description in seen:
            continue
        seen.add(fix.description)
        unique.append(fix)
    return unique


def _digest(path: Path) -> str:
    try:
        return hashlib.sha1(path.read_bytes()).hexdigest()
    except OSError:
        # deleted, or a directory such as a submodule
        return ""


def tree_fingerprint(repo: Path, timeout: float) -> dict[str, tuple[str, str]]:
    """Status code and content digest of every path that differs from HEAD."""
    return {
        path: (code, _digest(repo / path))
        for path, code in git_changes(repo, timeout).items()
    }


def changed_paths(before: dict[str, tuple[str, str]], after: dict[str, tuple[str, str]]) -> list[str]:
    """Paths the fixes touched that still differ from HEAD.

    A path that was already dirty counts only if its content or status moved.
    """
    return sorted(path for path, state in after.items() if before.get(path) != state)


def apply_fixes(fixes: list[AutoFix], config: AuditConfig, today: date) -> FixReport:
    """Run each unique fix; commit and push only what the fixes changed."""
    report = FixReport(queued=len(fixes))
    unique = dedupe(fixes)
    if not unique:
        log.info("No auto-fixable issues found.")
        return report

    repo = config.repo_path
    before = tree_fingerprint(repo, config.command_timeout)
    log.info("Auto-fix: %d queued, %d unique", len(fixes), len(unique))
    for fix in unique:
        log.info("Fixing: %s", fix.description)
        try:
            fix.action()
        except Exception as e:
            log.error("Fix failed: %s: %s", fix.description, e)
            report.failed.append((fix.description, str(e)))
            continue
        report.applied.append(fix.description)

    if not report.applied:
        return report
    paths = changed_paths(before, tree_fingerprint(repo, config.command_timeout))
    if not paths:
        log.info("Fixes left the working tree unchanged; nothing to commit.")
        return report
    untouched = set(before) - set(paths)
    if untouched:
        log.info("Leaving %d pre-existing change(s) out of the auto-fix commit", len(untouched))

    message = COMMIT_MESSAGE.format(day=today.isoformat())
    add = run_command(["git", "add", "-A", "--", *paths], repo, config.command_timeout)
    commit = run_command(["git", "commit", "-m", message, "--", *paths], repo, config.command_timeout)
    if not (add.ok and commit.ok):
        log.error("Commit of auto-fixes failed: %s", commit.error or add.error)
        return report
    report.committed = True
    push = run_command(["git", "push", config.git_remote, config.git_branch], repo, config.network_timeout)
    report.pushed = push.ok
    if push.ok:
        log.info("Pushed auto-fixes to %s/%s", config.git_remote, config.git_branch)
    else:
        log.error("Push of auto-fixes failed: %s", push.error)
    return report
