"""Bounded-timeout subprocess helpers. Failures degrade to empty output."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    output: str
    error: str = ""


def run_command(args: Sequence[str], cwd: Path, timeout: float = DEFAULT_TIMEOUT) -> CommandResult:
    """Run a command and report success. Never raises for missing binaries or timeouts."""
    try:
        result = subprocess.run(
            list(args),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        log.debug("command not found: %s (%s)", args[0], e)
        return CommandResult(ok=False, output="", error=f"command not found: {args[0]}")
    except subprocess.TimeoutExpired:
        log.warning("command timed out after %.0fs: %s", timeout, " ".join(args))
        return CommandResult(ok=False, output="", error=f"timed out after {timeout:.0f}s")
    except OSError as e:
        log.warning("command failed to start: %s (%s)", " ".join(args), e)
        return CommandResult(ok=False, output="", error=str(e))
    if result.returncode != 0:
        log.debug("command exited %d: %s", result.returncode, " ".join(args))
        return CommandResult(
            ok=False,
            output=result.stdout.strip(),
            error=result.stderr.strip() or f"exit code {result.returncode}",
        )
    return CommandResult(ok=True, output=result.stdout)


def capture(args: Sequence[str], cwd: Path, timeout: float = DEFAULT_TIMEOUT) -> str:
    """stdout of a successful command, or "" on any failure."""
    result = run_command(args, cwd, timeout)
    return result.output.strip() if result.ok else ""


def git(repo: Path, *args: str, timeout: float = DEFAULT_TIMEOUT) -> str:
    return capture(["git", *args], repo, timeout)


def git_status(repo: Path, timeout: float = DEFAULT_TIMEOUT) -> list[str]:
    """`git status --porcelain` lines; [] when clean or when git fails."""
    out = git(repo, "status", "--porcelain", timeout=timeout)
    return [line for line in out.splitlines() if line.strip()]


def git_count(repo: Path, rev_range: str, timeout: float = DEFAULT_TIMEOUT) -> int:
    out = git(repo, "rev-list", rev_range, "--count", timeout=timeout)
    try:
        return int(out)
    except ValueError:
        return 0


def git_changes(repo: Path, timeout: float = DEFAULT_TIMEOUT) -> dict[str, str]:
    """Every path that differs from HEAD, untracked files included, mapped to its status code.

    Uses the NUL-separated porcelain format so unusual filenames arrive unquoted.
    """
    result = run_command(
        ["git", "status", "--porcelain", "-z", "--untracked-files=all"], repo, timeout
    )
    if not result.ok:
        return {}
    changes: dict[str, str] = {}
    entries = iter(result.output.split("\0"))
    for entry in entries:
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        changes[path] = code
        if code[0] in "RC":
            # renames and copies carry the source path as the next entry
            next(entries, None)
    return changes
