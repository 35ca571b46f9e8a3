"""Check: source-control cleanliness and divergence from the remote."""

from ..models import CheckResult, Finding, Severity
from ..scanner.repo import RepoSnapshot
from ..scanner.shell import git, git_count, git_status
from .base import listing, plural

CATEGORY = "Git"


def check(snapshot: RepoSnapshot) -> CheckResult:
    cfg = snapshot.config
    repo = snapshot.root
    timeout = cfg.command_timeout
    if git(repo, "rev-parse", "--is-inside-work-tree", timeout=timeout) != "true":
        return CheckResult(findings=[Finding(Severity.INFO, CATEGORY, "Not a git work tree; git checks skipped")])

    result = CheckResult()
    status = git_status(repo, timeout)
    if status:
        result.findings.append(Finding(
            Severity.WARNING, CATEGORY,
            f"{plural(len(status), 'uncommitted change')} in the repository",
            listing(status, 15),
        ))

    # fetch failures leave the last known remote ref in place
    git(repo, "fetch", cfg.git_remote, timeout=cfg.network_timeout)
    upstream = f"{cfg.git_remote}/{cfg.git_branch}"
    behind = git_count(repo, f"HEAD..{upstream}", timeout)
    ahead = git_count(repo, f"{upstream}..HEAD", timeout)
    if behind > 0:
        result.findings.append(Finding(
            Severity.WARNING, CATEGORY, f"{plural(behind, 'commit')} behind {upstream}",
        ))
    if ahead > 0:
        result.findings.append(Finding(
            Severity.INFO, CATEGORY, f"{plural(ahead, 'commit')} ahead of {upstream} (unpushed work)",
        ))
    if not status and behind == 0:
        result.findings.append(Finding(Severity.OK, CATEGORY, "Working tree clean, all changes committed"))
    return result
