"""Repo scanner: file walks, header parsing, subprocess helpers, snapshot."""

from .repo import RepoSnapshot, recent_activity, scan_repo
from .frontmatter import Frontmatter, MISSING, parse_frontmatter

__all__ = ["RepoSnapshot", "recent_activity", "scan_repo", "Frontmatter", "MISSING", "parse_frontmatter"]
