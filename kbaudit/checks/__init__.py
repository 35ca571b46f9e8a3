"""Health checks: each takes a RepoSnapshot and returns a CheckResult."""

from .registry import CHECK_INFO, CHECKS

__all__ = ["CHECKS", "CHECK_INFO"]
