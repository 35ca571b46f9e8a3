"""Audit configuration: built once at the entry point, passed everywhere."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "kbaudit.yaml"

# Top-level knowledge/ directories that KB-STANDARDS.md allows
DEFAULT_ALLOWED_TOP_DIRS = (
    "amibroker",
    "trade-ideas",
    "mabekit",
    "claude-blog",
    "smb-playbooks",
    "trading",
    "trading-tools",
    "prompts",
    "research",
)

DEFAULT_ALLOWED_UPPERCASE = (
    "INDEX.md",
    "INDEX-VIDEOS.md",
    "INDEX-KEY-PAGES.md",
    "README.md",
    "QUICK-START.md",
    "KB-SEARCH.md",
    "KB-STANDARDS.md",
    "KEY-LEARNINGS.md",
)

# Operational docs that describe the agent's own triggers; content-risk
# matching would flag them on every run.
DEFAULT_CONTENT_RISK_ALLOWLIST = (
    "AGENTS.md",
    "HEARTBEAT.md",
    "memory/directives.md",
    "knowledge/KB-STANDARDS.md",
)

# What memory/directives.md must mention so the agent uses the live KB tooling
DEFAULT_DIRECTIVE_REFERENCES = (
    "TOPICS-INDEX.json",
    "KB-STANDARDS.md",
    "kb-update.js",
    "KB-SEARCH.md",
)

MB = 1024 * 1024


@dataclass(frozen=True)
class AuditConfig:
    """Every path, threshold and collaborator setting for one run."""

    repo_path: Path
    home: Path  # holds reports/, state/, .credentials/
    apply_fixes: bool = False
    notify: bool = True

    knowledge_dir_name: str = "knowledge"
    memory_dir_name: str = "memory"
    scripts_dir_name: str = "scripts"

    reports_dir_name: str = "reports"
    trends_filename: str = "trends.json"
    job_health_file: str = "state/job-health.json"
    directives_file: str = "memory/directives.md"
    credentials_file: str = ".credentials/telegram.json"

    index_command: tuple[str, ...] = ("node", "scripts/kb-update.js")
    git_remote: str = "origin"
    git_branch: str = "master"
    command_timeout: float = 30.0
    network_timeout: float = 60.0

    memory_bloat_bytes: int = 10 * MB
    daily_log_max_age_days: int = 14
    old_daily_log_limit: int = 20
    content_risk_window_days: int = 7
    stale_days: int = 30
    circuit_threshold: int = 3
    job_overdue_hours: float = 26.0
    trend_capacity: int = 90
    thin_cluster_size: int = 3
    weekly_rollup_weekday: int = 4  # Monday=0, Friday=4

    allowed_top_dirs: tuple[str, ...] = DEFAULT_ALLOWED_TOP_DIRS
    allowed_uppercase: tuple[str, ...] = DEFAULT_ALLOWED_UPPERCASE
    content_risk_allowlist: tuple[str, ...] = DEFAULT_CONTENT_RISK_ALLOWLIST
    directive_references: tuple[str, ...] = DEFAULT_DIRECTIVE_REFERENCES

    clock: Callable[[], datetime] = field(default=datetime.now, compare=False, repr=False)

    @property
    def knowledge_dir(self) -> Path:
        return self.repo_path / self.knowledge_dir_name

    @property
    def memory_dir(self) -> Path:
        return self.repo_path / self.memory_dir_name

    @property
    def scripts_dir(self) -> Path:
        return self.repo_path / self.scripts_dir_name

    @property
    def reports_dir(self) -> Path:
        return self.home / self.reports_dir_name

    @property
    def trends_path(self) -> Path:
        return self.reports_dir / self.trends_filename

    @property
    def job_health_path(self) -> Path:
        return self.home / self.job_health_file

    @property
    def credentials_path(self) -> Path:
        return self.home / self.credentials_file

    @property
    def directives_path(self) -> Path:
        # lives in the content repository, unlike the work-root files above
        return self.repo_path / self.directives_file

    def now(self) -> datetime:
        return self.clock()


# Keys a YAML file may override. Paths, clock and the CLI switches are runtime-only.
_RUNTIME_ONLY = {"repo_path", "home", "clock", "apply_fixes", "notify"}
_DEFAULTS = {f.name: f.default for f in fields(AuditConfig) if f.name not in _RUNTIME_ONLY}
_OVERRIDABLE = set(_DEFAULTS)


def _coerce(path: Path, key: str, value: Any) -> Any:
    """Check a YAML value against the type of the field's default."""
    default = _DEFAULTS[key]
    if isinstance(default, tuple):
        if isinstance(value, str):
            value = value.split()
        if not isinstance(value, list):
            raise ConfigError(f"{path}: {key} must be a list")
        return tuple(str(v) for v in value)
    # bool is an int subclass; reject it for numeric settings
    if isinstance(value, bool) and not isinstance(default, bool):
        raise ConfigError(f"{path}: {key} must be {type(default).__name__}, got {value!r}")
    if isinstance(default, float) and isinstance(value, int):
        return float(value)
    if not isinstance(value, type(default)):
        raise ConfigError(f"{path}: {key} must be {type(default).__name__}, got {value!r}")
    return value


def load_overrides(path: Path | None) -> dict[str, Any]:
    """Load optional YAML overrides. Missing file -> {}. Unknown keys or wrong types -> ConfigError."""
    if path is None or not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    unknown = sorted(set(data) - _OVERRIDABLE)
    if unknown:
        raise ConfigError(f"{path}: unknown key(s): {', '.join(unknown)}")
    return {key: _coerce(path, key, value) for key, value in data.items()}


def default_home() -> Path:
    env = os.environ.get("KBAUDIT_HOME")
    return Path(env).expanduser() if env else Path.cwd()


def default_repo(home: Path) -> Path:
    env = os.environ.get("KBAUDIT_REPO")
    return Path(env).expanduser() if env else home.parent / "edgebot-brain"


def build_config(
    repo_path: Path | None = None,
    home: Path | None = None,
    config_file: Path | None = None,
    apply_fixes: bool = False,
    notify: bool = True,
    clock: Callable[[], datetime] | None = None,
) -> AuditConfig:
    """Resolve paths, apply YAML overrides, return the single config object."""
    home = (home or default_home()).resolve()
    repo = (repo_path or default_repo(home)).resolve()
    overrides = load_overrides(config_file or home / CONFIG_FILENAME)
    cfg = AuditConfig(repo_path=repo, home=home, apply_fixes=apply_fixes, notify=notify)
    if clock is not None:
        cfg = replace(cfg, clock=clock)
    try:
        return replace(cfg, **overrides)
    except TypeError as e:
        raise ConfigError(str(e)) from e
