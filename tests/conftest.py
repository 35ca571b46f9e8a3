"""Shared builders: a throwaway content repo, work root and fixed-clock config."""

import json
from datetime import datetime
from pathlib import Path

import pytest

from kbaudit.config import AuditConfig
from kbaudit.scanner.repo import RepoSnapshot

# A Monday, so the weekly rollup stays out of the way unless a test asks for it
FIXED_NOW = datetime(2026, 3, 2, 3, 0, 0)

COMPLETE_HEADER = """---
title: {title}
category: research
tags: [alpha, beta]
summary: Notes about {title}
---

Body text for {title}.
"""


def write_doc(repo: Path, rel: str, text: str | None = None) -> Path:
    """Write knowledge/<rel>, defaulting to a document with a complete header."""
    path = repo / "knowledge" / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text if text is not None else COMPLETE_HEADER.format(title=Path(rel).stem))
    return path


def write_indexes(repo: Path, rels: list[str], total: int | None = None) -> None:
    """All three indexes, listing every rel in each."""
    kb = repo / "knowledge"
    kb.mkdir(parents=True, exist_ok=True)
    topics = {
        "_meta": {"totalFiles": len(rels) if total is None else total, "generated": "2026-03-01T03:00:00"},
        "topics": {"research": list(rels)},
    }
    (kb / "TOPICS-INDEX.json").write_text(json.dumps(topics))
    (kb / "KEYWORDS-INDEX.json").write_text(json.dumps({"keywords": {"alpha": list(rels)}}))
    (kb / "FILES-INDEX.json").write_text(json.dumps({"files": {r: {"title": r} for r in rels}}))


DIRECTIVES = """# Directives

Search knowledge/TOPICS-INDEX.json first, then KB-SEARCH.md.
Follow KB-STANDARDS.md for new files and run scripts/kb-update.js after writing.
"""


def write_ops_docs(repo: Path) -> None:
    """Directives and a .gitignore that keeps credentials out."""
    directives = repo / "memory" / "directives.md"
    directives.parent.mkdir(parents=True, exist_ok=True)
    directives.write_text(DIRECTIVES)
    (repo / ".gitignore").write_text("node_modules/\n.credentials/\n")


def healthy_repo(repo: Path, count: int = 10) -> list[str]:
    rels = [f"research/doc-{i:02d}.md" for i in range(count)]
    for rel in rels:
        write_doc(repo, rel)
    write_indexes(repo, rels)
    write_ops_docs(repo)
    return rels


def make_config(tmp_path: Path, now: datetime = FIXED_NOW, **overrides) -> AuditConfig:
    repo = tmp_path / "brain"
    home = tmp_path / "home"
    repo.mkdir(exist_ok=True)
    home.mkdir(exist_ok=True)
    values = {"repo_path": repo, "home": home, "notify": False, "clock": lambda: now}
    values.update(overrides)
    return AuditConfig(**values)


def make_snapshot(config: AuditConfig) -> RepoSnapshot:
    return RepoSnapshot(config=config, now=config.now())


@pytest.fixture
def config(tmp_path):
    return make_config(tmp_path)


@pytest.fixture
def repo(config):
    return config.repo_path
