"""Checks against the knowledge indexes: freshness, orphans, reachability, coverage."""

import json
from pathlib import Path
from typing import Any

from ..fixes import index_rebuild_fix
from ..models import CheckResult, Finding, Severity
from ..scanner.repo import RepoSnapshot
from .base import listing, plural

TOPICS_INDEX = "TOPICS-INDEX.json"
KEYWORDS_INDEX = "KEYWORDS-INDEX.json"
FILES_INDEX = "FILES-INDEX.json"


class IndexUnreadable(Exception):
    """Index file exists but is not valid JSON of the expected shape."""


def load_index(path: Path) -> dict[str, Any] | None:
    """Parsed index, None when absent. Raises IndexUnreadable on corruption."""
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise IndexUnreadable(str(e)) from e
    if not isinstance(data, dict):
        raise IndexUnreadable(f"expected a JSON object, got {type(data).__name__}")
    return data


def _normalize(entry: Any, kb_dir_name: str) -> str | None:
    """Index entries are paths, or objects with a file/path key."""
    if isinstance(entry, dict):
        entry = entry.get("file") or entry.get("path")
    if not isinstance(entry, str) or not entry:
        return None
    entry = entry.replace("\\", "/")
    for prefix in ("./", f"{kb_dir_name}/"):
        if entry.startswith(prefix):
            entry = entry[len(prefix):]
    return entry


def _members(mapping: Any, kb_dir_name: str) -> set[str]:
    """All file paths referenced by a {group: [files]} mapping."""
    out: set[str] = set()
    if not isinstance(mapping, dict):
        return out
    for files in mapping.values():
        if not isinstance(files, list):
            files = [files]
        for f in files:
            rel = _normalize(f, kb_dir_name)
            if rel:
                out.add(rel)
    return out


def check_freshness(snapshot: RepoSnapshot) -> CheckResult:
    """
    Compare actual document count with the count the topics index recorded.
    More files than recorded means the index is behind; fewer means it still
    lists deleted files. The two are separate warnings.
    """
    cat = "Index"
    cfg = snapshot.config
    path = cfg.knowledge_dir / TOPICS_INDEX
    fix = index_rebuild_fix(cfg)
    try:
        index = load_index(path)
    except IndexUnreadable as e:
        return CheckResult(
            findings=[Finding(Severity.CRITICAL, cat, f"{TOPICS_INDEX} is corrupted: {e}")],
            fixes=[fix],
        )
    if index is None:
        return CheckResult(
            findings=[Finding(Severity.CRITICAL, cat, f"{TOPICS_INDEX} does not exist; the KB cannot be searched")],
            fixes=[fix],
        )

    meta = index.get("_meta")
    recorded = meta.get("totalFiles") if isinstance(meta, dict) else None
    if not isinstance(recorded, int) or isinstance(recorded, bool):
        return CheckResult(
            findings=[Finding(Severity.CRITICAL, cat, f"{TOPICS_INDEX} is corrupted: _meta.totalFiles missing or not a number")],
            fixes=[fix],
        )
    generated = meta.get("generated", "unknown")
    actual = len(snapshot.kb_files)
    diff = actual - recorded
    rebuild_hint = f"Fix: {' '.join(cfg.index_command)}"

    if diff == 0:
        return CheckResult(findings=[
            Finding(Severity.OK, cat, f"{TOPICS_INDEX} is current ({recorded} files, generated {generated})"),
        ])
    if diff > 0:
        return CheckResult(
            findings=[Finding(
                Severity.WARNING, cat,
                f"Index is stale (behind): {plural(diff, 'file')} added since last rebuild",
                f"Indexed: {recorded}, Actual: {actual}\nLast generated: {generated}\n{rebuild_hint}",
            )],
            fixes=[fix],
        )
    return CheckResult(
        findings=[Finding(
            Severity.WARNING, cat,
            f"Index is ahead (orphaned entries): records {plural(-diff, 'more file')} than exist",
            f"Indexed: {recorded}, Actual: {actual}\nFiles were deleted without rebuilding\n{rebuild_hint}",
        )],
        fixes=[fix],
    )


def check_orphans(snapshot: RepoSnapshot) -> CheckResult:
    """Documents present on disk but absent from the files index."""
    cat = "Orphans"
    cfg = snapshot.config
    try:
        index = load_index(cfg.knowledge_dir / FILES_INDEX)
    except IndexUnreadable as e:
        return CheckResult(findings=[Finding(Severity.CRITICAL, cat, f"{FILES_INDEX} is corrupted: {e}")],
                           fixes=[index_rebuild_fix(cfg)])
    if index is None:
        return CheckResult(findings=[Finding(Severity.INFO, cat, f"{FILES_INDEX} not found; orphan detection skipped")])

    indexed = {_normalize(k, cfg.knowledge_dir_name) for k in (index.get("files") or {})}
    orphans = [rel for rel in map(snapshot.kb_rel, snapshot.kb_files) if rel not in indexed]
    if not orphans:
        return CheckResult(findings=[Finding(Severity.OK, cat, f"All KB files are indexed in {FILES_INDEX}")])
    return CheckResult(
        findings=[Finding(
            Severity.WARNING, cat,
            f"{plural(len(orphans), 'KB file')} not in the search index (invisible to search)",
            listing(orphans),
        )],
        fixes=[index_rebuild_fix(cfg)],
    )


def check_reachability(snapshot: RepoSnapshot) -> CheckResult:
    """
    A document should be discoverable through both the topic and the keyword
    index. Reachable through neither is a warning; through only one is noted.
    """
    cat = "Reachability"
    cfg = snapshot.config
    try:
        keywords = load_index(cfg.knowledge_dir / KEYWORDS_INDEX)
    except IndexUnreadable as e:
        return CheckResult(findings=[Finding(Severity.CRITICAL, cat, f"{KEYWORDS_INDEX} is corrupted: {e}")],
                           fixes=[index_rebuild_fix(cfg)])
    try:
        topics = load_index(cfg.knowledge_dir / TOPICS_INDEX)
    except IndexUnreadable:
        # reported by the freshness check
        topics = None
    if keywords is None or topics is None:
        absent = KEYWORDS_INDEX if keywords is None else TOPICS_INDEX
        return CheckResult(findings=[Finding(Severity.INFO, cat, f"{absent} unavailable; reachability check skipped")])

    by_topic = _members(topics.get("topics"), cfg.knowledge_dir_name)
    by_keyword = _members(keywords.get("keywords"), cfg.knowledge_dir_name)
    unreachable: list[str] = []
    weak: list[str] = []
    for rel in map(snapshot.kb_rel, snapshot.kb_files):
        hits = (rel in by_topic) + (rel in by_keyword)
        if hits == 0:
            unreachable.append(rel)
        elif hits == 1:
            via = "topic" if rel in by_topic else "keyword"
            weak.append(f"{rel} (only via {via})")

    if not unreachable and not weak:
        return CheckResult(findings=[
            Finding(Severity.OK, cat, f"All {len(snapshot.kb_files)} KB files reachable by topic and keyword"),
        ])
    result = CheckResult()
    if unreachable:
        result.findings.append(Finding(
            Severity.WARNING, cat,
            f"{plural(len(unreachable), 'KB file')} reachable by neither topic nor keyword",
            listing(unreachable),
        ))
        result.fixes.append(index_rebuild_fix(cfg))
    if weak:
        result.findings.append(Finding(
            Severity.INFO, cat,
            f"{plural(len(weak), 'KB file')} reachable through only one index",
            listing(weak),
        ))
    return result


def check_coverage(snapshot: RepoSnapshot) -> CheckResult:
    """Keyword and files indexes exist; topic clusters are not too thin to browse."""
    cat = "Coverage"
    cfg = snapshot.config
    result = CheckResult()
    missing = [name for name in (KEYWORDS_INDEX, FILES_INDEX) if not (cfg.knowledge_dir / name).exists()]
    if missing:
        result.findings.append(Finding(
            Severity.WARNING, cat,
            f"{plural(len(missing), 'search index', 'es')} missing: {', '.join(missing)}",
        ))
        result.fixes.append(index_rebuild_fix(cfg))

    try:
        topics = load_index(cfg.knowledge_dir / TOPICS_INDEX)
    except IndexUnreadable:
        # reported by the freshness check
        topics = None
    clusters = topics.get("topics") if topics else None
    if isinstance(clusters, dict):
        thin = sorted(
            name for name, files in clusters.items()
            if len(files if isinstance(files, list) else [files]) < cfg.thin_cluster_size
        )
        if thin:
            result.findings.append(Finding(
                Severity.INFO, cat,
                f"{plural(len(thin), 'thin topic cluster')} (fewer than {cfg.thin_cluster_size} files)",
                listing(thin),
            ))

    if not result.findings:
        count = len(clusters) if isinstance(clusters, dict) else 0
        result.findings.append(Finding(
            Severity.OK, cat, f"Keyword and files indexes present; {plural(count, 'topic cluster')}",
        ))
    return result
