"""Ingestion of a repository's markdown documentation into the knowledge corpus."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from mrlens_store.base import BaseStore, DuplicateSourceError
from mrlens_store.models import DOC, DocMetadata, KnowledgeSource

from mrlens_core.knowledge.gold import content_hash

logger = logging.getLogger(__name__)

DOC_PROVIDER = "LOCAL"
DOCS_DIR = "docs"
_SKIP_DIRS = {"node_modules", "dist", "build"}


@dataclass
class IngestResult:
    id: str
    path: str
    content_hash: str
    bytes: int
    created: bool
    updated: bool = False


def _is_doc_file(name: str) -> bool:
    return name.upper().startswith("README") or name.lower().endswith(".md")


def find_doc_files(root: Path) -> list[Path]:
    """README and markdown files at the root, plus everything under docs/.

    Hidden entries and node_modules/dist/build are never entered. Paths are
    returned sorted so ingestion order is stable.
    """
    found: list[Path] = []

    def scan(directory: Path, in_docs: bool) -> None:
        for entry in directory.iterdir():
            if entry.name.startswith(".") or entry.name in _SKIP_DIRS:
                continue
            if entry.is_dir():
                if in_docs or entry.name == DOCS_DIR:
                    scan(entry, True)
            elif entry.is_file() and _is_doc_file(entry.name):
                found.append(entry)

    if root.is_dir():
        scan(root, False)
    return sorted(found)


def _modified_at(path: Path) -> str:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc).isoformat()


def ingest_doc(store: BaseStore, tenant_id: str, root: Path, path: Path) -> IngestResult:
    """Upsert one documentation file, keyed by its path relative to `root`.

    Unchanged content is a no-op. Changed content replaces the stored
    document for the same relative path.
    """
    content = path.read_text(encoding="utf-8")
    digest = content_hash(content)
    size = len(content.encode("utf-8"))
    rel_path = path.relative_to(root).as_posix()

    existing = store.get_by_content_hash(tenant_id, digest)
    if existing is not None:
        logger.debug("Doc %s unchanged (%s)", rel_path, existing.id)
        return IngestResult(existing.id, rel_path, digest, size, created=False)

    metadata = DocMetadata(file_path=rel_path, file_size=size, modified_at=_modified_at(path))

    existing = store.get_by_provider_id(tenant_id, DOC, DOC_PROVIDER, rel_path)
    if existing is not None:
        existing.title = path.name
        existing.content_text = content
        existing.content_hash = digest
        existing.metadata = metadata
        existing.updated_at = datetime.now(timezone.utc).isoformat()
        store.update(existing)
        logger.info("Doc %s updated (%s)", rel_path, existing.id)
        return IngestResult(existing.id, rel_path, digest, size, created=False, updated=True)

    source = KnowledgeSource(
        tenant_id=tenant_id,
        type=DOC,
        provider=DOC_PROVIDER,
        provider_id=rel_path,
        title=path.name,
        content_text=content,
        content_hash=digest,
        metadata=metadata,
    )
    try:
        created = store.create(source)
    except DuplicateSourceError:
        winner = store.get_by_content_hash(tenant_id, digest) or store.get_by_provider_id(
            tenant_id, DOC, DOC_PROVIDER, rel_path
        )
        if winner is None:
            raise
        return IngestResult(winner.id, rel_path, winner.content_hash, size, created=False)

    logger.info("Doc %s ingested (%s)", rel_path, created.id)
    return IngestResult(created.id, rel_path, digest, size, created=True)


def ingest_docs(store: BaseStore, tenant_id: str, root: str | Path) -> tuple[list[IngestResult], list[str]]:
    """Ingest every documentation file under `root`.

    A file that cannot be read or stored is logged and reported in the
    second element of the returned tuple; the remaining files are still
    ingested.
    """
    root_path = Path(root).resolve()
    if not root_path.is_dir():
        raise ValueError(f"Not a directory: {root}")

    results: list[IngestResult] = []
    failed: list[str] = []
    for path in find_doc_files(root_path):
        try:
            results.append(ingest_doc(store, tenant_id, root_path, path))
        except (OSError, UnicodeDecodeError, DuplicateSourceError) as e:
            rel_path = path.relative_to(root_path).as_posix()
            logger.warning("Failed to ingest %s: %s", rel_path, e)
            failed.append(rel_path)
    return results, failed
