"""SQLiteStore: local file-based knowledge corpus.

Unique indexes enforce both corpus keys at the database level; an insert
that collides raises DuplicateSourceError. The file can double as a CI
cache shared between jobs.

Schema:
  knowledge_sources: one row per gold exemplar or document; metadata is stored as a
                      JSON document in the metadata schema of its type.
"""

from __future__ import annotations

import json
import logging
import sqlite3

from mrlens_store.base import BaseStore, DuplicateSourceError
from mrlens_store.models import KnowledgeSource, empty_metadata, metadata_from_dict

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS knowledge_sources (
    id              TEXT PRIMARY KEY,
    tenant_id       TEXT NOT NULL,
    type            TEXT NOT NULL,
    provider        TEXT NOT NULL,
    provider_id     TEXT NOT NULL,
    title           TEXT,
    source_url      TEXT,
    content_text    TEXT NOT NULL,
    content_hash    TEXT NOT NULL,
    metadata_json   TEXT DEFAULT '{}',
    created_at      TEXT,
    updated_at      TEXT
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_ks_content_hash
    ON knowledge_sources (tenant_id, content_hash);
CREATE UNIQUE INDEX IF NOT EXISTS idx_ks_provider_id
    ON knowledge_sources (tenant_id, type, provider, provider_id);
CREATE INDEX IF NOT EXISTS idx_ks_tenant ON knowledge_sources (tenant_id, type);
"""

_COLUMNS = (
    "id, tenant_id, type, provider, provider_id, title, source_url, "
    "content_text, content_hash, metadata_json, created_at, updated_at"
)


class SQLiteStore(BaseStore):
    """Stores the knowledge corpus in a local SQLite database file.

    The database file path defaults to `.mrlens.db` in the current working
    directory. Configure via .mrlens.yml: `store_path: /path/to/mrlens.db`.
    """

    def __init__(self, db_path: str = ".mrlens.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def get_by_content_hash(self, tenant_id: str, content_hash: str) -> KnowledgeSource | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM knowledge_sources WHERE tenant_id=? AND content_hash=?",
            (tenant_id, content_hash),
        ).fetchone()
        return self._row_to_source(row) if row else None

    def get_by_provider_id(
        self, tenant_id: str, type: str, provider: str, provider_id: str
    ) -> KnowledgeSource | None:
        row = self._conn.execute(
            f"SELECT {_COLUMNS} FROM knowledge_sources "
            "WHERE tenant_id=? AND type=? AND provider=? AND provider_id=?",
            (tenant_id, type, provider, provider_id),
        ).fetchone()
        return self._row_to_source(row) if row else None

    def create(self, source: KnowledgeSource) -> KnowledgeSource:
        try:
            self._conn.execute(
                f"INSERT INTO knowledge_sources ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    source.id,
                    source.tenant_id,
                    source.type,
                    source.provider,
                    source.provider_id,
                    source.title,
                    source.source_url,
                    source.content_text,
                    source.content_hash,
                    json.dumps(source.metadata.to_dict()),
                    source.created_at,
                    source.updated_at,
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            raise DuplicateSourceError(str(e)) from e
        return source

    def update(self, source: KnowledgeSource) -> KnowledgeSource:
        try:
            cursor = self._conn.execute(
                """
                UPDATE knowledge_sources
                   SET title=?, source_url=?, content_text=?, content_hash=?,
                       metadata_json=?, updated_at=?
                 WHERE id=?
                """,
                (
                    source.title,
                    source.source_url,
                    source.content_text,
                    source.content_hash,
                    json.dumps(source.metadata.to_dict()),
                    source.updated_at,
                    source.id,
                ),
            )
            self._conn.commit()
        except sqlite3.IntegrityError as e:
            self._conn.rollback()
            raise DuplicateSourceError(str(e)) from e
        if cursor.rowcount == 0:
            raise KeyError(f"Knowledge source {source.id} not found")
        return source

    def list_sources(
        self, tenant_id: str, type: str | None = None, provider: str | None = None
    ) -> list[KnowledgeSource]:
        query = f"SELECT {_COLUMNS} FROM knowledge_sources WHERE tenant_id=?"
        params: list[str] = [tenant_id]
        if type is not None:
            query += " AND type=?"
            params.append(type)
        if provider is not None:
            query += " AND provider=?"
            params.append(provider)
        query += " ORDER BY created_at DESC, rowid DESC"

        return [self._row_to_source(r) for r in self._conn.execute(query, params).fetchall()]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_source(row: sqlite3.Row) -> KnowledgeSource:
        try:
            metadata = metadata_from_dict(row["type"], json.loads(row["metadata_json"] or "{}"))
        except (ValueError, TypeError) as e:
            logger.warning("Unreadable metadata on knowledge source %s: %s", row["id"], e)
            metadata = empty_metadata(row["type"])
        return KnowledgeSource(
            id=row["id"],
            tenant_id=row["tenant_id"],
            type=row["type"],
            provider=row["provider"],
            provider_id=row["provider_id"],
            title=row["title"] or "",
            source_url=row["source_url"],
            content_text=row["content_text"],
            content_hash=row["content_hash"],
            metadata=metadata,
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )
