"""In-memory store, the default when no store is configured.

Lets a single `mrlens review` run promote and match within the process
without any setup. Nothing survives the process; teams that want a corpus
that persists between runs switch to SQLiteStore (.mrlens.yml: store: sqlite).
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from mrlens_store.base import BaseStore, DuplicateSourceError

if TYPE_CHECKING:
    from mrlens_store.models import KnowledgeSource


class MemoryStore(BaseStore):
    """Keeps knowledge sources in a list, insertion ordered.

    Records are deep-copied on the way in and out so callers can never mutate
    stored state behind the store's back.
    """

    def __init__(self):
        self._sources: list[KnowledgeSource] = []

    def get_by_content_hash(self, tenant_id: str, content_hash: str) -> KnowledgeSource | None:
        for source in self._sources:
            if source.tenant_id == tenant_id and source.content_hash == content_hash:
                return copy.deepcopy(source)
        return None

    def get_by_provider_id(
        self, tenant_id: str, type: str, provider: str, provider_id: str
    ) -> KnowledgeSource | None:
        for source in self._sources:
            if (source.tenant_id, source.type, source.provider, source.provider_id) == (
                tenant_id,
                type,
                provider,
                provider_id,
            ):
                return copy.deepcopy(source)
        return None

    def create(self, source: KnowledgeSource) -> KnowledgeSource:
        if self.get_by_content_hash(source.tenant_id, source.content_hash) is not None:
            raise DuplicateSourceError(f"content hash {source.content_hash[:12]} already stored")
        if self.get_by_provider_id(source.tenant_id, source.type, source.provider, source.provider_id) is not None:
            raise DuplicateSourceError(f"{source.provider}:{source.provider_id} already stored")
        self._sources.append(copy.deepcopy(source))
        return copy.deepcopy(source)

    def update(self, source: KnowledgeSource) -> KnowledgeSource:
        for i, existing in enumerate(self._sources):
            if existing.id == source.id:
                self._sources[i] = copy.deepcopy(source)
                return copy.deepcopy(source)
        raise KeyError(f"Knowledge source {source.id} not found")

    def list_sources(
        self, tenant_id: str, type: str | None = None, provider: str | None = None
    ) -> list[KnowledgeSource]:
        return [
            copy.deepcopy(s)
            for s in reversed(self._sources)
            if s.tenant_id == tenant_id
            and (type is None or s.type == type)
            and (provider is None or s.provider == provider)
        ]
