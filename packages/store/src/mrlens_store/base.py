"""Abstract knowledge store interface.

Any tenant-scoped storage backend (in-memory, SQLite, Postgres) implements
this interface. mrlens_core depends on BaseStore, not on a concrete backend,
so backends are swappable without touching the promotion or matching code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mrlens_store.models import KnowledgeSource


class DuplicateSourceError(Exception):
    """Raised when a write would violate one of the store's uniqueness keys."""


class BaseStore(ABC):
    """Pluggable persistence layer for the gold knowledge corpus.

    Every read and write is scoped by tenant. Implementations must enforce
    both uniqueness keys: (tenant, content_hash) and
    (tenant, type, provider, provider_id).
    """

    @abstractmethod
    def get_by_content_hash(self, tenant_id: str, content_hash: str) -> KnowledgeSource | None:
        """Return the source with this content hash, or None."""

    @abstractmethod
    def get_by_provider_id(
        self, tenant_id: str, type: str, provider: str, provider_id: str
    ) -> KnowledgeSource | None:
        """Return the live source for this external record, or None."""

    @abstractmethod
    def create(self, source: KnowledgeSource) -> KnowledgeSource:
        """Insert a new source. Raises DuplicateSourceError on a key collision."""

    @abstractmethod
    def update(self, source: KnowledgeSource) -> KnowledgeSource:
        """Replace the stored source that has the same id."""

    @abstractmethod
    def list_sources(
        self, tenant_id: str, type: str | None = None, provider: str | None = None
    ) -> list[KnowledgeSource]:
        """Return a tenant's sources, newest first.

        Returns an empty list if nothing matches; never raises.
        """

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional; subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
