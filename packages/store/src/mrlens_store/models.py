"""Knowledge corpus data models.

Decoupled from mrlens_core so the store layer can be used independently.
mrlens_core builds these records; the store only persists and returns them.

The metadata payload carried by a source is an explicit, versioned schema
chosen by the source type: GoldMetadata for promoted merge requests and
DocMetadata for ingested documentation. Both the precedent matcher and the
gold promoter read specific keys back, so the shape is pinned here and every
stored payload goes through metadata_from_dict() on the way in.

Migration path: when a field is added, bump METADATA_SCHEMA_VERSION and teach
GoldMetadata.from_dict() how to fill the new field from older payloads.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum

GOLD_MR = "GOLD_MR"
DOC = "DOC"

# v1: original payload, approvals tracked as a boolean `approvalsUnknown`.
# v2: approvals tracked as the ApprovalState tri-state `approval_state`.
METADATA_SCHEMA_VERSION = 2


class ApprovalState(str, Enum):
    """Confidence in whether a merge request was approved."""

    KNOWN_YES = "known-yes"
    KNOWN_NO = "known-no"
    UNKNOWN = "unknown"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class GoldMetadata:
    """Metadata stored alongside a promoted gold merge request."""

    project_id: str
    mr_iid: int
    score: int
    feature_signature: list[str] = field(default_factory=list)
    feature_hash: str = ""
    head_sha: str | None = None
    merge_commit_sha: str | None = None
    merged_at: str | None = None  # ISO-8601 UTC timestamp
    merged_by: str | None = None
    approvals_count: int | None = None
    approval_state: ApprovalState = ApprovalState.UNKNOWN
    category_breakdown: dict[str, dict[str, int]] = field(default_factory=dict)
    review_run_id: str | None = None
    schema_version: int = METADATA_SCHEMA_VERSION

    def to_dict(self) -> dict:
        data = asdict(self)
        data["approval_state"] = self.approval_state.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> GoldMetadata:
        """Build metadata from a stored payload, migrating older versions."""
        version = data.get("schema_version", 1)
        if version > METADATA_SCHEMA_VERSION:
            raise ValueError(f"Unsupported metadata schema version: {version}")

        if version < 2:
            data = _migrate_v1(data)

        return cls(
            project_id=str(data.get("project_id", "")),
            mr_iid=int(data.get("mr_iid", 0)),
            score=int(data.get("score", 0)),
            feature_signature=list(data.get("feature_signature") or []),
            feature_hash=data.get("feature_hash") or "",
            head_sha=data.get("head_sha"),
            merge_commit_sha=data.get("merge_commit_sha"),
            merged_at=data.get("merged_at"),
            merged_by=data.get("merged_by"),
            approvals_count=data.get("approvals_count"),
            approval_state=ApprovalState(data.get("approval_state", ApprovalState.UNKNOWN.value)),
            category_breakdown=dict(data.get("category_breakdown") or {}),
            review_run_id=data.get("review_run_id"),
            schema_version=METADATA_SCHEMA_VERSION,
        )


def _migrate_v1(data: dict) -> dict:
    """Translate a v1 camelCase payload into v2 field names."""
    approvals_count = data.get("approvalsCount", data.get("approvals_count"))
    if data.get("approvalsUnknown"):
        state = ApprovalState.UNKNOWN
    elif approvals_count is not None:
        state = ApprovalState.KNOWN_YES if approvals_count >= 1 else ApprovalState.KNOWN_NO
    elif data.get("mergedBy") or data.get("merged_by"):
        state = ApprovalState.KNOWN_YES
    else:
        state = ApprovalState.UNKNOWN

    return {
        "project_id": data.get("projectId", data.get("project_id", "")),
        "mr_iid": data.get("mrIid", data.get("mr_iid", 0)),
        "score": data.get("score", 0),
        "feature_signature": data.get("featureSignature", data.get("feature_signature")),
        "feature_hash": data.get("featureHash", data.get("feature_hash")),
        "head_sha": data.get("headSha", data.get("head_sha")),
        "merge_commit_sha": data.get("mergeCommitSha", data.get("merge_commit_sha")),
        "merged_at": data.get("mergedAt", data.get("merged_at")),
        "merged_by": data.get("mergedBy", data.get("merged_by")),
        "approvals_count": approvals_count,
        "approval_state": state.value,
        "category_breakdown": data.get("categoryBreakdown", data.get("category_breakdown")),
        "review_run_id": data.get("reviewRunId", data.get("review_run_id")),
    }


DOC_METADATA_SCHEMA_VERSION = 1


@dataclass
class DocMetadata:
    """Metadata stored alongside an ingested documentation file."""

    file_path: str  # relative to the ingested root
    file_size: int = 0
    modified_at: str | None = None
    schema_version: int = DOC_METADATA_SCHEMA_VERSION

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> DocMetadata:
        version = data.get("schema_version", 1)
        if version > DOC_METADATA_SCHEMA_VERSION:
            raise ValueError(f"Unsupported doc metadata schema version: {version}")
        return cls(
            file_path=str(data.get("file_path", data.get("filePath", ""))),
            file_size=int(data.get("file_size", data.get("fileSize", 0))),
            modified_at=data.get("modified_at", data.get("modifiedAt")),
            schema_version=DOC_METADATA_SCHEMA_VERSION,
        )


def metadata_from_dict(source_type: str, data: dict) -> GoldMetadata | DocMetadata:
    """Parse a stored metadata payload with the schema of its source type."""
    if source_type == DOC:
        return DocMetadata.from_dict(data)
    return GoldMetadata.from_dict(data)


def empty_metadata(source_type: str) -> GoldMetadata | DocMetadata:
    if source_type == DOC:
        return DocMetadata(file_path="")
    return GoldMetadata(project_id="", mr_iid=0, score=0)


@dataclass
class KnowledgeSource:
    """One entry in a tenant's knowledge corpus: a gold MR or a document.

    Lookup keys:
      (tenant_id, content_hash)                        true duplicates
      (tenant_id, type, provider, provider_id)         the same external MR or file
    """

    tenant_id: str
    type: str
    provider: str
    provider_id: str
    title: str
    content_text: str
    content_hash: str
    metadata: GoldMetadata | DocMetadata
    source_url: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: str = field(default_factory=_utcnow)
    updated_at: str = field(default_factory=_utcnow)
