"""Gold qualification and idempotent promotion into the knowledge corpus."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from mrlens_store.base import BaseStore, DuplicateSourceError
from mrlens_store.models import GOLD_MR, ApprovalState, GoldMetadata, KnowledgeSource

from mrlens_core.checks.types import Change, CheckCategory, CheckResult, CheckStatus
from mrlens_core.knowledge.features import compute_feature_signature
from mrlens_core.merge_request import MergeRequest
from mrlens_core.scoring import category_breakdown, summarize_results

logger = logging.getLogger(__name__)

DEFAULT_GOLD_THRESHOLD = 85
DEFAULT_PROVIDER = "GITHUB"
MAX_GOLD_DIFF_CHARS = 10000

_STATUS_LABELS = {
    "added": "[NEW]",
    "removed": "[DELETED]",
    "renamed": "[RENAMED]",
}


class GoldQualificationError(Exception):
    """Raised by promote_to_gold when the merge request does not qualify."""

    def __init__(self, evaluation: GoldEvaluationResult):
        self.evaluation = evaluation
        super().__init__(f"MR does not qualify for GOLD: {evaluation.reason}")


@dataclass
class GoldEvaluationResult:
    qualifies: bool
    reason: str
    score: int
    has_security_fail: bool = False
    approvals_count: Optional[int] = None
    approval_state: ApprovalState = ApprovalState.UNKNOWN

    @property
    def approvals_unknown(self) -> bool:
        return self.approval_state == ApprovalState.UNKNOWN


@dataclass
class PromotionInput:
    tenant_id: str
    mr: MergeRequest
    changes: list[Change]
    score: int
    check_results: list[CheckResult]
    review_run_id: Optional[str] = None
    provider: str = DEFAULT_PROVIDER
    threshold: int = DEFAULT_GOLD_THRESHOLD


@dataclass
class PromotionResult:
    id: str
    created: bool
    updated: bool = False
    content_hash: str = ""


def approval_state(approvals_count: Optional[int], merged_by: Optional[str]) -> ApprovalState:
    """Resolve what is known about approvals.

    A known count decides outright. Without a count, a recorded merger is a
    weak signal of approval. With neither, the state is unknown.
    """
    if approvals_count is not None:
        return ApprovalState.KNOWN_YES if approvals_count >= 1 else ApprovalState.KNOWN_NO
    if merged_by:
        return ApprovalState.KNOWN_YES
    return ApprovalState.UNKNOWN


def evaluate_gold_qualification(
    score: int,
    check_results: list[CheckResult],
    approvals_count: Optional[int] = None,
    merged_by: Optional[str] = None,
    threshold: int = DEFAULT_GOLD_THRESHOLD,
) -> GoldEvaluationResult:
    state = approval_state(approvals_count, merged_by)
    base = {"score": score, "approvals_count": approvals_count, "approval_state": state}

    if any(r.category == CheckCategory.SECURITY and r.status == CheckStatus.FAIL for r in check_results):
        return GoldEvaluationResult(
            qualifies=False, reason="SECURITY category has FAIL checks", has_security_fail=True, **base
        )
    if score < threshold:
        return GoldEvaluationResult(qualifies=False, reason=f"Score {score} below threshold {threshold}", **base)
    if state == ApprovalState.KNOWN_NO:
        return GoldEvaluationResult(qualifies=False, reason="No approvals found", **base)
    if state == ApprovalState.UNKNOWN:
        return GoldEvaluationResult(qualifies=True, reason="Qualifies (approvals unknown)", **base)
    return GoldEvaluationResult(qualifies=True, reason="Meets all GOLD criteria", **base)


def _trim_diff(diff: str, max_chars: int = MAX_GOLD_DIFF_CHARS) -> str:
    if len(diff) <= max_chars:
        return diff
    return f"{diff[:max_chars]}\n\n... [DIFF TRUNCATED: {len(diff) - max_chars} more characters] ..."


def build_gold_content(mr: MergeRequest, changes: list[Change], score: int, summary: str) -> str:
    """Render the stored body of a gold exemplar.

    Output depends only on the arguments, so identical input always yields
    an identical content hash.
    """
    parts = [f"# {mr.title}\n"]
    if mr.description:
        parts.append(f"## Description\n{mr.description}\n")
    parts.append(f"## Review Score\n{score}/100 - {summary}\n")

    parts.append(f"## Changed Files ({len(changes)})\n")
    for change in changes:
        parts.append(f"- {_STATUS_LABELS.get(change.status, '[MODIFIED]')} {change.path}")

    parts.append("\n## Diffs\n")
    for change in changes:
        if not change.diff:
            continue
        parts.append(f"### {change.path}\n")
        parts.append("```diff")
        parts.append(_trim_diff(change.diff))
        parts.append("```\n")

    return "\n".join(parts)


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def provider_id_for(mr: MergeRequest) -> str:
    return f"{mr.project_id}:{mr.iid}:{mr.merge_commit_sha or mr.head_sha}"


def _existing(store: BaseStore, data: PromotionInput, digest: str, provider_id: str) -> Optional[KnowledgeSource]:
    return store.get_by_content_hash(data.tenant_id, digest) or store.get_by_provider_id(
        data.tenant_id, GOLD_MR, data.provider, provider_id
    )


def promote_to_gold(store: BaseStore, data: PromotionInput) -> PromotionResult:
    """Upsert a qualifying merge request into the tenant's gold corpus.

    Identical content is never stored twice. A new review of an exemplar
    already stored for the same commit replaces it only when it scores
    strictly higher. Raises GoldQualificationError when the merge request
    does not qualify.
    """
    mr = data.mr
    logger.info("Evaluating %s!%s for GOLD promotion (score %d)", mr.project_id, mr.iid, data.score)

    evaluation = evaluate_gold_qualification(
        data.score, data.check_results, mr.approvals_count, mr.merged_by, threshold=data.threshold
    )
    if not evaluation.qualifies:
        logger.info("%s!%s does not qualify for GOLD: %s", mr.project_id, mr.iid, evaluation.reason)
        raise GoldQualificationError(evaluation)

    content = build_gold_content(mr, data.changes, data.score, summarize_results(data.check_results))
    digest = content_hash(content)
    provider_id = provider_id_for(mr)

    existing = store.get_by_content_hash(data.tenant_id, digest)
    if existing is not None:
        logger.info("GOLD MR %s already exists (same content)", existing.id)
        return PromotionResult(id=existing.id, created=False, content_hash=digest)

    signature = compute_feature_signature(mr.title, mr.description, data.changes)
    metadata = GoldMetadata(
        project_id=mr.project_id,
        mr_iid=mr.iid,
        score=data.score,
        feature_signature=signature.tokens,
        feature_hash=signature.hash,
        head_sha=mr.head_sha,
        merge_commit_sha=mr.merge_commit_sha,
        merged_at=mr.merged_at,
        merged_by=mr.merged_by,
        approvals_count=mr.approvals_count,
        approval_state=evaluation.approval_state,
        category_breakdown=category_breakdown(data.check_results),
        review_run_id=data.review_run_id,
    )

    existing = store.get_by_provider_id(data.tenant_id, GOLD_MR, data.provider, provider_id)
    if existing is not None:
        if data.score <= existing.metadata.score:
            logger.info("GOLD MR %s already exists (score not improved)", existing.id)
            return PromotionResult(id=existing.id, created=False, content_hash=existing.content_hash)

        existing.title = mr.title
        existing.source_url = mr.web_url
        existing.content_text = content
        existing.content_hash = digest
        existing.metadata = metadata
        existing.updated_at = datetime.now(timezone.utc).isoformat()
        store.update(existing)
        logger.info("GOLD MR %s updated (score %d > previous)", existing.id, data.score)
        return PromotionResult(id=existing.id, created=False, updated=True, content_hash=digest)

    source = KnowledgeSource(
        tenant_id=data.tenant_id,
        type=GOLD_MR,
        provider=data.provider,
        provider_id=provider_id,
        title=mr.title,
        content_text=content,
        content_hash=digest,
        metadata=metadata,
        source_url=mr.web_url,
    )
    try:
        created = store.create(source)
    except DuplicateSourceError:
        # Another writer stored the same exemplar between our lookups and the insert.
        winner = _existing(store, data, digest, provider_id)
        if winner is None:
            raise
        logger.info("GOLD MR %s was created concurrently", winner.id)
        return PromotionResult(id=winner.id, created=False, content_hash=winner.content_hash)

    logger.info("GOLD MR %s created for %s!%s", created.id, mr.project_id, mr.iid)
    return PromotionResult(id=created.id, created=True, content_hash=digest)
