"""Retrieval of similar gold exemplars from a tenant's knowledge corpus."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from mrlens_store.base import BaseStore
from mrlens_store.models import GOLD_MR

from mrlens_core.knowledge.features import FeatureSignature, jaccard_similarity, overlap_count

logger = logging.getLogger(__name__)

MIN_JACCARD = 0.15
# Jaccard scores closer than this are ranked as equal.
SIMILARITY_TIE = 0.001


@dataclass
class GoldPrecedent:
    id: str
    title: str
    source_url: Optional[str]
    score: int
    merged_at: Optional[str]
    feature_signature: list[str]
    matched_tokens: list[str]
    similarity: float
    overlap: int


@dataclass
class PrecedentMatchResult:
    matches: list[GoldPrecedent] = field(default_factory=list)
    total_found: int = 0


def _rank(a: GoldPrecedent, b: GoldPrecedent) -> int:
    if abs(a.similarity - b.similarity) > SIMILARITY_TIE:
        return -1 if a.similarity > b.similarity else 1
    if a.score != b.score:
        return -1 if a.score > b.score else 1
    if a.merged_at and b.merged_at:
        if a.merged_at == b.merged_at:
            return 0
        return -1 if a.merged_at > b.merged_at else 1
    if a.merged_at:
        return -1
    if b.merged_at:
        return 1
    return 0


def find_gold_precedents(
    store: BaseStore,
    tenant_id: str,
    signature: FeatureSignature,
    min_overlap: int = 5,
    max_references: int = 3,
    provider: Optional[str] = None,
) -> PrecedentMatchResult:
    """Rank the tenant's gold exemplars by similarity to `signature`.

    An exemplar is admitted when it shares at least `min_overlap` tokens or
    its Jaccard similarity reaches MIN_JACCARD. Admitted exemplars are ranked
    by similarity, then score, then merge time (most recent first, unknown
    last); the top `max_references` are returned with the tokens they share.
    Exemplars stored without a signature are ignored.
    """
    logger.debug(
        "Looking up gold precedents for tenant %s (%d tokens)",
        tenant_id,
        len(signature.tokens),
    )

    current = set(signature.tokens)
    candidates: list[GoldPrecedent] = []

    for source in store.list_sources(tenant_id, type=GOLD_MR, provider=provider):
        tokens = source.metadata.feature_signature
        if not tokens:
            continue

        overlap = overlap_count(signature.tokens, tokens)
        similarity = jaccard_similarity(signature.tokens, tokens)
        if overlap < min_overlap and similarity < MIN_JACCARD:
            continue

        candidates.append(
            GoldPrecedent(
                id=source.id,
                title=source.title,
                source_url=source.source_url,
                score=source.metadata.score,
                merged_at=source.metadata.merged_at,
                feature_signature=list(tokens),
                matched_tokens=[t for t in tokens if t in current],
                similarity=similarity,
                overlap=overlap,
            )
        )

    candidates.sort(key=functools.cmp_to_key(_rank))
    matches = candidates[:max_references]

    logger.info(
        "Matched %d gold precedent(s) of %d candidate(s) for tenant %s",
        len(matches),
        len(candidates),
        tenant_id,
    )
    return PrecedentMatchResult(matches=matches, total_found=len(candidates))


def _merge_date(merged_at: Optional[str]) -> str:
    if not merged_at:
        return "Unknown"
    try:
        return datetime.fromisoformat(merged_at.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return merged_at


def format_precedent_references(precedents: list[GoldPrecedent]) -> str:
    if not precedents:
        return ""

    lines = ["## 📚 Similar GOLD MRs Found", ""]
    for i, p in enumerate(precedents, 1):
        shown = ", ".join(p.matched_tokens[:8])
        more = f" (+{len(p.matched_tokens) - 8} more)" if len(p.matched_tokens) > 8 else ""
        lines.append(f"### {i}. [{p.title}]({p.source_url or '#'})")
        lines.append(f"- **Score:** {p.score}/100")
        lines.append(f"- **Merged:** {_merge_date(p.merged_at)}")
        lines.append(f"- **Similarity:** {p.similarity * 100:.1f}% ({p.overlap} tokens overlap)")
        lines.append(f"- **Matched tokens:** {shown}{more}")
        lines.append("")
    return "\n".join(lines)
