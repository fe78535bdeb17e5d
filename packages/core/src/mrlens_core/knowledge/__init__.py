"""Knowledge corpus: fingerprints, precedent lookup, gold promotion and doc ingestion."""

from mrlens_core.knowledge.docs import IngestResult, find_doc_files, ingest_docs
from mrlens_core.knowledge.features import (
    FeatureSignature,
    compute_feature_signature,
    jaccard_similarity,
    overlap_count,
)
from mrlens_core.knowledge.gold import (
    GoldEvaluationResult,
    GoldQualificationError,
    PromotionInput,
    PromotionResult,
    build_gold_content,
    evaluate_gold_qualification,
    promote_to_gold,
)
from mrlens_core.knowledge.precedents import (
    GoldPrecedent,
    PrecedentMatchResult,
    find_gold_precedents,
    format_precedent_references,
)

__all__ = [
    "FeatureSignature",
    "GoldEvaluationResult",
    "GoldPrecedent",
    "GoldQualificationError",
    "IngestResult",
    "PrecedentMatchResult",
    "PromotionInput",
    "PromotionResult",
    "build_gold_content",
    "compute_feature_signature",
    "evaluate_gold_qualification",
    "find_doc_files",
    "find_gold_precedents",
    "format_precedent_references",
    "ingest_docs",
    "jaccard_similarity",
    "overlap_count",
    "promote_to_gold",
]
