"""Core MR review orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from mrlens_store.base import BaseStore

from mrlens_core.checks.engine import run_checks
from mrlens_core.checks.report import format_check_results
from mrlens_core.checks.types import CATEGORY_ORDER, Change, CheckContext, CheckResult, CheckStatus
from mrlens_core.config import load_category_weights, load_check_configs
from mrlens_core.knowledge.features import compute_feature_signature
from mrlens_core.knowledge.gold import (
    GoldEvaluationResult,
    GoldQualificationError,
    PromotionInput,
    PromotionResult,
    promote_to_gold,
)
from mrlens_core.knowledge.precedents import GoldPrecedent, find_gold_precedents, format_precedent_references
from mrlens_core.merge_request import MergeRequest
from mrlens_core.privacy.snippets import SnippetSelection, select_snippets
from mrlens_core.providers.anthropic import AnthropicSuggester
from mrlens_core.providers.base import BaseSuggester, SuggestionRequest
from mrlens_core.providers.errors import SuggestionError
from mrlens_core.providers.openai import OpenAISuggester
from mrlens_core.providers.retry import RetryPolicy
from mrlens_core.providers.schemas import AiSuggestion
from mrlens_core.scoring import calculate_score, summarize_results

logger = logging.getLogger(__name__)

DEFAULT_MAX_SUGGESTIONS = 5
_STATUS_RANK = {CheckStatus.FAIL: 0, CheckStatus.WARN: 1}


@dataclass
class ReviewSummary:
    """Result returned by run_review.

    Gold promotion, precedent lookup and suggestion generation are best
    effort: their outcome (or failure reason) is recorded here instead of
    being raised, so the check results always reach the caller.
    """

    mr: MergeRequest
    score: int
    results: list[CheckResult]
    summary: str
    gold: Optional[PromotionResult] = None
    gold_evaluation: Optional[GoldEvaluationResult] = None
    gold_error: Optional[str] = None
    precedents: list[GoldPrecedent] = field(default_factory=list)
    suggestions: list[AiSuggestion] = field(default_factory=list)
    snippet_selection: Optional[SnippetSelection] = None
    suggestions_error: Optional[str] = None
    comment: str = ""
    reviewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def failing(self) -> list[CheckResult]:
        return [r for r in self.results if r.status != CheckStatus.PASS]


def build_suggester(config: dict) -> BaseSuggester:
    model = config["model"]
    policy = RetryPolicy(max_retries=int(config.get("llm_max_retries", 3)))
    options = {
        "model": config.get("model_name"),
        "timeout": float(config.get("llm_timeout", 120)),
        "proxy_url": config.get("proxy_url"),
        "retry_policy": policy,
    }
    if model == "openai":
        if not config.get("openai_api_key"):
            raise ValueError("OPENAI_API_KEY is not set.")
        return OpenAISuggester(api_key=config["openai_api_key"], **options)
    if model == "anthropic":
        if not config.get("anthropic_api_key"):
            raise ValueError("ANTHROPIC_API_KEY is not set.")
        return AnthropicSuggester(api_key=config["anthropic_api_key"], **options)
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'openai' or 'anthropic'.")


def prioritize_failures(results: list[CheckResult], limit: int = DEFAULT_MAX_SUGGESTIONS) -> list[CheckResult]:
    """Failing results in category order, FAIL before WARN, capped at `limit`."""
    failing = [r for r in results if r.status != CheckStatus.PASS]
    failing.sort(key=lambda r: (CATEGORY_ORDER.index(r.category), _STATUS_RANK[r.status]))
    return failing[:limit]


def format_suggestions(suggestions: list[AiSuggestion]) -> str:
    if not suggestions:
        return ""

    lines = ["## 🤖 AI Suggestions", ""]
    for i, s in enumerate(suggestions, 1):
        lines.append(f"### {i}. {s.title} [{s.severity}]")
        lines.append(f"**Check:** `{s.check_key}`")
        if s.files:
            locations = []
            for f in s.files:
                if f.line_start is not None and f.line_end is not None:
                    locations.append(f"`{f.path}` (lines {f.line_start}-{f.line_end})")
                elif f.line_start is not None:
                    locations.append(f"`{f.path}` (line {f.line_start})")
                else:
                    locations.append(f"`{f.path}`")
            lines.append(f"**Files:** {', '.join(locations)}")
        lines.append("")
        lines.append(f"**Why:** {s.rationale}")
        lines.append("")
        lines.append("**Suggested fix:**")
        lines.append(s.suggested_fix)
        if s.precedent_refs:
            lines.append("")
            refs = ", ".join(f"[{r.title}]({r.source_url or '#'})" for r in s.precedent_refs)
            lines.append(f"**Precedents:** {refs}")
        lines.append("")
    return "\n".join(lines)


def _gold_section(summary: ReviewSummary) -> str:
    if summary.gold is not None:
        if summary.gold.created:
            return f"🏅 Promoted to GOLD (`{summary.gold.id}`)."
        if summary.gold.updated:
            return f"🏅 GOLD exemplar `{summary.gold.id}` updated with a higher score."
        return f"🏅 Already in the GOLD corpus (`{summary.gold.id}`)."
    if summary.gold_evaluation is not None and not summary.gold_evaluation.qualifies:
        return f"Not promoted to GOLD: {summary.gold_evaluation.reason}."
    if summary.gold_error:
        return f"GOLD promotion failed: {summary.gold_error}"
    return ""


def build_review_comment(summary: ReviewSummary) -> str:
    """Build the markdown comment posted on the merge request."""
    lines = [f"## MR Review: {summary.score}/100", "", f"> {summary.summary}", ""]

    gold = _gold_section(summary)
    if gold:
        lines.extend([gold, ""])

    checks = format_check_results(summary.results)
    if checks:
        lines.extend([checks, ""])

    precedents = format_precedent_references(summary.precedents)
    if precedents:
        lines.extend([precedents, ""])

    if summary.suggestions:
        lines.extend([format_suggestions(summary.suggestions), ""])
    elif summary.suggestions_error:
        lines.extend([f"_AI suggestions unavailable: {summary.suggestions_error}_", ""])

    selection = summary.snippet_selection
    if selection is not None and selection.skipped_files:
        skipped = ", ".join(f"`{s.file_path}` ({s.reason.value})" for s in selection.skipped_files)
        lines.extend([f"_Not shared with the AI model: {skipped}_", ""])

    return "\n".join(lines).rstrip() + "\n"


def _promote(summary: ReviewSummary, changes: list[Change], config: dict, store: BaseStore, tenant_id: str) -> None:
    data = PromotionInput(
        tenant_id=tenant_id,
        mr=summary.mr,
        changes=changes,
        score=summary.score,
        check_results=summary.results,
        threshold=int(config.get("gold_score_threshold", 85)),
    )
    try:
        summary.gold = promote_to_gold(store, data)
    except GoldQualificationError as e:
        summary.gold_evaluation = e.evaluation
    except Exception as e:
        logger.exception("GOLD promotion failed for %s!%s", summary.mr.project_id, summary.mr.iid)
        summary.gold_error = str(e)


def _lookup_precedents(summary: ReviewSummary, changes: list[Change], config: dict, store: BaseStore, tenant_id: str):
    mr = summary.mr
    signature = compute_feature_signature(mr.title, mr.description, changes)
    try:
        result = find_gold_precedents(
            store,
            tenant_id,
            signature,
            min_overlap=int(config.get("gold_min_overlap", 5)),
            max_references=int(config.get("gold_max_references", 3)),
        )
    except Exception:
        logger.exception("Precedent lookup failed for %s!%s", mr.project_id, mr.iid)
        return
    summary.precedents = result.matches


def _suggest(summary: ReviewSummary, changes: list[Change], config: dict, suggester: BaseSuggester) -> None:
    limit = int(config.get("max_suggestions", DEFAULT_MAX_SUGGESTIONS))
    prioritized = prioritize_failures(summary.results, limit)
    if not prioritized:
        return

    selection = select_snippets(
        changes,
        prioritized,
        max_total_chars=int(config.get("max_prompt_chars", 6000)),
        max_lines_per_file=int(config.get("max_lines_per_file", 40)),
    )
    summary.snippet_selection = selection

    request = SuggestionRequest(
        mr=summary.mr,
        failing_results=prioritized,
        snippets=selection.snippets,
        precedents=summary.precedents,
        redaction_report=selection.redaction_report,
    )
    try:
        summary.suggestions = suggester.generate(request)
    except SuggestionError as e:
        logger.warning("AI suggestions unavailable for %s!%s: %s", summary.mr.project_id, summary.mr.iid, e)
        summary.suggestions_error = str(e)


def run_review(
    mr: MergeRequest,
    changes: list[Change],
    config: dict,
    store: BaseStore,
    suggester: Optional[BaseSuggester] = None,
    tenant_id: Optional[str] = None,
) -> ReviewSummary:
    """Run checks, score, then the knowledge and AI stages for one MR.

    Merged MRs are considered for gold promotion; open MRs are matched
    against the gold corpus. Suggestions are only requested when a
    suggester is given and at least one check did not pass. Invalid
    tenant config and check-engine faults propagate.
    """
    tenant_id = tenant_id or config.get("tenant", "default")
    tenant_configs = load_check_configs(config)
    weights = load_category_weights(config)

    context = CheckContext(changes=changes, title=mr.title, description=mr.description)
    results = run_checks(context, tenant_configs)
    score = calculate_score(results, weights)
    summary = ReviewSummary(mr=mr, score=score, results=results, summary=summarize_results(results))
    logger.info("Reviewed %s!%s: score %d (%s)", mr.project_id, mr.iid, score, summary.summary)

    if mr.merged:
        _promote(summary, changes, config, store, tenant_id)
    else:
        _lookup_precedents(summary, changes, config, store, tenant_id)

    if suggester is not None:
        _suggest(summary, changes, config, suggester)

    summary.comment = build_review_comment(summary)
    return summary
