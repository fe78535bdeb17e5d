"""Tests for the review pipeline: run_review and its helpers."""

from unittest.mock import MagicMock

import pytest
from mrlens_store.memory import MemoryStore
from mrlens_store.models import GOLD_MR

from mrlens_core.checks.types import Change, CheckCategory, CheckResult, CheckStatus
from mrlens_core.config import DEFAULT_CONFIG
from mrlens_core.merge_request import MergeRequest
from mrlens_core.providers.anthropic import AnthropicSuggester
from mrlens_core.providers.errors import SuggestionRequestError
from mrlens_core.providers.openai import OpenAISuggester
from mrlens_core.providers.schemas import AiSuggestion
from mrlens_core.reviewer import (
    ReviewSummary,
    build_review_comment,
    build_suggester,
    format_suggestions,
    prioritize_failures,
    run_review,
)

TITLE = "Add checkout cart payment flow"
DIRTY = [Change("src/app.py", "@@ -0,0 +1,2 @@\n+# TODO: tidy\n+API_KEY = 'x'")]


def _mr(merged=True, **kwargs):
    fields = {
        "project_id": "acme/shop",
        "iid": 7,
        "title": TITLE,
        "head_sha": "abc123",
        "web_url": "https://github.com/acme/shop/pull/7",
        "approvals_count": 1,
    }
    if merged:
        fields.update(state="merged", merge_commit_sha="def456", merged_at="2024-05-01T10:00:00Z", merged_by="octocat")
    fields.update(kwargs)
    return MergeRequest(**fields)


def _config(**overrides):
    config = dict(DEFAULT_CONFIG, checks={}, category_weights={})
    config.update(overrides)
    return config


def _suggestion(**overrides):
    data = {
        "check_key": "secrets",
        "title": "Load the key from the environment",
        "severity": "FAIL",
        "files": [{"path": "src/app.py", "line_start": 2, "line_end": 2}],
        "rationale": "Keys in source leak.",
        "suggested_fix": "- Use os.environ",
    }
    data.update(overrides)
    return AiSuggestion.model_validate(data)


def _r(key, category, status):
    return CheckResult(key=key, title=key, category=category, status=status, details="")


class TestRunReviewGold:
    def test_clean_merged_mr_is_promoted(self):
        store = MemoryStore()
        summary = run_review(_mr(), [], _config(), store)

        assert summary.score == 100
        assert summary.gold is not None and summary.gold.created is True
        assert len(store.list_sources("default", type=GOLD_MR)) == 1
        assert f"🏅 Promoted to GOLD (`{summary.gold.id}`)." in summary.comment

    def test_second_review_reports_existing_exemplar(self):
        store = MemoryStore()
        first = run_review(_mr(), [], _config(), store)
        second = run_review(_mr(), [], _config(), store)
        assert second.gold.id == first.gold.id
        assert "Already in the GOLD corpus" in second.comment

    def test_security_failure_blocks_promotion(self):
        store = MemoryStore()
        summary = run_review(_mr(), DIRTY, _config(), store)

        assert summary.gold is None
        assert summary.gold_evaluation.has_security_fail is True
        assert "Not promoted to GOLD: SECURITY category has FAIL checks." in summary.comment
        assert store.list_sources("default") == []

    def test_threshold_comes_from_config(self):
        summary = run_review(_mr(), [], _config(gold_score_threshold=101), MemoryStore())
        assert summary.gold is None
        assert summary.gold_evaluation.reason == "Score 100 below threshold 101"

    def test_store_failure_does_not_lose_results(self):
        store = MagicMock()
        store.get_by_content_hash.side_effect = RuntimeError("disk full")
        summary = run_review(_mr(), [], _config(), store)

        assert summary.gold is None
        assert summary.gold_error == "disk full"
        assert summary.results
        assert "GOLD promotion failed: disk full" in summary.comment

    def test_tenant_id_overrides_config(self):
        store = MemoryStore()
        run_review(_mr(), [], _config(tenant="acme"), store, tenant_id="globex")
        assert store.list_sources("acme") == []
        assert len(store.list_sources("globex")) == 1


class TestRunReviewPrecedents:
    def test_open_mr_is_matched_against_gold(self):
        store = MemoryStore()
        run_review(_mr(), [], _config(), store)

        summary = run_review(_mr(merged=False, iid=8), [], _config(), store)
        assert summary.gold is None
        assert [p.title for p in summary.precedents] == [TITLE]
        assert "## 📚 Similar GOLD MRs Found" in summary.comment

    def test_no_precedents_in_empty_corpus(self):
        summary = run_review(_mr(merged=False), [], _config(), MemoryStore())
        assert summary.precedents == []
        assert "Similar GOLD MRs" not in summary.comment

    def test_lookup_failure_is_not_fatal(self):
        store = MagicMock()
        store.list_sources.side_effect = RuntimeError("offline")
        summary = run_review(_mr(merged=False), [], _config(), store)
        assert summary.precedents == []


class TestRunReviewSuggestions:
    def test_suggester_receives_prioritized_failures(self):
        suggester = MagicMock()
        suggester.generate.return_value = [_suggestion()]
        summary = run_review(_mr(merged=False), DIRTY, _config(max_suggestions=1), MemoryStore(), suggester)

        request = suggester.generate.call_args.args[0]
        assert len(request.failing_results) == 1
        assert request.failing_results[0].category == CheckCategory.SECURITY
        assert request.mr.iid == 7
        assert summary.snippet_selection is not None
        assert summary.suggestions[0].check_key == "secrets"
        assert "## 🤖 AI Suggestions" in summary.comment

    def test_all_passing_skips_suggester(self):
        suggester = MagicMock()
        summary = run_review(_mr(merged=False), [], _config(), MemoryStore(), suggester)
        suggester.generate.assert_not_called()
        assert summary.suggestions == []

    def test_suggestion_failure_is_reported(self):
        suggester = MagicMock()
        suggester.generate.side_effect = SuggestionRequestError("OpenAI API failed after 4 attempts")
        summary = run_review(_mr(merged=False), DIRTY, _config(), MemoryStore(), suggester)

        assert summary.suggestions == []
        assert summary.suggestions_error == "OpenAI API failed after 4 attempts"
        assert "_AI suggestions unavailable: OpenAI API failed after 4 attempts_" in summary.comment

    def test_zero_line_cap_still_reaches_suggester(self):
        suggester = MagicMock()
        suggester.generate.return_value = []
        summary = run_review(_mr(merged=False), DIRTY, _config(max_lines_per_file=0), MemoryStore(), suggester)

        request = suggester.generate.call_args.args[0]
        assert request.snippets == []
        assert summary.results
        assert summary.suggestions_error is None

    def test_without_suggester_no_ai_stage(self):
        summary = run_review(_mr(merged=False), DIRTY, _config(), MemoryStore())
        assert summary.snippet_selection is None


class TestRunReviewConfig:
    def test_invalid_check_config_propagates(self):
        with pytest.raises(ValueError, match="Unknown check key"):
            run_review(_mr(), [], _config(checks={"nope": {}}), MemoryStore())

    def test_disabled_check_is_not_reported(self):
        summary = run_review(_mr(merged=False), DIRTY, _config(checks={"secrets": {"enabled": False}}), MemoryStore())
        assert "secrets" not in [r.key for r in summary.results]

    def test_failing_property(self):
        summary = run_review(_mr(merged=False), DIRTY, _config(), MemoryStore())
        assert summary.failing
        assert all(r.status != CheckStatus.PASS for r in summary.failing)


class TestBuildSuggester:
    def test_openai(self):
        suggester = build_suggester(_config(openai_api_key="sk-test", llm_max_retries=1))
        assert isinstance(suggester, OpenAISuggester)
        assert suggester.retry_policy.max_retries == 1

    def test_anthropic_with_model_name(self):
        suggester = build_suggester(_config(model="anthropic", anthropic_api_key="k", model_name="claude-x"))
        assert isinstance(suggester, AnthropicSuggester)
        assert suggester.model == "claude-x"

    def test_missing_key(self):
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            build_suggester(_config(openai_api_key=None))

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="Unknown model provider"):
            build_suggester(_config(model="llama"))


def test_prioritize_failures_orders_by_category_then_status():
    results = [
        _r("hygiene-warn", CheckCategory.REPO_HYGIENE, CheckStatus.WARN),
        _r("quality-warn", CheckCategory.CODE_QUALITY, CheckStatus.WARN),
        _r("quality-fail", CheckCategory.CODE_QUALITY, CheckStatus.FAIL),
        _r("security-pass", CheckCategory.SECURITY, CheckStatus.PASS),
        _r("security-warn", CheckCategory.SECURITY, CheckStatus.WARN),
    ]
    assert [r.key for r in prioritize_failures(results)] == [
        "security-warn",
        "quality-fail",
        "quality-warn",
        "hygiene-warn",
    ]
    assert len(prioritize_failures(results, limit=2)) == 2


class TestFormatSuggestions:
    def test_empty(self):
        assert format_suggestions([]) == ""

    def test_renders_locations_and_precedents(self):
        ref = {"knowledge_source_id": "k1", "title": "Old MR", "source_url": "https://example.com/1"}
        output = format_suggestions(
            [
                _suggestion(
                    files=[{"path": "a.py", "line_start": 1, "line_end": 3}, {"path": "b.py", "line_start": 4}, {"path": "c.py"}],
                    precedent_refs=[ref],
                )
            ]
        )
        assert "### 1. Load the key from the environment [FAIL]" in output
        assert "**Check:** `secrets`" in output
        assert "**Files:** `a.py` (lines 1-3), `b.py` (line 4), `c.py`" in output
        assert "**Why:** Keys in source leak." in output
        assert "**Suggested fix:**\n- Use os.environ" in output
        assert "**Precedents:** [Old MR](https://example.com/1)" in output


def test_build_review_comment_header():
    summary = ReviewSummary(mr=_mr(merged=False), score=72, results=[], summary="0 checks: 0 PASS / 0 WARN / 0 FAIL")
    comment = build_review_comment(summary)
    assert comment.startswith("## MR Review: 72/100\n\n> 0 checks")
    assert comment.endswith("\n")
