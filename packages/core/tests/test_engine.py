"""Tests for the check registry, the engine and markdown reporting."""

import pytest

from mrlens_core.checks.base import Verdict, check
from mrlens_core.checks.engine import run_checks
from mrlens_core.checks.registry import ALL_CHECKS, CHECKS, checks_by_category, get_check
from mrlens_core.checks.report import format_check_results
from mrlens_core.checks.types import (
    CATEGORY_ORDER,
    Change,
    CheckCategory,
    CheckConfig,
    CheckContext,
    CheckResult,
    CheckStatus,
)

DIRTY = CheckContext(
    changes=[Change(path="src/app.py", diff="@@ -0,0 +1,2 @@\n+# TODO: tidy\n+API_KEY = 'x'")],
    title="Add app",
)


def _result(key="k", category=CheckCategory.SECURITY, status=CheckStatus.PASS, details="ok", title="Title"):
    return CheckResult(key=key, title=title, category=category, status=status, details=details)


class TestRegistry:
    def test_keys_are_unique(self):
        assert len(CHECKS) == len(ALL_CHECKS)

    def test_registry_is_in_category_order(self):
        positions = [CATEGORY_ORDER.index(c.category) for c in ALL_CHECKS]
        assert positions == sorted(positions)

    def test_every_category_has_checks(self):
        for category in CheckCategory:
            assert checks_by_category(category)

    def test_checks_by_category_accepts_string(self):
        keys = [c.key for c in checks_by_category("REPO_HYGIENE")]
        assert "merge-conflict-markers" in keys

    def test_get_check(self):
        assert get_check("secrets").category == CheckCategory.SECURITY
        assert get_check("does-not-exist") is None

    def test_definitions_carry_rationale(self):
        assert all(c.rationale for c in ALL_CHECKS)


class TestRunChecks:
    def test_one_result_per_check(self):
        results = run_checks(CheckContext())
        assert [r.key for r in results] == [c.key for c in ALL_CHECKS]

    def test_empty_changeset_passes_everything(self):
        assert all(r.status == CheckStatus.PASS for r in run_checks(CheckContext()))

    def test_flags_problems(self):
        by_key = {r.key: r for r in run_checks(DIRTY)}
        assert by_key["todo-fixme"].status == CheckStatus.FAIL
        assert by_key["secrets"].status == CheckStatus.FAIL

    def test_disabled_check_is_omitted(self):
        results = run_checks(DIRTY, [CheckConfig(check_key="secrets", enabled=False)])
        assert "secrets" not in [r.key for r in results]
        assert len(results) == len(ALL_CHECKS) - 1

    def test_severity_override_replaces_status_only(self):
        original = {r.key: r for r in run_checks(DIRTY)}["todo-fixme"]
        results = run_checks(DIRTY, [CheckConfig(check_key="todo-fixme", severity_override=CheckStatus.WARN)])
        overridden = {r.key: r for r in results}["todo-fixme"]
        assert overridden.status == CheckStatus.WARN
        assert overridden.details == original.details
        assert overridden.line_hint == original.line_hint

    def test_thresholds_reach_the_check(self):
        context = CheckContext(changes=[Change(path="a.py", diff="@@ -0,0 +1,3 @@\n+a\n+b\n+c")])
        results = run_checks(context, [CheckConfig(check_key="large-diff", thresholds={"maxLines": 2})])
        assert {r.key: r for r in results}["large-diff"].status == CheckStatus.WARN

    def test_thresholds_are_copied(self):
        seen = []
        registry = []

        @check(
            registry,
            key="mutating",
            title="Mutating",
            category=CheckCategory.CODE_QUALITY,
            default_severity=CheckStatus.WARN,
            rationale="test",
        )
        def mutating(ctx, thresholds):
            thresholds["touched"] = True
            seen.append(thresholds)
            return Verdict(CheckStatus.PASS, "ok", "ok")

        config = CheckConfig(check_key="mutating", thresholds={"a": 1})
        run_checks(CheckContext(), [config], checks=registry)
        assert config.thresholds == {"a": 1}
        assert seen[0]["touched"] is True

    def test_raising_check_degrades_to_pass(self, caplog):
        registry = []

        @check(
            registry,
            key="broken",
            title="Broken",
            category=CheckCategory.TESTING,
            default_severity=CheckStatus.FAIL,
            rationale="test",
        )
        def broken(ctx, thresholds):
            raise ValueError("boom")

        config = CheckConfig(check_key="broken", severity_override=CheckStatus.FAIL)
        results = run_checks(CheckContext(), [config], checks=registry)

        assert len(results) == 1
        assert results[0].status == CheckStatus.PASS
        assert results[0].key == "broken"
        assert results[0].category == CheckCategory.TESTING
        assert "ValueError" in results[0].details
        assert "broken" in caplog.text

    def test_verdict_identity_is_stamped_by_definition(self):
        registry = []

        @check(
            registry,
            key="stamped",
            title="Stamped",
            category=CheckCategory.ARCHITECTURE,
            default_severity=CheckStatus.WARN,
            rationale="test",
        )
        def stamped(ctx, thresholds):
            return Verdict(CheckStatus.WARN, "Custom title", "- detail", file_path="a.py", line_hint=3)

        result = run_checks(CheckContext(), checks=registry)[0]
        assert (result.key, result.category, result.title) == ("stamped", CheckCategory.ARCHITECTURE, "Custom title")
        assert (result.file_path, result.line_hint) == ("a.py", 3)


class TestFormatCheckResults:
    def test_groups_by_category_in_order(self):
        output = format_check_results(
            [
                _result(key="r", category=CheckCategory.REPO_HYGIENE),
                _result(key="s", category=CheckCategory.SECURITY),
            ]
        )
        assert output.index("Security") < output.index("Repo Hygiene")

    def test_header_counts(self):
        output = format_check_results(
            [
                _result(status=CheckStatus.PASS),
                _result(status=CheckStatus.WARN),
                _result(status=CheckStatus.FAIL),
                _result(status=CheckStatus.FAIL),
            ]
        )
        assert "### 🔒 Security (1 ✅ / 1 ⚠️ / 2 ❌)" in output

    def test_evidence_only_for_failing_results(self):
        details = "Found:\n- `a.py` (line 1)\n- `b.py` (line 2)\n- `c.py` (line 3)"
        output = format_check_results(
            [
                _result(status=CheckStatus.FAIL, details=details, title="Bad"),
                _result(status=CheckStatus.PASS, details="- `z.py`", title="Good"),
            ]
        )
        assert "- ❌ [FAIL] Bad\n  - `a.py` (line 1)\n  - `b.py` (line 2)" in output
        assert "c.py" not in output
        assert "z.py" not in output

    def test_empty_results(self):
        assert format_check_results([]) == ""


@pytest.mark.parametrize("key", ["secrets", "merge-conflict-markers", "test-only-code", "sensitive-files"])
def test_fail_by_default_checks(key):
    assert get_check(key).default_severity == CheckStatus.FAIL
