"""Markdown rendering of check results for review comments."""

from __future__ import annotations

from mrlens_core.checks.types import CATEGORY_ORDER, CheckCategory, CheckResult, CheckStatus

CATEGORY_LABELS: dict[CheckCategory, str] = {
    CheckCategory.SECURITY: "🔒 Security",
    CheckCategory.CODE_QUALITY: "✨ Code Quality",
    CheckCategory.ARCHITECTURE: "🏗️ Architecture",
    CheckCategory.PERFORMANCE: "⚡ Performance",
    CheckCategory.TESTING: "🧪 Testing",
    CheckCategory.OBSERVABILITY: "📊 Observability",
    CheckCategory.REPO_HYGIENE: "🧹 Repo Hygiene",
}

STATUS_ICONS: dict[CheckStatus, str] = {
    CheckStatus.PASS: "✅",
    CheckStatus.WARN: "⚠️",
    CheckStatus.FAIL: "❌",
}

_EVIDENCE_BULLETS = 2


def _evidence(details: str) -> list[str]:
    bullets = [line.strip() for line in details.splitlines() if line.strip().startswith("-")]
    return bullets[:_EVIDENCE_BULLETS]


def format_check_results(results: list[CheckResult]) -> str:
    """Group results by category and render one markdown section per category."""
    by_category: dict[CheckCategory, list[CheckResult]] = {}
    for result in results:
        by_category.setdefault(result.category, []).append(result)

    sections = []
    for category in CATEGORY_ORDER:
        group = by_category.get(category)
        if not group:
            continue

        passed = sum(1 for r in group if r.status == CheckStatus.PASS)
        warned = sum(1 for r in group if r.status == CheckStatus.WARN)
        failed = sum(1 for r in group if r.status == CheckStatus.FAIL)
        lines = [f"### {CATEGORY_LABELS[category]} ({passed} ✅ / {warned} ⚠️ / {failed} ❌)"]

        for result in group:
            item = f"- {STATUS_ICONS[result.status]} [{result.status.value}] {result.title}"
            if result.status != CheckStatus.PASS:
                evidence = _evidence(result.details)
                if evidence:
                    item += "\n  " + "\n  ".join(evidence)
            lines.append(item)

        sections.append("\n".join(lines))

    return "\n\n".join(sections)
