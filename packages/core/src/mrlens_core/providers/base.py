"""Base suggester implementing the Template Method pattern.

All providers share the same suggestion algorithm:
    generate() → _build_system_prompt() + _build_user_prompt()
               → _call_with_retry() → _call_api()   ← only this differs per provider
               → _parse()

Subclasses implement two things only:
  - __init__: build and store the SDK client
  - _call_api: make one raw API call, return the text response and translate
    SDK failures into Provider*Error

Prompt construction, retry policy and schema validation live here.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from pydantic import ValidationError

from mrlens_core.checks.types import CheckResult
from mrlens_core.knowledge.precedents import GoldPrecedent
from mrlens_core.merge_request import MergeRequest
from mrlens_core.privacy.snippets import CodeSnippet, SnippetRedactionReport
from mrlens_core.providers.errors import SuggestionResponseError
from mrlens_core.providers.retry import RetryPolicy, call_with_retry
from mrlens_core.providers.schemas import AiSuggestion, SuggestionsResponse

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 200
MAX_EVIDENCE_CHARS = 100
MAX_SNIPPET_CHARS = 500
MAX_PRECEDENT_TOKENS = 5


@dataclass
class SuggestionRequest:
    """Everything the model is allowed to see for one merge request.

    Snippets must already be redacted; the generator sends them verbatim.
    """

    mr: MergeRequest
    failing_results: list[CheckResult]
    snippets: list[CodeSnippet] = field(default_factory=list)
    precedents: list[GoldPrecedent] = field(default_factory=list)
    redaction_report: SnippetRedactionReport = field(default_factory=SnippetRedactionReport)


class BaseSuggester(ABC):
    MODEL: str = ""
    TEMPERATURE: float = 0.3
    MAX_TOKENS: int = 2000
    TIMEOUT: float = 120.0

    def __init__(self, model: Optional[str] = None, retry_policy: Optional[RetryPolicy] = None):
        self.model = model or self.MODEL
        self.retry_policy = retry_policy or RetryPolicy()

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def generate(self, request: SuggestionRequest) -> list[AiSuggestion]:
        """Ask the model for fix suggestions covering the failing checks.

        Raises a SuggestionError subclass on auth failure, exhausted
        retries or a response that does not match the schema.
        """
        if not request.failing_results:
            return []
        system = self._build_system_prompt()
        user = self._build_user_prompt(request)
        logger.info(
            "%s: requesting suggestions for %d failing check(s) with model %s",
            self.__class__.__name__,
            len(request.failing_results),
            self.model,
        )
        raw = self._call_with_retry(system, user)
        suggestions = self._parse(raw)
        logger.info("%s: received %d suggestion(s)", self.__class__.__name__, len(suggestions))
        return suggestions

    # ------------------------------------------------------------------ #
    # Abstract, implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        Must raise ProviderHTTPError, ProviderTimeoutError or
        ProviderConnectionError on failure so _call_with_retry can classify it.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str:
        return call_with_retry(
            lambda: self._call_api(system_prompt, user_prompt),
            self.retry_policy,
            name=self.__class__.__name__,
        )

    def _build_system_prompt(self) -> str:
        return """You are a code review assistant. Generate concise, actionable fix suggestions for code review findings.
Focus on practical solutions. Reference precedents when relevant. Keep suggestions brief (2-3 sentences max per suggestion)."""

    def _build_user_prompt(self, request: SuggestionRequest) -> str:
        mr = request.mr
        parts = [
            "## Merge Request Context",
            f"Title: {mr.title}",
            f"Project ID: {mr.project_id}",
            f"MR IID: {mr.iid}",
            f"Head SHA: {mr.head_sha}",
        ]
        if mr.description:
            parts.append(f"Description: {mr.description[:MAX_DESCRIPTION_CHARS]}")

        parts.append("\n## Failing Checks")
        for result in request.failing_results:
            evidence = f" ({result.details[:MAX_EVIDENCE_CHARS]})" if result.details else ""
            parts.append(f"- [{result.status.value}] {result.key}: {result.title}{evidence}")

        if request.snippets:
            parts.append("\n## Code Snippets (Redacted)")
            for snippet in request.snippets:
                parts.append(f"\n### {snippet.path} (lines {snippet.line_start}-{snippet.line_end})")
                parts.append("```")
                parts.append(snippet.content[:MAX_SNIPPET_CHARS])
                parts.append("```")

        if request.precedents:
            parts.append("\n## Similar GOLD Precedents")
            for p in request.precedents:
                tokens = ", ".join(p.matched_tokens[:MAX_PRECEDENT_TOKENS])
                parts.append(f"- [{p.title}]({p.source_url or '#'}) (id: {p.id}) - Matched tokens: {tokens}")

        if request.redaction_report.files_redacted > 0:
            parts.append(
                f"\nNote: {request.redaction_report.files_redacted} file(s) were redacted for privacy."
            )

        parts.append(
            """
## Task
Generate fix suggestions for the failing checks above. For each suggestion:
1. Provide a concise title
2. Explain why it matters (1-2 sentences)
3. Suggest a specific fix (2-3 bullet points)
4. Reference precedents if relevant

Return JSON in this format:
{
  "suggestions": [
    {
      "check_key": "check_key",
      "title": "Brief title",
      "severity": "WARN" or "FAIL",
      "files": [{"path": "file/path", "line_start": 10, "line_end": 15}],
      "rationale": "Why this matters",
      "suggested_fix": "Specific fix steps",
      "precedent_refs": [{"knowledge_source_id": "id", "title": "title", "source_url": "url"}]
    }
  ]
}"""
        )
        return "\n".join(parts)

    def _parse(self, raw: str) -> list[AiSuggestion]:
        """Validate the model's raw text against SuggestionsResponse.

        Only an outer ```json fence is stripped; anything else that is not
        schema-valid JSON raises SuggestionResponseError.
        """
        cleaned = re.sub(r"^```(?:json)?\s*", "", (raw or "").strip())
        cleaned = re.sub(r"\s*```$", "", cleaned.strip())
        try:
            payload = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.warning("%s: response is not valid JSON: %s", self.__class__.__name__, (raw or "")[:200])
            raise SuggestionResponseError("Invalid JSON response from LLM") from e
        try:
            return SuggestionsResponse.model_validate(payload).suggestions
        except ValidationError as e:
            logger.warning("%s: response does not match schema: %s", self.__class__.__name__, e)
            raise SuggestionResponseError(f"LLM response does not match schema: {e.error_count()} error(s)") from e
