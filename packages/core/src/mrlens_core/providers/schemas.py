"""Response schema every suggestion provider must satisfy."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

NO_FIX = "No fix suggestion provided."


def normalize_suggested_fix(value):
    """Collapse a list of fix steps into a markdown bullet list."""
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        if not value:
            return NO_FIX
        return "\n".join(f"- {item}" for item in value)
    return value


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SuggestionFile(_Schema):
    path: StrictStr
    line_start: Optional[StrictInt] = None
    line_end: Optional[StrictInt] = None


class PrecedentRef(_Schema):
    knowledge_source_id: StrictStr
    title: StrictStr
    source_url: StrictStr


class AiSuggestion(_Schema):
    check_key: StrictStr
    title: StrictStr
    severity: Literal["WARN", "FAIL"]
    files: list[SuggestionFile]
    rationale: StrictStr
    suggested_fix: StrictStr
    precedent_refs: list[PrecedentRef] = Field(default_factory=list)

    @field_validator("suggested_fix", mode="before")
    @classmethod
    def normalize_fix(cls, value):
        return normalize_suggested_fix(value)


class SuggestionsResponse(_Schema):
    suggestions: list[AiSuggestion]
