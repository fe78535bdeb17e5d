"""Tests for the suggestions response schema."""

import pytest
from pydantic import ValidationError

from mrlens_core.providers.schemas import NO_FIX, AiSuggestion, SuggestionsResponse, normalize_suggested_fix


def _suggestion(**overrides):
    data = {
        "check_key": "secrets",
        "title": "Move the key to the environment",
        "severity": "FAIL",
        "files": [{"path": "src/app.py", "line_start": 3, "line_end": 3}],
        "rationale": "Keys in source leak through history.",
        "suggested_fix": "Read it from os.environ.",
    }
    data.update(overrides)
    return data


class TestAiSuggestion:
    def test_valid(self):
        suggestion = AiSuggestion.model_validate(_suggestion())
        assert suggestion.files[0].path == "src/app.py"
        assert suggestion.precedent_refs == []

    def test_file_lines_are_optional(self):
        suggestion = AiSuggestion.model_validate(_suggestion(files=[{"path": "a.py"}]))
        assert suggestion.files[0].line_start is None

    def test_pass_severity_is_rejected(self):
        with pytest.raises(ValidationError):
            AiSuggestion.model_validate(_suggestion(severity="PASS"))

    def test_strings_are_not_coerced(self):
        with pytest.raises(ValidationError):
            AiSuggestion.model_validate(_suggestion(files=[{"path": "a.py", "line_start": "3"}]))

    def test_missing_field(self):
        data = _suggestion()
        del data["rationale"]
        with pytest.raises(ValidationError):
            AiSuggestion.model_validate(data)

    def test_missing_severity(self):
        data = _suggestion()
        del data["severity"]
        with pytest.raises(ValidationError):
            AiSuggestion.model_validate(data)

    def test_fix_steps_become_bullets(self):
        suggestion = AiSuggestion.model_validate(_suggestion(suggested_fix=["Add a test", "Run it"]))
        assert suggestion.suggested_fix == "- Add a test\n- Run it"

    def test_precedent_refs(self):
        ref = {"knowledge_source_id": "k1", "title": "Old MR", "source_url": "https://example.com/1"}
        suggestion = AiSuggestion.model_validate(_suggestion(precedent_refs=[ref]))
        assert suggestion.precedent_refs[0].knowledge_source_id == "k1"


def test_normalize_suggested_fix():
    assert normalize_suggested_fix([]) == NO_FIX
    assert normalize_suggested_fix("Do it") == "Do it"
    assert normalize_suggested_fix([1, 2]) == [1, 2]


def test_response_requires_suggestions_list():
    assert SuggestionsResponse.model_validate({"suggestions": []}).suggestions == []
    with pytest.raises(ValidationError):
        SuggestionsResponse.model_validate({})
