from mrlens_core.providers.base import BaseSuggester, SuggestionRequest
from mrlens_core.providers.errors import (
    ProviderConnectionError,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeoutError,
    SuggestionAuthError,
    SuggestionError,
    SuggestionRequestError,
    SuggestionResponseError,
)
from mrlens_core.providers.retry import RetryPolicy, call_with_retry
from mrlens_core.providers.schemas import AiSuggestion, PrecedentRef, SuggestionFile, SuggestionsResponse

__all__ = [
    "AiSuggestion",
    "BaseSuggester",
    "PrecedentRef",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderTimeoutError",
    "RetryPolicy",
    "SuggestionAuthError",
    "SuggestionError",
    "SuggestionFile",
    "SuggestionRequest",
    "SuggestionRequestError",
    "SuggestionResponseError",
    "SuggestionsResponse",
    "call_with_retry",
]
