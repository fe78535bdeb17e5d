"""Errors raised while generating AI suggestions.

Two layers:
  - Provider*Error: raised by a provider's _call_api for a single attempt,
    already translated from whatever the SDK raised.
  - Suggestion*Error: raised to callers of BaseSuggester.generate() once
    retrying is over (or pointless).
"""

from __future__ import annotations

from typing import Optional


class SuggestionError(Exception):
    """Base class for every failure surfaced by the suggestion generator."""


class SuggestionAuthError(SuggestionError):
    """The completion API rejected our credentials (401/403)."""


class SuggestionRequestError(SuggestionError):
    """The request failed terminally or ran out of retries."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SuggestionResponseError(SuggestionError):
    """The model answered, but not with JSON matching the suggestions schema."""


class ProviderError(Exception):
    pass


class ProviderHTTPError(ProviderError):
    def __init__(self, status_code: int, message: str = "", retry_after: Optional[float] = None):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code
        self.retry_after = retry_after


class ProviderTimeoutError(ProviderError):
    pass


class ProviderConnectionError(ProviderError):
    pass
