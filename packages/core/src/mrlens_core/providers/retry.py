"""Bounded exponential backoff around a single provider call."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from mrlens_core.providers.errors import (
    ProviderConnectionError,
    ProviderHTTPError,
    ProviderTimeoutError,
    SuggestionAuthError,
    SuggestionRequestError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_STATUSES = frozenset({401, 403})


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0

    def delay_for(self, retry: int, retry_after: Optional[float] = None) -> float:
        """Seconds to wait before retry number `retry` (0-based).

        A server-supplied Retry-After wins over the computed backoff, but is
        still capped at max_delay.
        """
        if retry_after is not None and retry_after >= 0:
            return min(retry_after, self.max_delay)
        return min(self.base_delay * (2**retry), self.max_delay)


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or 500 <= status_code < 600


def parse_retry_after(headers: Optional[Mapping[str, str]]) -> Optional[float]:
    """Read a Retry-After header given in seconds. HTTP-date values are ignored."""
    if not headers:
        return None
    value = headers.get("retry-after") or headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except (TypeError, ValueError):
        return None


def call_with_retry(call: Callable[[], T], policy: RetryPolicy, name: str = "provider") -> T:
    """Invoke `call` until it succeeds, retrying transient provider failures.

    429, 5xx, timeouts and connection errors are retried up to
    policy.max_retries times. 401/403 raise SuggestionAuthError and any other
    HTTP status raises SuggestionRequestError immediately. When retries run
    out, the last failure is wrapped in SuggestionRequestError.
    """
    attempts = policy.max_retries + 1
    last_error: Optional[Exception] = None
    last_status: Optional[int] = None

    for attempt in range(attempts):
        try:
            return call()
        except ProviderHTTPError as e:
            if e.status_code in AUTH_STATUSES:
                logger.error("%s API authentication error: %s", name, e.status_code)
                raise SuggestionAuthError(f"{name} API authentication error: {e.status_code}") from e
            if not is_retryable_status(e.status_code):
                logger.error("%s API error: %s", name, e)
                raise SuggestionRequestError(f"{name} API error: {e}", status_code=e.status_code) from e
            last_error, last_status = e, e.status_code
            delay = policy.delay_for(attempt, e.retry_after)
        except (ProviderTimeoutError, ProviderConnectionError) as e:
            last_error = e
            delay = policy.delay_for(attempt)

        if attempt == attempts - 1:
            break
        logger.warning(
            "%s API error (attempt %d/%d): %s. Retrying in %.1fs...",
            name,
            attempt + 1,
            attempts,
            last_error,
            delay,
        )
        time.sleep(delay)

    logger.error("%s API failed after %d attempts: %s", name, attempts, last_error)
    raise SuggestionRequestError(
        f"{name} API failed after {attempts} attempts: {last_error}", status_code=last_status
    ) from last_error
