"""Tests for bounded retry around provider calls."""

import pytest

from mrlens_core.providers.errors import (
    ProviderConnectionError,
    ProviderHTTPError,
    ProviderTimeoutError,
    SuggestionAuthError,
    SuggestionRequestError,
)
from mrlens_core.providers.retry import RetryPolicy, call_with_retry, is_retryable_status, parse_retry_after


@pytest.fixture
def sleep(mocker):
    return mocker.patch("mrlens_core.providers.retry.time.sleep")


def _flaky(*failures, result="ok"):
    """A callable that raises each failure in turn, then returns `result`."""
    remaining = list(failures)
    calls = []

    def call():
        calls.append(1)
        if remaining:
            raise remaining.pop(0)
        return result

    call.calls = calls
    return call


class TestRetryPolicy:
    def test_exponential_backoff(self):
        policy = RetryPolicy()
        assert [policy.delay_for(i) for i in range(5)] == [1.0, 2.0, 4.0, 8.0, 10.0]

    def test_retry_after_wins(self):
        assert RetryPolicy().delay_for(0, retry_after=3.0) == 3.0

    def test_retry_after_is_capped(self):
        assert RetryPolicy(max_delay=10.0).delay_for(0, retry_after=60.0) == 10.0


@pytest.mark.parametrize("status, expected", [(429, True), (500, True), (503, True), (400, False), (404, False)])
def test_is_retryable_status(status, expected):
    assert is_retryable_status(status) is expected


class TestParseRetryAfter:
    def test_seconds(self):
        assert parse_retry_after({"retry-after": "7"}) == 7.0

    def test_capitalized_header(self):
        assert parse_retry_after({"Retry-After": "2.5"}) == 2.5

    def test_http_date_is_ignored(self):
        assert parse_retry_after({"retry-after": "Wed, 21 Oct 2015 07:28:00 GMT"}) is None

    def test_missing(self):
        assert parse_retry_after({}) is None
        assert parse_retry_after(None) is None


class TestCallWithRetry:
    def test_success_without_retry(self, sleep):
        call = _flaky()
        assert call_with_retry(call, RetryPolicy()) == "ok"
        assert len(call.calls) == 1
        sleep.assert_not_called()

    def test_retries_transient_failures(self, sleep):
        call = _flaky(ProviderHTTPError(429), ProviderTimeoutError("slow"), ProviderConnectionError("reset"))
        assert call_with_retry(call, RetryPolicy()) == "ok"
        assert len(call.calls) == 4
        assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0, 4.0]

    def test_honours_retry_after(self, sleep):
        call = _flaky(ProviderHTTPError(503, retry_after=5.0))
        call_with_retry(call, RetryPolicy())
        sleep.assert_called_once_with(5.0)

    def test_gives_up_after_max_retries(self, sleep):
        call = _flaky(*[ProviderHTTPError(500)] * 5)
        with pytest.raises(SuggestionRequestError) as excinfo:
            call_with_retry(call, RetryPolicy(max_retries=2), name="OpenAI")
        assert len(call.calls) == 3
        assert sleep.call_count == 2
        assert excinfo.value.status_code == 500
        assert "OpenAI API failed after 3 attempts" in str(excinfo.value)

    def test_zero_retries_means_one_attempt(self, sleep):
        call = _flaky(ProviderTimeoutError("slow"))
        with pytest.raises(SuggestionRequestError):
            call_with_retry(call, RetryPolicy(max_retries=0))
        assert len(call.calls) == 1
        sleep.assert_not_called()

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_errors_are_not_retried(self, sleep, status):
        call = _flaky(ProviderHTTPError(status))
        with pytest.raises(SuggestionAuthError):
            call_with_retry(call, RetryPolicy())
        assert len(call.calls) == 1
        sleep.assert_not_called()

    def test_other_client_errors_are_not_retried(self, sleep):
        call = _flaky(ProviderHTTPError(400, "bad request"))
        with pytest.raises(SuggestionRequestError) as excinfo:
            call_with_retry(call, RetryPolicy())
        assert excinfo.value.status_code == 400
        assert len(call.calls) == 1

    def test_retries_are_logged(self, sleep, caplog):
        call_with_retry(_flaky(ProviderHTTPError(502)), RetryPolicy(), name="Anthropic")
        assert "Anthropic API error (attempt 1/4)" in caplog.text
