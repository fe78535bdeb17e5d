from __future__ import annotations

import logging
from typing import Optional

import httpx
import openai

from mrlens_core.providers.base import BaseSuggester
from mrlens_core.providers.errors import ProviderConnectionError, ProviderHTTPError, ProviderTimeoutError
from mrlens_core.providers.retry import RetryPolicy, parse_retry_after

logger = logging.getLogger(__name__)


class OpenAISuggester(BaseSuggester):
    MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: float = BaseSuggester.TIMEOUT,
        proxy_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        base_url: Optional[str] = None,
    ):
        super().__init__(model=model, retry_policy=retry_policy)
        http_client = None
        if proxy_url:
            logger.info("Using proxy for OpenAI requests: %s...", proxy_url[:20])
            http_client = httpx.Client(proxy=proxy_url, timeout=timeout)
        # Retries are ours; the SDK's own retry loop is disabled.
        self.client = openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError(str(e)) from e
        except openai.APIConnectionError as e:
            raise ProviderConnectionError(str(e)) from e
        except openai.APIStatusError as e:
            raise ProviderHTTPError(
                e.status_code, str(e), retry_after=parse_retry_after(e.response.headers)
            ) from e

        if response.usage is not None:
            logger.debug("OpenAI usage: %d total tokens", response.usage.total_tokens)
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
