from __future__ import annotations

import logging
from typing import Optional

import anthropic
import httpx
from anthropic.types import TextBlock

from mrlens_core.providers.base import BaseSuggester
from mrlens_core.providers.errors import ProviderConnectionError, ProviderHTTPError, ProviderTimeoutError
from mrlens_core.providers.retry import RetryPolicy, parse_retry_after

logger = logging.getLogger(__name__)


class AnthropicSuggester(BaseSuggester):
    MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        timeout: float = BaseSuggester.TIMEOUT,
        proxy_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        super().__init__(model=model, retry_policy=retry_policy)
        http_client = None
        if proxy_url:
            logger.info("Using proxy for Anthropic requests: %s...", proxy_url[:20])
            http_client = httpx.Client(proxy=proxy_url, timeout=timeout)
        self.client = anthropic.Anthropic(
            api_key=api_key,
            timeout=timeout,
            max_retries=0,
            http_client=http_client,
        )

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # No JSON response mode here; the prompt asks for bare JSON and
        # _parse strips a stray ```json fence.
        try:
            response = self.client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=self.TEMPERATURE,
                max_tokens=self.MAX_TOKENS,
            )
        except anthropic.APITimeoutError as e:
            raise ProviderTimeoutError(str(e)) from e
        except anthropic.APIConnectionError as e:
            raise ProviderConnectionError(str(e)) from e
        except anthropic.APIStatusError as e:
            raise ProviderHTTPError(
                e.status_code, str(e), retry_after=parse_retry_after(e.response.headers)
            ) from e

        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
