"""
OpenAI Provider
===============
Supports OpenAI GPT models via the official openai Python SDK.

Required env vars:
    OPENAI_API_KEY       – your OpenAI API key

Optional env vars:
    LLM_MODEL            – model id (default: gpt-4o)
    LLM_MAX_TOKENS       – max tokens (default: 8192)
    LLM_BASE_URL         – custom base URL (proxy, gateway)

Install:
    pip install openai
"""

from __future__ import annotations

import logging
import os
from typing import Any

import openai

from repo_converter.llm.base import (
    BaseLLMProvider,
    LLMConfig,
    LLMErrorKind,
    LLMMessage,
    LLMNotAvailableError,
    LLMProviderError,
    LLMResponse,
    classify_status,
)

logger = logging.getLogger(__name__)


def chat_complete(
    client: Any,
    config: LLMConfig,
    system: str,
    messages: list[LLMMessage],
    provider: str,
) -> LLMResponse:
    """
    Run one /chat/completions call and classify any SDK failure.
    Shared by the OpenAI and OpenAI-compatible providers.
    """
    sdk_messages: list[dict[str, str]] = []
    if system:
        sdk_messages.append({"role": "system", "content": system})
    sdk_messages += [{"role": m.role, "content": m.content} for m in messages]

    try:
        response = client.chat.completions.create(
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            messages=sdk_messages,
        )
    except openai.RateLimitError as exc:
        raise LLMProviderError(
            f"{provider} rate limit exceeded: {exc}",
            kind=LLMErrorKind.RATE_LIMITED,
            status_code=exc.status_code,
        ) from exc
    except openai.AuthenticationError as exc:
        raise LLMProviderError(
            f"{provider} authentication failed: {exc}",
            kind=LLMErrorKind.UNAUTHORIZED,
            status_code=exc.status_code,
        ) from exc
    except openai.APIStatusError as exc:
        status = exc.status_code
        raise LLMProviderError(
            f"{provider} API error [{status}]: {exc}",
            kind=classify_status(status),
            status_code=status,
        ) from exc
    except openai.APIConnectionError as exc:
        raise LLMProviderError(
            f"{provider} connection error ({config.base_url or 'default'}): {exc}",
            kind=LLMErrorKind.UNAVAILABLE,
        ) from exc

    text = response.choices[0].message.content or ""
    usage = response.usage
    return LLMResponse(
        text=text,
        model=getattr(response, "model", config.model),
        provider=provider,
        input_tokens=getattr(usage, "prompt_tokens", 0) if usage else 0,
        output_tokens=getattr(usage, "completion_tokens", 0) if usage else 0,
        raw=response,
    )


class OpenAIProvider(BaseLLMProvider):
    """OpenAI GPT models via the `openai` Python SDK."""

    def _setup(self) -> None:
        api_key = self.config.api_key or os.environ.get("OPENAI_API_KEY", "")

        if not api_key:
            logger.warning(
                "OpenAIProvider: OPENAI_API_KEY not set. Provider will be unavailable."
            )
            self._client = None
            return

        kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": self.config.timeout_seconds,
            "max_retries": 0,
        }
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        self._client = openai.OpenAI(**kwargs)
        logger.info(
            "OpenAIProvider ready: model=%s base_url=%s",
            self.config.model,
            self.config.base_url or "https://api.openai.com",
        )

    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        if not self._client:
            raise LLMNotAvailableError(
                "OpenAIProvider is not configured. Set OPENAI_API_KEY."
            )
        return chat_complete(self._client, self.config, system, messages, "openai")
