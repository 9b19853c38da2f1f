"""
Anthropic Claude Provider
==========================
Supports Claude models via the official Anthropic Python SDK.

Required env vars:
    ANTHROPIC_API_KEY    – your Anthropic API key

Optional env vars:
    LLM_MODEL            – model id (default: claude-sonnet-4-5)
    LLM_BASE_URL         – custom endpoint (proxy / enterprise)

Install:
    pip install anthropic
"""

from __future__ import annotations

import logging
import os
from typing import Any

import anthropic

from repo_converter.llm.base import (
    BaseLLMProvider,
    LLMErrorKind,
    LLMMessage,
    LLMNotAvailableError,
    LLMProviderError,
    LLMResponse,
)

logger = logging.getLogger(__name__)


class AnthropicProvider(BaseLLMProvider):
    """Anthropic Claude via the `anthropic` Python SDK."""

    def _setup(self) -> None:
        api_key = self.config.api_key or os.environ.get("ANTHROPIC_API_KEY", "")

        if not api_key:
            logger.warning(
                "AnthropicProvider: ANTHROPIC_API_KEY not set. "
                "Provider will be unavailable."
            )
            self._client = None
            return

        kwargs: dict[str, Any] = {
            "api_key": api_key,
            "timeout": self.config.timeout_seconds,
            # retries are owned by the pipeline's rate-limit policy
            "max_retries": 0,
        }
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        self._client = anthropic.Anthropic(**kwargs)
        logger.info(
            "AnthropicProvider ready: model=%s base_url=%s",
            self.config.model,
            self.config.base_url or "https://api.anthropic.com",
        )

    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        if not self._client:
            raise LLMNotAvailableError(
                "AnthropicProvider is not configured. Set ANTHROPIC_API_KEY."
            )

        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if system:
            kwargs["system"] = system

        # Subclasses first: RateLimitError / AuthenticationError derive from APIStatusError
        try:
            response = self._client.messages.create(**kwargs)
        except anthropic.RateLimitError as exc:
            raise LLMProviderError(
                f"Anthropic rate limit exceeded: {exc}",
                kind=LLMErrorKind.RATE_LIMITED,
                status_code=exc.status_code,
            ) from exc
        except anthropic.AuthenticationError as exc:
            raise LLMProviderError(
                f"Anthropic authentication failed -- check ANTHROPIC_API_KEY: {exc}",
                kind=LLMErrorKind.UNAUTHORIZED,
                status_code=exc.status_code,
            ) from exc
        except anthropic.APIStatusError as exc:
            raise self._wrap_error("Anthropic API", exc) from exc
        except anthropic.APIConnectionError as exc:
            raise LLMProviderError(
                f"Anthropic connection error: {exc}", kind=LLMErrorKind.UNAVAILABLE
            ) from exc

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        return LLMResponse(
            text=text,
            model=response.model,
            provider="anthropic",
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            raw=response,
        )
