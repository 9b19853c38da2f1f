"""
OpenAI-Compatible Endpoint Provider
=====================================
Supports any server that exposes an OpenAI-compatible /v1/chat/completions API.

This covers:
  - LM Studio          (http://localhost:1234/v1)
  - Ollama /v1 compat  (http://localhost:11434/v1)
  - vLLM               (http://localhost:8000/v1)
  - Together AI        (https://api.together.xyz/v1)
  - Any local proxy or corporate gateway

Required env vars:
    LLM_BASE_URL         – server base URL (e.g. http://localhost:1234/v1)

Optional env vars:
    LLM_API_KEY          – API key (default: "not-needed" for local servers)
    LLM_MODEL            – model id (default: "local-model")

Install:
    pip install openai       # reuses the openai SDK
"""

from __future__ import annotations

import logging
import os

import openai

from repo_converter.llm.base import (
    BaseLLMProvider,
    LLMMessage,
    LLMNotAvailableError,
    LLMResponse,
)
from repo_converter.llm.providers.openai_provider import chat_complete

logger = logging.getLogger(__name__)


class OpenAICompatProvider(BaseLLMProvider):
    """
    OpenAI-compatible endpoint using the openai SDK with a custom base_url.
    """

    def _setup(self) -> None:
        base_url = self.config.base_url or os.environ.get("LLM_BASE_URL", "")
        if not base_url:
            logger.warning(
                "OpenAICompatProvider: LLM_BASE_URL not set. Provider will be unavailable."
            )
            self._client = None
            return

        # Many local servers don't require a real API key
        api_key = (
            self.config.api_key
            or os.environ.get("LLM_API_KEY", "")
            or "not-needed"
        )

        self._client = openai.OpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=self.config.timeout_seconds,
            max_retries=0,
        )
        logger.info(
            "OpenAICompatProvider ready: base_url=%s model=%s",
            base_url, self.config.model,
        )

    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        if not self._client:
            raise LLMNotAvailableError(
                "OpenAICompatProvider not configured. Set LLM_BASE_URL."
            )
        return chat_complete(self._client, self.config, system, messages, "openai_compat")
