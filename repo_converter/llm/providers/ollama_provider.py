"""
Ollama Native Provider
=======================
Runs local models via the Ollama REST API (``POST /api/chat``) over httpx.

Required:
    Ollama must be running locally: https://ollama.ai

Optional env vars:
    OLLAMA_MODEL         – model name (e.g. "codellama", "qwen2.5-coder")
    OLLAMA_HOST          – server URL (default: http://localhost:11434)

Popular code models:
    ollama pull codellama
    ollama pull deepseek-coder
    ollama pull qwen2.5-coder
"""

from __future__ import annotations

import logging
import os

import httpx

from repo_converter.llm.base import (
    BaseLLMProvider,
    LLMErrorKind,
    LLMMessage,
    LLMNotAvailableError,
    LLMProviderError,
    LLMResponse,
)

logger = logging.getLogger(__name__)


class OllamaProvider(BaseLLMProvider):
    """Local Ollama models over the native HTTP API."""

    def _setup(self) -> None:
        model = self.config.model or os.environ.get("OLLAMA_MODEL", "")
        host  = self.config.ollama_host or os.environ.get("OLLAMA_HOST", "http://localhost:11434")

        if not model:
            logger.warning(
                "OllamaProvider: OLLAMA_MODEL not set. Provider will be unavailable."
            )
            self._client = None
            return

        self.config.model = model
        self._ollama_host = host
        self._client = httpx.Client(base_url=host, timeout=self.config.timeout_seconds)
        logger.info("OllamaProvider ready: host=%s model=%s", host, model)

    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        if not self._client:
            raise LLMNotAvailableError(
                "OllamaProvider not configured. "
                "Set OLLAMA_MODEL and ensure Ollama is running."
            )

        model = self.config.model
        chat = [{"role": m.role, "content": m.content} for m in messages]
        if system:
            chat.insert(0, {"role": "system", "content": system})
        payload = {
            "model": model,
            "messages": chat,
            "options": {
                "num_predict": self.config.max_tokens,
                "temperature": self.config.temperature,
            },
            "stream": False,
        }

        try:
            resp = self._client.post("/api/chat", json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise self._wrap_error(
                f"Ollama (model={model}, host={self._ollama_host})", exc
            ) from exc
        except httpx.TransportError as exc:
            raise LLMProviderError(
                f"Ollama unreachable (host={self._ollama_host}): {exc}",
                kind=LLMErrorKind.UNAVAILABLE,
            ) from exc
        except ValueError as exc:
            raise LLMProviderError(
                f"Ollama returned a non-JSON body (model={model}): {exc}",
                kind=LLMErrorKind.MALFORMED,
            ) from exc

        try:
            text = data["message"]["content"]
        except (KeyError, TypeError) as exc:
            raise LLMProviderError(
                f"Ollama response has no message content (model={model}): {data!r:.200}",
                kind=LLMErrorKind.MALFORMED,
            ) from exc

        return LLMResponse(
            text=text,
            model=model,
            provider="ollama",
            input_tokens=data.get("prompt_eval_count", 0),
            output_tokens=data.get("eval_count", 0),
            raw=data,
        )
