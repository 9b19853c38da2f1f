"""
Google Gemini Provider
======================
Default provider.  Talks to Gemini through the google-generativeai SDK.

Required env vars:
    GEMINI_API_KEY       – your Google AI Studio API key

Optional env vars:
    LLM_MODEL            – model id (default: gemini-2.5-flash)
    LLM_MAX_TOKENS       – max output tokens (default: 8192)

Install:
    pip install google-generativeai
"""

from __future__ import annotations

import logging
import os
from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from repo_converter.llm.base import (
    BaseLLMProvider,
    LLMErrorKind,
    LLMMessage,
    LLMNotAvailableError,
    LLMProviderError,
    LLMResponse,
)

logger = logging.getLogger(__name__)


class GeminiProvider(BaseLLMProvider):
    """Google Gemini via the `google-generativeai` SDK."""

    def _setup(self) -> None:
        api_key = self.config.api_key or os.environ.get("GEMINI_API_KEY", "")

        if not api_key:
            logger.warning(
                "GeminiProvider: GEMINI_API_KEY not set. Provider will be unavailable."
            )
            self._client = None
            return

        genai.configure(api_key=api_key)
        self._client = genai
        logger.info("GeminiProvider ready: model=%s", self.config.model)

    def _model(self, system: str) -> Any:
        kwargs: dict[str, Any] = {}
        if system:
            kwargs["system_instruction"] = system
        return self._client.GenerativeModel(
            model_name=self.config.model,
            generation_config={
                "max_output_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
                "top_p": self.config.top_p,
            },
            **kwargs,
        )

    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        if not self._client:
            raise LLMNotAvailableError(
                "GeminiProvider is not configured. Set GEMINI_API_KEY."
            )

        # Gemini uses "user" and "model" roles (not "assistant")
        contents = [
            {"role": "model" if m.role == "assistant" else "user", "parts": [m.content]}
            for m in messages
        ]

        try:
            response = self._model(system).generate_content(
                contents,
                request_options={"timeout": self.config.timeout_seconds},
            )
        except google_exceptions.ResourceExhausted as exc:
            raise LLMProviderError(
                f"Gemini quota exhausted: {exc}",
                kind=LLMErrorKind.RATE_LIMITED,
                status_code=429,
            ) from exc
        except (google_exceptions.Unauthenticated, google_exceptions.PermissionDenied) as exc:
            raise LLMProviderError(
                f"Gemini authentication failed -- check GEMINI_API_KEY: {exc}",
                kind=LLMErrorKind.UNAUTHORIZED,
                status_code=exc.code,
            ) from exc
        except google_exceptions.GoogleAPICallError as exc:
            raise self._wrap_error("Gemini API", exc) from exc
        except (ConnectionError, TimeoutError) as exc:
            raise LLMProviderError(
                f"Gemini connection error: {exc}", kind=LLMErrorKind.UNAVAILABLE
            ) from exc

        try:
            text = response.text
        except ValueError as exc:
            # raised when the candidate was blocked and carries no text parts
            raise LLMProviderError(
                f"Gemini returned no text: {exc}", kind=LLMErrorKind.UNKNOWN
            ) from exc

        usage = getattr(response, "usage_metadata", None)
        return LLMResponse(
            text=text,
            model=self.config.model,
            provider="gemini",
            input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            raw=response,
        )
