"""
LLM Provider Registry & Router
================================
Central hub that:
  1. Knows all available provider types
  2. Builds the right provider from an LLMConfig (or from CLI/env settings)
  3. Exposes a single `LLMRouter` class the pipeline uses -- no provider
     details leak out

Supported providers:
    "gemini"        – Google Gemini (default, GEMINI_API_KEY)
    "anthropic"     – Claude (Anthropic API)
    "openai"        – OpenAI GPT models (api.openai.com)
    "openai_compat" – Any OpenAI-compatible endpoint (LM Studio, vLLM, ...)
    "ollama"        – Ollama REST API

Usage:
    from repo_converter.llm import LLMRouter

    router = LLMRouter.from_cli_args(args)
    response = router.complete(system="", messages=[...])
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from repo_converter.llm.base import (
    LLMConfig,
    LLMMessage,
    LLMNotAvailableError,
    LLMProviderError,
    LLMResponse,
)

if TYPE_CHECKING:
    from repo_converter.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Provider name constants
# ---------------------------------------------------------------------------
PROVIDER_GEMINI          = "gemini"
PROVIDER_ANTHROPIC       = "anthropic"
PROVIDER_OPENAI          = "openai"
PROVIDER_OPENAI_COMPAT   = "openai_compat"
PROVIDER_OLLAMA          = "ollama"

PROVIDERS = (
    PROVIDER_GEMINI,
    PROVIDER_ANTHROPIC,
    PROVIDER_OPENAI,
    PROVIDER_OPENAI_COMPAT,
    PROVIDER_OLLAMA,
)

DEFAULT_MODELS = {
    PROVIDER_GEMINI:        "gemini-2.5-flash",
    PROVIDER_ANTHROPIC:     "claude-sonnet-4-5",
    PROVIDER_OPENAI:        "gpt-4o",
    PROVIDER_OPENAI_COMPAT: "local-model",
    PROVIDER_OLLAMA:        "",
}


# ---------------------------------------------------------------------------
# Provider registry (lazy import so only the selected SDK is loaded)
# ---------------------------------------------------------------------------

def _load_provider(config: LLMConfig) -> "BaseLLMProvider":
    """Instantiate the correct provider class for config.provider."""
    p = config.provider.lower().replace("-", "_")

    if p == PROVIDER_GEMINI:
        from repo_converter.llm.providers.gemini_provider import GeminiProvider
        return GeminiProvider(config)

    if p == PROVIDER_ANTHROPIC:
        from repo_converter.llm.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(config)

    if p == PROVIDER_OPENAI:
        from repo_converter.llm.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(config)

    if p == PROVIDER_OPENAI_COMPAT:
        from repo_converter.llm.providers.openai_compat_provider import OpenAICompatProvider
        return OpenAICompatProvider(config)

    if p == PROVIDER_OLLAMA:
        from repo_converter.llm.providers.ollama_provider import OllamaProvider
        return OllamaProvider(config)

    raise ValueError(
        f"Unknown provider '{config.provider}'. "
        f"Valid options: {', '.join(PROVIDERS)}"
    )


# ---------------------------------------------------------------------------
# LLMRouter -- the single entry point for the pipeline
# ---------------------------------------------------------------------------

class LLMRouter:
    """
    Wraps a provider and exposes the same interface as BaseLLMProvider.
    Also handles:
      - fallback chain (try primary provider, fall back to secondary)
      - logging of every request

    Rate-limit errors are never sent to the fallback: they are left to the
    caller's retry policy so the cooldown is honoured.
    """

    def __init__(
        self,
        primary: "BaseLLMProvider",
        fallback: "BaseLLMProvider | None" = None,
    ) -> None:
        self._primary  = primary
        self._fallback = fallback

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: LLMConfig,
        fallback_config: LLMConfig | None = None,
    ) -> "LLMRouter":
        """Build a router directly from LLMConfig object(s)."""
        primary  = _load_provider(config)
        fallback = _load_provider(fallback_config) if fallback_config else None
        logger.info(
            "LLMRouter created: primary=%s fallback=%s",
            primary, fallback or "(none)"
        )
        return cls(primary, fallback)

    @classmethod
    def from_cli_args(cls, args: object) -> "LLMRouter":
        """Build a router from a parsed argparse.Namespace (env first, CLI wins)."""
        config = config_from_env()

        if getattr(args, "llm_provider", None):
            if args.llm_provider != config.provider:
                # credentials detected for another provider never carry over
                config.api_key  = ""
                config.base_url = ""
            config.provider = args.llm_provider
            if not getattr(args, "llm_model", None) and not os.environ.get("LLM_MODEL"):
                config.model = DEFAULT_MODELS.get(config.provider, config.model)
        if getattr(args, "llm_model", None):
            config.model = args.llm_model
        if getattr(args, "llm_base_url", None):
            config.base_url = args.llm_base_url
        if getattr(args, "ollama_host", None):
            config.ollama_host = args.ollama_host
        if getattr(args, "llm_max_tokens", None):
            config.max_tokens = args.llm_max_tokens
        if getattr(args, "llm_temperature", None) is not None:
            config.temperature = args.llm_temperature
        if getattr(args, "llm_timeout", None) is not None:
            config.timeout_seconds = int(args.llm_timeout)

        logger.info(
            "LLM configured from CLI: provider=%s model=%s base_url=%s",
            config.provider, config.model, config.base_url or "(default)"
        )
        return cls.from_config(config)

    # ------------------------------------------------------------------
    # Public API (mirrors BaseLLMProvider)
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        return self._primary.is_available or (
            self._fallback is not None and self._fallback.is_available
        )

    @property
    def provider_name(self) -> str:
        return self._primary.provider_name

    @property
    def model_name(self) -> str:
        return self._primary.model_name

    def describe(self) -> str:
        return f"{self.provider_name} / {self.model_name}"

    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        """
        Send a completion request, trying primary then fallback.

        Raises:
            LLMNotAvailableError: if no provider is configured.
            LLMProviderError:     if all providers fail.
        """
        if not self._primary.is_available:
            if self._fallback and self._fallback.is_available:
                logger.info("Primary provider unavailable -- using fallback.")
                return self._fallback.complete(system, messages)
            raise LLMNotAvailableError(
                f"No LLM provider is available. "
                f"Primary: {self._primary} | Fallback: {self._fallback}"
            )

        try:
            return self._primary.complete(system, messages)
        except LLMProviderError as exc:
            if exc.is_rate_limited or not (self._fallback and self._fallback.is_available):
                raise
            logger.warning(
                "Primary provider error (%s) -- retrying with fallback: %s",
                exc, self._fallback
            )
            return self._fallback.complete(system, messages)


# ---------------------------------------------------------------------------
# Env-based config builder
# ---------------------------------------------------------------------------

def config_from_env() -> LLMConfig:
    """
    Build an LLMConfig from environment variables.

    Detection order:
      1. LLM_PROVIDER env var (explicit override)
      2. GEMINI_API_KEY    => Gemini
      3. OLLAMA_MODEL      => local Ollama
      4. LLM_BASE_URL      => OpenAI-compat endpoint (without OPENAI_API_KEY)
      5. OPENAI_API_KEY    => OpenAI
      6. ANTHROPIC_API_KEY => Anthropic
      7. otherwise Gemini, which fails on first use without a key
    """
    config = LLMConfig()

    if os.environ.get("LLM_PROVIDER"):
        config.provider = os.environ["LLM_PROVIDER"].lower().replace("-", "_")

    elif os.environ.get("GEMINI_API_KEY"):
        config.provider = PROVIDER_GEMINI
        config.api_key  = os.environ["GEMINI_API_KEY"]

    elif os.environ.get("OLLAMA_MODEL"):
        config.provider    = PROVIDER_OLLAMA
        config.model       = os.environ["OLLAMA_MODEL"]
        config.ollama_host = os.environ.get("OLLAMA_HOST", config.ollama_host)

    elif os.environ.get("LLM_BASE_URL") and not os.environ.get("OPENAI_API_KEY"):
        config.provider = PROVIDER_OPENAI_COMPAT
        config.base_url = os.environ["LLM_BASE_URL"]
        config.api_key  = os.environ.get("LLM_API_KEY", "not-needed")

    elif os.environ.get("OPENAI_API_KEY"):
        config.provider = PROVIDER_OPENAI
        config.api_key  = os.environ["OPENAI_API_KEY"]
        if os.environ.get("LLM_BASE_URL"):
            config.base_url = os.environ["LLM_BASE_URL"]

    elif os.environ.get("ANTHROPIC_API_KEY"):
        config.provider = PROVIDER_ANTHROPIC
        config.api_key  = os.environ["ANTHROPIC_API_KEY"]

    if config.provider == PROVIDER_OLLAMA:
        config.model = os.environ.get("OLLAMA_MODEL", "")
    else:
        config.model = DEFAULT_MODELS.get(config.provider, config.model)

    # Universal overrides
    if os.environ.get("LLM_MODEL"):
        config.model = os.environ["LLM_MODEL"]
    if os.environ.get("LLM_MAX_TOKENS"):
        config.max_tokens = int(os.environ["LLM_MAX_TOKENS"])
    if os.environ.get("LLM_TEMPERATURE"):
        config.temperature = float(os.environ["LLM_TEMPERATURE"])

    return config
