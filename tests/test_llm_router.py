"""Tests for repo_converter.llm.registry -- router fallback and env/CLI configuration."""

import argparse
from unittest.mock import MagicMock, patch

import pytest

from conftest import rate_limited

from repo_converter.llm.base import (
    LLMConfig,
    LLMErrorKind,
    LLMMessage,
    LLMNotAvailableError,
    LLMProviderError,
    LLMResponse,
)
from repo_converter.llm.registry import LLMRouter, _load_provider, config_from_env

LLM_ENV_VARS = (
    "LLM_PROVIDER", "GEMINI_API_KEY", "OLLAMA_MODEL", "OLLAMA_HOST", "LLM_BASE_URL",
    "LLM_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "LLM_MODEL",
    "LLM_MAX_TOKENS", "LLM_TEMPERATURE",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in LLM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def _provider(available=True, **complete_kwargs):
    provider = MagicMock()
    provider.is_available = available
    provider.complete = MagicMock(**complete_kwargs)
    return provider


MESSAGES = [LLMMessage(role="user", content="convert this")]
RESPONSE = LLMResponse(text="ok", model="m", provider="p")


class TestRouterFallback:
    def test_primary_success(self):
        primary = _provider(return_value=RESPONSE)
        fallback = _provider()
        assert LLMRouter(primary, fallback).complete("", MESSAGES) is RESPONSE
        fallback.complete.assert_not_called()

    def test_non_rate_limit_error_uses_fallback(self):
        primary = _provider(side_effect=LLMProviderError("down", kind=LLMErrorKind.UNAVAILABLE))
        fallback = _provider(return_value=RESPONSE)
        assert LLMRouter(primary, fallback).complete("", MESSAGES) is RESPONSE

    def test_rate_limit_is_never_sent_to_fallback(self):
        primary = _provider(side_effect=rate_limited())
        fallback = _provider(return_value=RESPONSE)
        with pytest.raises(LLMProviderError) as info:
            LLMRouter(primary, fallback).complete("", MESSAGES)
        assert info.value.is_rate_limited
        fallback.complete.assert_not_called()

    def test_unavailable_primary_without_fallback(self):
        with pytest.raises(LLMNotAvailableError):
            LLMRouter(_provider(available=False)).complete("", MESSAGES)

    def test_unavailable_primary_with_fallback(self):
        fallback = _provider(return_value=RESPONSE)
        assert LLMRouter(_provider(available=False), fallback).complete("", MESSAGES) is RESPONSE


class TestConfigFromEnv:
    def test_defaults_to_gemini(self, clean_env):
        config = config_from_env()
        assert config.provider == "gemini"
        assert config.model == "gemini-2.5-flash"

    def test_gemini_key(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "g-key")
        clean_env.setenv("ANTHROPIC_API_KEY", "a-key")
        config = config_from_env()
        assert config.provider == "gemini"
        assert config.api_key == "g-key"

    def test_ollama_model(self, clean_env):
        clean_env.setenv("OLLAMA_MODEL", "llama3.2")
        config = config_from_env()
        assert config.provider == "ollama"
        assert config.model == "llama3.2"

    def test_anthropic_key(self, clean_env):
        clean_env.setenv("ANTHROPIC_API_KEY", "a-key")
        config = config_from_env()
        assert config.provider == "anthropic"
        assert config.model == "claude-sonnet-4-5"

    def test_explicit_provider_and_overrides(self, clean_env):
        clean_env.setenv("LLM_PROVIDER", "OpenAI")
        clean_env.setenv("LLM_MODEL", "gpt-4o-mini")
        clean_env.setenv("LLM_MAX_TOKENS", "1024")
        clean_env.setenv("LLM_TEMPERATURE", "0.5")
        config = config_from_env()
        assert config.provider == "openai"
        assert config.model == "gpt-4o-mini"
        assert config.max_tokens == 1024
        assert config.temperature == 0.5


class TestFromCliArgs:
    def test_cli_flags_win(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "g-key")
        args = argparse.Namespace(
            llm_provider="ollama", llm_model="qwen2.5-coder", llm_base_url=None,
            ollama_host="http://gpu-box:11434", llm_max_tokens=2048,
            llm_temperature=0.0, llm_timeout=30.0,
        )
        with patch.object(LLMRouter, "from_config", return_value="router") as from_config:
            assert LLMRouter.from_cli_args(args) == "router"
        config = from_config.call_args.args[0]
        assert config.provider == "ollama"
        assert config.model == "qwen2.5-coder"
        assert config.ollama_host == "http://gpu-box:11434"
        assert config.max_tokens == 2048
        assert config.temperature == 0.0
        assert config.timeout_seconds == 30

    def test_provider_flag_picks_its_default_model(self, clean_env):
        args = argparse.Namespace(llm_provider="openai")
        with patch.object(LLMRouter, "from_config") as from_config:
            LLMRouter.from_cli_args(args)
        assert from_config.call_args.args[0].model == "gpt-4o"

    def test_switching_provider_drops_detected_key(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "gemini-secret")
        clean_env.setenv("ANTHROPIC_API_KEY", "anthropic-secret")
        with patch("anthropic.Anthropic") as client_cls:
            router = LLMRouter.from_cli_args(argparse.Namespace(llm_provider="anthropic"))
        assert router.provider_name == "anthropic"
        assert router._primary.config.api_key == ""
        assert client_cls.call_args.kwargs["api_key"] == "anthropic-secret"

    def test_switching_provider_drops_detected_base_url(self, clean_env):
        clean_env.setenv("LLM_BASE_URL", "http://lm-studio:1234/v1")
        args = argparse.Namespace(llm_provider="anthropic")
        with patch.object(LLMRouter, "from_config") as from_config:
            LLMRouter.from_cli_args(args)
        config = from_config.call_args.args[0]
        assert (config.api_key, config.base_url) == ("", "")

    def test_base_url_flag_survives_provider_switch(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "gemini-secret")
        args = argparse.Namespace(llm_provider="openai", llm_base_url="https://proxy.test/v1")
        with patch.object(LLMRouter, "from_config") as from_config:
            LLMRouter.from_cli_args(args)
        config = from_config.call_args.args[0]
        assert config.api_key == ""
        assert config.base_url == "https://proxy.test/v1"

    def test_same_provider_keeps_detected_key(self, clean_env):
        clean_env.setenv("GEMINI_API_KEY", "gemini-secret")
        with patch.object(LLMRouter, "from_config") as from_config:
            LLMRouter.from_cli_args(argparse.Namespace(llm_provider="gemini"))
        assert from_config.call_args.args[0].api_key == "gemini-secret"


class TestLoadProvider:
    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            _load_provider(LLMConfig(provider="nope"))
