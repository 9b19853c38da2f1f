# AI service boundary: provider abstraction, error classification, router
from repo_converter.llm.base import (
    LLMConfig,
    LLMMessage,
    LLMResponse,
    BaseLLMProvider,
    LLMErrorKind,
    LLMProviderError,
    LLMNotAvailableError,
    classify_status,
)
from repo_converter.llm.registry import (
    LLMRouter,
    config_from_env,
    PROVIDERS,
    PROVIDER_GEMINI,
    PROVIDER_ANTHROPIC,
    PROVIDER_OPENAI,
    PROVIDER_OPENAI_COMPAT,
    PROVIDER_OLLAMA,
)

__all__ = [
    # Data classes
    "LLMConfig",
    "LLMMessage",
    "LLMResponse",
    # Abstract base
    "BaseLLMProvider",
    # Errors
    "LLMErrorKind",
    "LLMProviderError",
    "LLMNotAvailableError",
    "classify_status",
    # Router
    "LLMRouter",
    "config_from_env",
    # Provider name constants
    "PROVIDERS",
    "PROVIDER_GEMINI",
    "PROVIDER_ANTHROPIC",
    "PROVIDER_OPENAI",
    "PROVIDER_OPENAI_COMPAT",
    "PROVIDER_OLLAMA",
]
