"""
LLM Provider Base
=================
Abstract interface that every AI text-generation provider must implement.
The conversion pipeline talks to this interface -- never to a concrete SDK.

    response = provider.complete(
        system=<system prompt str>,
        messages=[LLMMessage(role="user", content="...")],
    )

Providers handle SDK-specific translation internally, and translate every
SDK failure into an ``LLMProviderError`` carrying an ``LLMErrorKind``.  The
retry policy only ever looks at ``exc.kind`` -- it never inspects SDK
exception attributes itself.
"""

from __future__ import annotations

import abc
import enum
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class LLMMessage:
    """A single chat message."""
    role: str       # "user" | "assistant"
    content: str


@dataclass
class LLMResponse:
    """Normalised response from any provider."""
    text: str
    model: str
    provider: str
    input_tokens: int  = 0
    output_tokens: int = 0
    raw: Any           = field(default=None, repr=False)


@dataclass
class LLMConfig:
    """
    Provider-agnostic configuration passed to every provider.
    Individual providers pull the fields they need and ignore the rest.
    """
    # ---- Identity ----
    provider: str        = "gemini"             # see PROVIDER_* constants in registry.py
    model: str           = "gemini-2.5-flash"

    # ---- Generation parameters ----
    max_tokens: int      = 8192
    temperature: float   = 0.2
    top_p: float         = 1.0

    # ---- Remote API settings ----
    api_key: str         = ""                   # loaded from env if blank
    base_url: str        = ""                   # proxy, LM Studio, vLLM, ...

    # ---- Local model settings (Ollama) ----
    ollama_host: str     = "http://localhost:11434"

    # ---- Timeout ----
    timeout_seconds: int = 120


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class LLMErrorKind(str, enum.Enum):
    """Closed set of failure classes produced at the service boundary."""
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    UNAVAILABLE  = "unavailable"
    MALFORMED    = "malformed"
    UNKNOWN      = "unknown"


RATE_LIMIT_STATUS = 429

_STATUS_KINDS: dict[int, LLMErrorKind] = {
    RATE_LIMIT_STATUS: LLMErrorKind.RATE_LIMITED,
    401: LLMErrorKind.UNAUTHORIZED,
    403: LLMErrorKind.UNAUTHORIZED,
    400: LLMErrorKind.MALFORMED,
    404: LLMErrorKind.MALFORMED,
    413: LLMErrorKind.MALFORMED,
    422: LLMErrorKind.MALFORMED,
}


def classify_status(status_code: int | None) -> LLMErrorKind:
    """Map an HTTP status code onto an ``LLMErrorKind``."""
    if status_code is None:
        return LLMErrorKind.UNKNOWN
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if 500 <= status_code < 600:
        return LLMErrorKind.UNAVAILABLE
    return LLMErrorKind.UNKNOWN


def status_code_of(exc: BaseException) -> int | None:
    """
    Best-effort extraction of an HTTP status from an SDK exception.

    SDKs disagree on the attribute name: openai / anthropic use
    ``status_code``, google-api-core uses ``code``, httpx hangs it off
    ``response.status_code``, and some clients use ``status``.
    """
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class BaseLLMProvider(abc.ABC):
    """
    Every LLM provider inherits from this class and implements `complete()`.
    """

    def __init__(self, config: LLMConfig) -> None:
        self.config = config
        self._client: Any = None
        self._setup()

    # ------------------------------------------------------------------
    # Abstract methods
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def _setup(self) -> None:
        """
        Initialise the underlying SDK client.
        Called once during __init__.  Should set self._client.
        Must NOT raise when the API key is missing -- set self._client = None
        and log a warning instead; the failure surfaces on first use.
        """

    @abc.abstractmethod
    def complete(
        self,
        system: str,
        messages: list[LLMMessage],
    ) -> LLMResponse:
        """
        Send a completion request and return a normalised LLMResponse.

        Raises:
            LLMProviderError: on API / SDK / timeout errors, classified.
            LLMNotAvailableError: if provider is not configured (no key).
        """

    # ------------------------------------------------------------------
    # Common helpers
    # ------------------------------------------------------------------

    @property
    def is_available(self) -> bool:
        """Return True if the client was initialised successfully."""
        return self._client is not None

    @property
    def provider_name(self) -> str:
        return self.config.provider

    @property
    def model_name(self) -> str:
        return self.config.model

    def _wrap_error(self, label: str, exc: BaseException) -> "LLMProviderError":
        """Classify an SDK exception by its status code."""
        status = status_code_of(exc)
        kind = classify_status(status)
        return LLMProviderError(
            f"{label} error [{status if status is not None else '-'}]: {exc}",
            kind=kind,
            status_code=status,
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"provider={self.config.provider!r}, "
            f"model={self.config.model!r}, "
            f"available={self.is_available})"
        )


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class LLMProviderError(Exception):
    """Error from the LLM provider, classified into an ``LLMErrorKind``."""

    def __init__(
        self,
        message: str,
        kind: LLMErrorKind = LLMErrorKind.UNKNOWN,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is LLMErrorKind.RATE_LIMITED


class LLMNotAvailableError(LLMProviderError):
    """Raised when the provider has no credentials configured."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind=LLMErrorKind.UNAUTHORIZED)
