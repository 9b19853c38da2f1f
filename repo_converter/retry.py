"""
Rate-Limit Recovery
===================
Fixed-cooldown retry for requests the AI service rejects with a
rate-limit condition.  Implemented as a loop, not recursion, so a long
stretch of rate limiting never grows the call stack.

    policy = RetryPolicy(cooldown_seconds=60.0, max_retries=None)   # unbounded
    text = call_with_rate_limit_retry(lambda: convert(prompt), policy)

Only ``LLMErrorKind.RATE_LIMITED`` is retried.  Every other error kind
propagates on the first occurrence, without sleeping.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from repo_converter.llm.base import LLMProviderError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COOLDOWN_SECONDS = 60.0


@dataclass(frozen=True)
class RetryPolicy:
    """
    cooldown_seconds : fixed suspension after each rate-limit response
    max_retries      : retries allowed per request; ``None`` means unbounded
    """
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    max_retries: int | None = None

    def __post_init__(self) -> None:
        if self.cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")
        if self.max_retries is not None and self.max_retries < 0:
            raise ValueError("max_retries must be >= 0 or None")

    def allows(self, retries_so_far: int) -> bool:
        return self.max_retries is None or retries_so_far < self.max_retries


def call_with_rate_limit_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    on_rate_limit: Callable[[int, LLMProviderError], None] | None = None,
) -> T:
    """
    Call ``fn`` until it returns, sleeping ``policy.cooldown_seconds`` after
    each rate-limit error.

    Raises the last rate-limit error once ``policy.max_retries`` is spent,
    and any non-rate-limit error immediately.
    """
    retries = 0
    while True:
        try:
            return fn()
        except LLMProviderError as exc:
            if not exc.is_rate_limited or not policy.allows(retries):
                raise
            retries += 1
            logger.warning(
                "Rate limit exceeded. Waiting %g seconds before retrying... "
                "(retry %d%s)",
                policy.cooldown_seconds,
                retries,
                f"/{policy.max_retries}" if policy.max_retries is not None else "",
            )
            if on_rate_limit is not None:
                on_rate_limit(retries, exc)
            sleep(policy.cooldown_seconds)
