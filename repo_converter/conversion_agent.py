"""
Conversion Execution Agent
===========================
The code-writing agent.  For each conversion step it:
  1. Assembles the unit's payload (one file, or a component triad)
  2. Renders the step's instruction context around it
  3. Sends the prompt to the configured AI provider, waiting out rate limits
  4. Writes the response verbatim to the step's destination
  5. Pauses for the pacing delay before the next step

Steps run strictly one at a time.  A failure on step N propagates to the
caller; steps 1..N-1 stay written (there is no rollback and no checkpoint).

The AI service is reached only through an ``LLMRouter`` (or anything with
the same ``complete(system, messages)`` method), passed in by the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Callable

from repo_converter.conversion_log import ConversionLog
from repo_converter.llm.base import LLMMessage, LLMProviderError
from repo_converter.materialize import write_output
from repo_converter.prompts import InstructionContext
from repo_converter.retry import RetryPolicy, call_with_rate_limit_retry
from repo_converter.units import ConversionUnit

if TYPE_CHECKING:
    from repo_converter.llm import LLMRouter

logger = logging.getLogger(__name__)

DEFAULT_PACING_SECONDS = 2.0


@dataclass(frozen=True)
class ConversionStep:
    """One unit, the instruction to convert it with, and where it lands."""
    unit: ConversionUnit
    context: InstructionContext
    destination: PurePath          # relative to the output root


@dataclass
class ConversionSummary:
    total: int = 0
    written: list[str] = field(default_factory=list)
    rate_limit_waits: int = 0

    @property
    def completed(self) -> int:
        return len(self.written)


class ConversionAgent:
    """
    Executes conversion steps against the AI service.

    Parameters
    ----------
    llm_router : LLMRouter
        Configured router (or a test double with the same ``complete``).
    workspace_root : str | Path
        Root of the scratch clone; used to report relative source paths.
    output_root : str | Path
        Root of the output tree.
    retry_policy : RetryPolicy
        Cooldown / cap applied to rate-limit responses.
    pacing_seconds : float
        Suspension after each successful write.
    log : ConversionLog | None
        Optional run log.
    dry_run : bool
        Convert but write nothing to disk.
    sleep : callable
        Injected for tests; ``time.sleep`` by default.
    """

    def __init__(
        self,
        llm_router: "LLMRouter",
        workspace_root: str | Path,
        output_root: str | Path,
        retry_policy: RetryPolicy | None = None,
        pacing_seconds: float = DEFAULT_PACING_SECONDS,
        log: ConversionLog | None = None,
        dry_run: bool = False,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._router        = llm_router
        self.workspace_root = Path(workspace_root)
        self.output_root    = Path(output_root)
        self.retry_policy   = retry_policy or RetryPolicy()
        self.pacing_seconds = pacing_seconds
        self.log            = log
        self.dry_run        = dry_run
        self._sleep         = sleep
        self._rate_limit_waits = 0
        self._current_source: str | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, payload: str, context: InstructionContext) -> str:
        """
        Wrap ``payload`` in the instruction ``context``, send it, and return
        the response text exactly as received.  Rate limits are waited out
        under the retry policy; the same prompt is re-sent each time.
        """
        prompt = context.render(payload)

        def _attempt() -> str:
            response = self._router.complete(
                system="",
                messages=[LLMMessage(role="user", content=prompt)],
            )
            logger.debug(
                "Response from %s / %s (in=%d out=%d tokens)",
                response.provider, response.model,
                response.input_tokens, response.output_tokens,
            )
            return response.text

        return call_with_rate_limit_retry(
            _attempt,
            self.retry_policy,
            sleep=self._sleep,
            on_rate_limit=self._note_rate_limit,
        )

    def execute(self, steps: list[ConversionStep]) -> ConversionSummary:
        """Run all steps in order.  The first fatal error propagates."""
        summary = ConversionSummary(total=len(steps))
        waits_before = self._rate_limit_waits
        for index, step in enumerate(steps, start=1):
            source_rel = self._relative(step.unit.path)
            logger.info("[%d/%d] Converting %s", index, len(steps), source_rel)
            try:
                target = self.convert_unit(step)
            except (LLMProviderError, OSError) as exc:
                if self.log:
                    self.log.record("failed", source_file=source_rel, detail=str(exc))
                raise
            summary.written.append(target.as_posix())
            self._sleep(self.pacing_seconds)

        summary.rate_limit_waits = self._rate_limit_waits - waits_before
        return summary

    # ------------------------------------------------------------------
    # Step execution
    # ------------------------------------------------------------------

    def convert_unit(self, step: ConversionStep) -> PurePath:
        """Convert one unit and write it.  Returns the destination path."""
        source_rel = self._relative(step.unit.path)
        self._current_source = source_rel
        if self.log:
            self.log.record("converting", source_file=source_rel)

        converted = self.convert(step.unit.payload(), step.context)

        if self.dry_run:
            logger.info("[DRY RUN] Would write: %s", self.output_root / step.destination)
        else:
            write_output(self.output_root, step.destination, converted)

        if self.log:
            self.log.record(
                "wrote_file",
                source_file=source_rel,
                target_file=str(step.destination),
                detail="dry run" if self.dry_run else None,
            )
        return step.destination

    def _note_rate_limit(self, retries: int, exc: LLMProviderError) -> None:
        self._rate_limit_waits += 1
        if self.log:
            self.log.record(
                "rate_limited",
                source_file=self._current_source,
                detail=f"retry {retries} after {self.retry_policy.cooldown_seconds:g}s: {exc}",
            )

    def _relative(self, path: Path) -> str:
        try:
            return Path(path).relative_to(self.workspace_root).as_posix()
        except ValueError:
            return str(path)
