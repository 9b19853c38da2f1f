"""
Pipeline Orchestration
======================
Both pipelines walk the same states, one unit at a time:

    INIT -> CLEAN_WORKSPACE -> CLONE -> [VERIFY_FRAMEWORK] -> DISCOVER
         -> CONVERT_LOOP -> FINALIZE_OUTPUT_METADATA -> DONE

VERIFY_FRAMEWORK only runs in the Angular -> React pipeline.  The scratch
workspace is removed on the way into DONE and on the way into FAILED; the
output tree is kept either way (units converted before a failure stay on
disk).

Each output file belongs to exactly one unit: a unit whose destination is
already claimed by an earlier one is skipped and listed in
``PipelineResult.collisions``.

    run_repo_conversion(url, "JavaScript", settings, router)
    run_framework_conversion(url, settings, router)

Fatal errors are re-raised as ``PipelineError`` subclasses carrying the
state the run failed in.
"""

from __future__ import annotations

import enum
import functools
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Callable

from repo_converter.conversion_agent import ConversionAgent, ConversionStep, ConversionSummary
from repo_converter.conversion_log import ConversionLog
from repo_converter.discovery import (
    find_angular_components,
    find_code_files,
    find_other_files,
    is_angular_project,
)
from repo_converter.llm.base import LLMProviderError
from repo_converter.manifest import write_react_package_json
from repo_converter.materialize import (
    angular_file_destination,
    component_destination,
    language_destination,
)
from repo_converter.prompts import InstructionContext
from repo_converter.settings import RunSettings
from repo_converter.workspace import (
    Cloner,
    RepositoryCloneError,
    ScratchWorkspace,
    clone_repository,
    prepare_output_tree,
)

if TYPE_CHECKING:
    from repo_converter.llm import LLMRouter

logger = logging.getLogger(__name__)

PIPELINE_LANGUAGE = "convert"
PIPELINE_ANGULAR  = "convert-framework"


class PipelineState(str, enum.Enum):
    INIT                     = "INIT"
    CLEAN_WORKSPACE          = "CLEAN_WORKSPACE"
    CLONE                    = "CLONE"
    VERIFY_FRAMEWORK         = "VERIFY_FRAMEWORK"
    DISCOVER                 = "DISCOVER"
    CONVERT_LOOP             = "CONVERT_LOOP"
    FINALIZE_OUTPUT_METADATA = "FINALIZE_OUTPUT_METADATA"
    DONE                     = "DONE"
    FAILED                   = "FAILED"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class PipelineError(Exception):
    """A fatal run error.  ``state`` is where the run was when it failed."""

    def __init__(self, message: str, state: PipelineState) -> None:
        super().__init__(message)
        self.state = state


class CloneFailedError(PipelineError):
    """The repository could not be cloned."""


class NotAngularProjectError(PipelineError):
    """The cloned repository is not an Angular project."""


class ConversionFailedError(PipelineError):
    """A non-retryable AI service error or a filesystem error mid-loop."""


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class PipelineResult:
    pipeline: str
    repo_url: str
    output_root: Path
    state: PipelineState = PipelineState.INIT
    discovered: int = 0
    summaries: list[ConversionSummary] = field(default_factory=list)
    manifest_path: Path | None = None
    log_path: Path | None = None
    collisions: list[str] = field(default_factory=list)

    @property
    def converted(self) -> int:
        return sum(s.completed for s in self.summaries)

    @property
    def rate_limit_waits(self) -> int:
        return sum(s.rate_limit_waits for s in self.summaries)


# ---------------------------------------------------------------------------
# Run context
# ---------------------------------------------------------------------------

def new_run_id() -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M")
    return f"conv-{ts}-{uuid.uuid4().hex[:6]}"


class _Run:
    """Shared state-machine plumbing for both pipelines."""

    def __init__(
        self,
        pipeline: str,
        repo_url: str,
        settings: RunSettings,
        llm_router: "LLMRouter",
        target: str,
        cloner: Cloner | None,
        sleep: Callable[[float], None],
    ) -> None:
        self.settings = settings
        self.router   = llm_router
        self.sleep    = sleep
        self.cloner   = cloner or functools.partial(
            clone_repository,
            depth=settings.clone_depth,
            timeout=settings.clone_timeout,
        )
        self.result = PipelineResult(
            pipeline=pipeline,
            repo_url=repo_url,
            output_root=Path(settings.output_dir),
        )
        self.claimed: dict[PurePath, str] = {}
        self.log: ConversionLog | None = None
        if settings.write_log:
            run_id = new_run_id()
            self.result.log_path = Path(settings.logs_dir) / f"{run_id}-conversion-log.json"
            self.log = ConversionLog(
                run_id=run_id,
                pipeline=pipeline,
                repo_url=repo_url,
                log_path=self.result.log_path,
                target=target,
            )

    def enter(self, state: PipelineState) -> None:
        logger.debug("State: %s -> %s", self.result.state.value, state.value)
        self.result.state = state

    def agent(self, workspace: ScratchWorkspace) -> ConversionAgent:
        return ConversionAgent(
            llm_router=self.router,
            workspace_root=workspace.root,
            output_root=self.result.output_root,
            retry_policy=self.settings.retry_policy,
            pacing_seconds=self.settings.pacing_seconds,
            log=self.log,
            dry_run=self.settings.dry_run,
            sleep=self.sleep,
        )

    def clone(self, workspace: ScratchWorkspace) -> None:
        self.enter(PipelineState.CLONE)
        try:
            workspace.clone(self.result.repo_url)
        except RepositoryCloneError as exc:
            raise CloneFailedError(str(exc), PipelineState.CLONE) from exc
        if self.log:
            self.log.record("cloned", detail=self.result.repo_url)

    def claim(self, workspace: ScratchWorkspace, steps: list[ConversionStep]) -> list[ConversionStep]:
        """
        Keep the first step for each destination.  A later unit mapping onto
        an already-claimed output file is skipped and recorded, never written.
        """
        kept = []
        for step in steps:
            source = workspace.relative(step.unit.path).as_posix()
            owner = self.claimed.setdefault(step.destination, source)
            if owner == source:
                kept.append(step)
                continue
            logger.warning(
                "Skipping %s: %s is already the output of %s",
                source, step.destination.as_posix(), owner,
            )
            self.result.collisions.append(source)
            if self.log:
                self.log.record(
                    "skipped_collision",
                    source_file=source,
                    target_file=step.destination.as_posix(),
                    detail=f"output already claimed by {owner}",
                )
        return kept

    def convert(self, agent: ConversionAgent, steps: list[ConversionStep]) -> None:
        self.enter(PipelineState.CONVERT_LOOP)
        try:
            self.result.summaries.append(agent.execute(steps))
        except (LLMProviderError, OSError) as exc:
            raise ConversionFailedError(str(exc), PipelineState.CONVERT_LOOP) from exc

    def finish(self, error: BaseException | None) -> None:
        if error is None:
            self.enter(PipelineState.DONE)
        else:
            failed_in = getattr(error, "state", self.result.state)
            self.result.state = PipelineState.FAILED
            logger.error("Run failed in %s: %s", getattr(failed_in, "value", failed_in), error)
        if self.log:
            self.log.finalize("completed" if error is None else "failed")
            self.log.export_markdown(self.log.log_path.with_suffix(".md"))


def _run(run: _Run, body: Callable[[ScratchWorkspace], None]) -> PipelineResult:
    run.enter(PipelineState.CLEAN_WORKSPACE)
    prepare_output_tree(run.result.output_root)
    error: BaseException | None = None
    try:
        # ScratchWorkspace deletes the clone on exit, on every path
        with ScratchWorkspace(run.settings.temp_dir, cloner=run.cloner) as workspace:
            run.clone(workspace)
            body(workspace)
    except BaseException as exc:
        error = exc
        raise
    finally:
        run.finish(error)
    return run.result


# ---------------------------------------------------------------------------
# General pipeline: language A -> language B
# ---------------------------------------------------------------------------

def run_repo_conversion(
    repo_url: str,
    target_language: str,
    settings: RunSettings,
    llm_router: "LLMRouter",
    cloner: Cloner | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PipelineResult:
    """
    Clone ``repo_url`` and translate every recognised source file into
    ``target_language``.  Unrecognised target names still run and produce
    ``.txt`` files.
    """
    run = _Run(PIPELINE_LANGUAGE, repo_url, settings, llm_router, target_language, cloner, sleep)

    def body(workspace: ScratchWorkspace) -> None:
        run.enter(PipelineState.DISCOVER)
        units = find_code_files(workspace.root)
        run.result.discovered = len(units)

        steps = run.claim(workspace, [
            ConversionStep(
                unit=unit,
                context=InstructionContext.for_languages(unit.source_language, target_language),
                destination=language_destination(workspace.relative(unit.path), target_language),
            )
            for unit in units
        ])
        if run.log:
            run.log.record("discovered", detail=f"{len(steps)} file(s) to convert")

        run.convert(run.agent(workspace), steps)
        # no metadata to finalise for this pipeline
        run.enter(PipelineState.FINALIZE_OUTPUT_METADATA)

    return _run(run, body)


# ---------------------------------------------------------------------------
# Framework pipeline: Angular -> React
# ---------------------------------------------------------------------------

def run_framework_conversion(
    repo_url: str,
    settings: RunSettings,
    llm_router: "LLMRouter",
    cloner: Cloner | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PipelineResult:
    """
    Clone an Angular repository, rewrite each component as a React
    functional component, convert the remaining .ts/.js files, and write a
    React ``package.json``.
    """
    run = _Run(PIPELINE_ANGULAR, repo_url, settings, llm_router, "React", cloner, sleep)

    def body(workspace: ScratchWorkspace) -> None:
        run.enter(PipelineState.VERIFY_FRAMEWORK)
        if not is_angular_project(workspace.root):
            raise NotAngularProjectError(
                "The repository does not appear to be an Angular project.",
                PipelineState.VERIFY_FRAMEWORK,
            )

        run.enter(PipelineState.DISCOVER)
        components = find_angular_components(workspace.root)
        run.result.discovered = len(components)
        if run.log:
            run.log.record("discovered", detail=f"{len(components)} component(s)")

        agent = run.agent(workspace)
        run.convert(agent, run.claim(workspace, [
            ConversionStep(
                unit=component,
                context=InstructionContext.angular_component(),
                destination=component_destination(workspace.relative(component.path)),
            )
            for component in components
        ]))

        # secondary pass, discovered after the components are written
        run.enter(PipelineState.DISCOVER)
        others = find_other_files(workspace.root)
        run.result.discovered += len(others)
        if run.log:
            run.log.record("discovered", detail=f"{len(others)} other file(s)")
        run.convert(agent, run.claim(workspace, [
            ConversionStep(
                unit=unit,
                context=InstructionContext.angular_file(),
                destination=angular_file_destination(workspace.relative(unit.path)),
            )
            for unit in others
        ]))

        run.enter(PipelineState.FINALIZE_OUTPUT_METADATA)
        try:
            run.result.manifest_path = write_react_package_json(run.result.output_root)
        except OSError as exc:
            raise ConversionFailedError(str(exc), PipelineState.FINALIZE_OUTPUT_METADATA) from exc
        if run.log:
            run.log.record("wrote_manifest", target_file="package.json")

    return _run(run, body)
