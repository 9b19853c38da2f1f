# repo_converter package
from repo_converter.conversion_agent import ConversionAgent, ConversionStep, ConversionSummary
from repo_converter.conversion_log import ConversionLog
from repo_converter.pipeline import (
    CloneFailedError,
    ConversionFailedError,
    NotAngularProjectError,
    PipelineError,
    PipelineResult,
    PipelineState,
    run_framework_conversion,
    run_repo_conversion,
)
from repo_converter.retry import RetryPolicy, call_with_rate_limit_retry
from repo_converter.settings import RunSettings, SettingsValidationError, load_settings
from repo_converter.workspace import RepositoryCloneError, ScratchWorkspace

__version__ = "1.0.0"

__all__ = [
    "ConversionAgent",
    "ConversionStep",
    "ConversionSummary",
    "ConversionLog",
    "CloneFailedError",
    "ConversionFailedError",
    "NotAngularProjectError",
    "PipelineError",
    "PipelineResult",
    "PipelineState",
    "run_framework_conversion",
    "run_repo_conversion",
    "RetryPolicy",
    "call_with_rate_limit_retry",
    "RunSettings",
    "SettingsValidationError",
    "load_settings",
    "RepositoryCloneError",
    "ScratchWorkspace",
]
