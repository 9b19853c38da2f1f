"""
Run Settings
============
Process-scoped configuration, built once at startup and passed explicitly
into the pipeline.  Precedence (lowest to highest):

    1. Built-in defaults (``RunSettings``)
    2. Optional YAML settings file (``--config settings.yaml``), validated
       against ``schemas/settings-schema.json``
    3. Command-line flags

Example settings file::

    temp_dir: temp-repo
    output_dir: converted-code
    cooldown_seconds: 60
    max_retries: null        # unbounded
    pacing_seconds: 2
    clone_depth: 1
    llm:
      provider: gemini
      model: gemini-2.5-flash
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema import ValidationError

from repo_converter.retry import DEFAULT_COOLDOWN_SECONDS, RetryPolicy

logger = logging.getLogger(__name__)

SETTINGS_SCHEMA_PATH = Path(__file__).parent / "schemas" / "settings-schema.json"


class SettingsValidationError(Exception):
    """Raised when a settings file is unreadable or fails schema validation."""


@dataclass(frozen=True)
class RunSettings:
    temp_dir: Path          = Path("temp-repo")
    output_dir: Path        = Path("converted-code")
    logs_dir: Path          = Path("logs")
    cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS
    max_retries: int | None = None          # None = retry rate limits forever
    pacing_seconds: float   = 2.0
    clone_depth: int | None = None
    clone_timeout: float | None = None
    dry_run: bool           = False
    write_log: bool         = True
    llm: dict[str, Any]     = field(default_factory=dict)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(cooldown_seconds=self.cooldown_seconds, max_retries=self.max_retries)

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "RunSettings":
        values = dict(data)
        for key in ("temp_dir", "output_dir", "logs_dir"):
            if key in values:
                values[key] = Path(values[key])
        return cls(**values)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def load_settings(path: str | Path | None = None) -> RunSettings:
    """Return defaults, or defaults overlaid with a validated YAML file."""
    if path is None:
        return RunSettings()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    logger.info("Loading settings from: %s", path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise SettingsValidationError(f"Settings file is not valid YAML: {exc}") from exc

    _validate(data)
    return RunSettings.from_mapping(data)


def _validate(data: Any) -> None:
    with open(SETTINGS_SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = json.load(f)
    try:
        jsonschema.validate(instance=data, schema=schema)
    except ValidationError as exc:
        raise SettingsValidationError(
            f"Settings validation failed at '{exc.json_path}': {exc.message}"
        ) from exc


# ---------------------------------------------------------------------------
# CLI overrides
# ---------------------------------------------------------------------------

_CLI_FIELDS = {
    "temp_dir":      "temp_dir",
    "output_dir":    "output_dir",
    "logs_dir":      "logs_dir",
    "cooldown":      "cooldown_seconds",
    "max_retries":   "max_retries",
    "pacing":        "pacing_seconds",
    "clone_depth":   "clone_depth",
    "clone_timeout": "clone_timeout",
}

_LLM_CLI_FIELDS = {
    "llm_provider":    "provider",
    "llm_model":       "model",
    "llm_base_url":    "base_url",
    "ollama_host":     "ollama_host",
    "llm_max_tokens":  "max_tokens",
    "llm_temperature": "temperature",
    "llm_timeout":     "timeout_seconds",
}


def apply_cli_overrides(settings: RunSettings, args: argparse.Namespace) -> RunSettings:
    """Flags left at ``None`` keep the value from the file / defaults."""
    changes: dict[str, Any] = {}
    for arg_name, field_name in _CLI_FIELDS.items():
        value = getattr(args, arg_name, None)
        if value is None:
            continue
        if field_name.endswith("_dir"):
            value = Path(value)
        # --max-retries -1 spells "unbounded" on the command line
        if field_name == "max_retries" and value < 0:
            value = None
        changes[field_name] = value
    if getattr(args, "dry_run", False):
        changes["dry_run"] = True
    if getattr(args, "no_log", False):
        changes["write_log"] = False
    return dataclasses.replace(settings, **changes)


def fill_llm_args(settings: RunSettings, args: argparse.Namespace) -> argparse.Namespace:
    """Copy the settings file's ``llm`` block into unset ``--llm-*`` flags."""
    for arg_name, key in _LLM_CLI_FIELDS.items():
        if getattr(args, arg_name, None) is None and key in settings.llm:
            setattr(args, arg_name, settings.llm[key])
    return args
