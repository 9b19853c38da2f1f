"""Tests for repo_converter.settings -- YAML loading, schema validation, CLI overrides."""

import argparse
from pathlib import Path

import pytest

from repo_converter.settings import (
    RunSettings,
    SettingsValidationError,
    apply_cli_overrides,
    fill_llm_args,
    load_settings,
)


def _write(tmp_path, text):
    path = tmp_path / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def _args(**kwargs):
    return argparse.Namespace(**kwargs)


class TestDefaults:
    def test_defaults(self):
        settings = load_settings()
        assert settings.temp_dir == Path("temp-repo")
        assert settings.output_dir == Path("converted-code")
        assert settings.cooldown_seconds == 60.0
        assert settings.max_retries is None
        assert settings.pacing_seconds == 2.0
        assert settings.retry_policy.max_retries is None


class TestLoadSettings:
    def test_valid_file(self, tmp_path):
        path = _write(tmp_path, (
            "output_dir: out\n"
            "cooldown_seconds: 5\n"
            "max_retries: 3\n"
            "clone_depth: 1\n"
            "llm:\n"
            "  provider: ollama\n"
            "  model: llama3.2\n"
        ))
        settings = load_settings(path)
        assert settings.output_dir == Path("out")
        assert settings.retry_policy.cooldown_seconds == 5
        assert settings.retry_policy.max_retries == 3
        assert settings.clone_depth == 1
        assert settings.llm == {"provider": "ollama", "model": "llama3.2"}

    def test_empty_file_is_defaults(self, tmp_path):
        assert load_settings(_write(tmp_path, "")) == RunSettings()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    def test_unknown_key_rejected(self, tmp_path):
        with pytest.raises(SettingsValidationError):
            load_settings(_write(tmp_path, "retries_forever: true\n"))

    def test_negative_cooldown_rejected(self, tmp_path):
        with pytest.raises(SettingsValidationError, match="cooldown_seconds"):
            load_settings(_write(tmp_path, "cooldown_seconds: -1\n"))

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(SettingsValidationError):
            load_settings(_write(tmp_path, "output_dir: [unclosed\n"))


class TestCliOverrides:
    def test_flags_override_file_values(self):
        base = RunSettings(cooldown_seconds=5, output_dir=Path("from-file"))
        settings = apply_cli_overrides(base, _args(
            output_dir="from-cli", cooldown=1.5, pacing=0.0, max_retries=4,
            dry_run=True, no_log=True,
        ))
        assert settings.output_dir == Path("from-cli")
        assert settings.cooldown_seconds == 1.5
        assert settings.pacing_seconds == 0.0
        assert settings.max_retries == 4
        assert settings.dry_run
        assert not settings.write_log

    def test_unset_flags_keep_values(self):
        base = RunSettings(cooldown_seconds=5)
        assert apply_cli_overrides(base, _args(cooldown=None, dry_run=False)) == base

    def test_negative_max_retries_means_unbounded(self):
        settings = apply_cli_overrides(RunSettings(max_retries=3), _args(max_retries=-1))
        assert settings.max_retries is None

    def test_fill_llm_args_only_fills_unset(self):
        settings = RunSettings(llm={"provider": "ollama", "model": "llama3.2"})
        args = fill_llm_args(settings, _args(llm_provider=None, llm_model="qwen2.5-coder"))
        assert args.llm_provider == "ollama"
        assert args.llm_model == "qwen2.5-coder"
