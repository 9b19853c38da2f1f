"""Shared pytest fixtures for the repo_converter test suite.

Centralises the fake AI router, the fixture-tree cloner, and settings that
keep every run inside ``tmp_path`` with no real sleeping.
"""

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from repo_converter.llm.base import LLMErrorKind, LLMProviderError, LLMResponse  # noqa: E402
from repo_converter.settings import RunSettings  # noqa: E402


# ---------------------------------------------------------------------------
# Fake AI router
# ---------------------------------------------------------------------------

class FakeRouter:
    """
    Stands in for ``LLMRouter``.  ``script`` is consumed one item per call:
    a string is returned as the response text, an exception is raised.
    Once the script runs out, ``default`` is returned.
    """

    def __init__(self, script=None, default="converted"):
        self.script = list(script or [])
        self.default = default
        self.prompts = []

    def complete(self, system, messages):
        self.prompts.append(messages[-1].content)
        item = self.script.pop(0) if self.script else self.default
        if isinstance(item, BaseException):
            raise item
        return LLMResponse(text=item, model="fake-model", provider="fake")

    def describe(self):
        return "fake / fake-model"

    @property
    def is_available(self):
        return True


def rate_limited(message="Too Many Requests"):
    return LLMProviderError(message, kind=LLMErrorKind.RATE_LIMITED, status_code=429)


@pytest.fixture
def fake_router():
    return FakeRouter()


# ---------------------------------------------------------------------------
# Source trees
# ---------------------------------------------------------------------------

def write_tree(root: Path, files: dict) -> Path:
    """Create ``files`` (relative path -> text) under ``root``."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def copy_cloner(source: Path):
    """A cloner that copies a local fixture tree instead of running git."""
    def _clone(url, destination):
        shutil.copytree(source, destination)
    return _clone


@pytest.fixture
def make_source(tmp_path):
    def _make(files: dict) -> Path:
        return write_tree(tmp_path / "source", files)
    return _make


@pytest.fixture
def settings(tmp_path):
    return RunSettings(
        temp_dir=tmp_path / "temp-repo",
        output_dir=tmp_path / "converted-code",
        logs_dir=tmp_path / "logs",
        pacing_seconds=2.0,
    )


@pytest.fixture
def sleeps():
    """Records every sleep instead of sleeping."""
    return []


# ---------------------------------------------------------------------------
# Real git repositories
# ---------------------------------------------------------------------------

GIT_AVAILABLE = shutil.which("git") is not None

requires_git = pytest.mark.skipif(not GIT_AVAILABLE, reason="git is not installed")


@pytest.fixture
def git_repo(tmp_path):
    """Build a committed local git repository from a dict of files."""
    def _make(files: dict) -> Path:
        repo = write_tree(tmp_path / "origin", files)
        env_args = ["-c", "user.name=Test", "-c", "user.email=test@example.com"]
        subprocess.run(["git", "init", "-q", str(repo)], check=True)
        subprocess.run(["git", "-C", str(repo), "add", "-A"], check=True)
        subprocess.run(
            ["git", *env_args, "-C", str(repo), "commit", "-q", "-m", "fixture"],
            check=True,
        )
        return repo
    return _make
