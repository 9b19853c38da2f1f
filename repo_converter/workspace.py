"""
Repository Acquisition & Workspace Lifecycle
=============================================
The scratch workspace holds the transient ``git clone`` of the source
repository.  It is exclusively owned by a single run:

    with ScratchWorkspace(settings.temp_dir) as workspace:
        workspace.clone(repo_url)
        ...                          # read throughout the run
    # deleted here, on success and on failure

The output tree is created fresh at the start of each run and left in place
at the end (it is the run's product).
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


class RepositoryCloneError(Exception):
    """Raised when ``git clone`` fails (network, auth, bad URL, missing repo)."""


Cloner = Callable[[str, Path], None]


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------

def reset_directory(path: str | Path) -> None:
    """Delete ``path`` recursively if it exists.  Absent paths are a no-op."""
    path = Path(path)
    if path.exists():
        logger.debug("Removing stale directory: %s", path)
        shutil.rmtree(path)


def prepare_output_tree(path: str | Path) -> Path:
    """Delete any stale output from a previous run and create an empty root."""
    path = Path(path)
    reset_directory(path)
    path.mkdir(parents=True)
    logger.info("Output directory ready: %s", path)
    return path


# ---------------------------------------------------------------------------
# git clone
# ---------------------------------------------------------------------------

def clone_repository(
    url: str,
    destination: str | Path,
    depth: int | None = None,
    timeout: float | None = None,
) -> None:
    """
    Clone ``url`` into ``destination`` with the ``git`` CLI.

    ``destination`` must not exist yet; the caller deletes any stale copy
    first.  Every failure is raised as ``RepositoryCloneError``.
    """
    destination = Path(destination)
    if destination.exists():
        raise RepositoryCloneError(f"Clone destination already exists: {destination}")

    cmd = ["git", "clone"]
    if depth:
        cmd += ["--depth", str(depth)]
    cmd += [url, str(destination)]

    logger.info("Cloning %s -> %s", url, destination)
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        raise RepositoryCloneError("git is not installed or not on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise RepositoryCloneError(f"git clone timed out after {timeout}s: {url}") from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise RepositoryCloneError(
            f"git clone failed for {url} (exit {exc.returncode}): {stderr}"
        ) from exc


# ---------------------------------------------------------------------------
# ScratchWorkspace
# ---------------------------------------------------------------------------

class ScratchWorkspace:
    """
    Context manager owning the scratch clone directory.

    Parameters
    ----------
    root : str | Path
        Where the clone lives (``temp-repo`` by default).
    cloner : callable, optional
        ``cloner(url, destination)``; defaults to ``clone_repository``.
        Tests substitute a function that copies a fixture tree.
    """

    def __init__(self, root: str | Path, cloner: Cloner | None = None) -> None:
        self.root = Path(root)
        self._cloner = cloner or clone_repository

    def __enter__(self) -> "ScratchWorkspace":
        reset_directory(self.root)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()

    def clone(self, url: str) -> Path:
        self._cloner(url, self.root)
        logger.info("Repository cloned into %s", self.root)
        return self.root

    def cleanup(self) -> None:
        if self.root.exists():
            shutil.rmtree(self.root)
            logger.info("Scratch workspace removed: %s", self.root)

    def relative(self, path: str | Path) -> Path:
        return Path(path).relative_to(self.root)
