"""
Output Materialization
======================
Maps a unit's path (relative to the workspace root) onto its destination in
the output tree, and writes the converted text there verbatim.

    general pipeline   a/b.py                   -> a/b<ext for target language>
    Angular component  src/app/foo.component.ts -> src/app/foo.tsx
    Angular support    src/app/foo.service.ts   -> src/app/foo.service.tsx

Framework-pipeline outputs live under ``src/`` of the output tree; a path
that already starts with ``src/`` is not nested a second time.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePath

from repo_converter.languages import extension_for_language
from repo_converter.units import COMPONENT_LOGIC_SUFFIX

logger = logging.getLogger(__name__)

REACT_COMPONENT_SUFFIX = ".tsx"
SOURCE_ROOT            = "src"


def language_destination(relative: PurePath, target_language: str) -> PurePath:
    """Swap the source extension for the target language's (``.txt`` fallback)."""
    return relative.with_suffix(extension_for_language(target_language))


def under_source_root(relative: PurePath) -> PurePath:
    if relative.parts and relative.parts[0] == SOURCE_ROOT:
        return relative
    return PurePath(SOURCE_ROOT) / relative


def component_destination(relative: PurePath) -> PurePath:
    """``<base>.component.ts`` -> ``src/.../<base>.tsx``."""
    name = relative.name
    if not name.endswith(COMPONENT_LOGIC_SUFFIX):
        raise ValueError(f"Not a component logic file: {relative}")
    new_name = name[: -len(COMPONENT_LOGIC_SUFFIX)] + REACT_COMPONENT_SUFFIX
    return under_source_root(relative.with_name(new_name))


def angular_file_destination(relative: PurePath) -> PurePath:
    """``.ts`` support files become ``.tsx``; ``.js`` files keep their name."""
    if relative.suffix == ".ts":
        relative = relative.with_suffix(REACT_COMPONENT_SUFFIX)
    return under_source_root(relative)


def write_output(output_root: Path, destination: PurePath, text: str) -> Path:
    """
    Create intermediate directories and overwrite the destination with
    ``text`` exactly as returned by the AI service.
    """
    target = Path(output_root) / destination
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    logger.debug("Wrote %s (%d chars)", target, len(text))
    return target
