"""
File Discovery
==============
Walks the scratch workspace depth-first and selects conversion units.

Traversal never descends into hidden directories (name starts with ``.``)
or ``node_modules``, at any depth.  Sibling order follows the directory
listing and is not normalised.  Symlinked directories are not followed, so
no file is visited twice.

Policies:
    find_code_files          -- flat policy, every recognised extension
    find_angular_components  -- triad policy, component logic + template + style
    find_other_files         -- secondary pass for non-component .ts / .js files
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

from repo_converter.languages import is_recognized_extension
from repo_converter.units import COMPONENT_LOGIC_SUFFIX, ComponentUnit, SimpleUnit

logger = logging.getLogger(__name__)

DEPENDENCY_CACHE_DIR = "node_modules"
HIDDEN_PREFIX        = "."

TEMPLATE_SUFFIX = ".component.html"
STYLE_SUFFIXES  = (".component.css", ".component.scss")   # first match wins

ANGULAR_MANIFEST     = "angular.json"
PACKAGE_MANIFEST     = "package.json"
ANGULAR_NAMESPACE    = "@angular/"
OTHER_FILE_EXTENSIONS = (".ts", ".js")


def _skip_directory(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIX) or name == DEPENDENCY_CACHE_DIR


def walk_files(root: str | Path) -> Iterator[Path]:
    """Yield every regular file under ``root``, honouring the skip rules."""
    for entry in Path(root).iterdir():
        if entry.is_dir():
            if entry.is_symlink() or _skip_directory(entry.name):
                continue
            yield from walk_files(entry)
        elif entry.is_file():
            yield entry


# ---------------------------------------------------------------------------
# Flat policy
# ---------------------------------------------------------------------------

def find_code_files(root: str | Path) -> list[SimpleUnit]:
    """Every file whose extension is in the language table."""
    units = [
        SimpleUnit.from_path(path)
        for path in walk_files(root)
        if is_recognized_extension(path.suffix)
    ]
    logger.info("Found %d code file(s) under %s", len(units), root)
    return units


# ---------------------------------------------------------------------------
# Triad policy
# ---------------------------------------------------------------------------

def _probe(directory: Path, base_name: str, suffixes: tuple[str, ...]) -> Path | None:
    for suffix in suffixes:
        candidate = directory / f"{base_name}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def find_angular_components(root: str | Path) -> list[ComponentUnit]:
    """Group each ``*.component.ts`` with its sibling template and stylesheet."""
    components = []
    for path in walk_files(root):
        if not path.name.endswith(COMPONENT_LOGIC_SUFFIX):
            continue
        base_name = path.name[: -len(COMPONENT_LOGIC_SUFFIX)]
        components.append(ComponentUnit(
            logic_path=path,
            template_path=_probe(path.parent, base_name, (TEMPLATE_SUFFIX,)),
            style_path=_probe(path.parent, base_name, STYLE_SUFFIXES),
        ))
    logger.info("Found %d Angular component(s) under %s", len(components), root)
    return components


def find_other_files(root: str | Path) -> list[SimpleUnit]:
    """``.ts`` / ``.js`` files that are neither component files nor specs."""
    units = [
        SimpleUnit.from_path(path)
        for path in walk_files(root)
        if path.suffix in OTHER_FILE_EXTENSIONS
        and ".component." not in path.name
        and ".spec." not in path.name
    ]
    logger.info("Found %d other TypeScript/JavaScript file(s)", len(units))
    return units


# ---------------------------------------------------------------------------
# Framework detection
# ---------------------------------------------------------------------------

def is_angular_project(root: str | Path) -> bool:
    """
    True when the workspace has an ``angular.json``, or a ``package.json``
    whose dependencies or devDependencies include an ``@angular/`` package.
    """
    root = Path(root)
    if (root / ANGULAR_MANIFEST).is_file():
        return True

    package_json = root / PACKAGE_MANIFEST
    if not package_json.is_file():
        return False
    try:
        pkg = json.loads(package_json.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Unreadable %s (%s) -- not treated as Angular.", package_json, exc)
        return False
    if not isinstance(pkg, dict):
        return False

    deps: dict = {}
    for key in ("dependencies", "devDependencies"):
        section = pkg.get(key)
        if isinstance(section, dict):
            deps.update(section)
    return any(name.startswith(ANGULAR_NAMESPACE) for name in deps)
