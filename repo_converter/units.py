"""
Conversion Units & Content Assembly
====================================
A unit is one discrete item sent to the AI service and written back as
exactly one output file:

    SimpleUnit     -- one source file
    ComponentUnit  -- an Angular component: logic (.component.ts) plus an
                      optional template and an optional stylesheet sharing
                      its base name and directory

``payload()`` reads the artifacts and concatenates them.  For components the
order (logic -> template -> style) and the ``// Template:`` / ``// Styles:``
labels are what the model is prompted with and must stay as they are.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from repo_converter.languages import language_for_extension

COMPONENT_LOGIC_SUFFIX = ".component.ts"
TEMPLATE_LABEL = "\n\n// Template:\n"
STYLE_LABEL    = "\n\n// Styles:\n"


def read_source(path: Path) -> str:
    """Read a source artifact in full (no size limit)."""
    return path.read_text(encoding="utf-8", errors="replace")


@dataclass(frozen=True)
class SimpleUnit:
    source_path: Path
    source_language: str

    @classmethod
    def from_path(cls, path: str | Path) -> "SimpleUnit":
        path = Path(path)
        return cls(source_path=path, source_language=language_for_extension(path.suffix))

    @property
    def path(self) -> Path:
        return self.source_path

    def payload(self) -> str:
        return read_source(self.source_path)


@dataclass(frozen=True)
class ComponentUnit:
    logic_path: Path
    template_path: Path | None = None
    style_path: Path | None = None

    def __post_init__(self) -> None:
        if not self.logic_path.name.endswith(COMPONENT_LOGIC_SUFFIX):
            raise ValueError(f"Not a component logic file: {self.logic_path}")
        for sibling in (self.template_path, self.style_path):
            if sibling is None:
                continue
            if sibling.parent != self.logic_path.parent:
                raise ValueError(
                    f"{sibling} is not in the same directory as {self.logic_path}"
                )
            if not sibling.name.startswith(self.base_name + "."):
                raise ValueError(
                    f"{sibling} does not share base name '{self.base_name}'"
                )

    @property
    def base_name(self) -> str:
        return self.logic_path.name[: -len(COMPONENT_LOGIC_SUFFIX)]

    @property
    def path(self) -> Path:
        return self.logic_path

    def payload(self) -> str:
        content = read_source(self.logic_path)
        if self.template_path is not None:
            content += TEMPLATE_LABEL + read_source(self.template_path)
        if self.style_path is not None:
            content += STYLE_LABEL + read_source(self.style_path)
        return content


ConversionUnit = SimpleUnit | ComponentUnit
