"""
Prompt Loader
=============
Centralised loader for the conversion instructions stored next to this file.

Every prompt lives as a plain text file so it can be edited and reviewed
independently of the Python source.  Placeholders use ``str.format`` syntax.

Usage
-----
    from repo_converter.prompts import InstructionContext

    context = InstructionContext.for_languages("Python", "JavaScript")
    prompt  = context.render(source_code)

Prompt files
------------
    convert_code.txt          -- language A -> language B
                                 ({source_language}, {target_language}, {payload})
    convert_component.txt     -- Angular component -> React functional component
    convert_angular_file.txt  -- Angular/TypeScript support file -> React/TypeScript
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

# Absolute path to the prompts directory (same folder as this file)
PROMPTS_DIR: Path = Path(__file__).parent

CODE_PROMPT         = "convert_code.txt"
COMPONENT_PROMPT    = "convert_component.txt"
ANGULAR_FILE_PROMPT = "convert_angular_file.txt"


@lru_cache(maxsize=None)
def load_prompt(filename: str) -> str:
    """
    Load and cache a prompt file from the prompts directory.

    Raises
    ------
    FileNotFoundError
        If ``filename`` does not exist in the prompts directory.
    """
    path = PROMPTS_DIR / filename
    if not path.exists():
        raise FileNotFoundError(
            f"Prompt file not found: {path}\n"
            f"Available prompts: {list_prompts()}"
        )
    content = path.read_text(encoding="utf-8").rstrip()
    logger.debug("Loaded prompt '%s' (%d chars)", filename, len(content))
    return content


def list_prompts() -> list[str]:
    """Return the names of all prompt files."""
    return sorted(f.name for f in PROMPTS_DIR.iterdir() if f.is_file() and f.suffix == ".txt")


@dataclass(frozen=True)
class InstructionContext:
    """
    The natural-language instruction half of a request.  Each pipeline uses
    its own context; ``render`` splices the unit's payload in.
    """
    prompt_file: str
    variables: dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_languages(cls, source_language: str, target_language: str) -> "InstructionContext":
        return cls(CODE_PROMPT, {
            "source_language": source_language,
            "target_language": target_language,
        })

    @classmethod
    def angular_component(cls) -> "InstructionContext":
        return cls(COMPONENT_PROMPT)

    @classmethod
    def angular_file(cls) -> "InstructionContext":
        return cls(ANGULAR_FILE_PROMPT)

    def render(self, payload: str) -> str:
        return load_prompt(self.prompt_file).format(payload=payload, **self.variables)
