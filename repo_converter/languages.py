"""
Language Mapping
================
Closed, bidirectional table between a human-readable language name and its
canonical file extension.  Extensions missing from the table are never
discovered; target names missing from the table fall back to ``.txt``.
"""

UNKNOWN_LANGUAGE  = "Unknown"
FALLBACK_EXTENSION = ".txt"

LANGUAGE_EXTENSIONS: dict[str, str] = {
    "JavaScript": ".js",
    "TypeScript": ".ts",
    "Python":     ".py",
    "Java":       ".java",
    "C++":        ".cpp",
    "C":          ".c",
    "PHP":        ".php",
    "Ruby":       ".rb",
    "Go":         ".go",
    "Rust":       ".rs",
}

EXTENSION_LANGUAGES: dict[str, str] = {ext: name for name, ext in LANGUAGE_EXTENSIONS.items()}


def language_for_extension(ext: str) -> str:
    """Return the language name for ``ext`` (e.g. ``".py"``), or ``"Unknown"``."""
    return EXTENSION_LANGUAGES.get(ext, UNKNOWN_LANGUAGE)


def extension_for_language(name: str) -> str:
    """Exact-match lookup of a target language name; ``.txt`` when unmapped."""
    return LANGUAGE_EXTENSIONS.get(name, FALLBACK_EXTENSION)


def is_recognized_extension(ext: str) -> bool:
    return ext in EXTENSION_LANGUAGES
