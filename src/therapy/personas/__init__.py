"""Persona registry.

Maps a therapy mode to the system instruction that sets the assistant's
therapeutic style. Persona texts live in text files next to this module and
can be overridden by placing files in the working directory.
"""

import re
from enum import Enum
from functools import lru_cache
from pathlib import Path

# Default personas directory (package location)
_PERSONAS_DIR = Path(__file__).parent

DEFAULT_OPENING_LINE = "I'm here to support you. What's been on your mind lately?"

_MARKER_RE = re.compile(r"\b(?:Begin|Start)\b")
_QUOTED_RE = re.compile(r'"([^"]+)"')


class TherapyMode(str, Enum):
    """Built-in therapeutic approaches."""

    CBT = "cbt"          # Cognitive Behavioral Therapy
    PERSON = "person"    # Person-centered therapy
    TRAUMA = "trauma"    # Trauma-informed care


DEFAULT_MODE = TherapyMode.CBT


def normalize_mode(mode: str | None) -> TherapyMode:
    """Resolve a mode identifier case-insensitively, falling back to CBT."""
    try:
        return TherapyMode((mode or "").strip().lower())
    except ValueError:
        return DEFAULT_MODE


@lru_cache(maxsize=8)
def load_persona(mode: TherapyMode) -> str:
    """Load the persona text for a mode.

    Search order:
    1. Current working directory: ./personas/{mode}.txt
    2. Package personas directory: therapy/personas/{mode}.txt

    Raises:
        FileNotFoundError: If the persona file is missing from both locations
    """
    filename = f"{mode.value}.txt"

    local_path = Path.cwd() / "personas" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8").strip()

    package_path = _PERSONAS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8").strip()

    raise FileNotFoundError(
        f"Persona '{mode.value}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def resolve_persona(mode: str | None) -> str:
    """Get the persona instruction for a therapy mode.

    Unknown or empty modes get the CBT persona; this never fails for a
    bad mode name.
    """
    return load_persona(normalize_mode(mode))


def opening_line(persona_text: str) -> str:
    """Extract the greeting a persona tells the assistant to open with.

    Looks for the first double-quoted span after the last "Begin"/"Start"
    marker. This is plain string scanning and breaks easily on customized
    persona text, in which case DEFAULT_OPENING_LINE is returned.
    """
    markers = list(_MARKER_RE.finditer(persona_text or ""))
    if markers:
        match = _QUOTED_RE.search(persona_text, markers[-1].end())
        if match and match.group(1).strip():
            return match.group(1).strip()
    return DEFAULT_OPENING_LINE


def available_modes() -> list[str]:
    """List the identifiers of all built-in therapy modes."""
    return [mode.value for mode in TherapyMode]


def clear_cache() -> None:
    """Clear the persona cache (useful after modifying persona files)."""
    load_persona.cache_clear()


__all__ = [
    "DEFAULT_MODE",
    "DEFAULT_OPENING_LINE",
    "TherapyMode",
    "available_modes",
    "clear_cache",
    "load_persona",
    "normalize_mode",
    "opening_line",
    "resolve_persona",
]
