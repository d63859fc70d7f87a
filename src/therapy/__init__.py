"""
Therapy: an interactive AI therapy chat client for the terminal.

Each module hides one design decision: which backend produces replies
(llm), what the assistant's persona says (personas), and how a
conversation moves from turn to turn (session).
"""

__version__ = "0.1.0"

from .llm import (
    BackendError,
    BackendSettings,
    ChatBackend,
    ChatMessage,
    Provider,
    create_backend,
    generate_reply,
)
from .personas import available_modes, opening_line, resolve_persona
from .session import SessionConfig, SessionStatus, TherapySession, Transcript

__all__ = [
    "BackendError",
    "BackendSettings",
    "ChatBackend",
    "ChatMessage",
    "Provider",
    "SessionConfig",
    "SessionStatus",
    "TherapySession",
    "Transcript",
    "available_modes",
    "create_backend",
    "generate_reply",
    "opening_line",
    "resolve_persona",
]
