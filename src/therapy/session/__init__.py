"""Conversation session module.

Owns the transcript and the turn-by-turn lifecycle of one conversation.
"""

from .engine import EXIT_COMMANDS, FAREWELL, SessionStateError, TherapySession, is_exit_command
from .events import (
    BackendErrorEvent,
    NoInput,
    Reply,
    SessionEnded,
    SessionEvent,
    SessionStarted,
    Thinking,
)
from .input_source import (
    ConsoleInput,
    InputSource,
    InputSourceFailure,
    StreamInput,
    read_piped,
)
from .models import SessionConfig, SessionStatus, Transcript

__all__ = [
    "EXIT_COMMANDS",
    "FAREWELL",
    "BackendErrorEvent",
    "ConsoleInput",
    "InputSource",
    "InputSourceFailure",
    "NoInput",
    "Reply",
    "SessionConfig",
    "SessionEnded",
    "SessionEvent",
    "SessionStarted",
    "SessionStateError",
    "SessionStatus",
    "StreamInput",
    "TherapySession",
    "Thinking",
    "Transcript",
    "is_exit_command",
    "read_piped",
]
