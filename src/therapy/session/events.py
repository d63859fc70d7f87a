"""Events a session produces for the presentation layer.

The engine yields these in order; renderers decide how they look.
"""

from dataclasses import dataclass

from ..llm.errors import BackendError


@dataclass(frozen=True)
class SessionStarted:
    """Session is ready; show the persona's greeting."""

    opening_line: str
    mode: str
    provider: str


@dataclass(frozen=True)
class Thinking:
    """A backend call is in flight."""


@dataclass(frozen=True)
class Reply:
    """The assistant answered."""

    text: str


@dataclass(frozen=True)
class BackendErrorEvent:
    """The backend call for this turn failed; the session continues."""

    message: str
    error: BackendError


@dataclass(frozen=True)
class NoInput:
    """Piped input was empty, so there is nothing to send."""

    message: str = "No input received."


@dataclass(frozen=True)
class SessionEnded:
    """Session is over; farewell is None when there is nothing to say."""

    turn_count: int
    farewell: str | None = None


SessionEvent = SessionStarted | Thinking | Reply | BackendErrorEvent | NoInput | SessionEnded
