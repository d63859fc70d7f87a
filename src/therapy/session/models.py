"""Data models for a therapy session.

These models define the configuration, lifecycle status and transcript of
a single conversation. Nothing here is persisted.
"""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..llm.models import ChatMessage


class SessionStatus(str, Enum):
    """Lifecycle of a session."""

    IDLE = "idle"                              # Constructed, persona installed
    AWAITING_INPUT = "awaiting_input"          # Ready for the next user line
    WAITING_ON_BACKEND = "waiting_on_backend"  # One backend call outstanding
    ENDED = "ended"                            # Terminal


class SessionConfig(BaseModel):
    """Settings fixed for the lifetime of a session."""

    model_config = ConfigDict(frozen=True)

    mode: str = Field(default="cbt", description="Therapy mode (cbt, person, trauma)")
    provider: str = Field(default="ollama", description="Backend identifier (openai, ollama)")
    model: str | None = Field(default=None, description="Model override (None uses backend default)")
    verbose: bool = Field(default=False, description="Show detailed logs and error causes")

    @field_validator("provider")
    @classmethod
    def _normalize_provider(cls, value: str) -> str:
        return value.strip().lower()


class Transcript:
    """Ordered messages of one conversation, persona first.

    The system message is installed at construction and never changes.
    User and assistant messages are only ever appended; alternation is not
    enforced because a failed exchange leaves its user message unanswered.
    """

    def __init__(self, persona: str):
        self._messages: list[ChatMessage] = [ChatMessage(role="system", content=persona)]

    @property
    def system(self) -> ChatMessage:
        """The persona message."""
        return self._messages[0]

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        """Read-only snapshot of the conversation."""
        return tuple(self._messages)

    def append_user(self, content: str) -> ChatMessage:
        message = ChatMessage(role="user", content=content)
        self._messages.append(message)
        return message

    def append_assistant(self, content: str) -> ChatMessage:
        message = ChatMessage(role="assistant", content=content)
        self._messages.append(message)
        return message

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.messages)

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]

    def __repr__(self) -> str:
        return f"Transcript(messages={len(self._messages)})"
