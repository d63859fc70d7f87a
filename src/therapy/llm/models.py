from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .errors import UnsupportedProvider

OLLAMA_DEFAULT_URL = "http://localhost:11434"


class Provider(str, Enum):
    """Text-generation backends a session can talk to."""

    OPENAI = "openai"  # OpenAI-compatible chat completions API
    OLLAMA = "ollama"  # Locally hosted Ollama server

    @classmethod
    def parse(cls, value: "Provider | str") -> "Provider":
        """Resolve a provider identifier, case-insensitively.

        Raises:
            UnsupportedProvider: If the identifier names no known backend
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedProvider(str(value)) from None


class ChatMessage(BaseModel):
    """Represents a chat message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"] = Field(
        description="Role of the message sender: 'user', 'assistant', or 'system'"
    )
    content: str = Field(description="Content of the message")

    def to_wire(self) -> dict[str, str]:
        """Return the role/content dict both chat APIs accept."""
        return {"role": self.role, "content": self.content}


class BackendSettings(BaseModel):
    """Connection settings handed to backends at construction.

    Backends never read the process environment themselves; the CLI layer
    builds this value once and passes it down.
    """

    model_config = ConfigDict(frozen=True)

    openai_api_key: str | None = Field(
        default=None,
        description="Bearer credential for the OpenAI-compatible backend"
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Override for the OpenAI-compatible API base URL"
    )
    ollama_base_url: str = Field(
        default=OLLAMA_DEFAULT_URL,
        description="Base URL of the local Ollama server"
    )
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout in seconds (None waits indefinitely)"
    )
