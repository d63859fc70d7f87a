import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from .models import ChatMessage

logger = logging.getLogger(__name__)


class ChatBackend(ABC):
    """Abstract base class for text-generation backends.

    This module hides the design decision of which service produces replies.
    Implementations must handle provider-specific details like:
    - Client setup and authentication
    - Request/response format conversion
    - Mapping transport failures onto the BackendError family

    A backend never mutates the messages it is given and makes exactly one
    outbound request per call; retrying is left to the caller.

    Supports async context manager protocol for proper resource cleanup:
        async with backend:
            reply = await backend.generate_reply(messages)
    """

    #: Human readable service name used in error messages
    name: str = "backend"

    def __init__(self, model: str, verbose: bool = False):
        self._model = model
        self._verbose = verbose

    @property
    def model(self) -> str:
        """Get the model name sent with every request."""
        return self._model

    def _log_request(self) -> None:
        level = logging.INFO if self._verbose else logging.DEBUG
        logger.log(level, "Using %s model: %s", self.name, self._model)

    @abstractmethod
    async def generate_reply(self, messages: Sequence[ChatMessage]) -> str:
        """Generate the assistant's next reply for a conversation.

        Args:
            messages: Full conversation, system persona first

        Returns:
            Reply text with surrounding whitespace removed

        Raises:
            BackendError: Any failure to obtain a reply
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatBackend":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
