from collections.abc import Sequence
from typing import Any

import httpx

from ..base import ChatBackend
from ..errors import BackendError, BackendRejected, BackendUnreachable
from ..models import OLLAMA_DEFAULT_URL, ChatMessage

DEFAULT_MODEL = "llama3"
CHAT_PATH = "/api/chat"


def _error_detail(response: httpx.Response) -> str | None:
    """Ollama reports failures as ``{"error": "..."}``; fall back to raw text."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.text.strip() or response.reason_phrase or None


class OllamaBackend(ChatBackend):
    """Local Ollama chat backend.

    Hidden design decisions:
    - Endpoint layout of the Ollama HTTP API
    - Non-streaming request format
    - Mapping httpx exceptions onto the BackendError family
    """

    name = "Ollama"

    def __init__(
        self,
        model: str | None = None,
        base_url: str = OLLAMA_DEFAULT_URL,
        timeout: float | None = None,
        verbose: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Ollama backend.

        Args:
            model: Model to use (default: llama3)
            base_url: Ollama server URL (default: http://localhost:11434)
            timeout: Optional request timeout in seconds (None waits indefinitely)
            verbose: Log the model used at INFO level
            transport: Optional httpx transport, mainly for tests

        Raises:
            BackendError: base_url is not a valid URL
        """
        super().__init__(model or DEFAULT_MODEL, verbose=verbose)
        self._base_url = base_url.rstrip("/")
        try:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=timeout,
                transport=transport,
            )
        except (httpx.InvalidURL, ValueError) as e:
            raise BackendError(
                f"Invalid {self.name} URL {base_url!r}: {e}",
                backend=self.name,
            ) from e

    @property
    def endpoint(self) -> str:
        """Full URL of the chat endpoint."""
        return f"{self._base_url}{CHAT_PATH}"

    async def generate_reply(self, messages: Sequence[ChatMessage]) -> str:
        """Generate a reply using Ollama's chat endpoint with streaming disabled.

        Raises:
            BackendUnreachable: Ollama is not running at the configured URL
            BackendRejected: Ollama answered with an error status
            BackendError: Any other transport failure or a malformed response
        """
        self._log_request()
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [msg.to_wire() for msg in messages],
            "stream": False,
        }

        try:
            response = await self._client.post(CHAT_PATH, json=payload)
        except (httpx.ConnectError, httpx.ConnectTimeout) as e:
            raise BackendUnreachable(
                self.name,
                endpoint=self._base_url,
                hint="Make sure Ollama is running locally.",
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise BackendError(str(e) or type(e).__name__, backend=self.name) from e

        if response.is_error:
            raise BackendRejected(self.name, response.status_code, _error_detail(response))

        try:
            data = response.json()
            content = data["message"]["content"]
        except (ValueError, KeyError, TypeError) as e:
            raise BackendError(
                f"{self.name} returned a malformed response: {e}",
                backend=self.name,
            ) from e
        if not isinstance(content, str):
            raise BackendError(f"{self.name} returned non-text content", backend=self.name)
        return content.strip()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
