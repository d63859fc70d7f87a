from collections.abc import Sequence
from typing import Any

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI, OpenAIError

from ..base import ChatBackend
from ..errors import BackendError, BackendRejected, BackendUnreachable, MissingCredential
from ..models import ChatMessage

DEFAULT_MODEL = "gpt-4"
DEFAULT_TEMPERATURE = 0.7
API_KEY_VARIABLE = "OPENAI_API_KEY"


def _error_detail(error: APIStatusError) -> str | None:
    """Pull the server-supplied message out of an error response.

    The SDK usually unwraps the ``{"error": {...}}`` envelope already, but
    OpenAI-compatible servers are not consistent about it.
    """
    body = error.body
    if isinstance(body, str) and body.strip():
        return body.strip()
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
        if isinstance(inner, str) and inner:
            return inner
    return error.response.reason_phrase or None


class OpenAIBackend(ChatBackend):
    """OpenAI-compatible chat completions backend.

    Hidden design decisions:
    - OpenAI API client initialization (deferred until the first call)
    - Message format conversion
    - Mapping SDK exceptions onto the BackendError family
    """

    name = "OpenAI"

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        verbose: bool = False,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key; a missing key only fails at call time
            model: Model to use (default: gpt-4)
            base_url: Optional custom API base URL
            timeout: Optional request timeout in seconds
            verbose: Log the model used at INFO level
            http_client: Optional preconfigured httpx client for the SDK
        """
        super().__init__(model or DEFAULT_MODEL, verbose=verbose)
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._http_client = http_client
        self._client: AsyncOpenAI | None = None

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            client_kwargs: dict[str, Any] = {
                "api_key": self._api_key,
                "base_url": self._base_url,
                "max_retries": 0,
            }
            if self._timeout is not None:
                client_kwargs["timeout"] = self._timeout
            if self._http_client is not None:
                client_kwargs["http_client"] = self._http_client
            self._client = AsyncOpenAI(**client_kwargs)
        return self._client

    async def generate_reply(self, messages: Sequence[ChatMessage]) -> str:
        """Generate a reply using the chat completions API.

        Raises:
            MissingCredential: No API key configured (no request is sent)
            BackendUnreachable: The API could not be reached
            BackendRejected: The API answered with an error status
            BackendError: Any other SDK failure
        """
        if not self._api_key:
            raise MissingCredential(self.name, API_KEY_VARIABLE)

        try:
            client = self._get_client()
        except (httpx.InvalidURL, ValueError) as e:
            raise BackendError(
                f"Invalid {self.name} base URL {self._base_url!r}: {e}",
                backend=self.name,
            ) from e
        self._log_request()

        try:
            completion = await client.chat.completions.create(
                model=self._model,
                messages=[msg.to_wire() for msg in messages],
                temperature=DEFAULT_TEMPERATURE,
            )
        except APIConnectionError as e:
            raise BackendUnreachable(
                self.name,
                hint="Please check your internet connection.",
            ) from e
        except APIStatusError as e:
            raise BackendRejected(self.name, e.status_code, _error_detail(e)) from e
        except OpenAIError as e:
            raise BackendError(str(e), backend=self.name) from e

        if not completion.choices:
            raise BackendError(f"{self.name} returned no completions", backend=self.name)
        return (completion.choices[0].message.content or "").strip()

    async def close(self) -> None:
        """Close the OpenAI client if one was created."""
        if self._client is not None:
            await self._client.close()
            self._client = None
