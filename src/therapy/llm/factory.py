from collections.abc import Iterable

from .base import ChatBackend
from .models import BackendSettings, ChatMessage, Provider
from .providers import OllamaBackend, OpenAIBackend


def create_backend(
    provider: Provider | str,
    settings: BackendSettings | None = None,
    model: str | None = None,
    verbose: bool = False,
) -> ChatBackend:
    """Create a chat backend instance.

    This factory function hides the instantiation logic for different backends.
    No network traffic happens here, and a missing OpenAI key is only reported
    when the backend is first asked for a reply.

    Args:
        provider: Provider type ('openai' or 'ollama', case-insensitive)
        settings: Connection settings (defaults: no API key, local Ollama)
        model: Model override (None uses the backend's default)
        verbose: Log backend/model details at INFO level

    Returns:
        Initialized backend instance

    Raises:
        UnsupportedProvider: If provider type is not supported
        BackendError: If the Ollama base URL is malformed

    Examples:
        >>> backend = create_backend("ollama", model="llama3")

        >>> backend = create_backend(
        ...     "openai",
        ...     BackendSettings(openai_api_key="sk-..."),
        ...     model="gpt-4o-mini"
        ... )
    """
    settings = settings or BackendSettings()
    kind = Provider.parse(provider)

    if kind is Provider.OPENAI:
        return OpenAIBackend(
            api_key=settings.openai_api_key,
            model=model,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
            verbose=verbose,
        )

    return OllamaBackend(
        model=model,
        base_url=settings.ollama_base_url,
        timeout=settings.request_timeout,
        verbose=verbose,
    )


async def generate_reply(
    transcript: Iterable[ChatMessage],
    provider: Provider | str,
    model: str | None = None,
    verbose: bool = False,
    settings: BackendSettings | None = None,
) -> str:
    """Get one reply for a conversation from the selected backend.

    The transcript is only read. A fresh backend is built for the call and
    closed afterwards.

    Raises:
        BackendError: Any failure, including UnsupportedProvider and
            MissingCredential, before or during the request
    """
    messages = tuple(transcript)
    backend = create_backend(provider, settings, model=model, verbose=verbose)
    async with backend:
        return await backend.generate_reply(messages)
