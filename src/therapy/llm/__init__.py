from .base import ChatBackend
from .errors import (
    BackendError,
    BackendRejected,
    BackendUnreachable,
    MissingCredential,
    UnsupportedProvider,
)
from .factory import create_backend, generate_reply
from .models import BackendSettings, ChatMessage, Provider
from .providers import OllamaBackend, OpenAIBackend

__all__ = [
    "ChatBackend",
    "create_backend",
    "generate_reply",
    "BackendSettings",
    "ChatMessage",
    "Provider",
    "BackendError",
    "BackendRejected",
    "BackendUnreachable",
    "MissingCredential",
    "UnsupportedProvider",
    "OllamaBackend",
    "OpenAIBackend",
]
