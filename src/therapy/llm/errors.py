"""Errors raised by text-generation backends.

Every failure of a backend call is a BackendError, so callers can treat
the whole family as "this turn did not get a reply".
"""


class BackendError(Exception):
    """Base class for backend call failures."""

    def __init__(self, message: str, backend: str | None = None):
        super().__init__(message)
        self.backend = backend


class UnsupportedProvider(BackendError):
    """Requested provider identifier is not one of the known backends."""

    def __init__(self, provider: str):
        super().__init__(
            f"Unsupported AI provider: {provider}. "
            f"Supported providers: 'openai', 'ollama'"
        )
        self.provider = provider


class MissingCredential(BackendError):
    """A credential the backend needs is not configured."""

    def __init__(self, backend: str, variable: str):
        super().__init__(
            f"{backend} API key not found. "
            f"Please set {variable} in your environment or .env file.",
            backend=backend,
        )
        self.variable = variable


class BackendUnreachable(BackendError):
    """Connection to the backend could not be established."""

    def __init__(self, backend: str, endpoint: str | None = None, hint: str | None = None):
        message = f"Failed to connect to {backend}"
        if endpoint:
            message += f" at {endpoint}"
        message += "."
        if hint:
            message += f" {hint}"
        super().__init__(message, backend=backend)
        self.endpoint = endpoint


class BackendRejected(BackendError):
    """Backend answered with a non-success HTTP status."""

    def __init__(self, backend: str, status_code: int, detail: str | None = None):
        message = f"{backend} API error ({status_code})"
        if detail:
            message += f": {detail}"
        super().__init__(message, backend=backend)
        self.status_code = status_code
        self.detail = detail
