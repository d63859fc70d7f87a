"""Configuration factory functions for CLI.

Centralizes reading the environment so the rest of the package receives
explicit settings values. Hides configuration details from command
implementations.
"""

import logging
import os

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from ..llm import BackendSettings
from ..llm.models import OLLAMA_DEFAULT_URL

DEFAULT_PROVIDER = "ollama"


def get_backend_settings(console: Console | None = None) -> BackendSettings:
    """Create backend settings from environment variables.

    Args:
        console: Optional Rich console for error output

    Returns:
        Frozen settings passed down to whichever backend is used

    Raises:
        SystemExit: If THERAPY_REQUEST_TIMEOUT is not a positive number

    Environment variables:
        OPENAI_API_KEY: OpenAI API key (only needed for the openai provider)
        OPENAI_BASE_URL: OpenAI-compatible API base URL (optional)
        OLLAMA_BASE_URL: Ollama server URL (default: http://localhost:11434)
        THERAPY_REQUEST_TIMEOUT: Request timeout in seconds (default: none)
    """
    timeout = os.getenv("THERAPY_REQUEST_TIMEOUT")
    try:
        return BackendSettings(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            ollama_base_url=os.getenv("OLLAMA_BASE_URL") or OLLAMA_DEFAULT_URL,
            request_timeout=float(timeout) if timeout else None,
        )
    except (ValueError, ValidationError):
        con = console or Console(stderr=True)
        con.print(
            f"[red]Error: THERAPY_REQUEST_TIMEOUT must be a positive number of seconds, got {timeout!r}[/red]"
        )
        raise typer.Exit(code=1)


def get_default_provider() -> str:
    """Provider selected by the PROVIDER environment variable (default: ollama)."""
    return (os.getenv("PROVIDER") or DEFAULT_PROVIDER).lower()


def get_default_model() -> str | None:
    """Model override from the THERAPY_MODEL environment variable."""
    return os.getenv("THERAPY_MODEL") or None


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Send log records to stderr through rich.

    Args:
        verbose: Log at DEBUG instead of WARNING
        console: Console to log to (default: a new stderr console)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO; keep it out of the conversation
    logging.getLogger("httpx").setLevel(logging.WARNING)
