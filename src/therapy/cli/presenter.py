"""Rich rendering of session events."""

from rich.console import Console
from rich.status import Status
from rich.traceback import Traceback

from ..session import (
    BackendErrorEvent,
    NoInput,
    Reply,
    SessionEnded,
    SessionEvent,
    SessionStarted,
    Thinking,
)

CONTINUE_NOTICE = "There was an error getting a response, but you can continue the conversation."


class Presenter:
    """Turns SessionEvents into console output.

    The spinner is only shown on a real terminal so piped runs produce
    plain text.
    """

    def __init__(self, console: Console, verbose: bool = False, interactive: bool = True):
        self._console = console
        self._verbose = verbose
        self._interactive = interactive
        self._status: Status | None = None

    def render(self, event: SessionEvent) -> None:
        if isinstance(event, SessionStarted):
            self._say(event.opening_line)
        elif isinstance(event, Thinking):
            self._start_spinner()
        elif isinstance(event, Reply):
            self._stop_spinner()
            self._say(event.text)
        elif isinstance(event, BackendErrorEvent):
            self._stop_spinner()
            self._show_error(event)
        elif isinstance(event, NoInput):
            self._console.print(f"[yellow]{event.message}[/yellow]")
        elif isinstance(event, SessionEnded):
            self._stop_spinner()
            if event.farewell:
                self._console.print(f"\n[cyan]{event.farewell}[/cyan]")
            if self._verbose:
                self._console.print(f"[dim]Session ended after {event.turn_count} turn(s)[/dim]")

    def close(self) -> None:
        """Stop any running spinner."""
        self._stop_spinner()

    def _say(self, text: str) -> None:
        # markup=False: model output may contain square brackets
        self._console.print(f"\nAI: {text}\n", style="cyan", markup=False, highlight=False)

    def _show_error(self, event: BackendErrorEvent) -> None:
        self._console.print(f"Error: {event.message}", style="red", markup=False, highlight=False)
        if self._verbose:
            cause = event.error.__cause__ or event.error
            self._console.print(
                Traceback.from_exception(type(cause), cause, cause.__traceback__)
            )
        if self._interactive:
            self._console.print(f"\n[yellow]{CONTINUE_NOTICE}[/yellow]\n")

    def _start_spinner(self) -> None:
        if not self._console.is_terminal or self._status is not None:
            return
        self._status = self._console.status(
            "AI is thinking...", spinner="dots", spinner_style="cyan"
        )
        self._status.start()

    def _stop_spinner(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None
