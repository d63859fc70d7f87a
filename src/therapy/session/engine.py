"""Conversation session engine.

A TherapySession owns one transcript and walks it through the
IDLE -> AWAITING_INPUT -> WAITING_ON_BACKEND -> ... -> ENDED lifecycle.
Every operation yields SessionEvents instead of printing, so the caller
decides how a session looks.
"""

import logging
from collections.abc import AsyncIterator, Callable

from ..llm import BackendError, BackendSettings, ChatBackend, create_backend
from ..personas import opening_line, resolve_persona
from .events import (
    BackendErrorEvent,
    NoInput,
    Reply,
    SessionEnded,
    SessionEvent,
    SessionStarted,
    Thinking,
)
from .input_source import InputSource, InputSourceFailure
from .models import SessionConfig, SessionStatus, Transcript

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"exit", "quit", "bye"})
FAREWELL = "Thank you for the conversation. Take care! 👋"

BackendFactory = Callable[..., ChatBackend]


class SessionStateError(Exception):
    """Operation is not valid in the session's current status."""


def is_exit_command(line: str) -> bool:
    """Check whether a line is exactly one of the exit words, ignoring case and padding."""
    return line.strip().casefold() in EXIT_COMMANDS


class TherapySession:
    """Single conversation between a user and one backend.

    The backend is created on first use through ``backend_factory`` unless
    one is injected, so configuration problems such as a missing API key
    show up as BackendErrorEvents on the turn that needs the backend.

    Example:
        session = TherapySession(SessionConfig(mode="trauma", provider="ollama"))
        async for event in session.run(ConsoleInput(console)):
            presenter.render(event)
        await session.close()
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        settings: BackendSettings | None = None,
        backend: ChatBackend | None = None,
        backend_factory: BackendFactory = create_backend,
    ):
        self.config = config or SessionConfig()
        self._settings = settings or BackendSettings()
        self._backend = backend
        self._owns_backend = False
        self._backend_factory = backend_factory

        persona = resolve_persona(self.config.mode)
        self._transcript = Transcript(persona)
        self._opening_line = opening_line(persona)
        self._status = SessionStatus.IDLE
        self._turn_count = 0

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def transcript(self) -> Transcript:
        return self._transcript

    @property
    def opening_line(self) -> str:
        return self._opening_line

    @property
    def turn_count(self) -> int:
        """Number of user messages sent to the backend, answered or not."""
        return self._turn_count

    def _set_status(self, status: SessionStatus) -> None:
        logger.debug("Session %s -> %s", self._status.value, status.value)
        self._status = status

    def _get_backend(self) -> ChatBackend:
        if self._backend is None:
            self._backend = self._backend_factory(
                self.config.provider,
                self._settings,
                model=self.config.model,
                verbose=self.config.verbose,
            )
            self._owns_backend = True
        return self._backend

    def _finish(self, farewell: str | None) -> SessionEnded:
        self._set_status(SessionStatus.ENDED)
        return SessionEnded(turn_count=self._turn_count, farewell=farewell)

    def start(self) -> SessionStarted:
        """Begin the conversation and emit the persona's greeting.

        Raises:
            SessionStateError: If the session was already started
        """
        if self._status is not SessionStatus.IDLE:
            raise SessionStateError(f"Cannot start a session that is {self._status.value}")
        self._set_status(SessionStatus.AWAITING_INPUT)
        return SessionStarted(
            opening_line=self._opening_line,
            mode=self.config.mode,
            provider=self.config.provider,
        )

    async def submit(self, line: str) -> AsyncIterator[SessionEvent]:
        """Handle one line of user input.

        Exit words end the session without touching the transcript. Anything
        else is appended verbatim and sent to the backend along with the whole
        conversation. A failed call leaves the user message unanswered and
        returns the session to AWAITING_INPUT.

        Yields:
            SessionEnded for an exit word, otherwise Thinking followed by
            Reply or BackendErrorEvent. Nothing once the session has ended.

        Raises:
            SessionStateError: If called before start() or while a backend
                call is outstanding
        """
        if self._status is SessionStatus.ENDED:
            logger.debug("Discarding input received after session ended")
            return
        if self._status is not SessionStatus.AWAITING_INPUT:
            raise SessionStateError(f"Cannot accept input while {self._status.value}")

        if is_exit_command(line):
            yield self._finish(FAREWELL)
            return

        self._transcript.append_user(line)
        self._turn_count += 1
        self._set_status(SessionStatus.WAITING_ON_BACKEND)
        yield Thinking()

        try:
            reply = await self._get_backend().generate_reply(self._transcript.messages)
        except BackendError as e:
            logger.debug("Backend call failed: %s", e, exc_info=self.config.verbose)
            if self._status is SessionStatus.WAITING_ON_BACKEND:
                self._set_status(SessionStatus.AWAITING_INPUT)
            yield BackendErrorEvent(message=str(e), error=e)
            return

        if self._status is not SessionStatus.WAITING_ON_BACKEND:
            logger.debug("Dropping reply that arrived after session ended")
            return
        self._transcript.append_assistant(reply)
        self._set_status(SessionStatus.AWAITING_INPUT)
        yield Reply(text=reply)

    async def run(self, source: InputSource) -> AsyncIterator[SessionEvent]:
        """Drive an interactive session until the user leaves.

        Reads one line per turn. End of stream ends the session with a
        farewell; blank lines are ignored.

        Raises:
            InputSourceFailure: After emitting SessionEnded, if the input
                source itself fails
        """
        if self._status is SessionStatus.IDLE:
            yield self.start()

        while self._status is SessionStatus.AWAITING_INPUT:
            try:
                line = await source.read_line()
            except InputSourceFailure:
                yield self._finish(None)
                raise

            if line is None:
                yield self._finish(FAREWELL)
                return
            if not line.strip():
                continue

            async for event in self.submit(line):
                yield event

    async def run_piped(self, text: str | None) -> AsyncIterator[SessionEvent]:
        """Run a one-shot session over pre-read piped input.

        All of the text is a single message, never split into turns. Blank
        input ends the session straight away without calling the backend.
        """
        line = (text or "").rstrip("\r\n")
        if not line.strip():
            yield NoInput()
            yield self._finish(None)
            return

        if self._status is SessionStatus.IDLE:
            yield self.start()
        if self._status is not SessionStatus.AWAITING_INPUT:
            return

        async for event in self.submit(line):
            yield event
        if self._status is not SessionStatus.ENDED:
            yield self._finish(None)

    def end(self, farewell: bool = True) -> SessionEnded | None:
        """End the session from any status.

        Returns:
            The SessionEnded event, or None if the session already ended.
            A farewell is only included once the session has started.
        """
        if self._status is SessionStatus.ENDED:
            return None
        started = self._status is not SessionStatus.IDLE
        return self._finish(FAREWELL if farewell and started else None)

    def interrupt(self) -> SessionEnded | None:
        """End the session because of an external interrupt (Ctrl-C, signal)."""
        logger.debug("Session interrupted while %s", self._status.value)
        return self.end(farewell=True)

    async def close(self) -> None:
        """Release the backend if this session created it."""
        if self._owns_backend and self._backend is not None:
            await self._backend.close()
            self._backend = None
            self._owns_backend = False
