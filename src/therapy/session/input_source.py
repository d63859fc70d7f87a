"""Where session input comes from.

Interactive sessions read one line per turn; piped sessions read the whole
stream once. End-of-stream is reported as None so it can be told apart from
an empty line.
"""

import signal
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

from rich.console import Console

DEFAULT_PROMPT = "[bold green]You:[/bold green] "


@contextmanager
def _interruptible() -> Iterator[None]:
    """Make Ctrl-C raise KeyboardInterrupt during a blocking read.

    asyncio.run replaces the SIGINT handler with one that only cancels the
    main task, which a blocking read never notices.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, signal.default_int_handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


class InputSourceFailure(Exception):
    """The terminal or input stream itself failed. Fatal to the session."""


class InputSource(ABC):
    """Supplies one raw line of user text per turn."""

    @abstractmethod
    async def read_line(self) -> str | None:
        """Read the next line.

        Returns:
            The line without its line terminator, or None at end of stream

        Raises:
            InputSourceFailure: The underlying stream errored
        """


class ConsoleInput(InputSource):
    """Prompts on a rich console and reads from the terminal."""

    def __init__(self, console: Console, prompt: str = DEFAULT_PROMPT):
        self._console = console
        self._prompt = prompt

    async def read_line(self) -> str | None:
        try:
            with _interruptible():
                return self._console.input(self._prompt)
        except EOFError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise InputSourceFailure(f"Failed to read from terminal: {e}") from e


class StreamInput(InputSource):
    """Reads successive lines from a text stream."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    async def read_line(self) -> str | None:
        try:
            with _interruptible():
                line = self._stream.readline()
        except (OSError, ValueError, UnicodeDecodeError) as e:
            raise InputSourceFailure(f"Failed to read input stream: {e}") from e
        if not line:
            return None
        return line.rstrip("\r\n")


def read_piped(stream: TextIO) -> str:
    """Read everything waiting on a piped stream as a single block of text.

    Raises:
        InputSourceFailure: The stream could not be read
    """
    try:
        with _interruptible():
            return stream.read()
    except (OSError, ValueError, UnicodeDecodeError) as e:
        raise InputSourceFailure(f"Failed to read piped input: {e}") from e
