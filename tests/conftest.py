"""Pytest configuration and shared fixtures."""
from collections.abc import Callable, Sequence

import pytest

from therapy.llm import BackendSettings, ChatBackend, ChatMessage
from therapy.personas import clear_cache
from therapy.session import SessionConfig, TherapySession


class StubBackend(ChatBackend):
    """Scripted backend: returns (or raises) the queued outcomes in order.

    ``on_call`` runs inside each call before the outcome is delivered.
    """

    name = "Stub"

    def __init__(self, outcomes: Sequence[str | BaseException] = ()):
        super().__init__("stub-model")
        self._outcomes = list(outcomes)
        self.calls: list[tuple[ChatMessage, ...]] = []
        self.closed = False
        self.on_call: Callable[[], object] | None = None

    async def generate_reply(self, messages: Sequence[ChatMessage]) -> str:
        self.calls.append(tuple(messages))
        if self.on_call is not None:
            self.on_call()
        outcome = self._outcomes.pop(0) if self._outcomes else "OK"
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def stub_backend():
    """Factory for scripted StubBackends."""
    return StubBackend


@pytest.fixture
def fresh_persona_cache():
    """Clear cached personas before and after a test that overrides them."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def no_key_settings():
    """Backend settings with no OpenAI credential configured."""
    return BackendSettings(openai_api_key=None)


@pytest.fixture
def make_session():
    """Build a session wired to a StubBackend."""

    def _make(outcomes=(), **config):
        backend = StubBackend(outcomes)
        session = TherapySession(SessionConfig(**config), backend=backend)
        return session, backend

    return _make
