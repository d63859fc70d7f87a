"""Unit tests for the backend adapter module."""
import json

import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st

from therapy.llm import (
    BackendError,
    BackendRejected,
    BackendSettings,
    BackendUnreachable,
    ChatBackend,
    ChatMessage,
    MissingCredential,
    OllamaBackend,
    OpenAIBackend,
    Provider,
    UnsupportedProvider,
    create_backend,
    generate_reply,
)

MESSAGES = (
    ChatMessage(role="system", content="Be supportive."),
    ChatMessage(role="user", content="I feel anxious"),
)


class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response | None = None, error: Exception | None = None):
        self._response = response
        self._error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        return self._response

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


def completion_body(content: str) -> dict:
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4",
        "choices": [
            {
                "index": 0,
                "finish_reason": "stop",
                "message": {"role": "assistant", "content": content},
            }
        ],
    }


def openai_backend(handler: RecordingHandler, api_key: str | None = "sk-test", **kwargs) -> OpenAIBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenAIBackend(
        api_key=api_key,
        base_url="https://api.example.test/v1",
        http_client=client,
        **kwargs,
    )


def ollama_backend(handler: RecordingHandler, **kwargs) -> OllamaBackend:
    return OllamaBackend(
        base_url="http://ollama.test:11434",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestChatBackendInterface:
    """Tests for the abstract ChatBackend interface."""

    def test_backend_is_abstract(self):
        """Test that ChatBackend cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ChatBackend("model")  # type: ignore


class TestProvider:
    """Tests for Provider parsing."""

    def test_parse_known_providers(self):
        assert Provider.parse("openai") is Provider.OPENAI
        assert Provider.parse("OLLAMA") is Provider.OLLAMA
        assert Provider.parse(" OpenAI ") is Provider.OPENAI
        assert Provider.parse(Provider.OLLAMA) is Provider.OLLAMA

    def test_parse_unknown_provider(self):
        with pytest.raises(UnsupportedProvider, match="Unsupported AI provider: gemini"):
            Provider.parse("gemini")

    @given(st.text(max_size=12))
    def test_parse_random_names(self, name: str):
        """Property test: only the two known identifiers are accepted."""
        if name.strip().lower() in ("openai", "ollama"):
            assert Provider.parse(name).value == name.strip().lower()
        else:
            with pytest.raises(UnsupportedProvider):
                Provider.parse(name)


class TestBackendFactory:
    """Tests for create_backend."""

    @pytest.mark.asyncio
    async def test_create_openai_backend(self):
        backend = create_backend("openai", BackendSettings(openai_api_key="sk-test"))
        async with backend:
            assert isinstance(backend, OpenAIBackend)
            assert backend.model == "gpt-4"

    @pytest.mark.asyncio
    async def test_create_ollama_backend(self):
        backend = create_backend("ollama")
        async with backend:
            assert isinstance(backend, OllamaBackend)
            assert backend.model == "llama3"
            assert backend.endpoint == "http://localhost:11434/api/chat"

    @pytest.mark.asyncio
    async def test_model_override(self):
        backend = create_backend("Ollama", model="mistral")
        async with backend:
            assert backend.model == "mistral"

    @pytest.mark.asyncio
    async def test_openai_without_key_can_be_created(self, no_key_settings):
        """Test that a missing key is not an error until a reply is requested."""
        backend = create_backend("openai", no_key_settings)
        async with backend:
            assert isinstance(backend, OpenAIBackend)

    def test_unknown_provider(self):
        with pytest.raises(UnsupportedProvider):
            create_backend("anthropic")


class TestOpenAIBackend:
    """Tests for OpenAIBackend against a mocked HTTP transport."""

    @pytest.mark.asyncio
    async def test_successful_reply(self):
        handler = RecordingHandler(httpx.Response(200, json=completion_body("  That sounds hard.  \n")))
        async with openai_backend(handler) as backend:
            reply = await backend.generate_reply(MESSAGES)

        assert reply == "That sounds hard."
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer sk-test"
        body = handler.last_json
        assert body["model"] == "gpt-4"
        assert body["temperature"] == 0.7
        assert body["messages"] == [
            {"role": "system", "content": "Be supportive."},
            {"role": "user", "content": "I feel anxious"},
        ]

    @pytest.mark.asyncio
    async def test_custom_model_is_sent(self):
        handler = RecordingHandler(httpx.Response(200, json=completion_body("ok")))
        async with openai_backend(handler, model="gpt-4o-mini") as backend:
            await backend.generate_reply(MESSAGES)

        assert handler.last_json["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_missing_credential_makes_no_request(self):
        handler = RecordingHandler(httpx.Response(200, json=completion_body("unused")))
        async with openai_backend(handler, api_key=None) as backend:
            with pytest.raises(MissingCredential, match="OPENAI_API_KEY") as exc_info:
                await backend.generate_reply(MESSAGES)

        assert exc_info.value.variable == "OPENAI_API_KEY"
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_error_status_is_rejected(self):
        handler = RecordingHandler(httpx.Response(
            401,
            json={"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}},
        ))
        async with openai_backend(handler) as backend:
            with pytest.raises(BackendRejected) as exc_info:
                await backend.generate_reply(MESSAGES)

        error = exc_info.value
        assert error.status_code == 401
        assert error.detail == "Incorrect API key provided"
        assert "OpenAI API error (401)" in str(error)
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self):
        handler = RecordingHandler(httpx.Response(503, text="upstream unavailable"))
        async with openai_backend(handler) as backend:
            with pytest.raises(BackendRejected) as exc_info:
                await backend.generate_reply(MESSAGES)

        assert exc_info.value.status_code == 503
        assert len(handler.requests) == 1

    @pytest.mark.asyncio
    async def test_connection_failure_is_unreachable(self):
        handler = RecordingHandler(error=httpx.ConnectError("Connection refused"))
        async with openai_backend(handler) as backend:
            with pytest.raises(BackendUnreachable, match="Failed to connect to OpenAI"):
                await backend.generate_reply(MESSAGES)

    @pytest.mark.asyncio
    async def test_malformed_base_url_is_a_backend_error(self):
        backend = OpenAIBackend(api_key="sk-test", base_url="http://[::1")
        async with backend:
            with pytest.raises(BackendError):
                await backend.generate_reply(MESSAGES)

    @pytest.mark.asyncio
    async def test_messages_are_not_mutated(self):
        handler = RecordingHandler(httpx.Response(200, json=completion_body("ok")))
        messages = list(MESSAGES)
        async with openai_backend(handler) as backend:
            await backend.generate_reply(messages)

        assert messages == list(MESSAGES)


class TestOllamaBackend:
    """Tests for OllamaBackend against a mocked HTTP transport."""

    @pytest.mark.asyncio
    async def test_successful_reply(self):
        handler = RecordingHandler(httpx.Response(200, json={
            "model": "llama3",
            "message": {"role": "assistant", "content": "\n That sounds hard. "},
            "done": True,
        }))
        async with ollama_backend(handler) as backend:
            reply = await backend.generate_reply(MESSAGES)

        assert reply == "That sounds hard."
        request = handler.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://ollama.test:11434/api/chat"
        assert "authorization" not in request.headers
        body = handler.last_json
        assert body["model"] == "llama3"
        assert body["stream"] is False
        assert body["messages"][1] == {"role": "user", "content": "I feel anxious"}

    @pytest.mark.asyncio
    async def test_connection_failure_names_endpoint(self):
        handler = RecordingHandler(error=httpx.ConnectError("Connection refused"))
        async with ollama_backend(handler) as backend:
            with pytest.raises(BackendUnreachable) as exc_info:
                await backend.generate_reply(MESSAGES)

        error = exc_info.value
        assert error.endpoint == "http://ollama.test:11434"
        assert "Ollama" in str(error)
        assert "http://ollama.test:11434" in str(error)

    @pytest.mark.asyncio
    async def test_error_json_is_reported(self):
        handler = RecordingHandler(httpx.Response(404, json={"error": "model 'llama3' not found"}))
        async with ollama_backend(handler) as backend:
            with pytest.raises(BackendRejected) as exc_info:
                await backend.generate_reply(MESSAGES)

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "model 'llama3' not found"
        assert str(exc_info.value) == "Ollama API error (404): model 'llama3' not found"

    @pytest.mark.asyncio
    async def test_error_text_is_reported(self):
        handler = RecordingHandler(httpx.Response(500, text="internal failure"))
        async with ollama_backend(handler) as backend:
            with pytest.raises(BackendRejected, match="internal failure"):
                await backend.generate_reply(MESSAGES)

    @pytest.mark.asyncio
    async def test_other_transport_failure(self):
        handler = RecordingHandler(error=httpx.ReadTimeout("timed out"))
        async with ollama_backend(handler) as backend:
            with pytest.raises(BackendError, match="timed out") as exc_info:
                await backend.generate_reply(MESSAGES)

        assert not isinstance(exc_info.value, (BackendUnreachable, BackendRejected))

    def test_malformed_base_url_is_a_backend_error(self):
        with pytest.raises(BackendError, match="Invalid Ollama URL") as exc_info:
            OllamaBackend(base_url="http://[::1")

        assert exc_info.value.backend == "Ollama"

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        handler = RecordingHandler(httpx.Response(200, json={"done": True}))
        async with ollama_backend(handler) as backend:
            with pytest.raises(BackendError, match="malformed"):
                await backend.generate_reply(MESSAGES)


class TestGenerateReply:
    """Tests for the one-shot generate_reply helper."""

    @pytest.mark.asyncio
    async def test_unsupported_provider(self):
        with pytest.raises(UnsupportedProvider):
            await generate_reply(MESSAGES, "carrier-pigeon")

    @pytest.mark.asyncio
    async def test_missing_credential(self, no_key_settings):
        transcript = list(MESSAGES)
        with pytest.raises(MissingCredential):
            await generate_reply(transcript, "openai", settings=no_key_settings)

        assert transcript == list(MESSAGES)
