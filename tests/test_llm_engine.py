"""Tests for the OpenAI-compatible chat backend."""

import logging
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from openai import APITimeoutError, OpenAIError

from chat_pipeline.config import Settings
from chat_pipeline.errors import BackendError, EmptyResponseError
from chat_pipeline.llm_engine import PROVIDERS, ChatBackend
from chat_pipeline.messages import Message


def _chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


def _client_streaming(*contents):
    client = MagicMock()
    client.chat.completions.create.return_value = iter([_chunk(c) for c in contents])
    return client


class TestChatBackendInit:
    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported"):
            ChatBackend(provider="unsupported_xyz", client=MagicMock())

    def test_preset_defaults(self):
        backend = ChatBackend(provider="mistral", client=MagicMock())
        assert backend.model == "mistral-small-latest"
        assert backend.base_url == "https://api.mistral.ai/v1"

    def test_missing_mistral_key(self, clean_env):
        with pytest.raises(BackendError, match="MISTRAL_AI_API_KEY"):
            ChatBackend(provider="mistral")

    def test_key_from_environment(self, clean_env, monkeypatch):
        monkeypatch.setenv("MISTRAL_AI_API_KEY", "sk-test")
        backend = ChatBackend(provider="mistral")
        assert backend.provider == "mistral"

    def test_ollama_needs_no_key(self, clean_env):
        backend = ChatBackend(provider="ollama")
        assert backend.model == PROVIDERS["ollama"].model

    def test_from_settings(self):
        settings = Settings(llm_provider="ollama", llm_model="llama3", llm_base_url="http://gpu:11434/v1")
        backend = ChatBackend.from_settings(settings)
        assert backend.model == "llama3"
        assert backend.base_url == "http://gpu:11434/v1"


class TestComplete:
    def test_joins_streamed_deltas(self):
        client = _client_streaming("Leo", " ", None, "XIV")
        backend = ChatBackend(provider="ollama", client=client)

        assert backend.complete([Message.user("Who?")]) == "Leo XIV"

    def test_sends_wire_messages_and_model(self):
        client = _client_streaming("ok")
        backend = ChatBackend(provider="ollama", model="m1", client=client)

        backend.complete([Message.system("s"), Message.user("u")])

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "m1"
        assert kwargs["stream"] is True
        assert kwargs["messages"] == [
            {"role": "system", "content": "s"},
            {"role": "user", "content": "u"},
        ]

    def test_model_override(self):
        client = _client_streaming("ok")
        backend = ChatBackend(provider="ollama", client=client)
        backend.complete([Message.user("u")], model="other")
        assert client.chat.completions.create.call_args.kwargs["model"] == "other"

    def test_chunks_without_choices_skipped(self):
        client = MagicMock()
        client.chat.completions.create.return_value = iter([SimpleNamespace(choices=[]), _chunk("x")])
        backend = ChatBackend(provider="ollama", client=client)
        assert backend.complete([Message.user("u")]) == "x"

    def test_empty_response(self):
        backend = ChatBackend(provider="ollama", client=_client_streaming("  ", None))
        with pytest.raises(EmptyResponseError):
            backend.complete([Message.user("u")])

    def test_sdk_error_becomes_backend_error(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("connection reset")
        backend = ChatBackend(provider="ollama", client=client)

        with pytest.raises(BackendError, match="connection reset") as excinfo:
            backend.complete([Message.user("u")])

        assert isinstance(excinfo.value.__cause__, OpenAIError)

    def test_timeout_becomes_backend_error(self):
        client = MagicMock()
        request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
        client.chat.completions.create.side_effect = APITimeoutError(request=request)
        backend = ChatBackend(provider="ollama", client=client)

        with pytest.raises(BackendError):
            backend.complete([Message.user("u")])

    def test_transport_error_mid_stream_becomes_backend_error(self):
        request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")

        def stream():
            yield _chunk("Leo")
            raise httpx.ReadTimeout("read timed out", request=request)

        client = MagicMock()
        client.chat.completions.create.return_value = stream()
        backend = ChatBackend(provider="ollama", client=client)

        with pytest.raises(BackendError, match="read timed out") as excinfo:
            backend.complete([Message.user("q")])

        assert isinstance(excinfo.value.__cause__, httpx.ReadTimeout)

    def test_protocol_error_mid_stream_becomes_backend_error(self):
        def stream():
            yield _chunk("Leo")
            raise httpx.RemoteProtocolError("peer closed connection")

        client = MagicMock()
        client.chat.completions.create.return_value = stream()
        backend = ChatBackend(provider="ollama", client=client)

        with pytest.raises(BackendError):
            backend.complete([Message.user("q")])

    def test_single_attempt_only(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("boom")
        backend = ChatBackend(provider="ollama", client=client)

        with pytest.raises(BackendError):
            backend.complete([Message.user("u")])

        assert client.chat.completions.create.call_count == 1

    def test_auth_failure_logged(self, caplog):
        client = MagicMock()
        client.chat.completions.create.side_effect = OpenAIError("401 Unauthorized")
        backend = ChatBackend(provider="ollama", client=client)

        with caplog.at_level(logging.ERROR, logger="chat_pipeline.llm_engine"):
            with pytest.raises(BackendError):
                backend.complete([Message.user("u")])

        assert "authorization failed" in caplog.text


def test_call_sends_system_then_user():
    client = _client_streaming("Leo XIV")
    backend = ChatBackend(provider="ollama", client=client)

    assert backend.call("be brief", "Who is the pope?") == "Leo XIV"

    roles = [m["role"] for m in client.chat.completions.create.call_args.kwargs["messages"]]
    assert roles == ["system", "user"]
