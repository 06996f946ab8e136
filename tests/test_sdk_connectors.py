"""Tests for the OpenAI and Anthropic SDK connectors (clients are mocked)."""

import json
import logging
from types import SimpleNamespace

import pytest

from chatbridge.connectors import create_connector
from chatbridge.connectors.anthropic_connector import AnthropicConnector
from chatbridge.connectors.echo import EchoConnector
from chatbridge.connectors.openai_connector import OpenAIConnector
from chatbridge.engine import ChatEngine
from chatbridge.errors import ConfigurationError, TranslationError
from chatbridge.models.content import (
    AssistantMessage,
    Media,
    Message,
    SystemMessage,
    ToolCall,
    ToolResponseMessage,
    UserMessage,
)
from chatbridge.models.options import ChatOptions
from chatbridge.models.prompt import Prompt
from chatbridge.models.response import Usage, accumulate


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


def _openai_response(content):
    choice = SimpleNamespace(
        index=0,
        finish_reason="stop",
        message=SimpleNamespace(content=content, tool_calls=None),
    )
    usage = SimpleNamespace(prompt_tokens=3, completion_tokens=2, total_tokens=5)
    return SimpleNamespace(id="chatcmpl-1", model="gpt-4o", choices=[choice], usage=usage)


@pytest.fixture
def openai_client(mocker):
    mock_cls = mocker.patch("openai.OpenAI")
    client = mock_cls.return_value
    client.chat.completions.create.return_value = _openai_response("Hallo!")
    return client


class TestOpenAIConnector:
    def test_uses_default_model(self, openai_client):
        ChatEngine(OpenAIConnector(api_key="sk-test")).call("x")

        assert openai_client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o"

    def test_client_gets_api_key(self, mocker):
        mock_cls = mocker.patch("openai.OpenAI")

        OpenAIConnector(api_key="sk-test", base_url="http://localhost:8080/v1")

        mock_cls.assert_called_once_with(api_key="sk-test", base_url="http://localhost:8080/v1")

    def test_returns_reply_and_metadata(self, openai_client):
        response = ChatEngine(OpenAIConnector(model="gpt-4o-mini")).call(Prompt.from_text("x"))

        assert response.text == "Hallo!"
        assert response.metadata.usage.total_tokens == 5
        assert openai_client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o-mini"

    def test_top_k_is_dropped(self, openai_client):
        engine = ChatEngine(OpenAIConnector(), ChatOptions(top_k=40, temperature=0.5))

        engine.call("x")

        kwargs = openai_client.chat.completions.create.call_args.kwargs
        assert "top_k" not in kwargs
        assert kwargs["temperature"] == 0.5

    def test_stream_passes_stream_true(self, openai_client):
        delta = SimpleNamespace(content="Hi", tool_calls=None)
        chunk = SimpleNamespace(choices=[SimpleNamespace(index=0, finish_reason=None, delta=delta)])
        openai_client.chat.completions.create.return_value = iter([chunk])

        assert list(ChatEngine(OpenAIConnector()).stream("x")) == ["Hi"]
        assert openai_client.chat.completions.create.call_args.kwargs["stream"] is True

    def test_usage_only_final_chunk_is_kept(self, openai_client):
        def _chunk(content, finish=None):
            delta = SimpleNamespace(content=content, tool_calls=None)
            choice = SimpleNamespace(index=0, finish_reason=finish, delta=delta)
            return SimpleNamespace(id="chatcmpl-1", model="gpt-4o", choices=[choice], usage=None)

        usage = SimpleNamespace(prompt_tokens=4, completion_tokens=2, total_tokens=6)
        openai_client.chat.completions.create.return_value = iter([
            _chunk("Hallo"),
            _chunk(None, finish="stop"),
            SimpleNamespace(id="chatcmpl-1", model="gpt-4o", choices=[], usage=usage),
        ])

        chunks = list(ChatEngine(OpenAIConnector()).stream(Prompt.from_text("x")))
        full = accumulate(chunks)

        assert chunks[-1].generations == ()
        assert full.text == "Hallo"
        assert full.result.metadata.finish_reason == "stop"
        assert full.metadata.usage == Usage(prompt_tokens=4, completion_tokens=2, total_tokens=6)

    def test_streamed_tool_call_fragments_accumulate(self, openai_client):
        def _chunk(call_id, name, args, finish=None):
            function = SimpleNamespace(name=name, arguments=args)
            calls = [SimpleNamespace(index=0, id=call_id, function=function)] if args is not None else None
            delta = SimpleNamespace(content=None, tool_calls=calls)
            return SimpleNamespace(choices=[SimpleNamespace(index=0, finish_reason=finish, delta=delta)])

        openai_client.chat.completions.create.return_value = iter([
            _chunk("call_1", "weather", ""),
            _chunk(None, None, '{"city": '),
            _chunk(None, None, '"Zürich"}'),
            _chunk(None, None, None, finish="tool_calls"),
        ])

        full = accumulate(ChatEngine(OpenAIConnector()).stream(Prompt.from_text("Wetter?")))

        assert full.result.output.tool_calls == (ToolCall("call_1", "weather", '{"city": "Zürich"}'),)
        assert full.result.metadata.finish_reason == "tool_calls"


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


def _anthropic_response(*blocks, stop_reason="end_turn"):
    usage = SimpleNamespace(input_tokens=10, output_tokens=4)
    return SimpleNamespace(
        id="msg_1",
        model="claude-opus-4-6",
        content=list(blocks),
        stop_reason=stop_reason,
        usage=usage,
    )


def _text_block(text):
    return SimpleNamespace(type="text", text=text)


@pytest.fixture
def anthropic_client(mocker):
    mock_cls = mocker.patch("anthropic.Anthropic")
    client = mock_cls.return_value
    client.messages.create.return_value = _anthropic_response(_text_block("Hallo!"))
    return client


class TestAnthropicConnector:
    def test_system_messages_lifted_out(self, anthropic_client, conversation):
        ChatEngine(AnthropicConnector()).call(Prompt(conversation))

        kwargs = anthropic_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Du bist hilfsbereit."
        assert kwargs["messages"] == [
            {"role": "user", "content": "Hallo"},
            {"role": "assistant", "content": "Guten Tag"},
            {"role": "user", "content": "Wie geht's?"},
        ]

    def test_max_tokens_defaults_when_unset(self, anthropic_client):
        ChatEngine(AnthropicConnector()).call("x")
        assert anthropic_client.messages.create.call_args.kwargs["max_tokens"] == 2048

    def test_options_mapped(self, anthropic_client):
        engine = ChatEngine(AnthropicConnector(), ChatOptions(max_tokens=500, top_k=20))

        engine.call(Prompt([UserMessage("x")], ChatOptions(temperature=0.1, stop_sequences=["\n\n"])))

        kwargs = anthropic_client.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 500
        assert kwargs["top_k"] == 20
        assert kwargs["temperature"] == 0.1
        assert kwargs["stop_sequences"] == ["\n\n"]
        assert kwargs["model"] == "claude-opus-4-6"

    def test_penalties_dropped_with_warning(self, anthropic_client, caplog):
        engine = ChatEngine(AnthropicConnector(), ChatOptions(presence_penalty=0.5))

        with caplog.at_level(logging.WARNING):
            engine.call("x")

        assert "presence_penalty" not in anthropic_client.messages.create.call_args.kwargs
        assert "presence_penalty" in caplog.text

    def test_multiple_candidates_rejected(self, anthropic_client):
        with pytest.raises(ConfigurationError):
            ChatEngine(AnthropicConnector()).call(Prompt([UserMessage("x")], ChatOptions(n=2)))
        anthropic_client.messages.create.assert_not_called()

    def test_only_system_messages_rejected(self, anthropic_client):
        with pytest.raises(TranslationError):
            ChatEngine(AnthropicConnector()).call(Prompt([SystemMessage("nur System")]))
        anthropic_client.messages.create.assert_not_called()

    def test_unknown_role_rejected(self, anthropic_client):
        with pytest.raises(TranslationError, match="developer"):
            ChatEngine(AnthropicConnector()).call(Prompt([Message("x", "developer")]))

    def test_inline_image_becomes_base64_block(self, anthropic_client):
        image = Media(mime_type="image/png", data=b"png-bytes")

        ChatEngine(AnthropicConnector()).call(Prompt([UserMessage("Was ist das?", media=[image])]))

        content = anthropic_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert content[0]["source"]["type"] == "base64"
        assert content[0]["source"]["media_type"] == "image/png"
        assert content[1] == {"type": "text", "text": "Was ist das?"}

    def test_tool_use_round_trip(self, anthropic_client):
        anthropic_client.messages.create.return_value = _anthropic_response(
            _text_block("Moment."),
            SimpleNamespace(type="tool_use", id="tu_1", name="weather", input={"city": "Bern"}),
            stop_reason="tool_use",
        )
        engine = ChatEngine(AnthropicConnector())

        response = engine.call("Wetter in Bern?")

        call = response.result.output.tool_calls[0]
        assert response.text == "Moment."
        assert (call.id, call.name, json.loads(call.arguments)) == ("tu_1", "weather", {"city": "Bern"})
        assert response.result.metadata.finish_reason == "tool_use"

        engine.call(Prompt([
            UserMessage("Wetter in Bern?"),
            response.result.output,
            ToolResponseMessage("sonnig", metadata={"tool_call_id": "tu_1"}),
        ]))
        messages = anthropic_client.messages.create.call_args.kwargs["messages"]
        assert messages[1]["content"][1] == {
            "type": "tool_use", "id": "tu_1", "name": "weather", "input": {"city": "Bern"},
        }
        assert messages[2]["content"][0]["tool_use_id"] == "tu_1"

    def test_invalid_tool_arguments_rejected(self, anthropic_client):
        prompt = Prompt([UserMessage("x"), AssistantMessage("", tool_calls=[ToolCall("t", "f", "{not json")])])
        with pytest.raises(TranslationError):
            ChatEngine(AnthropicConnector()).call(prompt)

    def test_metadata(self, anthropic_client):
        response = ChatEngine(AnthropicConnector()).call(Prompt.from_text("x"))

        assert response.metadata.id == "msg_1"
        assert response.metadata.usage.prompt_tokens == 10
        assert response.metadata.usage.total_tokens == 14

    def test_stream_events(self, anthropic_client):
        message = SimpleNamespace(id="msg_1", model="claude-opus-4-6", usage=SimpleNamespace(input_tokens=7))
        events = [
            SimpleNamespace(type="message_start", message=message),
            SimpleNamespace(type="content_block_start", content_block=SimpleNamespace(type="text")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text="Hal")),
            SimpleNamespace(type="content_block_delta", delta=SimpleNamespace(type="text_delta", text="lo")),
            SimpleNamespace(type="content_block_stop"),
            SimpleNamespace(
                type="message_delta",
                delta=SimpleNamespace(stop_reason="end_turn"),
                usage=SimpleNamespace(output_tokens=2),
            ),
            SimpleNamespace(type="message_stop"),
        ]
        anthropic_client.messages.create.return_value = iter(events)

        chunks = list(ChatEngine(AnthropicConnector()).stream(Prompt.from_text("x")))
        full = accumulate(chunks)

        assert [c.text for c in chunks] == ["Hal", "lo", ""]
        assert chunks[0].metadata.id == "msg_1"
        assert full.text == "Hallo"
        assert full.result.metadata.finish_reason == "end_turn"
        assert full.metadata.usage.total_tokens == 9
        assert anthropic_client.messages.create.call_args.kwargs["stream"] is True


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestCreateConnector:
    def test_echo(self):
        connector = create_connector("echo", model="dev")
        assert isinstance(connector, EchoConnector)
        assert connector.model == "dev"

    def test_litellm(self):
        connector = create_connector("litellm", model="openai/gpt-4o")
        assert connector.name == "litellm"
        assert connector.model == "openai/gpt-4o"

    def test_openai(self, openai_client):
        assert isinstance(create_connector("openai", api_key="sk"), OpenAIConnector)

    def test_anthropic(self, anthropic_client):
        assert isinstance(create_connector("anthropic", api_key="sk"), AnthropicConnector)

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError, match="Unknown connector"):
            create_connector("cohere")
