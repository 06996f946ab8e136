"""Anthropic (Claude) connector using the official SDK."""

import json
import logging

from ..errors import ConfigurationError, TranslationError
from ..models.content import AssistantMessage, MessageType, ToolCall
from ..models.response import Generation, GenerationMetadata, ResponseMetadata, Usage
from .base import Capabilities, Connector

logger = logging.getLogger(__name__)

IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/gif", "image/webp"})


def _image_block(media) -> dict:
    if media.url is not None:
        return {"type": "image", "source": {"type": "url", "url": media.url}}
    data = media.as_data_url().split(",", 1)[1]
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media.mime_type, "data": data},
    }


def _to_anthropic_message(m) -> dict:
    if m.role == MessageType.USER.value:
        if not m.media:
            return {"role": "user", "content": m.text}
        blocks = [_image_block(media) for media in m.media]
        if m.text:
            blocks.append({"type": "text", "text": m.text})
        return {"role": "user", "content": blocks}

    if m.role == MessageType.ASSISTANT.value:
        if not m.tool_calls:
            return {"role": "assistant", "content": m.text}
        blocks = [{"type": "text", "text": m.text}] if m.text else []
        for call in m.tool_calls:
            try:
                arguments = json.loads(call.arguments or "{}")
            except json.JSONDecodeError as exc:
                raise TranslationError(f"Tool call {call.id} has invalid JSON arguments") from exc
            blocks.append({"type": "tool_use", "id": call.id, "name": call.name, "input": arguments})
        return {"role": "assistant", "content": blocks}

    if m.role == MessageType.TOOL.value:
        tool_call_id = m.metadata.get("tool_call_id")
        if not tool_call_id:
            raise TranslationError("Tool response messages need 'tool_call_id' metadata.")
        return {
            "role": "user",
            "content": [{"type": "tool_result", "tool_use_id": tool_call_id, "content": m.text}],
        }

    raise TranslationError(f"Anthropic has no equivalent for role '{m.role}'.")


class AnthropicConnector(Connector):
    DEFAULT_MODEL = "claude-opus-4-6"
    DEFAULT_MAX_TOKENS = 2048

    name = "anthropic"
    capabilities = Capabilities(
        streaming=True,
        multiple_candidates=False,
        tool_calls=True,
        media_types=IMAGE_TYPES,
    )

    def __init__(self, api_key: str = "", model: str = "") -> None:
        try:
            import anthropic
        except ImportError as exc:
            raise ImportError(
                "Install the 'anthropic' package to use the Anthropic connector: "
                "pip install anthropic"
            ) from exc

        self._client = anthropic.Anthropic(api_key=api_key or None)
        self.model = model or self.DEFAULT_MODEL

    def translate_request(self, messages, options) -> dict:
        system = "\n\n".join(m.text for m in messages if m.role == MessageType.SYSTEM.value)
        turns = [_to_anthropic_message(m) for m in messages if m.role != MessageType.SYSTEM.value]
        if not turns:
            raise TranslationError("Anthropic needs at least one non-system message.")

        model = options.model or self.model
        if not model:
            raise ConfigurationError("No model configured for the Anthropic connector.")

        request: dict = {
            "model": model,
            "max_tokens": options.max_tokens or self.DEFAULT_MAX_TOKENS,
            "messages": turns,
        }
        if system:
            request["system"] = system
        for name in ("temperature", "top_p", "top_k"):
            value = getattr(options, name)
            if value is not None:
                request[name] = value
        if options.stop_sequences is not None:
            request["stop_sequences"] = list(options.stop_sequences)
        for name in ("frequency_penalty", "presence_penalty"):
            if getattr(options, name) is not None:
                logger.warning("Anthropic does not support %s, ignoring it", name)
        request.update(options.extensions)
        return request

    def dispatch(self, request: dict):
        return self._client.messages.create(**request)

    def translate_result(self, result) -> list:
        text = "".join(block.text for block in result.content if block.type == "text")
        calls = [
            ToolCall(id=block.id, name=block.name, arguments=json.dumps(block.input))
            for block in result.content
            if block.type == "tool_use"
        ]
        return [
            Generation(
                AssistantMessage(text, tool_calls=calls),
                GenerationMetadata(finish_reason=result.stop_reason, index=0),
            )
        ]

    def result_metadata(self, result) -> ResponseMetadata:
        return ResponseMetadata(
            id=result.id,
            model=result.model,
            usage=Usage(
                prompt_tokens=result.usage.input_tokens,
                completion_tokens=result.usage.output_tokens,
            ),
        )

    # ------------------------------------------------------------------
    # Streaming: server-sent events from messages.create(stream=True)
    # ------------------------------------------------------------------

    def dispatch_stream(self, request: dict):
        return self._client.messages.create(**request, stream=True)

    def translate_chunk(self, event) -> list:
        if event.type == "content_block_start" and event.content_block.type == "tool_use":
            block = event.content_block
            return [Generation(AssistantMessage("", tool_calls=[ToolCall(block.id, block.name, "")]))]
        if event.type == "content_block_delta":
            if event.delta.type == "text_delta":
                return [Generation(AssistantMessage(event.delta.text))]
            if event.delta.type == "input_json_delta":
                return [Generation(AssistantMessage("", tool_calls=[ToolCall("", "", event.delta.partial_json)]))]
        if event.type == "message_delta" and event.delta.stop_reason is not None:
            return [
                Generation(
                    AssistantMessage(""),
                    GenerationMetadata(finish_reason=event.delta.stop_reason, index=0),
                )
            ]
        return []

    def chunk_metadata(self, event) -> ResponseMetadata:
        if event.type == "message_start":
            message = event.message
            return ResponseMetadata(
                id=message.id,
                model=message.model,
                usage=Usage(prompt_tokens=message.usage.input_tokens),
            )
        if event.type == "message_delta":
            return ResponseMetadata(usage=Usage(completion_tokens=event.usage.output_tokens))
        return ResponseMetadata()
