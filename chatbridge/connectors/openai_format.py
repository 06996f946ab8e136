"""OpenAI chat-completions wire format, shared by the litellm and OpenAI connectors."""

import logging

from ..errors import ConfigurationError, TranslationError
from ..models.content import AssistantMessage, MessageType, ToolCall
from ..models.options import ChatOptions
from ..models.response import Generation, GenerationMetadata, ResponseMetadata, Usage

logger = logging.getLogger(__name__)

IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/gif", "image/webp"})

# ChatOptions field -> request keyword
_PARAM_NAMES = {
    "temperature": "temperature",
    "top_p": "top_p",
    "top_k": "top_k",
    "max_tokens": "max_tokens",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
    "stop_sequences": "stop",
    "n": "n",
}


def to_openai_messages(messages) -> list:
    """Convert Messages to chat-completions dicts, keeping their order."""
    out = []
    for m in messages:
        entry: dict = {"role": m.role, "content": m.text}

        if m.media:
            parts = [{"type": "text", "text": m.text}] if m.text else []
            for media in m.media:
                if media.mime_type not in IMAGE_TYPES:
                    raise TranslationError(f"Unsupported media type for chat completions: {media.mime_type}")
                parts.append({"type": "image_url", "image_url": {"url": media.as_data_url()}})
            entry["content"] = parts

        if m.role == MessageType.TOOL.value:
            tool_call_id = m.metadata.get("tool_call_id")
            if not tool_call_id:
                raise TranslationError("Tool response messages need 'tool_call_id' metadata.")
            entry["tool_call_id"] = tool_call_id

        if m.tool_calls:
            entry["content"] = m.text or None
            entry["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in m.tool_calls
            ]

        if "name" in m.metadata:
            entry["name"] = m.metadata["name"]
        out.append(entry)
    return out


def to_openai_params(options: ChatOptions, default_model: str = "", drop: tuple = ()) -> dict:
    """Map effective options to request keywords; extensions are passed through.

    Fields listed in *drop* are not understood by the target API and are left
    out with a debug log.

    Raises:
        ConfigurationError: if neither the options nor the connector name a model.
    """
    model = options.model or default_model
    if not model:
        raise ConfigurationError("No model configured: set ChatOptions.model or the connector default.")

    params: dict = {"model": model}
    for field_name, key in _PARAM_NAMES.items():
        value = getattr(options, field_name)
        if value is None:
            continue
        if field_name in drop:
            logger.debug("Option %s is not supported by this backend, dropped", field_name)
            continue
        params[key] = list(value) if field_name == "stop_sequences" else value
    params.update(options.extensions)
    return params


def _tool_calls(raw) -> list:
    return [
        ToolCall(
            id=getattr(call, "id", None) or "",
            name=getattr(call.function, "name", None) or "",
            arguments=getattr(call.function, "arguments", None) or "",
        )
        for call in raw or []
    ]


def generations_from_choices(choices) -> list:
    """Generations for a full (non-streamed) response, in choice order."""
    generations = []
    for pos, choice in enumerate(choices):
        message = choice.message
        generations.append(
            Generation(
                AssistantMessage(
                    message.content or "",
                    tool_calls=_tool_calls(getattr(message, "tool_calls", None)),
                ),
                GenerationMetadata(
                    finish_reason=getattr(choice, "finish_reason", None),
                    index=getattr(choice, "index", pos),
                ),
            )
        )
    return generations


def generations_from_deltas(choices) -> list:
    """Generations for one streamed chunk; choices without content are skipped."""
    generations = []
    for pos, choice in enumerate(choices):
        delta = choice.delta
        text = getattr(delta, "content", None) or ""
        calls = _tool_calls(getattr(delta, "tool_calls", None))
        finish_reason = getattr(choice, "finish_reason", None)
        if not text and not calls and finish_reason is None:
            continue
        generations.append(
            Generation(
                AssistantMessage(text, tool_calls=calls),
                GenerationMetadata(finish_reason=finish_reason, index=getattr(choice, "index", pos)),
            )
        )
    return generations


def metadata_from(response) -> ResponseMetadata:
    usage = getattr(response, "usage", None)
    return ResponseMetadata(
        id=getattr(response, "id", None),
        model=getattr(response, "model", None),
        usage=Usage(
            prompt_tokens=getattr(usage, "prompt_tokens", None),
            completion_tokens=getattr(usage, "completion_tokens", None),
            total_tokens=getattr(usage, "total_tokens", None),
        ),
    )
