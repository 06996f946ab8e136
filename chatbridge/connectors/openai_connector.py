"""OpenAI (GPT) connector using the official SDK."""

from .base import Capabilities, Connector
from .openai_format import (
    IMAGE_TYPES,
    generations_from_choices,
    generations_from_deltas,
    metadata_from,
    to_openai_messages,
    to_openai_params,
)


class OpenAIConnector(Connector):
    DEFAULT_MODEL = "gpt-4o"

    name = "openai"
    capabilities = Capabilities(
        streaming=True,
        multiple_candidates=True,
        tool_calls=True,
        media_types=IMAGE_TYPES,
    )

    def __init__(self, api_key: str = "", model: str = "", base_url: str = "") -> None:
        try:
            from openai import OpenAI
        except ImportError as exc:
            raise ImportError(
                "Install the 'openai' package to use the OpenAI connector: "
                "pip install openai"
            ) from exc

        kwargs = {"api_key": api_key or None}
        if base_url:
            kwargs["base_url"] = base_url
        self._client = OpenAI(**kwargs)
        self.model = model or self.DEFAULT_MODEL

    def translate_request(self, messages, options) -> dict:
        # top_k is not part of the chat-completions API.
        request = to_openai_params(options, default_model=self.model, drop=("top_k",))
        request["messages"] = to_openai_messages(messages)
        return request

    def dispatch(self, request: dict):
        return self._client.chat.completions.create(**request)

    def translate_result(self, result) -> list:
        return generations_from_choices(result.choices)

    def result_metadata(self, result):
        return metadata_from(result)

    def dispatch_stream(self, request: dict):
        return self._client.chat.completions.create(**request, stream=True)

    def translate_chunk(self, chunk) -> list:
        return generations_from_deltas(chunk.choices)
