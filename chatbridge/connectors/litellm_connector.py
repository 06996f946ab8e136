"""Connector for any provider supported by litellm."""

import logging
from typing import Iterator, Optional

import litellm

from .base import Capabilities, Connector
from .openai_format import (
    IMAGE_TYPES,
    generations_from_choices,
    generations_from_deltas,
    metadata_from,
    to_openai_messages,
    to_openai_params,
)

logger = logging.getLogger(__name__)


class LiteLLMConnector(Connector):
    """Calls ``litellm.completion`` with OpenAI-format messages.

    The model string selects the provider, e.g. "anthropic/claude-opus-4-6" or
    "openai/gpt-4o". The matching API key must be set as an environment variable
    (ANTHROPIC_API_KEY, OPENAI_API_KEY, ...) unless *api_key* is given.
    """

    name = "litellm"
    capabilities = Capabilities(
        streaming=True,
        multiple_candidates=True,
        tool_calls=True,
        media_types=IMAGE_TYPES,
    )

    def __init__(
        self,
        model: str = "",
        api_key: str = "",
        thinking_budget: Optional[int] = None,
    ) -> None:
        self.model = model
        self._api_key = api_key
        self._thinking_budget = thinking_budget

    def translate_request(self, messages, options) -> dict:
        request = to_openai_params(options, default_model=self.model)
        request["messages"] = to_openai_messages(messages)
        if self._api_key:
            request.setdefault("api_key", self._api_key)
        if self._thinking_budget is not None:
            # Anthropic models only; max_tokens must exceed budget_tokens.
            request.setdefault(
                "thinking", {"type": "enabled", "budget_tokens": self._thinking_budget}
            )
            if request.get("max_tokens", 0) <= self._thinking_budget:
                request["max_tokens"] = self._thinking_budget + 4096
        return request

    def dispatch(self, request: dict):
        logger.debug("litellm.completion model=%s messages=%d", request["model"], len(request["messages"]))
        return litellm.completion(**request)

    async def adispatch(self, request: dict):
        return await litellm.acompletion(**request)

    def translate_result(self, result) -> list:
        return generations_from_choices(result.choices)

    def result_metadata(self, result):
        return metadata_from(result)

    def dispatch_stream(self, request: dict) -> Iterator:
        return litellm.completion(**request, stream=True)

    def translate_chunk(self, chunk) -> list:
        return generations_from_deltas(chunk.choices)
