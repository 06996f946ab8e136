"""Shared pytest fixtures."""

import pytest

from chatbridge.connectors.base import Capabilities, Connector
from chatbridge.models.content import AssistantMessage, SystemMessage, UserMessage
from chatbridge.models.options import ChatOptions
from chatbridge.models.response import Generation, GenerationMetadata, ResponseMetadata


class StubConnector(Connector):
    """Deterministic connector that records what the engine hands it.

    ``replies`` are returned as candidates by ``dispatch``; ``chunks`` are
    streamed one per element, after which ``stream_error`` (if set) is raised.
    """

    name = "stub"

    def __init__(
        self,
        replies=("Hallo!",),
        chunks=("Hal", "lo", "!"),
        stream_error=None,
        dispatch_error=None,
        capabilities=None,
    ):
        self.replies = list(replies)
        self.chunks = list(chunks)
        self.stream_error = stream_error
        self.dispatch_error = dispatch_error
        self.capabilities = capabilities or Capabilities(
            streaming=True,
            multiple_candidates=True,
            tool_calls=True,
            media_types=frozenset({"image/png"}),
        )
        self.requests = []
        self.dispatch_calls = 0
        self.stream_closed = False

    def translate_request(self, messages, options):
        request = {"messages": [(m.role, m.text) for m in messages], "options": options}
        self.requests.append(request)
        return request

    def dispatch(self, request):
        self.dispatch_calls += 1
        if self.dispatch_error is not None:
            raise self.dispatch_error
        return {"candidates": self.replies, "model": "stub-1"}

    def translate_result(self, result):
        return [
            Generation(AssistantMessage(text), GenerationMetadata(finish_reason="stop", index=i))
            for i, text in enumerate(result["candidates"])
        ]

    def result_metadata(self, result):
        return ResponseMetadata(model=result["model"])

    def dispatch_stream(self, request):
        self.dispatch_calls += 1
        return self._generate()

    def _generate(self):
        try:
            for text in self.chunks:
                yield {"delta": text}
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.stream_closed = True

    def translate_chunk(self, chunk):
        if not chunk["delta"]:
            return []
        return [Generation(AssistantMessage(chunk["delta"]))]

    def chunk_metadata(self, chunk):
        return ResponseMetadata(model="stub-1")


@pytest.fixture
def stub() -> StubConnector:
    return StubConnector()


@pytest.fixture
def make_stub():
    """Factory for StubConnectors with custom behaviour."""
    return StubConnector


@pytest.fixture
def startup_options() -> ChatOptions:
    return ChatOptions(
        model="stub-model",
        temperature=0.7,
        max_tokens=256,
        extensions={"seed": 42, "user": "a"},
    )


@pytest.fixture
def conversation() -> list:
    """system, user, assistant, user — in that order."""
    return [
        SystemMessage("Du bist hilfsbereit."),
        UserMessage("Hallo"),
        AssistantMessage("Guten Tag"),
        UserMessage("Wie geht's?"),
    ]
