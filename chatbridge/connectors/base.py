"""Abstract base class for backend connectors."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from ..models.content import Message
from ..models.options import ChatOptions
from ..models.response import ResponseMetadata


@dataclass(frozen=True)
class Capabilities:
    streaming: bool = False
    multiple_candidates: bool = False
    tool_calls: bool = False
    media_types: frozenset = field(default_factory=frozenset)   # accepted MIME types

    def accepts_media(self, mime_type: str) -> bool:
        return mime_type in self.media_types


class Connector(ABC):
    """Uniform interface between the engine and one backend.

    A connector owns the native request/response shapes. The engine hands it
    messages with already-resolved options, dispatches the native request and
    asks it to turn each native result back into Generations.

    Streaming connectors emit *incremental* deltas: every chunk carries only the
    text produced since the previous one. ``models.response.accumulate`` folds
    them back into a full response.
    """

    name: str = "connector"
    capabilities: Capabilities = Capabilities()

    @abstractmethod
    def translate_request(self, messages: Sequence[Message], options: ChatOptions) -> Any:
        """Build the backend-native request.

        Args:
            messages: Conversation in order.
            options: Effective (resolved) options.

        Raises:
            TranslationError: if a message cannot be represented natively.
            ConfigurationError: if a required option is missing.
        """

    @abstractmethod
    def dispatch(self, request: Any) -> Any:
        """Send *request* and return the native result. Errors propagate as raised."""

    @abstractmethod
    def translate_result(self, result: Any) -> list:
        """Return the Generations of *result*, in backend candidate order."""

    def result_metadata(self, result: Any) -> ResponseMetadata:
        return ResponseMetadata()

    # ------------------------------------------------------------------
    # Streaming, used only when capabilities.streaming is True
    # ------------------------------------------------------------------

    def dispatch_stream(self, request: Any) -> Iterator[Any]:
        """Open a streaming request and return an iterator of native chunks."""
        raise NotImplementedError(f"{self.name} does not support streaming")

    def translate_chunk(self, chunk: Any) -> list:
        """Return the Generations carried by one native chunk (may be empty)."""
        return self.translate_result(chunk)

    def chunk_metadata(self, chunk: Any) -> ResponseMetadata:
        return self.result_metadata(chunk)

    # ------------------------------------------------------------------
    # Async
    # ------------------------------------------------------------------

    async def adispatch(self, request: Any) -> Any:
        """Async dispatch; defaults to running ``dispatch`` in a worker thread."""
        return await asyncio.to_thread(self.dispatch, request)
