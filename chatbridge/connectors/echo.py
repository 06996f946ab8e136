"""In-process echo connector for local development and tests — no API calls."""

from typing import Iterable, Iterator, Optional

from ..errors import TranslationError
from ..models.content import AssistantMessage, MessageType
from ..models.response import Generation, GenerationMetadata, ResponseMetadata, Usage
from .base import Capabilities, Connector

DEFAULT_MEDIA_TYPES = frozenset(
    {"image/png", "image/jpeg", "image/gif", "image/webp", "audio/wav", "audio/mpeg", "text/plain"}
)


class EchoConnector(Connector):
    """Replies with the last user message, word for word.

    ``max_tokens`` truncates the reply by words (finish reason ``length``),
    ``n`` produces that many candidates suffixed with their index. Streams
    emit one word per chunk followed by a closing chunk with the finish reason.
    """

    name = "echo"

    def __init__(
        self,
        prefix: str = "[echo] ",
        model: str = "echo-dev",
        media_types: Optional[Iterable[str]] = None,
    ) -> None:
        self.prefix = prefix
        self.model = model
        self.capabilities = Capabilities(
            streaming=True,
            multiple_candidates=True,
            tool_calls=False,
            media_types=frozenset(media_types) if media_types is not None else DEFAULT_MEDIA_TYPES,
        )

    def translate_request(self, messages, options) -> dict:
        if not any(m.role == MessageType.USER.value for m in messages):
            raise TranslationError("The echo connector needs at least one user message.")
        return {
            "model": options.model or self.model,
            "messages": [m.to_dict() for m in messages],
            "options": options.to_dict(),
        }

    def dispatch(self, request: dict) -> dict:
        user_texts = [m["content"] for m in request["messages"] if m["role"] == "user"]
        words = (self.prefix + user_texts[-1]).split()
        opts = request["options"]

        finish_reason = "stop"
        limit = opts.get("max_tokens")
        if limit is not None and len(words) > limit:
            words = words[:limit]
            finish_reason = "length"

        n = opts.get("n") or 1
        base = " ".join(words)
        candidates = [base] if n == 1 else [f"{base} [{i}]" for i in range(n)]
        prompt_tokens = sum(len(m["content"].split()) for m in request["messages"])
        return {
            "model": request["model"],
            "candidates": candidates,
            "finish_reason": finish_reason,
            "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": len(words) * n},
        }

    def translate_result(self, result: dict) -> list:
        return [
            Generation(
                AssistantMessage(text),
                GenerationMetadata(finish_reason=result["finish_reason"], index=i),
            )
            for i, text in enumerate(result["candidates"])
        ]

    def result_metadata(self, result: dict) -> ResponseMetadata:
        return ResponseMetadata(model=result["model"], usage=Usage(**result["usage"]))

    def dispatch_stream(self, request: dict) -> Iterator[dict]:
        result = self.dispatch(request)
        for index, text in enumerate(result["candidates"]):
            words = text.split(" ")
            for pos, word in enumerate(words):
                delta = word if pos == 0 else " " + word
                yield {"model": result["model"], "index": index, "delta": delta, "finish_reason": None}
            yield {
                "model": result["model"],
                "index": index,
                "delta": "",
                "finish_reason": result["finish_reason"],
                "usage": result["usage"] if index == len(result["candidates"]) - 1 else None,
            }

    def translate_chunk(self, chunk: dict) -> list:
        return [
            Generation(
                AssistantMessage(chunk["delta"]),
                GenerationMetadata(finish_reason=chunk["finish_reason"], index=chunk["index"]),
            )
        ]

    def chunk_metadata(self, chunk: dict) -> ResponseMetadata:
        usage = chunk.get("usage")
        return ResponseMetadata(model=chunk["model"], usage=Usage(**usage) if usage else Usage())
