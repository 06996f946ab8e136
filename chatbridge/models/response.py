"""Generation and ChatResponse models."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from .content import AssistantMessage, Message, MessageType, ToolCall


def _frozen_mapping(obj, name: str) -> None:
    object.__setattr__(obj, name, MappingProxyType(dict(getattr(obj, name))))


@dataclass(frozen=True)
class Usage:
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def __post_init__(self) -> None:
        if (
            self.total_tokens is None
            and self.prompt_tokens is not None
            and self.completion_tokens is not None
        ):
            object.__setattr__(
                self, "total_tokens", self.prompt_tokens + self.completion_tokens
            )


@dataclass(frozen=True)
class ResponseMetadata:
    id: Optional[str] = None
    model: Optional[str] = None
    usage: Usage = field(default_factory=Usage)
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)  # rate limits etc.

    def __post_init__(self) -> None:
        _frozen_mapping(self, "extra")


@dataclass(frozen=True)
class GenerationMetadata:
    finish_reason: Optional[str] = None   # "stop", "length", "tool_calls", ...
    index: int = 0
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        _frozen_mapping(self, "extra")


@dataclass(frozen=True)
class Generation:
    output: Message
    metadata: GenerationMetadata = field(default_factory=GenerationMetadata)

    def __post_init__(self) -> None:
        if self.output.role != MessageType.ASSISTANT.value:
            raise ValueError(
                f"Generation output must be an assistant message, got '{self.output.role}'."
            )

    @property
    def text(self) -> str:
        return self.output.text


@dataclass(frozen=True)
class ChatResponse:
    """One completion result; generations keep the backend's candidate order."""

    generations: tuple = ()       # tuple[Generation, ...]
    metadata: ResponseMetadata = field(default_factory=ResponseMetadata)

    def __post_init__(self) -> None:
        object.__setattr__(self, "generations", tuple(self.generations))

    @property
    def result(self) -> Optional[Generation]:
        return self.generations[0] if self.generations else None

    @property
    def text(self) -> str:
        return self.generations[0].text if self.generations else ""


def first_candidate_text(chunk: ChatResponse) -> str:
    """Text of the index-0 candidate carried by a stream chunk, or ``""``."""
    return "".join(gen.text for gen in chunk.generations if gen.metadata.index == 0)


def merge_metadata(base: ResponseMetadata, update: ResponseMetadata) -> ResponseMetadata:
    """Overlay the set fields of *update* on *base*; usage merges per counter."""

    def pick(new, old):
        return old if new is None else new

    usage = base.usage
    if update.usage != Usage():
        usage = Usage(
            prompt_tokens=pick(update.usage.prompt_tokens, base.usage.prompt_tokens),
            completion_tokens=pick(update.usage.completion_tokens, base.usage.completion_tokens),
            total_tokens=update.usage.total_tokens,
        )
    return ResponseMetadata(
        id=pick(update.id, base.id),
        model=pick(update.model, base.model),
        usage=usage,
        extra={**base.extra, **update.extra},
    )


def accumulate(chunks: Iterable[ChatResponse]) -> ChatResponse:
    """Fold a stream of incremental ChatResponse deltas into one full response.

    Text and tool calls are concatenated per candidate index; the last non-null
    finish reason wins. Response metadata is merged across chunks, later values
    overriding earlier ones.
    """
    texts: dict[int, list] = {}
    tool_calls: dict[int, list] = {}
    finish: dict[int, Optional[str]] = {}
    metadata = ResponseMetadata()

    for chunk in chunks:
        metadata = merge_metadata(metadata, chunk.metadata)
        for gen in chunk.generations:
            idx = gen.metadata.index
            texts.setdefault(idx, []).append(gen.output.text)
            calls = tool_calls.setdefault(idx, [])
            for call in gen.output.tool_calls:
                # Continuation fragments carry no id; append to the open call.
                if not call.id and calls:
                    last = calls[-1]
                    calls[-1] = ToolCall(last.id, last.name or call.name, last.arguments + call.arguments)
                else:
                    calls.append(call)
            if gen.metadata.finish_reason is not None:
                finish[idx] = gen.metadata.finish_reason
            else:
                finish.setdefault(idx, None)

    generations = [
        Generation(
            output=AssistantMessage("".join(texts[idx]), tool_calls=tool_calls[idx]),
            metadata=GenerationMetadata(finish_reason=finish[idx], index=idx),
        )
        for idx in sorted(texts)
    ]
    return ChatResponse(generations=generations, metadata=metadata)
