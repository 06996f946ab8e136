"""Message model — one conversational turn plus optional media and tool calls."""

import base64
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class MessageType(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class Media:
    """Binary payload or reference attached to a user message."""

    mime_type: str                # "image/png", "audio/wav", ...
    data: Optional[bytes] = None
    url: Optional[str] = None

    def __post_init__(self) -> None:
        if "/" not in self.mime_type:
            raise ValueError(f"Invalid MIME type: '{self.mime_type}'")
        if (self.data is None) == (self.url is None):
            raise ValueError("Media needs exactly one of 'data' or 'url'.")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def as_data_url(self) -> str:
        """Return ``url`` as-is, or the inline bytes as a base64 ``data:`` URL."""
        if self.url is not None:
            return self.url
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def to_dict(self) -> dict:
        return {"mime_type": self.mime_type, "url": self.as_data_url()}


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    arguments: str = "{}"   # JSON-encoded


@dataclass(frozen=True)
class Message:
    """Immutable conversational turn.

    ``role`` is kept as a plain string so roles outside :class:`MessageType`
    pass through untouched. Media may only ride on user messages and tool calls
    only on assistant messages.

    Equality is by value: a role-fixed variant equals a plain Message with the
    same role and content.
    """

    text: str
    role: str
    media: tuple = ()                 # tuple[Media, ...]
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    tool_calls: tuple = ()            # tuple[ToolCall, ...]

    def __post_init__(self) -> None:
        role = self.role.value if isinstance(self.role, MessageType) else str(self.role)
        object.__setattr__(self, "role", role)
        object.__setattr__(self, "media", tuple(self.media))
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

        if self.media and role != MessageType.USER.value:
            raise ValueError(f"Media is only supported on user messages, not '{role}'.")
        if self.tool_calls and role != MessageType.ASSISTANT.value:
            raise ValueError(f"Tool calls are only supported on assistant messages, not '{role}'.")
        for item in self.media:
            if not isinstance(item, Media):
                raise TypeError(f"Expected Media, got {type(item).__name__}")

    def __eq__(self, other):
        if not isinstance(other, Message):
            return NotImplemented
        return (self.text, self.role, self.media, self.metadata, self.tool_calls) == (
            other.text, other.role, other.media, other.metadata, other.tool_calls
        )

    def to_dict(self) -> dict:
        out: dict = {"role": self.role, "content": self.text}
        if self.media:
            out["media"] = [m.to_dict() for m in self.media]
        if self.tool_calls:
            out["tool_calls"] = [
                {"id": c.id, "name": c.name, "arguments": c.arguments}
                for c in self.tool_calls
            ]
        if self.metadata:
            out["metadata"] = dict(self.metadata)
        return out


# ---------------------------------------------------------------------------
# Role-fixed variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class SystemMessage(Message):
    role: str = field(default=MessageType.SYSTEM.value, init=False)


@dataclass(frozen=True, eq=False)
class UserMessage(Message):
    role: str = field(default=MessageType.USER.value, init=False)


@dataclass(frozen=True, eq=False)
class AssistantMessage(Message):
    role: str = field(default=MessageType.ASSISTANT.value, init=False)


@dataclass(frozen=True, eq=False)
class ToolResponseMessage(Message):
    """Result of a tool call; expects ``tool_call_id`` (and optionally ``name``) in metadata."""

    role: str = field(default=MessageType.TOOL.value, init=False)

    @property
    def tool_call_id(self) -> Optional[str]:
        return self.metadata.get("tool_call_id")
