"""Prompt — the unit of input to a completion call."""

from dataclasses import dataclass, field
from typing import Optional

from .content import Message, UserMessage
from .options import ChatOptions


@dataclass(frozen=True, init=False)
class Prompt:
    """Ordered conversation plus optional runtime option overrides.

    Messages are stored as a tuple in conversational order. The options are
    copied on construction and again on every read of :attr:`options`, so
    neither the caller's instance nor a returned one can change the prompt.
    """

    messages: tuple              # tuple[Message, ...]
    _options: Optional[ChatOptions] = field(default=None, hash=False, repr=False)

    def __init__(self, messages, options: Optional[ChatOptions] = None) -> None:
        messages = tuple(messages)
        if not messages:
            raise ValueError("A prompt needs at least one message.")
        for m in messages:
            if not isinstance(m, Message):
                raise TypeError(f"Expected Message, got {type(m).__name__}")
        object.__setattr__(self, "messages", messages)
        object.__setattr__(self, "_options", options.copy() if options is not None else None)

    @property
    def options(self) -> Optional[ChatOptions]:
        return self._options.copy() if self._options is not None else None

    def __repr__(self) -> str:
        return f"Prompt(messages={self.messages!r}, options={self._options!r})"

    @classmethod
    def from_text(cls, text: str, options: Optional[ChatOptions] = None) -> "Prompt":
        return cls((UserMessage(text),), options)

    @property
    def contents(self) -> str:
        return "\n".join(m.text for m in self.messages)
