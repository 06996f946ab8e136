"""Portable chat options and the start-up/runtime merge rule.

Every recognized field is optional: ``None`` means "unspecified", which is
different from an explicit ``0``, ``0.0`` or ``[]``. Backend-specific parameters
(``seed``, ``user``, ``timeout``, ...) travel in the open ``extensions`` mapping.
"""

import copy
from dataclasses import dataclass, field, fields
from typing import Any, Optional

from ..errors import ConfigurationError


@dataclass
class ChatOptions:
    model: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop_sequences: Optional[list] = None   # list[str]
    n: Optional[int] = None                 # number of candidates
    extensions: dict = field(default_factory=dict)

    def copy(self) -> "ChatOptions":
        """Return an independent clone; no list or dict is shared with *self*."""
        return copy.deepcopy(self)

    def is_empty(self) -> bool:
        return not self.extensions and all(
            getattr(self, name) is None for name in OPTION_FIELDS
        )

    def validate(self) -> "ChatOptions":
        """Raise ConfigurationError for out-of-range or conflicting values."""
        if self.temperature is not None and self.temperature < 0:
            raise ConfigurationError(f"temperature must be >= 0, got {self.temperature}")
        if self.top_p is not None and not 0 <= self.top_p <= 1:
            raise ConfigurationError(f"top_p must be within [0, 1], got {self.top_p}")
        for name in ("top_k", "max_tokens", "n"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ConfigurationError(f"{name} must be >= 1, got {value}")
        for name in ("frequency_penalty", "presence_penalty"):
            value = getattr(self, name)
            if value is not None and not -2 <= value <= 2:
                raise ConfigurationError(f"{name} must be within [-2, 2], got {value}")
        if self.stop_sequences is not None:
            if isinstance(self.stop_sequences, str) or not all(
                isinstance(s, str) for s in self.stop_sequences
            ):
                raise ConfigurationError("stop_sequences must be a list of strings")
        clashing = sorted(set(self.extensions) & set(OPTION_FIELDS))
        if clashing:
            raise ConfigurationError(
                f"Extension keys shadow recognized options: {', '.join(clashing)}"
            )
        return self

    def to_dict(self) -> dict:
        """Explicitly set fields, followed by the extension entries."""
        out = {
            name: copy.deepcopy(getattr(self, name))
            for name in OPTION_FIELDS
            if getattr(self, name) is not None
        }
        out.update(copy.deepcopy(self.extensions))
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "ChatOptions":
        known = {k: copy.deepcopy(v) for k, v in data.items() if k in OPTION_FIELDS}
        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in OPTION_FIELDS}
        return cls(**known, extensions=extra)


# Recognized option names, in declaration order (extensions excluded).
OPTION_FIELDS = tuple(f.name for f in fields(ChatOptions) if f.name != "extensions")


def resolve_options(
    startup: ChatOptions, runtime: Optional[ChatOptions] = None
) -> ChatOptions:
    """Merge start-up defaults with per-call overrides into a new ChatOptions.

    Field by field, a value set on *runtime* wins over *startup*; a field set on
    neither stays unset. Extensions are unioned with *runtime* keys shadowing
    *startup* keys. Neither input is mutated and the result shares no mutable
    state with them.

    Raises:
        ConfigurationError: if the merged options are invalid.
    """
    merged = {}
    for name in OPTION_FIELDS:
        value = getattr(runtime, name) if runtime is not None else None
        if value is None:
            value = getattr(startup, name)
        merged[name] = copy.deepcopy(value)

    extensions = copy.deepcopy(startup.extensions)
    if runtime is not None:
        extensions.update(copy.deepcopy(runtime.extensions))

    return ChatOptions(**merged, extensions=extensions).validate()
