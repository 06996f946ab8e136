"""chatbridge — one chat-completion contract over many LLM backends."""

from .engine import ChatEngine
from .errors import (
    ChatError,
    ConfigurationError,
    DispatchError,
    StreamInterrupted,
    TranslationError,
)
from .models.content import (
    AssistantMessage,
    Media,
    Message,
    MessageType,
    SystemMessage,
    ToolCall,
    ToolResponseMessage,
    UserMessage,
)
from .models.options import ChatOptions, resolve_options
from .models.prompt import Prompt
from .models.response import (
    ChatResponse,
    Generation,
    GenerationMetadata,
    ResponseMetadata,
    Usage,
    accumulate,
)

__all__ = [
    "AssistantMessage",
    "ChatEngine",
    "ChatError",
    "ChatOptions",
    "ChatResponse",
    "ConfigurationError",
    "DispatchError",
    "Generation",
    "GenerationMetadata",
    "Media",
    "Message",
    "MessageType",
    "Prompt",
    "ResponseMetadata",
    "StreamInterrupted",
    "SystemMessage",
    "ToolCall",
    "ToolResponseMessage",
    "TranslationError",
    "Usage",
    "UserMessage",
    "accumulate",
    "resolve_options",
]
