"""Exception hierarchy shared by the engine and every connector."""


class ChatError(Exception):
    """Base class for all chatbridge failures."""


class ConfigurationError(ChatError, ValueError):
    """Malformed or mutually exclusive options.

    Raised while merging or translating options, always before anything is sent
    to a backend.
    """


class TranslationError(ChatError, ValueError):
    """A prompt (or a backend result) cannot be mapped to the other side's shape."""


class DispatchError(ChatError):
    """The backend invocation itself failed.

    Network, authentication and quota failures all end up here. The engine never
    retries them.
    """

    def __init__(self, message: str, connector: str = "") -> None:
        super().__init__(message)
        self.connector = connector


class StreamInterrupted(DispatchError):
    """A stream ended abnormally after *delivered* elements were already yielded."""

    def __init__(self, message: str, connector: str = "", delivered: int = 0) -> None:
        super().__init__(message, connector=connector)
        self.delivered = delivered
