"""Connector registry."""

from ..errors import ConfigurationError
from .base import Capabilities, Connector
from .echo import EchoConnector

__all__ = [
    "Capabilities",
    "Connector",
    "EchoConnector",
    "create_connector",
]

CONNECTOR_NAMES = ("litellm", "openai", "anthropic", "echo")


def create_connector(name: str, api_key: str = "", model: str = "", **kwargs) -> Connector:
    """Instantiate the correct Connector by name.

    Args:
        name: "litellm", "openai", "anthropic" or "echo".
        api_key: API key for the chosen backend (litellm and the SDKs also
            read their usual environment variables).
        model: Default model when the effective options name none.
        **kwargs: Extra constructor arguments for the connector.

    Returns:
        Configured Connector instance.
    """
    if name == "litellm":
        from .litellm_connector import LiteLLMConnector
        return LiteLLMConnector(model=model, api_key=api_key, **kwargs)
    if name == "openai":
        from .openai_connector import OpenAIConnector
        return OpenAIConnector(api_key=api_key, model=model, **kwargs)
    if name == "anthropic":
        from .anthropic_connector import AnthropicConnector
        return AnthropicConnector(api_key=api_key, model=model, **kwargs)
    if name == "echo":
        return EchoConnector(model=model or "echo-dev", **kwargs)
    raise ConfigurationError(
        f"Unknown connector: '{name}'. Supported values: {', '.join(CONNECTOR_NAMES)}."
    )
