"""Configuration loaded from environment variables."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .models.options import ChatOptions

logger = logging.getLogger(__name__)

load_dotenv()

# Provider-specific key variables consulted when CHAT_API_KEY is unset.
_PROVIDER_KEY_VARS = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


def _env_number(name: str, kind):
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return kind(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a {kind.__name__}, got '{raw}'") from exc


@dataclass
class Config:
    # Connector name: litellm | openai | anthropic | echo
    provider: str = "litellm"

    # Default model. For litellm this is a provider-prefixed string such as
    # "anthropic/claude-opus-4-6" or "openai/gpt-4o".
    model: str = ""

    # Passed to the connector; litellm and the SDKs fall back to their own
    # environment variables when empty.
    api_key: str = ""

    # Start-up sampling defaults. None leaves the backend default in place.
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    stop_sequences: list = field(default_factory=list)

    # Request timeout in seconds, forwarded through the options extension slot.
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "Config":
        provider = os.getenv("CHAT_PROVIDER", "litellm").strip().lower()
        model = os.getenv("CHAT_MODEL", "")
        if not model:
            logger.warning(
                "CHAT_MODEL not configured, the %s connector default will be used", provider
            )
        api_key = os.getenv("CHAT_API_KEY", "")
        if not api_key and provider in _PROVIDER_KEY_VARS:
            api_key = os.getenv(_PROVIDER_KEY_VARS[provider], "")
        stop = os.getenv("CHAT_STOP", "")
        return cls(
            provider=provider,
            model=model,
            api_key=api_key,
            temperature=_env_number("CHAT_TEMPERATURE", float),
            top_p=_env_number("CHAT_TOP_P", float),
            top_k=_env_number("CHAT_TOP_K", int),
            max_tokens=_env_number("CHAT_MAX_TOKENS", int),
            stop_sequences=[s.strip() for s in stop.split(",") if s.strip()],
            timeout=_env_number("CHAT_TIMEOUT", float),
        )

    def startup_options(self) -> ChatOptions:
        """Build the validated start-up ChatOptions handed to the engine."""
        options = ChatOptions(
            model=self.model or None,
            temperature=self.temperature,
            top_p=self.top_p,
            top_k=self.top_k,
            max_tokens=self.max_tokens,
            stop_sequences=list(self.stop_sequences) or None,
        )
        if self.timeout is not None:
            options.extensions["timeout"] = self.timeout
        return options.validate()
