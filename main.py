#!/usr/bin/env python3
"""chatbridge — send one prompt to the configured backend from the command line.

Usage
-----
Copy your settings into `.env` (or export them), then run:

    python main.py "Why is the sky blue?"
    python main.py --stream --system "Answer in one sentence." "Why is the sky blue?"

Environment variables:
  CHAT_PROVIDER        litellm | openai | anthropic | echo   (default: litellm)
  CHAT_MODEL           Default model, e.g. anthropic/claude-opus-4-6
  CHAT_API_KEY         API key (falls back to OPENAI_API_KEY / ANTHROPIC_API_KEY)
  CHAT_TEMPERATURE     Start-up temperature
  CHAT_TOP_P / CHAT_TOP_K / CHAT_MAX_TOKENS   Start-up sampling limits
  CHAT_STOP            Comma-separated stop sequences
  CHAT_TIMEOUT         Request timeout in seconds
"""

import argparse
import logging
import sys

from chatbridge import ChatEngine, ChatError, ChatOptions, Prompt, SystemMessage, UserMessage
from chatbridge.config import Config
from chatbridge.connectors import create_connector
from chatbridge.models.response import first_candidate_text

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def build_engine(config: Config) -> ChatEngine:
    """Instantiate the connector and wrap it in an engine with start-up options."""
    connector = create_connector(config.provider, api_key=config.api_key, model=config.model)
    logger.info("Connector: %s / model: %s", connector.name, config.model or "(connector default)")
    return ChatEngine(connector, config.startup_options())


def build_prompt(args: argparse.Namespace) -> Prompt:
    messages = []
    if args.system:
        messages.append(SystemMessage(args.system))
    messages.append(UserMessage(" ".join(args.text)))
    runtime = ChatOptions(
        model=args.model,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
    )
    return Prompt(messages, None if runtime.is_empty() else runtime)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send one chat prompt.")
    parser.add_argument("text", nargs="+", help="User message text")
    parser.add_argument("--system", default="", help="Optional system message")
    parser.add_argument("--stream", action="store_true", help="Print deltas as they arrive")
    parser.add_argument("--model", default=None, help="Override the model for this call")
    parser.add_argument("--temperature", type=float, default=None)
    parser.add_argument("--max-tokens", type=int, default=None)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        engine = build_engine(Config.from_env())
        prompt = build_prompt(args)
        if args.stream:
            for chunk in engine.stream(prompt):
                sys.stdout.write(first_candidate_text(chunk))
                sys.stdout.flush()
            sys.stdout.write("\n")
        else:
            print(engine.call(prompt).text)
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping.")
        return 130
    except ChatError:
        logger.exception("Chat request failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
