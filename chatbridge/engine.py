"""ChatEngine — the provider-agnostic entry point for chat completions.

Every call runs the same pipeline:

    resolve options -> check connector capabilities -> translate request
    -> dispatch -> translate result(s) -> ChatResponse

The engine keeps no per-call state on the instance. Its only attribute besides
the connector is a private copy of the start-up options, read but never written
after construction, so one engine may serve many threads at once.
"""

import logging
from typing import Iterator, Union

from .connectors.base import Connector
from .errors import ChatError, ConfigurationError, DispatchError, StreamInterrupted, TranslationError
from .models.content import MessageType
from .models.options import ChatOptions, resolve_options
from .models.prompt import Prompt
from .models.response import ChatResponse, ResponseMetadata, first_candidate_text, merge_metadata

logger = logging.getLogger(__name__)


class ChatEngine:
    """Sends prompts through a connector using merged start-up/runtime options.

    Args:
        connector: Backend connector doing the native translation and I/O.
        options: Start-up defaults; copied and validated here. Per-call
            ``Prompt.options`` override them field by field.
    """

    def __init__(self, connector: Connector, options: ChatOptions = None) -> None:
        self._connector = connector
        self._options = (options.copy() if options is not None else ChatOptions()).validate()

    @property
    def connector(self) -> Connector:
        return self._connector

    @property
    def options(self) -> ChatOptions:
        """A copy of the start-up options."""
        return self._options.copy()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def call(self, prompt: Union[Prompt, str]) -> Union[ChatResponse, str]:
        """Run one blocking completion.

        A plain string is sent as a single user message and the first
        generation's text is returned instead of the ChatResponse.

        Raises:
            ConfigurationError, TranslationError: before anything is dispatched.
            DispatchError: if the backend call fails or returns no generations.
        """
        prompt, shorthand = _coerce(prompt)
        request = self._prepare(prompt, "call")
        response = self._complete(request, self._dispatch(request))
        return response.text if shorthand else response

    async def acall(self, prompt: Union[Prompt, str]) -> Union[ChatResponse, str]:
        """Async variant of :meth:`call` using the connector's ``adispatch``."""
        prompt, shorthand = _coerce(prompt)
        request = self._prepare(prompt, "acall")
        try:
            result = await self._connector.adispatch(request)
        except ChatError:
            raise
        except Exception as exc:
            raise self._dispatch_error(exc) from exc
        response = self._complete(request, result)
        return response.text if shorthand else response

    def stream(self, prompt: Union[Prompt, str]) -> Iterator:
        """Return a lazy iterator of incremental ChatResponse chunks.

        Options are resolved and the request translated right away, so
        configuration and translation errors raise here. The backend is only
        contacted when the first chunk is pulled. Closing the iterator closes
        the native stream.

        A plain string yields the non-empty text deltas of the first candidate
        (index 0) instead, the streaming counterpart of ``call(text)``.
        Metadata that arrives after the last generation is delivered in a final
        chunk with no generations.
        Connectors without streaming support produce a single chunk holding the
        complete response.

        Raises:
            ConfigurationError, TranslationError: immediately.
            StreamInterrupted: while iterating, after the chunks already yielded.
        """
        prompt, shorthand = _coerce(prompt)
        request = self._prepare(prompt, "stream")
        if self._connector.capabilities.streaming:
            chunks = self._iter_stream(request)
        else:
            chunks = self._single_chunk(request)
        return _texts(chunks) if shorthand else chunks

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------

    def _prepare(self, prompt: Prompt, mode: str):
        effective = resolve_options(self._options, prompt.options)
        self._check_capabilities(prompt, effective)
        logger.debug(
            "%s via %s: model=%s messages=%d",
            mode,
            self._connector.name,
            effective.model,
            len(prompt.messages),
        )
        try:
            return self._connector.translate_request(prompt.messages, effective)
        except ChatError:
            raise
        except Exception as exc:
            raise TranslationError(
                f"{self._connector.name} could not translate the prompt: {exc}"
            ) from exc

    def _check_capabilities(self, prompt: Prompt, options: ChatOptions) -> None:
        caps = self._connector.capabilities
        for m in prompt.messages:
            for media in m.media:
                if not caps.accepts_media(media.mime_type):
                    raise TranslationError(
                        f"{self._connector.name} does not accept media of type {media.mime_type}"
                    )
            if not caps.tool_calls and (m.tool_calls or m.role == MessageType.TOOL.value):
                raise TranslationError(f"{self._connector.name} does not support tool calls")
        if options.n is not None and options.n > 1 and not caps.multiple_candidates:
            raise ConfigurationError(
                f"{self._connector.name} cannot return {options.n} candidates"
            )

    def _dispatch(self, request):
        try:
            return self._connector.dispatch(request)
        except ChatError:
            raise
        except Exception as exc:
            raise self._dispatch_error(exc) from exc

    def _dispatch_error(self, exc: Exception) -> DispatchError:
        logger.warning("Dispatch to %s failed: %s", self._connector.name, exc)
        return DispatchError(
            f"{self._connector.name} request failed: {exc}", connector=self._connector.name
        )

    def _complete(self, request, result) -> ChatResponse:
        try:
            generations = self._connector.translate_result(result)
            metadata = self._connector.result_metadata(result)
        except ChatError:
            raise
        except Exception as exc:
            raise TranslationError(
                f"{self._connector.name} returned a result that could not be translated: {exc}"
            ) from exc
        if not generations:
            raise DispatchError(
                f"{self._connector.name} returned no generations", connector=self._connector.name
            )
        return ChatResponse(generations=generations, metadata=metadata)

    def _iter_stream(self, request) -> Iterator[ChatResponse]:
        name = self._connector.name
        delivered = 0
        native = None
        pending = ResponseMetadata()
        try:
            native = self._connector.dispatch_stream(request)
            for chunk in native:
                # Chunks without generations only contribute metadata.
                pending = merge_metadata(pending, self._connector.chunk_metadata(chunk))
                generations = self._connector.translate_chunk(chunk)
                if not generations:
                    continue
                response = ChatResponse(generations=generations, metadata=pending)
                pending = ResponseMetadata()
                delivered += 1
                yield response
            if pending != ResponseMetadata():
                # Trailing metadata (e.g. a usage-only final chunk) closes the stream.
                delivered += 1
                yield ChatResponse(metadata=pending)
        except StreamInterrupted:
            raise
        except Exception as exc:
            logger.warning("Stream from %s interrupted after %d chunk(s): %s", name, delivered, exc)
            raise StreamInterrupted(
                f"{name} stream interrupted after {delivered} chunk(s): {exc}",
                connector=name,
                delivered=delivered,
            ) from exc
        finally:
            close = getattr(native, "close", None)
            if callable(close):
                close()

    def _single_chunk(self, request) -> Iterator[ChatResponse]:
        try:
            response = self._complete(request, self._dispatch(request))
        except ChatError as exc:
            raise StreamInterrupted(
                str(exc), connector=self._connector.name, delivered=0
            ) from exc
        yield response


def _coerce(prompt):
    if isinstance(prompt, str):
        return Prompt.from_text(prompt), True
    if isinstance(prompt, Prompt):
        return prompt, False
    raise TypeError(f"Expected Prompt or str, got {type(prompt).__name__}")


def _texts(chunks: Iterator[ChatResponse]) -> Iterator[str]:
    try:
        for chunk in chunks:
            text = first_candidate_text(chunk)
            if text:
                yield text
    finally:
        chunks.close()
