"""Completion client for the Cerebras chat-completions API.

Speaks the OpenAI-compatible wire format over httpx, in buffered and
streamed modes, and attaches heuristic metadata to every response.

Streaming is modelled as an async generator of StreamChunk values: one
chunk per text delta in wire order, then exactly one final chunk with
``done=True`` carrying the full text and the response metadata. The
callback API (``send_streaming``) is a thin adapter over that generator.

No retries happen here; retry policy belongs to the caller.
"""

import json
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Sequence
from typing import Any

import httpx

from cerebras_chat.completion.config import CerebrasConfig, get_config
from cerebras_chat.completion.heuristics import (
    KeywordTextAnalyzer,
    TextAnalyzer,
    calculate_cost,
)
from cerebras_chat.errors import CompletionError
from cerebras_chat.i18n import translate
from cerebras_chat.models.schemas import (
    AttachedFile,
    CompletionResult,
    Message,
    MessageMetadata,
    StreamChunk,
)
from cerebras_chat.parsing.file_ingestor import format_file_size

logger = logging.getLogger(__name__)

FALLBACK_MODELS = ["llama3.1-8b", "llama3.1-70b"]
GENERIC_ERROR = "API request failed"
DONE_SENTINEL = "[DONE]"
DATA_PREFIX = "data: "
# Rough flat rate used for the client-wide running estimate
ESTIMATED_COST_PER_TOKEN = 0.0001


def format_file_block(file: AttachedFile) -> str:
    """Render an attachment as delimited inline text for the model."""
    header = f"\n\n--- File: {file.name} ({file.type}, {format_file_size(file.size)}) ---\n"
    body = file.extracted_text if file.extracted_text else file.content
    return f"{header}{body}\n--- End of file ---"


def format_message_content(message: Message) -> str:
    """Concatenate a message's text with its attachments."""
    if not message.files:
        return message.content
    return message.content + "".join(format_file_block(f) for f in message.files)


def format_messages(
    history: Sequence[Message],
    system_prompt: str | None = None,
) -> list[dict[str, str]]:
    """Build the provider message list from the session history.

    Args:
        history: Messages in conversation order.
        system_prompt: Optional prompt sent as a leading system message.

    Returns:
        List of ``{"role", "content"}`` dicts.
    """
    formatted: list[dict[str, str]] = []
    if system_prompt:
        formatted.append({"role": "system", "content": system_prompt})

    formatted.extend(
        {"role": message.role.value, "content": format_message_content(message)}
        for message in history
    )
    return formatted


async def iter_sse_data(chunks: AsyncIterator[str]) -> AsyncGenerator[str, None]:
    """Yield the payload of every ``data: `` line in a text stream.

    Lines may be split across network reads, so incomplete trailing text is
    buffered until its newline arrives.

    Args:
        chunks: Decoded text pieces as they come off the wire.

    Yields:
        Line payloads with the ``data: `` prefix removed.
    """
    buffer = ""
    async for piece in chunks:
        buffer += piece
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            line = line.rstrip("\r")
            if line.startswith(DATA_PREFIX):
                yield line[len(DATA_PREFIX):]

    # Body ended without a final newline
    tail = buffer.rstrip("\r")
    if tail.startswith(DATA_PREFIX):
        yield tail[len(DATA_PREFIX):]


def _extract_delta(frame: Any) -> str | None:
    try:
        return frame["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"] or GENERIC_ERROR
    except (ValueError, KeyError, TypeError):
        return GENERIC_ERROR


class CompletionClient:
    """Client for the chat-completions endpoint.

    Wraps httpx with:
    - Provider message formatting (system prompt, inline attachments)
    - Buffered and streamed completions
    - Cost and heuristic metadata per response
    - Running request statistics
    """

    def __init__(
        self,
        config: CerebrasConfig | None = None,
        *,
        analyzer: TextAnalyzer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Default configuration for requests.
                    Loads from environment if not provided.
            analyzer: Response analysis backend.
            transport: Optional httpx transport, used by tests.
        """
        self._config = config or get_config()
        self._analyzer = analyzer or KeywordTextAnalyzer()
        self._http = httpx.AsyncClient(
            timeout=self._config.request_timeout,
            transport=transport,
        )
        self.request_count = 0
        self.total_tokens = 0

    @property
    def config(self) -> CerebrasConfig:
        return self._config

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CompletionClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self, config: CerebrasConfig) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }

    def _payload(
        self,
        history: Sequence[Message],
        config: CerebrasConfig,
        stream: bool,
    ) -> dict[str, Any]:
        return {
            "model": config.model,
            "messages": format_messages(history, config.system_prompt),
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
            "frequency_penalty": config.frequency_penalty,
            "presence_penalty": config.presence_penalty,
            "stream": stream,
        }

    def _build_metadata(
        self,
        content: str,
        tokens: int,
        config: CerebrasConfig,
    ) -> MessageMetadata:
        return MessageMetadata(
            model=config.model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            top_p=config.top_p,
            cost=calculate_cost(tokens, config.model),
            language=self._analyzer.detect_language(content),
            sentiment=self._analyzer.analyze_sentiment(content),
            topics=self._analyzer.extract_topics(content),
        )

    def _record(self, tokens: int) -> None:
        self.request_count += 1
        self.total_tokens += tokens

    async def send(
        self,
        history: Sequence[Message],
        config: CerebrasConfig | None = None,
    ) -> CompletionResult:
        """Get a complete response for the conversation.

        Args:
            history: Messages in conversation order.
            config: Per-request configuration; defaults to the client's.

        Returns:
            Response content, metadata and reported token usage.

        Raises:
            CompletionError: On network failure or a non-success status.
        """
        cfg = config or self._config
        try:
            response = await self._http.post(
                f"{cfg.base_url}/chat/completions",
                json=self._payload(history, cfg, stream=False),
                headers=self._headers(cfg),
            )
        except httpx.HTTPError as e:
            logger.error(f"Completion request failed: {e}")
            raise CompletionError(str(e) or GENERIC_ERROR) from e

        if response.is_error:
            message = _error_message(response)
            logger.error(f"Completion API returned {response.status_code}: {message}")
            raise CompletionError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError("Malformed response body", status_code=response.status_code) from e

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            content = ""
        tokens = (data.get("usage") or {}).get("total_tokens") or 0

        self._record(tokens)
        metadata = self._build_metadata(content, tokens, cfg)
        logger.info(f"Completion received from {cfg.model} ({tokens} tokens)")

        return CompletionResult(
            content=content or translate(cfg.locale, "no_response"),
            metadata=metadata,
            total_tokens=tokens,
        )

    async def stream(
        self,
        history: Sequence[Message],
        config: CerebrasConfig | None = None,
    ) -> AsyncGenerator[StreamChunk, None]:
        """Stream response chunks for the conversation.

        Frames that fail to parse as JSON are skipped; the stream continues.
        The final chunk is produced on the ``[DONE]`` sentinel, or when the
        body ends without one.

        Args:
            history: Messages in conversation order.
            config: Per-request configuration; defaults to the client's.

        Yields:
            One chunk per text delta, then a final ``done=True`` chunk.

        Raises:
            CompletionError: On network failure or a non-success status.
        """
        cfg = config or self._config
        parts: list[str] = []
        delta_count = 0

        try:
            async with self._http.stream(
                "POST",
                f"{cfg.base_url}/chat/completions",
                json=self._payload(history, cfg, stream=True),
                headers=self._headers(cfg),
            ) as response:
                if response.is_error:
                    await response.aread()
                    message = _error_message(response)
                    logger.error(
                        f"Streaming API returned {response.status_code}: {message}"
                    )
                    raise CompletionError(message, status_code=response.status_code)

                async for data in iter_sse_data(response.aiter_text()):
                    if data.strip() == DONE_SENTINEL:
                        break

                    try:
                        frame = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping unparseable stream frame: {data[:80]!r}")
                        continue

                    delta = _extract_delta(frame)
                    if delta:
                        parts.append(delta)
                        delta_count += 1
                        yield StreamChunk(content=delta, done=False)
        except httpx.HTTPError as e:
            logger.error(f"Streaming request failed: {e}")
            raise CompletionError(str(e) or GENERIC_ERROR) from e

        content = "".join(parts)
        self._record(delta_count)
        logger.info(f"Stream from {cfg.model} complete ({delta_count} chunks)")

        yield StreamChunk(
            content=content,
            done=True,
            metadata=self._build_metadata(content, delta_count, cfg),
            total_tokens=delta_count,
        )

    async def send_streaming(
        self,
        history: Sequence[Message],
        config: CerebrasConfig | None,
        on_chunk: Callable[[str], None],
        on_complete: Callable[[MessageMetadata], None] | None = None,
    ) -> CompletionResult:
        """Stream a response through callbacks.

        ``on_chunk`` fires once per delta in wire order; ``on_complete``
        fires exactly once, after the last chunk, even when no delta arrived.

        Returns:
            The accumulated response.

        Raises:
            CompletionError: If the stream ended without a final chunk.
        """
        result: CompletionResult | None = None
        async for chunk in self.stream(history, config):
            if chunk.done:
                metadata = chunk.metadata or MessageMetadata()
                result = CompletionResult(
                    content=chunk.content,
                    metadata=metadata,
                    total_tokens=chunk.total_tokens or 0,
                )
                if on_complete is not None:
                    on_complete(metadata)
            else:
                on_chunk(chunk.content)

        if result is None:
            raise CompletionError("Stream ended without a result")
        return result

    async def list_models(self, config: CerebrasConfig | None = None) -> list[str]:
        """Fetch available model ids.

        Raises:
            CompletionError: If the request fails.
        """
        cfg = config or self._config
        try:
            response = await self._http.get(
                f"{cfg.base_url}/models",
                headers={"Authorization": f"Bearer {cfg.api_key}"},
            )
        except httpx.HTTPError as e:
            raise CompletionError(str(e) or "Failed to fetch models") from e

        if response.is_error:
            raise CompletionError(_error_message(response), status_code=response.status_code)

        try:
            models = [item["id"] for item in response.json().get("data") or []]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise CompletionError("Malformed model list") from e
        return models or list(FALLBACK_MODELS)

    def get_statistics(self) -> dict[str, float]:
        """Return running request statistics for this client."""
        return {
            "request_count": self.request_count,
            "total_tokens": self.total_tokens,
            "estimated_cost": self.total_tokens * ESTIMATED_COST_PER_TOKEN,
        }
