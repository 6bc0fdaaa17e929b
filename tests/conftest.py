"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - config: Configuration pointing at a fake API host
    - png_bytes / pdf_bytes: In-memory sample attachments
    - sse_frames: Builds a streamed completion body
    - make_session: Factory for sessions with canned assistant replies

Network traffic goes through httpx.MockTransport; no test touches a live API.
"""

import io
import json
from collections.abc import AsyncIterator, Callable, Iterable
from datetime import datetime

import httpx
import pytest
from PIL import Image
from pypdf import PdfWriter

from cerebras_chat.completion.config import CerebrasConfig
from cerebras_chat.models.schemas import (
    AttachedFile,
    ChatSession,
    Message,
    MessageMetadata,
    Role,
    Sentiment,
)

API_BASE_URL = "https://api.test/v1"


@pytest.fixture
def config() -> CerebrasConfig:
    """Return a configuration for the fake API host.

    Returns:
        Streaming-enabled config with a test key.
    """
    return CerebrasConfig(
        api_key="test-key-12345",
        base_url=API_BASE_URL,
        model="llama3.1-8b",
        locale="en",
    )


@pytest.fixture
def png_bytes() -> bytes:
    """Return a 600x300 PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (600, 300), "red").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def pdf_bytes() -> bytes:
    """Return a blank two-page PDF."""
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def delta_frame(text: str) -> str:
    """Render one streamed delta as an SSE line."""
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}) + "\n\n"


@pytest.fixture
def sse_frames() -> Callable[..., list[bytes]]:
    """Build a streamed response body from deltas.

    Returns:
        Function taking deltas (and ``done=False`` to omit the sentinel)
        and returning the body as a list of byte chunks, one per frame.
    """

    def build(*deltas: str, done: bool = True) -> list[bytes]:
        frames = [delta_frame(d).encode() for d in deltas]
        if done:
            frames.append(b"data: [DONE]\n\n")
        return frames

    return build


async def aiter_bytes(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    """Yield chunks one at a time, as separate network reads."""
    for chunk in chunks:
        yield chunk


def streaming_response(chunks: Iterable[bytes], status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        headers={"content-type": "text/event-stream"},
        content=aiter_bytes(list(chunks)),
    )


def completion_response(content: str, total_tokens: int = 100) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [{"message": {"role": "assistant", "content": content}}],
            "usage": {"total_tokens": total_tokens},
        },
    )


def make_pair(
    question: str,
    answer: str,
    cost: float = 0.01,
    sentiment: Sentiment = Sentiment.NEUTRAL,
    topics: list[str] | None = None,
    model: str = "llama3.1-8b",
    processing_time: float | None = 100.0,
    files: list[AttachedFile] | None = None,
) -> list[Message]:
    """Return a user message and an assistant reply."""
    return [
        Message(role=Role.USER, content=question, files=files),
        Message(
            role=Role.ASSISTANT,
            content=answer,
            tokens=len(answer.split()),
            processing_time=processing_time,
            metadata=MessageMetadata(
                model=model,
                cost=cost,
                sentiment=sentiment,
                topics=topics or [],
            ),
        ),
    ]


@pytest.fixture
def make_session() -> Callable[..., ChatSession]:
    """Factory for sessions built from message pairs."""

    def build(
        title: str = "Session",
        pairs: Iterable[list[Message]] = (),
        created_at: datetime | None = None,
        **fields: object,
    ) -> ChatSession:
        messages = [m for pair in pairs for m in pair]
        if created_at is not None:
            fields["created_at"] = created_at
            fields["updated_at"] = created_at
        return ChatSession(title=title, messages=messages, **fields)

    return build
