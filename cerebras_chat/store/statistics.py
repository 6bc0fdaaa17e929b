"""Per-session statistics derived from the message sequence."""

from collections.abc import Sequence

from cerebras_chat.models.schemas import (
    Message,
    Role,
    Sentiment,
    SentimentDistribution,
    SessionStatistics,
)

TITLE_WORDS = 6
TITLE_ELLIPSIS = "..."


def generate_title(text: str) -> str:
    """Derive a session title from the first words of a message."""
    words = text.split()
    title = " ".join(words[:TITLE_WORDS])
    return title + TITLE_ELLIPSIS if len(words) > TITLE_WORDS else title


def count_sentiments(messages: Sequence[Message]) -> SentimentDistribution:
    counts = {sentiment: 0 for sentiment in Sentiment}
    for message in messages:
        if message.metadata and message.metadata.sentiment:
            counts[message.metadata.sentiment] += 1
    return SentimentDistribution(
        positive=counts[Sentiment.POSITIVE],
        negative=counts[Sentiment.NEGATIVE],
        neutral=counts[Sentiment.NEUTRAL],
    )


def compute_statistics(messages: Sequence[Message]) -> SessionStatistics:
    """Recompute session statistics from scratch.

    The result is a pure function of ``messages``: totals are summed,
    response time is averaged over messages that report one, and the
    topics come from the most recent assistant message.
    """
    response_times = [m.processing_time for m in messages if m.processing_time is not None]

    latest_assistant = next(
        (m for m in reversed(messages) if m.role == Role.ASSISTANT),
        None,
    )
    top_topics: list[str] = []
    if latest_assistant and latest_assistant.metadata and latest_assistant.metadata.topics:
        top_topics = list(latest_assistant.metadata.topics)

    return SessionStatistics(
        total_messages=len(messages),
        total_tokens=sum(m.tokens or 0 for m in messages),
        total_cost=sum((m.metadata.cost or 0.0) for m in messages if m.metadata),
        average_response_time=(
            sum(response_times) / len(response_times) if response_times else 0.0
        ),
        top_topics=top_topics,
        sentiment_distribution=count_sentiments(messages),
    )
