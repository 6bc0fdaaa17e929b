"""Cross-session usage analytics.

``aggregate`` is a pure fold over the whole collection; nothing is cached,
so the result always reflects the sessions passed in.
"""

from collections import Counter
from collections.abc import Sequence
from datetime import timezone

from cerebras_chat.models.schemas import (
    Analytics,
    ChatSession,
    FilesUsage,
    TopicCount,
    as_utc,
)
from cerebras_chat.store.statistics import count_sentiments

TOP_TOPICS_LIMIT = 10


def aggregate(sessions: Sequence[ChatSession]) -> Analytics:
    """Compute usage statistics across all sessions.

    Args:
        sessions: The full session collection.

    Returns:
        Totals, histograms and averages over every session and message.
    """
    messages = [m for s in sessions for m in s.messages]

    # Days are UTC calendar days
    activity: Counter[str] = Counter(
        as_utc(s.created_at).astimezone(timezone.utc).date().isoformat() for s in sessions
    )
    models: Counter[str] = Counter(
        m.metadata.model for m in messages if m.metadata and m.metadata.model
    )
    # Counter keeps first-insertion order, and most_common sorts stably
    topics: Counter[str] = Counter(
        topic for m in messages if m.metadata and m.metadata.topics for topic in m.metadata.topics
    )
    file_types: Counter[str] = Counter(
        f.type.split("/")[0] for m in messages for f in m.files or []
    )

    total_tokens = sum(m.tokens or 0 for m in messages)
    total_cost = sum((m.metadata.cost or 0.0) for m in messages if m.metadata)
    response_times = [m.processing_time for m in messages if m.processing_time is not None]

    return Analytics(
        total_sessions=len(sessions),
        total_messages=len(messages),
        total_tokens=total_tokens,
        total_cost=total_cost,
        average_tokens_per_message=total_tokens / len(messages) if messages else 0.0,
        average_cost_per_session=total_cost / len(sessions) if sessions else 0.0,
        average_response_time=(
            sum(response_times) / len(response_times) if response_times else 0.0
        ),
        activity_by_day=dict(activity),
        model_usage=dict(models),
        sentiment_distribution=count_sentiments(messages),
        top_topics=[
            TopicCount(topic=topic, count=count)
            for topic, count in topics.most_common(TOP_TOPICS_LIMIT)
        ],
        files_usage=FilesUsage(
            total_files=sum(len(m.files or []) for m in messages),
            file_types=dict(file_types),
        ),
    )
