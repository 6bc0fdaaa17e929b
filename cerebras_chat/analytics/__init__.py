"""Usage analytics over the session collection."""

from cerebras_chat.analytics.aggregator import TOP_TOPICS_LIMIT, aggregate

__all__ = ["TOP_TOPICS_LIMIT", "aggregate"]
