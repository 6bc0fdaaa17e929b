"""Pydantic models for the chat core.

Provides validation and lossless JSON serialization for everything that is
persisted or exported.

Models:
    - ChatSession: A conversation with its messages, settings and statistics
    - Message: One turn, with attachments, metadata and reactions
    - AttachedFile: An immutable attachment record
    - SearchFilters: Filter specification for the session list
    - Analytics: Cross-session statistics
    - StreamChunk: A delta (or the final result) of a streamed completion
"""

from cerebras_chat.models.schemas import (
    Analytics,
    AttachedFile,
    ChatSession,
    CompletionResult,
    Dimensions,
    FileMetadata,
    FilesUsage,
    Message,
    MessageHit,
    MessageMetadata,
    MessageReaction,
    Notification,
    Role,
    SearchFilters,
    Sentiment,
    SentimentDistribution,
    SessionSettings,
    SessionStatistics,
    StreamChunk,
    TopicCount,
    as_utc,
    new_id,
    now,
)

__all__ = [
    "Analytics",
    "AttachedFile",
    "ChatSession",
    "CompletionResult",
    "Dimensions",
    "FileMetadata",
    "FilesUsage",
    "Message",
    "MessageHit",
    "MessageMetadata",
    "MessageReaction",
    "Notification",
    "Role",
    "SearchFilters",
    "Sentiment",
    "SentimentDistribution",
    "SessionSettings",
    "SessionStatistics",
    "StreamChunk",
    "TopicCount",
    "as_utc",
    "new_id",
    "now",
]
