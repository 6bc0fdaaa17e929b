"""Pydantic models for sessions, messages and attachments.

Records are treated as values: mutations produce a new instance via
``model_copy(update=...)`` which the owner substitutes into its collection.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return str(uuid.uuid4())


def now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Treat a naive timestamp as UTC; aware ones are kept as given.

    Every stored timestamp is aware, so timestamps from old exports and
    filter bounds always compare with each other.
    """
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Sentiment(str, Enum):
    """Heuristic sentiment class of a text."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Dimensions(BaseModel):
    """Pixel dimensions of an image."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(ge=0)
    height: int = Field(ge=0)


class FileMetadata(BaseModel):
    """Optional metadata derived from an attached file.

    Attributes:
        dimensions: Pixel size for images.
        duration: Playback length in seconds for audio/video.
        pages: Page count for PDFs.
        language: Source-code language guessed from the extension.
        encoding: Text encoding of text-like files.
    """

    model_config = ConfigDict(frozen=True)

    dimensions: Dimensions | None = None
    duration: float | None = None
    pages: int | None = None
    language: str | None = None
    encoding: str | None = None


class AttachedFile(BaseModel):
    """A file attached to a message.

    Attributes:
        id: Unique attachment identifier.
        name: Declared file name.
        type: MIME type.
        size: Size in bytes.
        content: Decoded text, or a base64 data URL for images.
        url: Data URL for images, None otherwise.
        thumbnail: Downscaled JPEG data URL for images.
        extracted_text: Plain text when extraction differs from content.
        metadata: Derived file metadata.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    name: str
    type: str
    size: int = Field(ge=0)
    content: str
    url: str | None = None
    thumbnail: str | None = None
    extracted_text: str | None = None
    metadata: FileMetadata | None = None


class MessageMetadata(BaseModel):
    """Parameters and heuristics attached to an assistant response."""

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    cost: float | None = None
    language: str | None = None
    sentiment: Sentiment | None = None
    topics: list[str] | None = None


class MessageReaction(BaseModel):
    """An emoji reaction with its contributors."""

    emoji: str
    count: int = Field(default=1, ge=0)
    users: list[str] = Field(default_factory=list)


class Message(BaseModel):
    """A single turn in a chat session.

    Attributes:
        id: Unique message identifier.
        role: Speaker (user, assistant or system).
        content: Message text.
        timestamp: Creation time.
        files: Attachments owned by this message.
        metadata: Model parameters and heuristic analysis.
        reactions: Emoji reactions.
        is_edited: Whether the content was edited.
        original_content: Text before the first edit.
        tokens: Approximate token count.
        processing_time: Response latency in milliseconds.
    """

    id: str = Field(default_factory=new_id)
    role: Role
    content: str
    timestamp: datetime = Field(default_factory=now)
    files: list[AttachedFile] | None = None
    metadata: MessageMetadata | None = None
    reactions: list[MessageReaction] | None = None
    is_edited: bool = False
    original_content: str | None = None
    tokens: int | None = None
    processing_time: float | None = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_as_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class SessionSettings(BaseModel):
    """Configuration snapshot captured when a session is created."""

    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    model: str | None = None
    auto_save: bool | None = None
    notifications: bool | None = None


class SentimentDistribution(BaseModel):
    """Message counts per sentiment class."""

    positive: int = 0
    negative: int = 0
    neutral: int = 0


class SessionStatistics(BaseModel):
    """Derived statistics of a session, recomputed from its messages."""

    total_messages: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    average_response_time: float = 0.0
    top_topics: list[str] = Field(default_factory=list)
    sentiment_distribution: SentimentDistribution = Field(
        default_factory=SentimentDistribution
    )


class ChatSession(BaseModel):
    """One conversation thread.

    Attributes:
        id: Unique session identifier.
        title: Display title, derived from the first user message by default.
        messages: Ordered message history.
        created_at: Creation time.
        updated_at: Time of the last mutation.
        tags: Free-form labels.
        category: Category label.
        is_archived: Archived flag.
        is_favorite: Favorite flag.
        settings: Settings captured at creation.
        statistics: Derived statistics.
        shared_with: Recipients the session was shared with.
        exported_at: Time of the last export.
    """

    id: str = Field(default_factory=new_id)
    title: str
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    tags: list[str] | None = None
    category: str | None = None
    is_archived: bool = False
    is_favorite: bool = False
    settings: SessionSettings | None = None
    statistics: SessionStatistics | None = None
    shared_with: list[str] | None = None
    exported_at: datetime | None = None

    @field_validator("created_at", "updated_at", "exported_at")
    @classmethod
    def timestamps_as_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps from older exports are read as UTC."""
        return as_utc(v)


class SearchFilters(BaseModel):
    """Filter specification for the session list.

    Unset (None) dimensions do not constrain the result.
    """

    query: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    tags: list[str] | None = None
    category: str | None = None
    message_type: Role | None = None
    has_files: bool | None = None
    sentiment: Sentiment | None = None

    @field_validator("date_from", "date_to")
    @classmethod
    def bounds_as_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class MessageHit(BaseModel):
    """A message matching a search, with its owning session."""

    session: ChatSession
    message: Message


class TopicCount(BaseModel):
    """Occurrences of a topic across all messages."""

    topic: str
    count: int


class FilesUsage(BaseModel):
    """Attachment statistics across all sessions."""

    total_files: int = 0
    file_types: dict[str, int] = Field(default_factory=dict)


class Analytics(BaseModel):
    """Cross-session usage statistics."""

    total_sessions: int = 0
    total_messages: int = 0
    total_tokens: int = 0
    total_cost: float = 0.0
    average_tokens_per_message: float = 0.0
    average_cost_per_session: float = 0.0
    average_response_time: float = 0.0
    activity_by_day: dict[str, int] = Field(default_factory=dict)
    model_usage: dict[str, int] = Field(default_factory=dict)
    sentiment_distribution: SentimentDistribution = Field(
        default_factory=SentimentDistribution
    )
    top_topics: list[TopicCount] = Field(default_factory=list)
    files_usage: FilesUsage = Field(default_factory=FilesUsage)


class StreamChunk(BaseModel):
    """A chunk of a streamed completion.

    Attributes:
        content: The text delta, or the full response when done.
        done: Whether this is the final chunk.
        metadata: Final response metadata, set on the final chunk.
        total_tokens: Token estimate, set on the final chunk.
    """

    content: str
    done: bool
    metadata: MessageMetadata | None = None
    total_tokens: int | None = None


class CompletionResult(BaseModel):
    """A complete response from the completion API."""

    content: str
    metadata: MessageMetadata
    total_tokens: int = 0


class Notification(BaseModel):
    """A transient user-facing notification."""

    title: str
    description: str = ""
    level: str = "info"
