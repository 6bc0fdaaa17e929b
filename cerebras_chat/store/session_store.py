"""In-memory session collection and its mutation rules.

Sessions and messages are values. Every mutation builds a new session with
``model_copy`` and swaps it into the collection, bumping ``updated_at``.
Any change to the messages also recomputes the session statistics.

Operating on an unknown session or message id is a no-op that returns
None: a session deleted while a request was in flight is an expected race,
not an error.
"""

import logging
from collections.abc import Callable, Iterable, Sequence

from cerebras_chat.completion.config import CerebrasConfig
from cerebras_chat.i18n import translate
from cerebras_chat.models.schemas import (
    AttachedFile,
    ChatSession,
    Message,
    MessageMetadata,
    MessageReaction,
    Role,
    SessionSettings,
    SessionStatistics,
    now,
)
from cerebras_chat.store.statistics import compute_statistics, generate_title

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "general"
DEFAULT_REACTION_USER = "user"

Listener = Callable[[], None]


def _approximate_tokens(text: str) -> int:
    return len(text.split())


class SessionStore:
    """Ordered collection of chat sessions, newest first.

    Listeners registered with ``subscribe`` are called after every change so
    derived views and autosave can follow the collection.
    """

    def __init__(self, sessions: Iterable[ChatSession] = (), locale: str = "en") -> None:
        self._sessions: list[ChatSession] = list(sessions)
        self._listeners: list[Listener] = []
        self.locale = locale

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return tuple(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return self._index(session_id) is not None

    def get(self, session_id: str | None) -> ChatSession | None:
        index = self._index(session_id)
        return self._sessions[index] if index is not None else None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _index(self, session_id: object) -> int | None:
        for i, session in enumerate(self._sessions):
            if session.id == session_id:
                return i
        return None

    def _update(
        self,
        session_id: str,
        change: Callable[[ChatSession], dict[str, object] | None],
    ) -> ChatSession | None:
        index = self._index(session_id)
        if index is None:
            logger.debug(f"Ignoring update for unknown session {session_id}")
            return None

        fields = change(self._sessions[index])
        if fields is None:
            return None
        # Statistics are always derived from the current messages
        if "messages" in fields:
            fields["statistics"] = compute_statistics(fields["messages"])

        updated = self._sessions[index].model_copy(update={**fields, "updated_at": now()})
        self._sessions[index] = updated
        self._notify()
        return updated

    def _update_message(
        self,
        session_id: str,
        message_id: str,
        change: Callable[[Message], Message],
    ) -> ChatSession | None:
        def apply(session: ChatSession) -> dict[str, object] | None:
            if not any(m.id == message_id for m in session.messages):
                logger.debug(f"Ignoring update for unknown message {message_id}")
                return None
            return {
                "messages": [
                    change(m) if m.id == message_id else m for m in session.messages
                ]
            }

        return self._update(session_id, apply)

    def create_session(self, config: CerebrasConfig) -> ChatSession:
        """Create an empty session at the front of the collection.

        The session captures a snapshot of ``config`` so later configuration
        changes do not alter it.
        """
        session = ChatSession(
            title=translate(self.locale, "new_chat"),
            tags=[],
            category=DEFAULT_CATEGORY,
            settings=SessionSettings(
                system_prompt=config.system_prompt,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                model=config.model,
                auto_save=config.auto_save,
                notifications=True,
            ),
            statistics=SessionStatistics(),
        )
        self._sessions.insert(0, session)
        logger.info(f"Created session {session.id}")
        self._notify()
        return session

    def append_user_message(
        self,
        session_id: str,
        text: str,
        files: Sequence[AttachedFile] | None = None,
    ) -> ChatSession | None:
        """Append a user message; the first one also sets the title."""
        message = Message(role=Role.USER, content=text, files=list(files) if files else None)

        def apply(session: ChatSession) -> dict[str, object]:
            fields: dict[str, object] = {"messages": [*session.messages, message]}
            if not session.messages:
                fields["title"] = generate_title(text)
            return fields

        return self._update(session_id, apply)

    def append_assistant_message(
        self,
        session_id: str,
        content: str,
        metadata: MessageMetadata | None = None,
        processing_time: float | None = None,
        tokens: int | None = None,
    ) -> ChatSession | None:
        """Append an assistant reply.

        Args:
            session_id: Target session.
            content: Reply text.
            metadata: Model parameters and heuristic analysis.
            processing_time: Response latency in milliseconds.
            tokens: Token count; approximated by word count when omitted.
        """
        message = Message(
            role=Role.ASSISTANT,
            content=content,
            metadata=metadata,
            processing_time=processing_time,
            tokens=tokens if tokens is not None else _approximate_tokens(content),
        )

        return self._update(session_id, lambda s: {"messages": [*s.messages, message]})

    def append_error_message(self, session_id: str, text: str) -> ChatSession | None:
        """Append an assistant message reporting a failed exchange."""
        message = Message(role=Role.ASSISTANT, content=text)
        return self._update(session_id, lambda s: {"messages": [*s.messages, message]})

    def edit_message(
        self,
        session_id: str,
        message_id: str,
        new_text: str,
    ) -> ChatSession | None:
        """Replace a message's text, keeping the text from before the first edit."""

        def edit(message: Message) -> Message:
            original = (
                message.original_content
                if message.original_content is not None
                else message.content
            )
            return message.model_copy(
                update={"content": new_text, "is_edited": True, "original_content": original}
            )

        return self._update_message(session_id, message_id, edit)

    def react(
        self,
        session_id: str,
        message_id: str,
        emoji: str,
        user: str = DEFAULT_REACTION_USER,
    ) -> ChatSession | None:
        """Add one to an emoji's reaction count, creating it if needed."""

        def add_reaction(message: Message) -> Message:
            reactions = [r.model_copy() for r in message.reactions or []]
            for i, reaction in enumerate(reactions):
                if reaction.emoji == emoji:
                    users = reaction.users if user in reaction.users else [*reaction.users, user]
                    reactions[i] = reaction.model_copy(
                        update={"count": reaction.count + 1, "users": users}
                    )
                    break
            else:
                reactions.append(MessageReaction(emoji=emoji, count=1, users=[user]))
            return message.model_copy(update={"reactions": reactions})

        return self._update_message(session_id, message_id, add_reaction)

    def recompute_statistics(self, session_id: str) -> ChatSession | None:
        return self._update(
            session_id, lambda s: {"statistics": compute_statistics(s.messages)}
        )

    def toggle_favorite(self, session_id: str) -> ChatSession | None:
        return self._update(session_id, lambda s: {"is_favorite": not s.is_favorite})

    def toggle_archive(self, session_id: str) -> ChatSession | None:
        return self._update(session_id, lambda s: {"is_archived": not s.is_archived})

    def rename(self, session_id: str, title: str) -> ChatSession | None:
        return self._update(session_id, lambda s: {"title": title})

    def set_tags(self, session_id: str, tags: Sequence[str]) -> ChatSession | None:
        return self._update(session_id, lambda s: {"tags": list(tags)})

    def set_category(self, session_id: str, category: str | None) -> ChatSession | None:
        return self._update(session_id, lambda s: {"category": category})

    def mark_exported(self, session_id: str) -> ChatSession | None:
        return self._update(session_id, lambda s: {"exported_at": now()})

    def delete_session(self, session_id: str) -> bool:
        """Remove a session.

        Returns:
            True if the session existed.
        """
        index = self._index(session_id)
        if index is None:
            return False
        del self._sessions[index]
        logger.info(f"Deleted session {session_id}")
        self._notify()
        return True

    def replace_all(self, sessions: Iterable[ChatSession]) -> None:
        self._sessions = list(sessions)
        self._notify()

    def prepend(self, sessions: Sequence[ChatSession]) -> None:
        """Insert sessions at the front; an existing session with the same id is replaced."""
        incoming = {s.id for s in sessions}
        self._sessions = [*sessions, *(s for s in self._sessions if s.id not in incoming)]
        self._notify()
