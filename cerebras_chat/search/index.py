"""Session filtering and message search.

Both are pure read-side derivations over the session collection.
"""

from collections.abc import Sequence

from cerebras_chat.models.schemas import ChatSession, MessageHit, SearchFilters, as_utc
from cerebras_chat.store.session_store import SessionStore


def _matches_query(session: ChatSession, query: str) -> bool:
    needle = query.lower()
    if needle in session.title.lower():
        return True
    return any(needle in m.content.lower() for m in session.messages)


def _has_files(session: ChatSession) -> bool:
    return any(m.files for m in session.messages)


def matches(session: ChatSession, filters: SearchFilters) -> bool:
    """Return True if the session satisfies every set filter dimension."""
    if filters.query and not _matches_query(session, filters.query):
        return False

    created_at = as_utc(session.created_at)
    if filters.date_from is not None and created_at < as_utc(filters.date_from):
        return False
    if filters.date_to is not None and created_at > as_utc(filters.date_to):
        return False

    if filters.tags:
        if not session.tags or not set(filters.tags) & set(session.tags):
            return False

    if filters.category and session.category != filters.category:
        return False

    if filters.message_type is not None:
        if not any(m.role == filters.message_type for m in session.messages):
            return False

    if filters.has_files is not None and _has_files(session) != filters.has_files:
        return False

    if filters.sentiment is not None:
        if not any(
            m.metadata is not None and m.metadata.sentiment == filters.sentiment
            for m in session.messages
        ):
            return False

    return True


def filter_sessions(
    sessions: Sequence[ChatSession],
    filters: SearchFilters,
) -> list[ChatSession]:
    """Keep the sessions matching all set dimensions, in input order."""
    return [s for s in sessions if matches(s, filters)]


def search_messages(sessions: Sequence[ChatSession], query: str) -> list[MessageHit]:
    """Find every message whose text contains ``query``, case-insensitively.

    Results follow session order, then message order, without deduplication.
    """
    needle = query.lower()
    return [
        MessageHit(session=session, message=message)
        for session in sessions
        for message in session.messages
        if needle in message.content.lower()
    ]


class SearchIndex:
    """A mutable filter specification over a session store.

    ``results`` is recomputed from the store on every access.
    """

    def __init__(self, store: SessionStore, filters: SearchFilters | None = None) -> None:
        self._store = store
        self.filters = filters or SearchFilters()

    def set_filters(self, filters: SearchFilters) -> None:
        self.filters = filters

    def update_filters(self, **changes: object) -> SearchFilters:
        """Replace some dimensions; pass None to clear one."""
        self.filters = SearchFilters.model_validate({**self.filters.model_dump(), **changes})
        return self.filters

    def clear(self) -> None:
        self.filters = SearchFilters()

    @property
    def results(self) -> list[ChatSession]:
        return filter_sessions(self._store.sessions, self.filters)

    def search_messages(self, query: str) -> list[MessageHit]:
        return search_messages(self._store.sessions, query)
