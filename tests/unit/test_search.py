"""Unit tests for session filtering and message search."""

from collections.abc import Callable
import json
from datetime import datetime, timedelta, timezone

import pytest
import pytest_check as check

from cerebras_chat.models.schemas import (
    AttachedFile,
    ChatSession,
    Message,
    Role,
    SearchFilters,
    Sentiment,
    now,
)
from cerebras_chat.search.index import SearchIndex, filter_sessions, search_messages
from cerebras_chat.store.persistence import import_sessions
from cerebras_chat.store.session_store import SessionStore
from tests.conftest import make_pair


@pytest.fixture
def sessions(make_session: Callable[..., ChatSession]) -> list[ChatSession]:
    attachment = AttachedFile(name="a.py", type="text/x-python", size=5, content="x = 1")
    return [
        make_session(
            "Python sorting",
            [make_pair("How to sort?", "Use sorted()", sentiment=Sentiment.POSITIVE)],
            created_at=datetime(2024, 3, 10, 12, 0),
            tags=["python", "work"],
            category="coding",
        ),
        make_session(
            "Dinner ideas",
            [make_pair("What to cook?", "Try pasta", sentiment=Sentiment.NEUTRAL, files=[attachment])],
            created_at=datetime(2024, 3, 5, 9, 0),
            tags=["home"],
            category="general",
        ),
        make_session(
            "Empty draft",
            [],
            created_at=datetime(2024, 2, 20, 8, 0),
        ),
    ]


def _titles(result: list[ChatSession]) -> list[str]:
    return [s.title for s in result]


class TestFilterSessions:
    """Each set dimension narrows the result; unset ones are ignored."""

    def test_empty_filters_keep_everything_in_order(self, sessions: list[ChatSession]) -> None:
        assert filter_sessions(sessions, SearchFilters()) == sessions

    def test_query_matches_title_or_content(self, sessions: list[ChatSession]) -> None:
        check.equal(_titles(filter_sessions(sessions, SearchFilters(query="PYTHON"))), ["Python sorting"])
        check.equal(_titles(filter_sessions(sessions, SearchFilters(query="pasta"))), ["Dinner ideas"])
        check.equal(filter_sessions(sessions, SearchFilters(query="nothing")), [])

    def test_empty_query_is_unset(self, sessions: list[ChatSession]) -> None:
        assert len(filter_sessions(sessions, SearchFilters(query=""))) == 3

    def test_date_range_is_inclusive(self, sessions: list[ChatSession]) -> None:
        filters = SearchFilters(
            date_from=datetime(2024, 3, 5, 9, 0),
            date_to=datetime(2024, 3, 10, 12, 0),
        )

        assert _titles(filter_sessions(sessions, filters)) == ["Python sorting", "Dinner ideas"]

    def test_tags_match_any(self, sessions: list[ChatSession]) -> None:
        result = filter_sessions(sessions, SearchFilters(tags=["home", "unknown"]))

        assert _titles(result) == ["Dinner ideas"]

    def test_category(self, sessions: list[ChatSession]) -> None:
        assert _titles(filter_sessions(sessions, SearchFilters(category="coding"))) == [
            "Python sorting"
        ]

    def test_message_type(self, sessions: list[ChatSession]) -> None:
        result = filter_sessions(sessions, SearchFilters(message_type=Role.ASSISTANT))

        assert _titles(result) == ["Python sorting", "Dinner ideas"]

    def test_has_files(self, sessions: list[ChatSession]) -> None:
        check.equal(_titles(filter_sessions(sessions, SearchFilters(has_files=True))), ["Dinner ideas"])
        check.equal(
            _titles(filter_sessions(sessions, SearchFilters(has_files=False))),
            ["Python sorting", "Empty draft"],
        )

    def test_sentiment(self, sessions: list[ChatSession]) -> None:
        result = filter_sessions(sessions, SearchFilters(sentiment=Sentiment.POSITIVE))

        assert _titles(result) == ["Python sorting"]

    def test_dimensions_combine_with_and(self, sessions: list[ChatSession]) -> None:
        filters = SearchFilters(tags=["python"], category="general")

        assert filter_sessions(sessions, filters) == []


class TestTimestamps:
    """Naive and aware timestamps compare as UTC instants."""

    def test_now_is_aware(self) -> None:
        assert now().tzinfo is not None

    def test_naive_timestamps_are_read_as_utc(self) -> None:
        session = ChatSession(title="t", created_at=datetime(2024, 3, 5, 9, 0))

        check.equal(session.created_at.tzinfo, timezone.utc)
        check.equal(session.created_at, datetime(2024, 3, 5, 9, 0, tzinfo=timezone.utc))

    def test_aware_bounds_filter_naive_sessions(self, sessions: list[ChatSession]) -> None:
        filters = SearchFilters(date_from=datetime(2024, 3, 6, tzinfo=timezone.utc))

        assert _titles(filter_sessions(sessions, filters)) == ["Python sorting"]

    def test_bounds_in_other_zones(self, sessions: list[ChatSession]) -> None:
        """09:00 UTC is 12:00 at UTC+3, so the bound lands exactly on it."""
        filters = SearchFilters(date_to=datetime(2024, 3, 5, 12, 0, tzinfo=timezone(timedelta(hours=3))))

        assert _titles(filter_sessions(sessions, filters)) == ["Dinner ideas", "Empty draft"]

    def test_mixed_imported_sessions(self, sessions: list[ChatSession]) -> None:
        payload = json.dumps(
            [
                {"title": "Imported aware", "created_at": "2024-03-07T10:00:00Z"},
                {"title": "Imported naive", "created_at": "2024-03-08T10:00:00"},
            ]
        )
        collection = [*import_sessions(payload), *sessions]

        aware = SearchFilters(
            date_from=datetime(2024, 3, 6, tzinfo=timezone.utc),
            date_to=datetime(2024, 3, 9, tzinfo=timezone.utc),
        )
        naive = SearchFilters(date_from=datetime(2024, 3, 6), date_to=datetime(2024, 3, 9))

        check.equal(_titles(filter_sessions(collection, aware)), ["Imported aware", "Imported naive"])
        check.equal(_titles(filter_sessions(collection, naive)), ["Imported aware", "Imported naive"])

    def test_copies_bypassing_validation_still_compare(self, sessions: list[ChatSession]) -> None:
        copy = sessions[0].model_copy(update={"created_at": datetime(2024, 3, 10, 12, 0)})
        filters = SearchFilters(date_from=datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc))

        assert filter_sessions([copy], filters) == [copy]


class TestSearchMessages:
    """Tests for cross-session message search."""

    def test_hits_follow_session_then_message_order(self, make_session: Callable[..., ChatSession]) -> None:
        first = make_session("A", [make_pair("error one", "no error here")])
        second = make_session("B", [make_pair("fine", "ERROR again")])

        hits = search_messages([first, second], "error")

        check.equal(
            [(h.session.title, h.message.content) for h in hits],
            [("A", "error one"), ("A", "no error here"), ("B", "ERROR again")],
        )

    def test_no_hits(self, sessions: list[ChatSession]) -> None:
        assert search_messages(sessions, "quantum") == []


class TestSearchIndex:
    """Tests for the store-backed filter view."""

    def test_results_follow_store(self, sessions: list[ChatSession]) -> None:
        store = SessionStore(sessions)
        index = SearchIndex(store)

        index.update_filters(category="coding")
        check.equal(_titles(index.results), ["Python sorting"])

        store.prepend([sessions[0].model_copy(update={"id": "copy", "title": "Copy"})])
        check.equal(_titles(index.results), ["Copy", "Python sorting"])

    def test_update_and_clear(self, sessions: list[ChatSession]) -> None:
        index = SearchIndex(SessionStore(sessions))

        index.update_filters(query="pasta", has_files=True)
        check.equal(_titles(index.results), ["Dinner ideas"])

        index.update_filters(query=None)
        check.equal(index.filters.query, None)
        check.is_true(index.filters.has_files)

        index.clear()
        check.equal(len(index.results), 3)

    def test_search_messages_uses_store(self, sessions: list[ChatSession]) -> None:
        index = SearchIndex(SessionStore(sessions))

        hits = index.search_messages("sort")

        assert [h.message.content for h in hits] == ["How to sort?", "Use sorted()"]

    def test_messages_from_user_only(self) -> None:
        store = SessionStore([ChatSession(title="t", messages=[Message(role=Role.USER, content="x")])])

        index = SearchIndex(store, SearchFilters(message_type=Role.ASSISTANT))

        assert index.results == []
