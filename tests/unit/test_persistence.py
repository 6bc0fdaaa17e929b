"""Unit tests for persistence, export and import."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
import pytest_check as check

from cerebras_chat.completion.config import CerebrasConfig
from cerebras_chat.errors import SessionImportError
from cerebras_chat.models.schemas import AttachedFile, ChatSession, FileMetadata, MessageReaction
from cerebras_chat.store.persistence import (
    CONFIG_KEY,
    SESSIONS_KEY,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    export_sessions,
    import_sessions,
    load_config,
    load_sessions,
    render_session,
    save_config,
    save_sessions,
)
from tests.conftest import make_pair


@pytest.fixture
def rich_session(make_session: Callable[..., ChatSession]) -> ChatSession:
    attachment = AttachedFile(
        name="main.py",
        type="text/x-python",
        size=12,
        content="print('hi')\n",
        metadata=FileMetadata(language="python", encoding="UTF-8"),
    )
    question, answer = make_pair("Review this", "Looks good", topics=["programming"], files=[attachment])
    answer = answer.model_copy(
        update={
            "reactions": [MessageReaction(emoji="👍", count=2, users=["user", "other"])],
            "is_edited": True,
            "original_content": "Looks fine",
        }
    )
    return make_session("Code review", [[question, answer]], tags=["work"], category="coding")


class TestExportImport:
    """Tests for the JSON export format."""

    def test_round_trip_is_lossless(self, rich_session: ChatSession) -> None:
        """Every field, including nested attachments and reactions, survives."""
        restored = import_sessions(export_sessions([rich_session]))

        assert restored == [rich_session]

    def test_export_is_readable_json(self, rich_session: ChatSession) -> None:
        payload = json.loads(export_sessions([rich_session]))

        check.equal(payload[0]["title"], "Code review")
        check.equal(payload[0]["messages"][0]["role"], "user")
        check.is_instance(payload[0]["created_at"], str)

    def test_import_accepts_bytes(self, rich_session: ChatSession) -> None:
        payload = export_sessions([rich_session]).encode()

        assert import_sessions(payload)[0].id == rich_session.id

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            '{"title": "object instead of list"}',
            '[{"messages": []}]',
            '[{"title": "t", "messages": [{"role": "robot", "content": "x"}]}]',
        ],
    )
    def test_malformed_import_raises(self, payload: str) -> None:
        with pytest.raises(SessionImportError):
            import_sessions(payload)


class TestKeyValuePersistence:
    """Tests for saving and loading through a key-value store."""

    def test_sessions_round_trip(self, rich_session: ChatSession) -> None:
        store = InMemoryKeyValueStore()

        save_sessions(store, [rich_session])

        check.is_not_none(store.get(SESSIONS_KEY))
        check.equal(load_sessions(store), [rich_session])

    def test_missing_sessions_load_empty(self) -> None:
        assert load_sessions(InMemoryKeyValueStore()) == []

    def test_corrupt_sessions_load_empty(self) -> None:
        store = InMemoryKeyValueStore()
        store.set(SESSIONS_KEY, "{broken")

        assert load_sessions(store) == []

    def test_config_round_trip(self, config: CerebrasConfig) -> None:
        store = InMemoryKeyValueStore()

        save_config(store, config.updated(temperature=1.1))

        loaded = load_config(store)
        check.equal(loaded.temperature, 1.1)
        check.equal(loaded.api_key, config.api_key)

    def test_invalid_config_is_discarded(self) -> None:
        store = InMemoryKeyValueStore()
        store.set(CONFIG_KEY, '{"temperature": 99}')

        check.is_none(load_config(store))
        check.is_none(load_config(InMemoryKeyValueStore()))


class TestJsonFileKeyValueStore:
    """Tests for the file-backed store."""

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "store.json"
        JsonFileKeyValueStore(path).set("a", "1")
        JsonFileKeyValueStore(path).set("b", "2")

        store = JsonFileKeyValueStore(path)
        check.equal(store.get("a"), "1")
        check.equal(store.get("b"), "2")
        check.is_none(store.get("c"))

    def test_no_temporary_files_left(self, tmp_path: Path) -> None:
        store = JsonFileKeyValueStore(tmp_path / "store.json")

        store.set("key", "value")

        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_unreadable_file_reads_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        store = JsonFileKeyValueStore(path)

        check.is_none(store.get("a"))
        store.set("a", "1")
        check.equal(store.get("a"), "1")


class TestRenderSession:
    """Tests for single-session downloads."""

    def test_markdown(self, rich_session: ChatSession) -> None:
        rendered = render_session(rich_session, "md")

        check.is_true(rendered.startswith("# Code review\n\n"))
        check.is_in("**User**: Review this\n\n---\n\n", rendered)
        check.is_in("**AI Assistant**: Looks good", rendered)

    def test_plain_text(self, rich_session: ChatSession) -> None:
        rendered = render_session(rich_session, "txt")

        check.is_true(rendered.startswith("Code review\n===========\n\n"))
        check.is_in("User: Review this\n\n", rendered)

    def test_localized_labels(self, rich_session: ChatSession) -> None:
        rendered = render_session(rich_session, "txt", locale="ru")

        assert "Пользователь: Review this" in rendered

    def test_json(self, rich_session: ChatSession) -> None:
        restored = ChatSession.model_validate_json(render_session(rich_session, "json"))

        assert restored == rich_session

    def test_unknown_format(self, rich_session: ChatSession) -> None:
        with pytest.raises(ValueError, match="Unsupported export format"):
            render_session(rich_session, "pdf")
