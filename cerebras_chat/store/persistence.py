"""Key-value persistence, export and import of chat sessions.

The core only depends on the KeyValueStore interface; the file-backed store
here is one implementation, the in-memory store another.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from cerebras_chat.completion.config import CerebrasConfig
from cerebras_chat.errors import SessionImportError
from cerebras_chat.i18n import translate
from cerebras_chat.models.schemas import ChatSession, Role

logger = logging.getLogger(__name__)

SESSIONS_KEY = "chat-sessions"
CONFIG_KEY = "cerebras-config"
EXPORT_FORMATS = ("json", "md", "txt")

_sessions_adapter = TypeAdapter(list[ChatSession])


class KeyValueStore(ABC):
    """String key-value storage that survives process restarts."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never set."""
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...


class InMemoryKeyValueStore(KeyValueStore):
    """Non-persistent store, useful for tests and throwaway runs."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore(KeyValueStore):
    """All keys in a single JSON document on disk.

    Writes go to a temporary file in the same directory which then replaces
    the document, so a crash never leaves it half-written.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def export_sessions(sessions: Sequence[ChatSession]) -> str:
    """Serialize sessions to indented JSON, losslessly."""
    return _sessions_adapter.dump_json(list(sessions), indent=2).decode("utf-8")


def import_sessions(payload: str | bytes) -> list[ChatSession]:
    """Parse an export payload.

    Raises:
        SessionImportError: If the payload is not valid JSON or does not
            match the session schema.
    """
    try:
        sessions = _sessions_adapter.validate_json(payload)
    except ValidationError as e:
        raise SessionImportError(f"Invalid session export: {e.error_count()} error(s)") from e
    logger.info(f"Parsed {len(sessions)} sessions from import payload")
    return sessions


def save_sessions(store: KeyValueStore, sessions: Sequence[ChatSession]) -> None:
    store.set(SESSIONS_KEY, export_sessions(sessions))


def load_sessions(store: KeyValueStore) -> list[ChatSession]:
    """Load persisted sessions; unreadable data yields an empty list."""
    payload = store.get(SESSIONS_KEY)
    if payload is None:
        return []
    try:
        return import_sessions(payload)
    except SessionImportError as e:
        logger.error(f"Discarding persisted sessions: {e}")
        return []


def save_config(store: KeyValueStore, config: CerebrasConfig) -> None:
    store.set(CONFIG_KEY, config.model_dump_json())


def load_config(store: KeyValueStore) -> CerebrasConfig | None:
    payload = store.get(CONFIG_KEY)
    if payload is None:
        return None
    try:
        return CerebrasConfig.model_validate_json(payload)
    except ValidationError as e:
        logger.error(f"Discarding persisted config: {e}")
        return None


def _role_label(role: Role, locale: str) -> str:
    return translate(locale, f"role_{role.value}")


def render_session(session: ChatSession, fmt: str = "md", locale: str = "en") -> str:
    """Render a single session for download.

    Args:
        session: Session to render.
        fmt: One of ``json``, ``md`` or ``txt``.
        locale: Language of the role labels.

    Raises:
        ValueError: If the format is unknown.
    """
    if fmt == "json":
        return session.model_dump_json(indent=2)

    if fmt == "md":
        body = "".join(
            f"**{_role_label(m.role, locale)}**: {m.content}\n\n---\n\n"
            for m in session.messages
        )
        return f"# {session.title}\n\n{body}"

    if fmt == "txt":
        body = "".join(
            f"{_role_label(m.role, locale)}: {m.content}\n\n" for m in session.messages
        )
        return f"{session.title}\n{'=' * len(session.title)}\n\n{body}"

    raise ValueError(f"Unsupported export format '{fmt}', expected one of {EXPORT_FORMATS}")
