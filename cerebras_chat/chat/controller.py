"""Top-level orchestrator for the chat core.

Owns the state a UI needs (configuration, current session, the session
store and the completion client) and passes it explicitly to the
components, instead of keeping it in module-level globals.

Concurrent sends to the same session are serialized with a per-session
asyncio.Lock: a second send waits for the first exchange to finish, so the
history always alternates user and assistant turns and each request sees
every earlier reply.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from cerebras_chat.completion.client import FALLBACK_MODELS, CompletionClient
from cerebras_chat.completion.config import CerebrasConfig, get_config
from cerebras_chat.errors import CompletionError, ConfigurationError, SessionImportError
from cerebras_chat.i18n import translate
from cerebras_chat.models.schemas import (
    AttachedFile,
    ChatSession,
    CompletionResult,
    Message,
    Notification,
)
from cerebras_chat.parsing.file_ingestor import FileIngestor, RawFile
from cerebras_chat.store.persistence import (
    EXPORT_FORMATS,
    KeyValueStore,
    export_sessions,
    import_sessions,
    load_config,
    load_sessions,
    render_session,
    save_config,
    save_sessions,
)
from cerebras_chat.store.session_store import SessionStore

logger = logging.getLogger(__name__)

NotificationSink = Callable[[Notification], None]


def _log_notification(notification: Notification) -> None:
    level = logging.ERROR if notification.level == "error" else logging.INFO
    logger.log(level, f"{notification.title}: {notification.description}")


class ChatController:
    """Coordinates sessions, completions, attachments and persistence.

    Attributes:
        store: The session collection.
        current_session_id: The selected session; never refers to a deleted one.
    """

    def __init__(
        self,
        config: CerebrasConfig | None = None,
        *,
        client: CompletionClient | None = None,
        kv_store: KeyValueStore | None = None,
        ingestor: FileIngestor | None = None,
        notify: NotificationSink | None = None,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Global configuration. Loads from environment if not provided.
            client: Completion client; created from ``config`` if not provided.
            kv_store: Persistence backend; nothing is persisted without one.
            ingestor: Attachment ingestor.
            notify: Receiver for user-facing notifications.
        """
        self._config = config or get_config()
        self._client = client or CompletionClient(self._config)
        self._kv_store = kv_store
        self._ingestor = ingestor or FileIngestor()
        self._notify = notify or _log_notification
        self._locks: dict[str, asyncio.Lock] = {}

        self.store = SessionStore(locale=self._config.locale)
        self.current_session_id: str | None = None
        self.store.subscribe(self._autosave)

    @property
    def config(self) -> CerebrasConfig:
        return self._config

    @property
    def client(self) -> CompletionClient:
        return self._client

    @property
    def current_session(self) -> ChatSession | None:
        return self.store.get(self.current_session_id)

    def _t(self, key: str, **kwargs: object) -> str:
        return translate(self._config.locale, key, **kwargs)

    def _send_notification(self, title: str, description: str = "", level: str = "info") -> None:
        self._notify(Notification(title=title, description=description, level=level))

    def _autosave(self) -> None:
        if self._kv_store is not None and self._config.auto_save:
            save_sessions(self._kv_store, self.store.sessions)

    def start(self) -> ChatSession:
        """Load persisted state and make sure a session is selected.

        Returns:
            The selected session.
        """
        if self._kv_store is not None:
            persisted = load_config(self._kv_store)
            if persisted is not None:
                self._config = persisted
                self.store.locale = persisted.locale
            self.store.replace_all(load_sessions(self._kv_store))

        if len(self.store) == 0:
            return self.new_session()

        if self.current_session is None:
            self.current_session_id = self.store.sessions[0].id
        logger.info(f"Started with {len(self.store)} sessions")
        return self.current_session

    async def aclose(self) -> None:
        await self._client.aclose()

    def new_session(self) -> ChatSession:
        session = self.store.create_session(self._config)
        self.current_session_id = session.id
        return session

    def select_session(self, session_id: str) -> ChatSession | None:
        """Select a session; unknown ids leave the selection unchanged."""
        session = self.store.get(session_id)
        if session is not None:
            self.current_session_id = session.id
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session, moving the selection if it pointed there."""
        if not self.store.delete_session(session_id):
            return False
        self._locks.pop(session_id, None)

        if self.current_session_id == session_id:
            if len(self.store) > 0:
                self.current_session_id = self.store.sessions[0].id
            else:
                self.new_session()

        self._send_notification(self._t("session_deleted"), self._t("session_deleted_detail"))
        return True

    def update_config(self, **changes: object) -> CerebrasConfig:
        """Apply validated configuration changes and persist them.

        Existing sessions keep their settings snapshot.
        """
        self._config = self._config.updated(**changes)
        self.store.locale = self._config.locale
        if self._kv_store is not None:
            save_config(self._kv_store, self._config)
        return self._config

    async def available_models(self) -> list[str]:
        """List models from the API, falling back to the built-in list."""
        try:
            return await self._client.list_models(self._config)
        except CompletionError as e:
            logger.warning(f"Using built-in model list: {e}")
            return list(FALLBACK_MODELS)

    async def attach_files(self, raws: Sequence[RawFile]) -> list[AttachedFile]:
        """Ingest uploads, notifying about each rejected file."""
        accepted, rejected = await self._ingestor.ingest(list(raws))
        for error in rejected:
            self._send_notification(
                self._t("file_rejected"), f"{error.filename}: {error.reason}", "error"
            )
        return accepted

    async def send_message(
        self,
        content: str,
        files: Sequence[AttachedFile] | None = None,
        *,
        session_id: str | None = None,
        on_chunk: Callable[[str], None] | None = None,
    ) -> ChatSession | None:
        """Send a user message and append the assistant's reply.

        Args:
            content: Message text.
            files: Attachments for the message.
            session_id: Target session; defaults to the current one.
            on_chunk: Receives streamed text deltas for live display.

        Returns:
            The updated session, or None if it no longer exists.

        Raises:
            ConfigurationError: If no API key is configured.
        """
        if not self._config.has_api_key:
            self._send_notification(self._t("error"), self._t("api_key_missing"), "error")
            raise ConfigurationError("API key is not configured")

        target = session_id or self.current_session_id
        if target is None or target not in self.store:
            return None

        lock = self._locks.setdefault(target, asyncio.Lock())
        async with lock:
            session = self.store.append_user_message(target, content, files)
            if session is None:
                return None

            history = session.messages[-self._config.max_history_length:]
            start = time.perf_counter()
            try:
                result = await self._complete(history, on_chunk)
            except CompletionError as e:
                logger.error(f"Send to session {target} failed: {e}")
                self._send_notification(self._t("send_failed"), str(e), "error")
                return self.store.append_error_message(
                    target, self._t("error_reply", error=str(e) or self._t("unknown_error"))
                )

            processing_time = (time.perf_counter() - start) * 1000
            return self.store.append_assistant_message(
                target,
                result.content,
                metadata=result.metadata,
                processing_time=processing_time,
            )

    async def _complete(
        self,
        history: Sequence[Message],
        on_chunk: Callable[[str], None] | None,
    ) -> CompletionResult:
        if not self._config.stream_response:
            return await self._client.send(history, self._config)

        return await self._client.send_streaming(
            history,
            self._config,
            on_chunk or (lambda _chunk: None),
        )

    def edit_message(self, message_id: str, new_text: str) -> ChatSession | None:
        if self.current_session_id is None:
            return None
        session = self.store.edit_message(self.current_session_id, message_id, new_text)
        if session is not None:
            self._send_notification(self._t("message_edited"), self._t("message_edited_detail"))
        return session

    def react(self, message_id: str, emoji: str) -> ChatSession | None:
        if self.current_session_id is None:
            return None
        return self.store.react(self.current_session_id, message_id, emoji)

    def export_sessions(self) -> str:
        payload = export_sessions(self.store.sessions)
        self._send_notification(self._t("export_done"), self._t("export_done_detail"))
        return payload

    def export_session(self, session_id: str, fmt: str = "md") -> str | None:
        """Render one session as json, md or txt and stamp its export time.

        Raises:
            ValueError: If the format is unknown; the session is not touched.
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format '{fmt}'")
        session = self.store.mark_exported(session_id)
        if session is None:
            return None
        return render_session(session, fmt, self._config.locale)

    def import_sessions(self, payload: str | bytes) -> int:
        """Prepend sessions from an export payload.

        Raises:
            SessionImportError: If the payload is malformed; nothing changes.
        """
        try:
            sessions = import_sessions(payload)
        except SessionImportError:
            self._send_notification(
                self._t("import_failed"), self._t("import_failed_detail"), "error"
            )
            raise

        self.store.prepend(sessions)
        if self.current_session is None and len(self.store) > 0:
            self.current_session_id = self.store.sessions[0].id
        self._send_notification(
            self._t("import_done"), self._t("import_done_detail", count=len(sessions))
        )
        return len(sessions)
