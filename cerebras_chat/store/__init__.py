"""Session storage for the chat core.

Responsibilities:
    - Session and message mutations that preserve the data model invariants
    - Derived per-session statistics
    - Key-value persistence of sessions and configuration
    - Lossless JSON export/import and single-session rendering
"""

from cerebras_chat.store.persistence import (
    CONFIG_KEY,
    SESSIONS_KEY,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
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
from cerebras_chat.store.statistics import compute_statistics, generate_title

__all__ = [
    "CONFIG_KEY",
    "SESSIONS_KEY",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "SessionStore",
    "compute_statistics",
    "export_sessions",
    "generate_title",
    "import_sessions",
    "load_config",
    "load_sessions",
    "render_session",
    "save_config",
    "save_sessions",
]
