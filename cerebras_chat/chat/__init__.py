"""Orchestration of the chat flow.

Responsibilities:
    - Current session selection and its deletion policy
    - The send flow: user message, completion, assistant reply
    - Per-session serialization of concurrent sends
    - Configuration updates, persistence, export and import
    - User-facing notifications
"""

from cerebras_chat.chat.controller import ChatController, NotificationSink

__all__ = ["ChatController", "NotificationSink"]
