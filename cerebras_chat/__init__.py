"""Cerebras Chat - session, streaming and analytics core for an LLM chat client.

Combines httpx for the completion API, Pydantic for the data model and
configuration, Pillow and pypdf for attachments.

Components:
    - completion: Completion API client, configuration and response heuristics
    - parsing: Attachment validation, thumbnails and text extraction
    - store: Session mutations, statistics and persistence
    - search: Session filters and message search
    - analytics: Cross-session usage statistics
    - chat: Orchestrator tying the components together
    - models: Pydantic data model
"""

__version__ = "0.1.0"
