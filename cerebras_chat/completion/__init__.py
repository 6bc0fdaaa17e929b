"""Completion API client and its configuration.

Responsibilities:
    - Provider message formatting with inline attachments
    - Buffered and streamed chat completions over httpx
    - Per-response cost estimate and heuristic analysis
    - Model listing

Keeps the wire protocol separate from session state; callers decide what
to do with results and failures.
"""

from cerebras_chat.completion.client import (
    FALLBACK_MODELS,
    CompletionClient,
    format_messages,
    iter_sse_data,
)
from cerebras_chat.completion.config import CerebrasConfig, get_config
from cerebras_chat.completion.heuristics import KeywordTextAnalyzer, TextAnalyzer

__all__ = [
    "FALLBACK_MODELS",
    "CerebrasConfig",
    "CompletionClient",
    "KeywordTextAnalyzer",
    "TextAnalyzer",
    "format_messages",
    "get_config",
    "iter_sse_data",
]
