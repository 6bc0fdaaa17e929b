"""Search over chat sessions.

Filters the session list by text, dates, tags, category, role, attachments
and sentiment, and finds individual matching messages.
"""

from cerebras_chat.search.index import SearchIndex, filter_sessions, matches, search_messages

__all__ = ["SearchIndex", "filter_sessions", "matches", "search_messages"]
