from roomforge.session.models import ChatMessage, ChatSession
from roomforge.session.store import SessionStore, page_context, session_key, trim_messages

__all__ = [
    "ChatMessage",
    "ChatSession",
    "SessionStore",
    "page_context",
    "session_key",
    "trim_messages",
]
