"""Session management: conversation context, persistence, managed sessions."""

from chatfn.session.context import ChatContext
from chatfn.session.session import ChatSession
from chatfn.session.store import ContextStore

__all__ = [
    "ChatContext",
    "ChatSession",
    "ContextStore",
]
