"""
High-level chat session.

Ties together a completion engine, a single conversation context and an
optional context store to provide the "fully managed" API:

- Advertise functions and set the function-call directive.
- Send user text and receive the assistant's turn, with both recorded.
- Persist the conversation after every exchange and resume it later.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from chatfn.llm.functions import FunctionSpecification
from chatfn.llm.types import Message
from chatfn.session.context import ChatContext
from chatfn.session.store import ContextStore

if TYPE_CHECKING:
    from chatfn.llm.engine import CompletionEngine

logger = logging.getLogger(__name__)


class ChatSession:
    """
    Manages a single conversation.

    Parameters
    ----------
    engine:
        Completion engine.  It may be shared by several sessions.
    store:
        Optional store the context is saved to after every exchange.
    context:
        Existing context to continue.  A fresh one for ``engine.model`` is
        created when omitted.
    session_id:
        Key the context is saved under.  A UUID4 is generated when omitted.
    """

    def __init__(
        self,
        engine: CompletionEngine,
        store: ContextStore | None = None,
        context: ChatContext | None = None,
        session_id: str | None = None,
    ) -> None:
        self.engine = engine
        self.session_id = session_id or str(uuid.uuid4())
        self.store = store
        self.context = context if context is not None else engine.new_context()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @classmethod
    async def resume(
        cls,
        engine: CompletionEngine,
        store: ContextStore,
        session_id: str,
    ) -> ChatSession:
        """
        Attach to a saved conversation.

        Raises
        ------
        ValueError
            If the session does not exist in the store.
        """
        context = await store.load(session_id)
        if context is None:
            raise ValueError(f"Session not found: {session_id}")
        return cls(engine, store=store, context=context, session_id=session_id)

    async def save(self, metadata: dict | None = None) -> None:
        if self.store is None:
            raise RuntimeError("No store attached to this session")
        await self.store.save(self.session_id, self.context, metadata)

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    def push_function(self, function: FunctionSpecification) -> None:
        self.context.push_function(function)

    def set_function_call(self, directive: str | None) -> None:
        self.context.set_function_call(directive)

    async def send(self, text: str) -> Message:
        """
        Send user *text* and return the assistant's turn.

        When a store is attached the context is saved afterwards, also when
        the completion fails (the user turn was recorded either way).
        """
        try:
            return await self.engine.complete_managed(self.context, text)
        finally:
            if self.store is not None:
                await self.store.save(self.session_id, self.context)
                logger.debug(
                    "Saved session %s (%d messages)",
                    self.session_id,
                    len(self.context.messages),
                )
