"""
Completion engine -- turns a :class:`ChatContext` into the assistant's next turn.

The engine is the primary entry point for callers that need a completion.  It:

  1. Encodes the context into the request body.
  2. Hands the body to a :class:`Transport` and awaits the raw reply.
  3. Decodes the reply into a :class:`ChatResponse` and picks the first
     choice.

Per context the engine is either ``IDLE`` or ``AWAITING``; starting a second
completion for a context that is still awaiting raises
:class:`CompletionInProgressError`.  There are no internal retries: every
failure propagates to the caller.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

from chatfn.errors import CompletionInProgressError, DecodeError, MissingChoiceError
from chatfn.llm.response import ChatResponse, decode_response, normalize_body
from chatfn.llm.transport.base import Transport
from chatfn.llm.types import Message
from chatfn.session.context import ChatContext

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    AWAITING = "awaiting"


class CompletionEngine:
    """
    Parameters
    ----------
    transport:
        Delivers encoded requests (see :class:`HttpTransport`).
    model:
        Model used for contexts created through :meth:`new_context`.
    session_id:
        Identifier for this conversation session.  A UUID4 is generated when
        omitted.
    """

    def __init__(
        self,
        transport: Transport,
        model: str,
        session_id: str | None = None,
    ) -> None:
        self.transport = transport
        self.model = model
        self.session_id = session_id or str(uuid.uuid4())
        self._awaiting: set[int] = set()

    def new_context(self) -> ChatContext:
        return ChatContext(self.model)

    def state(self, context: ChatContext) -> EngineState:
        if id(context) in self._awaiting:
            return EngineState.AWAITING
        return EngineState.IDLE

    def _ensure_idle(self, context: ChatContext) -> None:
        if id(context) in self._awaiting:
            raise CompletionInProgressError()

    @contextmanager
    def _awaiting_reply(self, context: ChatContext) -> Iterator[None]:
        self._ensure_idle(context)
        key = id(context)
        self._awaiting.add(key)
        try:
            yield
        finally:
            self._awaiting.discard(key)

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    async def _request(self, context: ChatContext) -> ChatResponse:
        body = context.encode_for_wire()
        logger.debug(
            "session=%s model=%s messages=%d functions=%d",
            self.session_id,
            context.model,
            len(context.messages),
            len(context.functions),
        )
        with self._awaiting_reply(context):
            raw = await self.transport.send(body)
        try:
            response = decode_response(raw)
        except DecodeError as exc:
            logger.warning("Could not decode completion response: %s", exc.raw[:200])
            raise
        if not response.choices:
            raise MissingChoiceError(raw=normalize_body(raw))
        return response

    async def complete(self, context: ChatContext) -> Message:
        """
        Request the next turn for *context* without modifying it.

        Raises
        ------
        TransportError
            The transport could not deliver a response.
        DecodeError
            The reply is not a well-formed response envelope.
        MissingChoiceError
            The envelope has no choices.
        """
        response = await self._request(context)
        return response.choices[0].message

    async def complete_managed(self, context: ChatContext, user_text: str) -> Message:
        """
        Fully managed round trip.

        Appends a user turn built from *user_text*, requests the reply and
        appends it as well.  If the completion fails the user turn stays in
        the context and no reply is added.  A context that is still awaiting
        a reply is rejected before anything is appended.

        A reply that invokes a function is stored as reported: an
        ``assistant`` turn with ``content=None`` and ``function_call`` set.
        """
        self._ensure_idle(context)
        context.push_message(Message.user(user_text))
        reply = await self.complete(context)
        context.push_message(reply)
        return reply

    async def complete_with_message(
        self, context: ChatContext, message: Message
    ) -> ChatResponse:
        """
        Append *message*, request a completion and return the whole envelope.

        The reply is *not* added to the context so the caller can inspect all
        choices before deciding what to keep.
        """
        self._ensure_idle(context)
        context.push_message(message)
        return await self._request(context)
