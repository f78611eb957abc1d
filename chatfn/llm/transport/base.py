"""Abstract base class for completion transports."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Transport(ABC):
    """
    A transport delivers an encoded request body to a chat-completion
    endpoint and hands back the raw reply text.

    Implementations must raise :class:`~chatfn.errors.TransportError` when no
    reply can be obtained.  Timeouts and cancellation are the transport's
    concern; the engine imposes none.
    """

    @abstractmethod
    async def send(self, body: str) -> str:
        """POST *body* and return the raw response text."""
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable transport name (e.g. ``"http"``)."""
        ...
