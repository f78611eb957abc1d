"""
Conversation context: the ordered state sent with every completion request.

A :class:`ChatContext` owns

1.  the model identifier that answers the conversation,
2.  the ordered list of :class:`~chatfn.llm.types.Message` turns (the whole
    memory of the exchange),
3.  the function declarations currently advertised, and
4.  an optional ``function_call`` directive (``"auto"``, ``"none"``, or a
    function name).

Contexts are single-writer.  Nothing is pruned automatically; keeping the
history within the model's window is up to the caller.
"""

from __future__ import annotations

from typing import Any, Iterable

from chatfn.errors import DecodeError
from chatfn.llm.escape import quote_json
from chatfn.llm.functions import FunctionSpecification
from chatfn.llm.types import Message
from chatfn.llm.wire import encode_array, encode_object, expect_object, optional, require


class ChatContext:
    """
    Ordered conversation state bound to one model.

    Parameters
    ----------
    model:
        Model identifier sent in the ``model`` field.
    """

    def __init__(self, model: str) -> None:
        self.model = model
        self.messages: list[Message] = []
        self.functions: list[FunctionSpecification] = []
        self.function_call: str | None = None

    def __repr__(self) -> str:
        return (
            f"ChatContext(model={self.model!r}, messages={len(self.messages)}, "
            f"functions={[f.name for f in self.functions]}, "
            f"function_call={self.function_call!r})"
        )

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def push_message(self, message: Message) -> None:
        """Append a turn.  Role ordering is not checked."""
        self.messages.append(message)

    def set_messages(self, messages: Iterable[Message]) -> None:
        """Replace the whole history (e.g. when restoring a saved conversation)."""
        self.messages = list(messages)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def push_function(self, function: FunctionSpecification) -> None:
        """
        Advertise another function.

        Raises ``ValueError`` if a function with the same name is already
        declared.
        """
        if any(f.name == function.name for f in self.functions):
            raise ValueError(f"Function already declared: {function.name}")
        self.functions.append(function)

    def set_functions(self, functions: Iterable[FunctionSpecification]) -> None:
        """Replace all declarations.  Raises ``ValueError`` on duplicate names."""
        new = list(functions)
        seen: set[str] = set()
        for f in new:
            if f.name in seen:
                raise ValueError(f"Function already declared: {f.name}")
            seen.add(f.name)
        self.functions = new

    def get_function(self, name: str) -> FunctionSpecification | None:
        for f in self.functions:
            if f.name == name:
                return f
        return None

    def set_function_call(self, directive: str | None) -> None:
        self.function_call = directive

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def last_content(self) -> str | None:
        """Content of the last turn, or ``None``."""
        if not self.messages:
            return None
        return self.messages[-1].content

    def last_function_call(self) -> tuple[str, str] | None:
        """``(name, arguments)`` of the last turn's function call, or ``None``."""
        if not self.messages:
            return None
        fc = self.messages[-1].function_call
        if fc is None:
            return None
        return fc.name, fc.arguments

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def encode_for_wire(self) -> str:
        """
        Encode the request body.

        Keys are emitted in the order ``model, messages, functions,
        function_call``.  Empty ``messages`` / ``functions`` lists and an
        unset directive are left out entirely.
        """
        members = [("model", quote_json(self.model))]
        if self.messages:
            members.append(
                ("messages", encode_array(m.encode_for_wire() for m in self.messages))
            )
        if self.functions:
            members.append(
                ("functions", encode_array(f.encode_for_wire() for f in self.functions))
            )
        if self.function_call is not None:
            members.append(("function_call", quote_json(self.function_call)))
        return encode_object(members)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Lossless snapshot for persistence (unlike the wire encoding)."""
        return {
            "model": self.model,
            "messages": [m.to_dict() for m in self.messages],
            "functions": [f.to_dict() for f in self.functions],
            "function_call": self.function_call,
        }

    @classmethod
    def from_dict(cls, data: Any) -> ChatContext:
        data = expect_object(data, "context")
        ctx = cls(require(data, "model", str, "context"))
        raw_messages = optional(data, "messages", list, "context") or []
        raw_functions = optional(data, "functions", list, "context") or []
        ctx.set_messages(Message.from_dict(m) for m in raw_messages)
        try:
            ctx.set_functions(FunctionSpecification.from_dict(f) for f in raw_functions)
        except ValueError as exc:
            raise DecodeError(f"context: {exc}") from exc
        ctx.set_function_call(optional(data, "function_call", str, "context"))
        return ctx
