"""Core turn types: a single conversation message and its function call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from chatfn.errors import MessageBuildError
from chatfn.llm.escape import escape_json, quote_json
from chatfn.llm.wire import encode_object, expect_object, load_json, optional, require

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_FUNCTION = "function"


@dataclass
class FunctionCall:
    """An assistant's request to invoke a declared function."""

    name: str
    arguments: str  # serialized JSON, carried as an opaque string

    def encode_for_wire(self) -> str:
        # The name is emitted verbatim; only the arguments payload is escaped.
        return encode_object(
            [
                ("name", f'"{self.name}"'),
                ("arguments", quote_json(self.arguments)),
            ]
        )

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "arguments": self.arguments}

    @classmethod
    def from_dict(cls, data: Any) -> FunctionCall:
        data = expect_object(data, "function_call")
        return cls(
            name=require(data, "name", str, "function_call"),
            arguments=require(data, "arguments", str, "function_call"),
        )


@dataclass
class Message:
    """
    A single turn in a conversation.

    ``content`` is ``None`` when the turn carries no text (e.g. an assistant
    turn that only requests a function call).  That is distinct from ``""``
    on decode, but both encode to ``"content":""`` because the endpoint
    rejects requests whose messages lack a ``content`` key.
    """

    role: str  # "system", "user", "assistant", "function"
    content: str | None = None
    name: str | None = None
    function_call: FunctionCall | None = None

    @classmethod
    def user(cls, text: str) -> Message:
        """
        Build a user turn from raw text.

        The text is escaped here, so ``content`` holds the escaped form, not
        the literal input.
        """
        return cls(role=ROLE_USER, content=escape_json(text))

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def set_content(self, content: str) -> None:
        self.content = content

    def set_name(self, name: str) -> None:
        self.name = name

    def set_function_call(self, function_call: FunctionCall) -> None:
        self.function_call = function_call

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def encode_for_wire(self) -> str:
        """Encode as ``{"role","content"[,"name"][,"function_call"]}``."""
        members = [
            ("role", quote_json(self.role)),
            ("content", quote_json(self.content or "")),
        ]
        if self.name is not None:
            members.append(("name", quote_json(self.name)))
        if self.function_call is not None:
            members.append(("function_call", self.function_call.encode_for_wire()))
        return encode_object(members)

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        data = expect_object(data, "message")
        fc = data.get("function_call")
        return cls(
            role=require(data, "role", str, "message"),
            content=optional(data, "content", str, "message"),
            name=optional(data, "name", str, "message"),
            function_call=FunctionCall.from_dict(fc) if fc is not None else None,
        )

    @classmethod
    def decode(cls, text: str | bytes) -> Message:
        """Decode a single wire-format message."""
        return cls.from_dict(load_json(text))

    def to_dict(self) -> dict[str, Any]:
        """Lossless plain-dict snapshot (keeps ``content=None``)."""
        d: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            d["name"] = self.name
        if self.function_call is not None:
            d["function_call"] = self.function_call.to_dict()
        return d


class MessageBuilder:
    """
    Accumulates optional fields and produces a validated :class:`Message`.

    Usage::

        msg = (
            MessageBuilder()
            .role("function")
            .name("get_current_weather")
            .content('{"temperature": 22}')
            .build()
        )

    ``build()`` defaults the role to ``"user"`` and escapes the content
    exactly once.
    """

    def __init__(self) -> None:
        self._role: str | None = None
        self._content: str | None = None
        self._name: str | None = None
        self._function_call: FunctionCall | None = None

    def role(self, role: str) -> MessageBuilder:
        self._role = role
        return self

    def content(self, content: str) -> MessageBuilder:
        self._content = content
        return self

    def name(self, name: str) -> MessageBuilder:
        self._name = name
        return self

    def function_call(self, function_call: FunctionCall) -> MessageBuilder:
        self._function_call = function_call
        return self

    def build(self) -> Message:
        """
        Raises
        ------
        MessageBuildError
            If the role is empty, or a ``function`` turn has no name.
        """
        role = ROLE_USER if self._role is None else self._role
        if not role:
            raise MessageBuildError("Message role must not be empty")
        if role == ROLE_FUNCTION and not self._name:
            raise MessageBuildError("A 'function' message requires a name")

        content = escape_json(self._content) if self._content is not None else None
        return Message(
            role=role,
            content=content,
            name=self._name,
            function_call=self._function_call,
        )
