"""
Decoded chat-completion response envelope.

The envelope has the shape::

    {"id": str, "object": str, "created": uint,
     "choices": [{"index": uint, "message": <message>, "finish_reason": str}],
     "usage": {"prompt_tokens": uint, "completion_tokens": uint,
               "total_tokens": uint}}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chatfn.errors import DecodeError
from chatfn.llm.types import Message
from chatfn.llm.wire import expect_object, load_json, require, require_uint


@dataclass
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> Usage:
        data = expect_object(data, "usage")
        return cls(
            prompt_tokens=require_uint(data, "prompt_tokens", "usage"),
            completion_tokens=require_uint(data, "completion_tokens", "usage"),
            total_tokens=require_uint(data, "total_tokens", "usage"),
        )


@dataclass
class Choice:
    index: int
    message: Message
    finish_reason: str

    @classmethod
    def from_dict(cls, data: Any) -> Choice:
        data = expect_object(data, "choice")
        return cls(
            index=require_uint(data, "index", "choice"),
            message=Message.from_dict(require(data, "message", dict, "choice")),
            finish_reason=require(data, "finish_reason", str, "choice"),
        )


@dataclass
class ChatResponse:
    id: str
    object: str
    created: int
    choices: list[Choice] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)

    # ------------------------------------------------------------------
    # First-choice accessors
    # ------------------------------------------------------------------

    def message(self) -> Message | None:
        """The first choice's message, i.e. the one the assistant sends."""
        return self.choices[0].message if self.choices else None

    def content(self) -> str | None:
        msg = self.message()
        return msg.content if msg is not None else None

    def function_call(self) -> tuple[str, str] | None:
        msg = self.message()
        if msg is None or msg.function_call is None:
            return None
        return msg.function_call.name, msg.function_call.arguments

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Any) -> ChatResponse:
        data = expect_object(data, "response")
        raw_choices = require(data, "choices", list, "response")
        return cls(
            id=require(data, "id", str, "response"),
            object=require(data, "object", str, "response"),
            created=require_uint(data, "created", "response"),
            choices=[Choice.from_dict(c) for c in raw_choices],
            usage=Usage.from_dict(require(data, "usage", dict, "response")),
        )


def normalize_body(raw: str | bytes) -> str:
    """Decode *raw* as UTF-8 and drop literal newline characters."""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(
                f"Response is not valid UTF-8: {exc}",
                raw=raw.decode("utf-8", errors="replace"),
            ) from exc
    return raw.replace("\n", "")


def decode_response(raw: str | bytes) -> ChatResponse:
    """
    Decode a raw reply body into a :class:`ChatResponse`.

    Literal newline characters are removed from the whole body first: the
    endpoint has been seen to embed raw, unescaped newlines inside string
    values, which strict JSON rejects.  Escaped ``\\n`` sequences are left
    alone, so only newlines that were embedded raw are lost.

    Raises
    ------
    DecodeError
        If the body is not valid UTF-8 or not a well-formed envelope.  The
        normalized text is attached as ``raw``.
    """
    text = normalize_body(raw)
    data = load_json(text)
    try:
        return ChatResponse.from_dict(data)
    except DecodeError as exc:
        exc.raw = text
        raise
