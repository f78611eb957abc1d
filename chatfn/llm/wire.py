"""
Low-level helpers shared by the wire encoders and decoders.

Encoders build JSON objects from ``(key, encoded_value)`` pairs; absent fields
are simply not in the list, so separators only ever appear *between* present
members.  Decoders go through ``json`` and then check each field's shape,
raising :class:`~chatfn.errors.DecodeError` instead of ``KeyError`` /
``TypeError``.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from chatfn.errors import DecodeError
from chatfn.llm.escape import quote_json


def encode_object(members: Iterable[tuple[str, str]]) -> str:
    """Join already-encoded members into a JSON object."""
    return "{" + ",".join(f"{quote_json(k)}:{v}" for k, v in members) + "}"


def encode_array(items: Iterable[str]) -> str:
    """Join already-encoded items into a JSON array."""
    return "[" + ",".join(items) + "]"


def load_json(text: str | bytes) -> Any:
    """Parse *text* as JSON, raising ``DecodeError`` with the raw text attached."""
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(
                f"Invalid UTF-8: {exc}", raw=text.decode("utf-8", errors="replace")
            ) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Invalid JSON: {exc}", raw=text) from exc


def expect_object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def require(data: dict[str, Any], key: str, kind: type | tuple[type, ...], what: str) -> Any:
    """Return ``data[key]``, which must be present, non-null and of *kind*."""
    if key not in data or data[key] is None:
        raise DecodeError(f"{what}: missing required field {key!r}")
    value = data[key]
    # bool is an int subclass; JSON true/false is never a counter.
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is int):
        raise DecodeError(
            f"{what}: field {key!r} has unexpected type {type(value).__name__}"
        )
    return value


def optional(data: dict[str, Any], key: str, kind: type | tuple[type, ...], what: str) -> Any:
    """Return ``data[key]`` or ``None`` when the key is absent or null."""
    if data.get(key) is None:
        return None
    return require(data, key, kind, what)


def require_uint(data: dict[str, Any], key: str, what: str) -> int:
    value = require(data, key, int, what)
    if value < 0:
        raise DecodeError(f"{what}: field {key!r} must be non-negative")
    return value
