"""
JSON string escaping for hand-built wire payloads.

The chat-completion endpoint rejects payloads whose string fields carry raw
quotes, backslashes or line breaks, so every encoder in this package routes
its string values through :func:`escape_json` before placing them between
double quotes.
"""

from __future__ import annotations

_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\x08": "\\b",
    "\x0c": "\\f",
}


def escape_json(text: str) -> str:
    """
    Return *text* escaped for embedding inside a JSON string literal.

    Only backslash, double quote, newline, carriage return, tab, backspace
    and form feed are rewritten.  Everything else, non-ASCII included, is
    passed through unchanged.
    """
    return "".join(_ESCAPES.get(c, c) for c in text)


def quote_json(text: str) -> str:
    """Escape *text* and wrap it in double quotes."""
    return f'"{escape_json(text)}"'
