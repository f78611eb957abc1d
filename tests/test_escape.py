"""Tests for chatfn.llm.escape."""

from __future__ import annotations

import json

import pytest

from chatfn.llm.escape import escape_json, quote_json


class TestEscapeJson:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ('"', '\\"'),
            ("\\", "\\\\"),
            ("\n", "\\n"),
            ("\r", "\\r"),
            ("\t", "\\t"),
            ("\x08", "\\b"),
            ("\x0c", "\\f"),
        ],
    )
    def test_single_characters(self, raw, expected):
        assert escape_json(raw) == expected

    def test_mixed_sequence(self):
        assert escape_json('"\\n\\r\\t\x08\x0c') == '\\"\\\\n\\\\r\\\\t\\b\\f'

    def test_repeated_quotes(self):
        assert escape_json('"""') == '\\"\\"\\"'

    def test_text_with_quotes_and_newline(self):
        text = 'text with "quotes" and a \nnewline'
        assert escape_json(text) == 'text with \\"quotes\\" and a \\nnewline'

    def test_non_ascii_passes_through(self):
        assert escape_json("héllo wörld ☃ 日本") == "héllo wörld ☃ 日本"

    def test_empty_string(self):
        assert escape_json("") == ""

    def test_quote_json_wraps(self):
        assert quote_json('a"b') == '"a\\"b"'


class TestRoundTrip:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain",
            'He said "hi"',
            "C:\\path\\to\\file",
            "line one\nline two\r\n\ttabbed",
            "\x08\x0c",
            '{"nested": "json \\"inside\\""}',
            "unicode ✓ ünïcödé",
            "\\n is not a newline",
        ],
    )
    def test_decoding_escaped_text_restores_original(self, text):
        assert json.loads(quote_json(text)) == text
