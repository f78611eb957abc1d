"""Tests for the turn model: Message, FunctionCall and MessageBuilder."""

from __future__ import annotations

import json

import pytest

from chatfn.errors import DecodeError, MessageBuildError
from chatfn.llm.escape import escape_json
from chatfn.llm.types import FunctionCall, Message, MessageBuilder


# ===================================================================
# FunctionCall
# ===================================================================


class TestFunctionCallEncoding:
    def test_arguments_are_escaped(self):
        fc = FunctionCall(name="name", arguments='{"example":"this"}')
        assert (
            fc.encode_for_wire()
            == '{"name":"name","arguments":"{\\"example\\":\\"this\\"}"}'
        )

    def test_empty_name(self):
        fc = FunctionCall(name="", arguments='{"example":"this"}')
        assert (
            fc.encode_for_wire()
            == '{"name":"","arguments":"{\\"example\\":\\"this\\"}"}'
        )

    def test_empty_object_arguments(self):
        fc = FunctionCall(name="name", arguments="{}")
        assert fc.encode_for_wire() == '{"name":"name","arguments":"{}"}'

    def test_arguments_survive_json_decoding(self):
        args = '{\n  "city": "Paris, \\"FR\\""\n}'
        fc = FunctionCall(name="get_weather", arguments=args)
        assert json.loads(fc.encode_for_wire())["arguments"] == args


# ===================================================================
# Message encoding
# ===================================================================


class TestMessageEncoding:
    def test_empty_message_still_has_content(self):
        msg = Message("role")
        assert msg.encode_for_wire() == '{"role":"role","content":""}'

    def test_fields_in_fixed_order(self):
        msg = Message("role")
        msg.set_content("content")
        assert msg.encode_for_wire() == '{"role":"role","content":"content"}'

        msg.set_name("name")
        assert (
            msg.encode_for_wire()
            == '{"role":"role","content":"content","name":"name"}'
        )

        msg.set_function_call(FunctionCall(name="name", arguments="arguments"))
        assert msg.encode_for_wire() == (
            '{"role":"role","content":"content","name":"name",'
            '"function_call":{"name":"name","arguments":"arguments"}}'
        )

    def test_content_with_special_characters(self):
        msg = Message("role")
        msg.set_content(
            'content with "quotes" and a \nnewline, and other stuff like \\ "\n\r\t\x08\x0c"'
        )
        assert msg.encode_for_wire() == (
            '{"role":"role","content":"content with \\"quotes\\" and a \\nnewline, '
            'and other stuff like \\\\ \\"\\n\\r\\t\\b\\f\\""}'
        )

    def test_function_call_without_content_emits_empty_content(self):
        msg = Message(
            role="assistant",
            function_call=FunctionCall(name="f", arguments="{}"),
        )
        decoded = json.loads(msg.encode_for_wire())
        assert decoded["content"] == ""
        assert "name" not in decoded
        assert decoded["function_call"] == {"name": "f", "arguments": "{}"}

    def test_repr_is_not_wire_format(self):
        msg = Message("user", content="hi")
        assert repr(msg) != msg.encode_for_wire()
        assert repr(msg).startswith("Message(")


class TestUserMessage:
    def test_content_escaped_at_construction(self):
        text = 'content with "quotes" and other\' stuff \\'
        msg = Message.user(text)
        assert msg.role == "user"
        assert msg.content == escape_json(text)

    def test_escaped_content_is_escaped_again_on_the_wire(self):
        msg = Message.user('content with "quotes" and other\' stuff \\')
        assert (
            msg.encode_for_wire()
            == "{\"role\":\"user\",\"content\":\"content with \\\\\\\"quotes\\\\\\\" and other' stuff \\\\\\\\\"}"
        )

    def test_plain_text_is_unchanged(self):
        msg = Message.user("Hello")
        assert msg.encode_for_wire() == '{"role":"user","content":"Hello"}'


# ===================================================================
# Message decoding
# ===================================================================


class TestMessageDecoding:
    def test_null_content_function_call_keeps_newlines(self):
        raw = r"""{
            "role": "assistant",
            "content": null,
            "function_call": {
                "name": "completion_managed",
                "arguments": "{\n  \"content\": \"Hi model, how are you today?\"\n}"
            }
        }"""
        msg = Message.decode(raw)

        assert msg.role == "assistant"
        assert msg.content is None
        assert msg.function_call == FunctionCall(
            name="completion_managed",
            arguments='{\n  "content": "Hi model, how are you today?"\n}',
        )
        assert msg.encode_for_wire() == (
            "{\"role\":\"assistant\",\"content\":\"\",\"function_call\":"
            "{\"name\":\"completion_managed\",\"arguments\":"
            "\"{\\n  \\\"content\\\": \\\"Hi model, how are you today?\\\"\\n}\"}}"
        )

    def test_short_function_call_scenario(self):
        raw = '{"role":"assistant","content":null,"function_call":{"name":"f","arguments":"{\\n\\"x\\":1\\n}"}}'
        msg = Message.decode(raw)
        assert msg.content is None
        assert msg.function_call == FunctionCall(name="f", arguments='{\n"x":1\n}')

    def test_missing_content_decodes_to_none(self):
        msg = Message.decode('{"role":"assistant"}')
        assert msg.content is None
        assert msg.function_call is None
        assert msg.name is None

    def test_empty_content_stays_empty_string(self):
        msg = Message.decode('{"role":"assistant","content":""}')
        assert msg.content == ""

    def test_missing_role_raises(self):
        with pytest.raises(DecodeError, match="role"):
            Message.decode('{"content":"hi"}')

    def test_wrong_content_type_raises(self):
        with pytest.raises(DecodeError, match="content"):
            Message.decode('{"role":"user","content":42}')

    def test_invalid_json_raises_with_raw(self):
        with pytest.raises(DecodeError) as info:
            Message.decode("{not json")
        assert info.value.raw == "{not json"

    def test_function_call_missing_arguments_raises(self):
        with pytest.raises(DecodeError, match="arguments"):
            Message.decode('{"role":"assistant","function_call":{"name":"f"}}')


class TestEncodeDecode:
    @pytest.mark.parametrize(
        "msg",
        [
            Message("user", content='He said "hi"\nthen left'),
            Message("function", content='{"temp": 21}', name="get_weather"),
            Message(
                "assistant",
                content="calling",
                function_call=FunctionCall("lookup", '{"q": "a\\\\b"}'),
            ),
            Message("system", content="ünïcödé \\ and \t tabs"),
        ],
    )
    def test_fields_preserved(self, msg):
        decoded = Message.decode(msg.encode_for_wire())
        assert decoded == msg

    def test_to_dict_keeps_none_content(self):
        msg = Message("assistant", function_call=FunctionCall("f", "{}"))
        assert msg.to_dict() == {
            "role": "assistant",
            "content": None,
            "function_call": {"name": "f", "arguments": "{}"},
        }
        assert Message.from_dict(msg.to_dict()) == msg


# ===================================================================
# MessageBuilder
# ===================================================================


class TestMessageBuilder:
    def test_full_build(self):
        msg = (
            MessageBuilder()
            .content("content with \"quotes\" and other/' stuff \\")
            .name("name")
            .role("role")
            .function_call(FunctionCall(name="name", arguments='{"example":"this"}'))
            .build()
        )
        assert msg.encode_for_wire() == (
            "{\"role\":\"role\",\"content\":\"content with \\\\\\\"quotes\\\\\\\" "
            "and other/' stuff \\\\\\\\\",\"name\":\"name\",\"function_call\":"
            "{\"name\":\"name\",\"arguments\":\"{\\\"example\\\":\\\"this\\\"}\"}}"
        )

    def test_role_defaults_to_user(self):
        msg = MessageBuilder().content("hi").build()
        assert msg.role == "user"
        assert msg.content == "hi"

    def test_no_content_stays_none(self):
        msg = MessageBuilder().role("assistant").build()
        assert msg.content is None

    def test_content_escaped_once(self):
        msg = MessageBuilder().content('a "b"').build()
        assert msg.content == 'a \\"b\\"'

    def test_empty_role_rejected(self):
        with pytest.raises(MessageBuildError, match="role"):
            MessageBuilder().role("").build()

    def test_function_role_requires_name(self):
        with pytest.raises(MessageBuildError, match="name"):
            MessageBuilder().role("function").content("{}").build()

    def test_function_role_with_name(self):
        msg = MessageBuilder().role("function").name("get_weather").content("{}").build()
        assert msg.role == "function"
        assert msg.name == "get_weather"
