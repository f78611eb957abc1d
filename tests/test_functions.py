"""Tests for function declarations and argument validation."""

from __future__ import annotations

import json

import pytest

from chatfn.errors import DecodeError, FunctionArgumentsError
from chatfn.llm.functions import (
    FunctionSpecification,
    Parameters,
    Property,
    load_functions,
)

WEATHER_JSON = """
{
    "name": "get_current_weather",
    "description": "Get the current weather in a given location",
    "parameters": {
        "type": "object",
        "properties": {
            "location": {
                "type": "string",
                "description": "The city and state, e.g. San Francisco, CA"
            },
            "unit": {
                "type": "string",
                "enum": ["celsius", "fahrenheit"]
            }
        },
        "required": ["location"]
    }
}
"""


@pytest.fixture
def weather() -> FunctionSpecification:
    return FunctionSpecification.decode(WEATHER_JSON)


class TestDecoding:
    def test_structure(self, weather):
        assert weather.name == "get_current_weather"
        assert weather.description == "Get the current weather in a given location"
        assert weather.parameters is not None
        assert weather.parameters.type == "object"
        assert len(weather.parameters.properties) == 2
        assert weather.parameters.required == ["location"]

    def test_properties(self, weather):
        location = weather.parameters.properties["location"]
        assert location.type == "string"
        assert location.description == "The city and state, e.g. San Francisco, CA"
        assert location.enum is None

        unit = weather.parameters.properties["unit"]
        assert unit.description is None
        assert unit.enum == ["celsius", "fahrenheit"]

    def test_property_order_preserved(self, weather):
        assert list(weather.parameters.properties) == ["location", "unit"]

    def test_enum_order_preserved(self):
        prop = Property.from_dict({"type": "string", "enum": ["z", "a", "m"]})
        assert prop.enum == ["z", "a", "m"]

    def test_minimal_declaration(self):
        spec = FunctionSpecification.decode('{"name": "ping"}')
        assert spec.description is None
        assert spec.parameters is None

    def test_missing_name_raises(self):
        with pytest.raises(DecodeError, match="name"):
            FunctionSpecification.decode('{"description": "no name"}')

    def test_non_string_enum_raises(self):
        with pytest.raises(DecodeError, match="enum"):
            Property.from_dict({"type": "integer", "enum": [1, 2]})

    def test_load_functions_accepts_list_and_single(self):
        assert [f.name for f in load_functions(WEATHER_JSON)] == ["get_current_weather"]
        many = load_functions('[{"name": "a"}, {"name": "b"}]')
        assert [f.name for f in many] == ["a", "b"]


class TestEncoding:
    def test_absent_parameters_get_placeholder(self):
        spec = FunctionSpecification(name="ping")
        assert (
            spec.encode_for_wire()
            == '{"name":"ping","parameters":{"type":"object","properties":{}}}'
        )

    def test_description_only_when_set(self):
        spec = FunctionSpecification(name="ping", description="Check liveness")
        assert spec.encode_for_wire() == (
            '{"name":"ping","description":"Check liveness",'
            '"parameters":{"type":"object","properties":{}}}'
        )

    def test_full_declaration(self, weather):
        assert weather.encode_for_wire() == (
            '{"name":"get_current_weather",'
            '"description":"Get the current weather in a given location",'
            '"parameters":{"type":"object","properties":{'
            '"location":{"type":"string","description":"The city and state, e.g. San Francisco, CA"},'
            '"unit":{"type":"string","enum":["celsius","fahrenheit"]}},'
            '"required":["location"]}}'
        )

    def test_encoding_is_valid_json_and_round_trips(self, weather):
        assert FunctionSpecification.from_dict(json.loads(weather.encode_for_wire())) == weather

    def test_description_is_escaped(self):
        spec = FunctionSpecification(name="say", description='Say "hi"\nloudly')
        assert json.loads(spec.encode_for_wire())["description"] == 'Say "hi"\nloudly'

    def test_empty_required_omitted(self):
        params = Parameters(properties={"q": Property(type="string")})
        assert params.encode_for_wire() == '{"type":"object","properties":{"q":{"type":"string"}}}'


class TestValidateArguments:
    """Argument payloads checked against the declared schema."""

    def test_valid_args_pass(self, weather):
        args = weather.validate_arguments('{"location": "Boston, MA"}')
        assert args == {"location": "Boston, MA"}

    def test_valid_enum_value(self, weather):
        args = weather.validate_arguments('{"location": "Oslo", "unit": "celsius"}')
        assert args["unit"] == "celsius"

    def test_missing_required_arg_fails(self, weather):
        with pytest.raises(FunctionArgumentsError) as info:
            weather.validate_arguments("{}")
        assert "location" in str(info.value)
        assert info.value.function_name == "get_current_weather"

    def test_enum_violation_fails(self, weather):
        with pytest.raises(FunctionArgumentsError):
            weather.validate_arguments('{"location": "Oslo", "unit": "kelvin"}')

    def test_extra_unknown_keys_rejected(self, weather):
        with pytest.raises(FunctionArgumentsError):
            weather.validate_arguments('{"location": "Oslo", "rogue": "value"}')

    def test_type_mismatch(self, weather):
        with pytest.raises(FunctionArgumentsError):
            weather.validate_arguments('{"location": 12345}')

    def test_invalid_json(self, weather):
        with pytest.raises(FunctionArgumentsError, match="not valid JSON"):
            weather.validate_arguments('{"location": ')

    def test_no_parameters_accepts_empty_object(self):
        spec = FunctionSpecification(name="ping")
        assert spec.validate_arguments("") == {}
        assert spec.validate_arguments("{}") == {}

    def test_newlines_in_arguments_are_fine(self, weather):
        args = weather.validate_arguments('{\n  "location": "Paris"\n}')
        assert args == {"location": "Paris"}
