"""
Function declarations advertised to the assistant.

A :class:`FunctionSpecification` describes a capability the assistant may
invoke instead of replying with text.  Its ``parameters`` follow a small
subset of JSON Schema (an object with typed, optionally enumerated
properties).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import jsonschema

from chatfn.errors import DecodeError, FunctionArgumentsError
from chatfn.llm.escape import quote_json
from chatfn.llm.wire import (
    encode_array,
    encode_object,
    expect_object,
    load_json,
    optional,
    require,
)

# The endpoint documents ``parameters`` as optional but rejects declarations
# without it.
EMPTY_PARAMETERS_WIRE = '{"type":"object","properties":{}}'


@dataclass
class Property:
    type: str
    description: str | None = None
    enum: list[str] | None = None

    def encode_for_wire(self) -> str:
        members = [("type", quote_json(self.type))]
        if self.description is not None:
            members.append(("description", quote_json(self.description)))
        if self.enum is not None:
            members.append(("enum", encode_array(quote_json(v) for v in self.enum)))
        return encode_object(members)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": self.type}
        if self.description is not None:
            d["description"] = self.description
        if self.enum is not None:
            d["enum"] = list(self.enum)
        return d

    @classmethod
    def from_dict(cls, data: Any) -> Property:
        data = expect_object(data, "property")
        enum = optional(data, "enum", list, "property")
        if enum is not None and not all(isinstance(v, str) for v in enum):
            raise DecodeError("property: 'enum' must be a list of strings")
        return cls(
            type=require(data, "type", str, "property"),
            description=optional(data, "description", str, "property"),
            enum=enum,
        )


@dataclass
class Parameters:
    """JSON-Schema-like object describing a function's arguments."""

    type: str = "object"
    properties: dict[str, Property] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    def encode_for_wire(self) -> str:
        members = [
            ("type", quote_json(self.type)),
            (
                "properties",
                encode_object(
                    (name, prop.encode_for_wire())
                    for name, prop in self.properties.items()
                ),
            ),
        ]
        if self.required:
            members.append(("required", encode_array(quote_json(r) for r in self.required)))
        return encode_object(members)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "type": self.type,
            "properties": {k: p.to_dict() for k, p in self.properties.items()},
        }
        if self.required:
            d["required"] = list(self.required)
        return d

    @classmethod
    def from_dict(cls, data: Any) -> Parameters:
        data = expect_object(data, "parameters")
        raw_props = optional(data, "properties", dict, "parameters") or {}
        required = optional(data, "required", list, "parameters") or []
        if not all(isinstance(r, str) for r in required):
            raise DecodeError("parameters: 'required' must be a list of strings")
        return cls(
            type=optional(data, "type", str, "parameters") or "object",
            properties={name: Property.from_dict(p) for name, p in raw_props.items()},
            required=list(required),
        )


@dataclass
class FunctionSpecification:
    """A callable-function declaration."""

    name: str
    description: str | None = None
    parameters: Parameters | None = None

    def encode_for_wire(self) -> str:
        members = [("name", quote_json(self.name))]
        if self.description is not None:
            members.append(("description", quote_json(self.description)))
        if self.parameters is not None:
            members.append(("parameters", self.parameters.encode_for_wire()))
        else:
            members.append(("parameters", EMPTY_PARAMETERS_WIRE))
        return encode_object(members)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            d["description"] = self.description
        if self.parameters is not None:
            d["parameters"] = self.parameters.to_dict()
        return d

    @classmethod
    def from_dict(cls, data: Any) -> FunctionSpecification:
        data = expect_object(data, "function")
        params = data.get("parameters")
        return cls(
            name=require(data, "name", str, "function"),
            description=optional(data, "description", str, "function"),
            parameters=Parameters.from_dict(params) if params is not None else None,
        )

    @classmethod
    def decode(cls, text: str | bytes) -> FunctionSpecification:
        return cls.from_dict(load_json(text))

    # ------------------------------------------------------------------
    # Argument validation
    # ------------------------------------------------------------------

    def json_schema(self) -> dict[str, Any]:
        """The declared parameters as a JSON Schema usable by ``jsonschema``."""
        schema = self.parameters.to_dict() if self.parameters else {"type": "object", "properties": {}}
        schema.setdefault("additionalProperties", False)
        return schema

    def validate_arguments(self, arguments: str) -> dict[str, Any]:
        """
        Parse a ``FunctionCall.arguments`` payload and check it against the
        declared parameters.

        Returns the parsed arguments.

        Raises
        ------
        FunctionArgumentsError
            If the payload is not a JSON object or violates the schema.
        """
        try:
            parsed = json.loads(arguments or "{}")
        except json.JSONDecodeError as exc:
            raise FunctionArgumentsError(
                f"Arguments for {self.name!r} are not valid JSON: {exc}",
                function_name=self.name,
            ) from exc
        try:
            jsonschema.validate(instance=parsed, schema=self.json_schema())
        except jsonschema.ValidationError as exc:
            raise FunctionArgumentsError(
                f"Arguments for {self.name!r} do not match the declaration: {exc.message}",
                function_name=self.name,
            ) from exc
        return parsed


def load_functions(text: str | bytes) -> list[FunctionSpecification]:
    """
    Decode one declaration or a list of declarations from JSON text.
    """
    data = load_json(text)
    if isinstance(data, list):
        return [FunctionSpecification.from_dict(item) for item in data]
    return [FunctionSpecification.from_dict(data)]
