"""LLM subsystem -- turn model, function declarations, response envelope."""

from chatfn.llm.escape import escape_json
from chatfn.llm.functions import (
    FunctionSpecification,
    Parameters,
    Property,
    load_functions,
)
from chatfn.llm.response import ChatResponse, Choice, Usage, decode_response
from chatfn.llm.types import FunctionCall, Message, MessageBuilder

__all__ = [
    "ChatResponse",
    "Choice",
    "FunctionCall",
    "FunctionSpecification",
    "Message",
    "MessageBuilder",
    "Parameters",
    "Property",
    "Usage",
    "decode_response",
    "escape_json",
    "load_functions",
]
