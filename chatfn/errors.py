"""Error taxonomy for the chat client."""

from __future__ import annotations


class ChatError(Exception):
    """Structured error from a chat-client operation."""

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code


class TransportError(ChatError):
    """The transport could not deliver a response (network, auth, HTTP status)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message, code="transport_error")
        self.status_code = status_code


class DecodeError(ChatError):
    """
    Reply bytes did not decode into the expected shape.

    *raw* holds the offending text (after any normalization) for diagnostics.
    """

    def __init__(self, message: str, raw: str = "", code: str = "decode_error"):
        super().__init__(message, code=code)
        self.raw = raw


class MissingChoiceError(DecodeError):
    """The response envelope decoded but carried zero choices."""

    def __init__(self, raw: str = ""):
        super().__init__(
            "Response envelope contains no choices", raw=raw, code="missing_choice"
        )


class MessageBuildError(ChatError):
    def __init__(self, message: str):
        super().__init__(message, code="message_build_error")


class FunctionArgumentsError(ChatError):
    def __init__(self, message: str, function_name: str = ""):
        super().__init__(message, code="function_arguments_error")
        self.function_name = function_name


class CompletionInProgressError(ChatError):
    """A completion was requested for a context that is already awaiting one."""

    def __init__(self, message: str = "A completion is already in flight for this context"):
        super().__init__(message, code="completion_in_progress")
