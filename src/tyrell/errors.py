"""Exceptions raised by the tyrell client."""

from typing import Any


class TyrellError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(TyrellError, ValueError):
    """A request builder was finalized with missing or invalid fields.

    Attributes:
        fields: Names of the offending fields, in the order they were checked.
    """

    def __init__(self, problems: dict[str, str]):
        self.fields: tuple[str, ...] = tuple(problems)
        self.problems = dict(problems)
        details = "; ".join(f"{name}: {reason}" for name, reason in problems.items())
        super().__init__(f"Invalid request ({details})")


class TransportError(TyrellError):
    """The endpoint could not be reached or the connection failed before a response arrived."""


class ProtocolError(TyrellError):
    """A response was received but could not be parsed into a chat response."""

    def __init__(self, message: str, body: str | None = None):
        super().__init__(message)
        self.body = body


class RemoteError(TyrellError):
    """The endpoint reported a failure.

    Attributes:
        status: HTTP status code of the reply.
        error_type: Error kind reported by the endpoint, e.g. ``invalid_request_error``.
        message: Human readable detail supplied by the endpoint.
        body: Decoded error payload when it was JSON, otherwise the raw text.
    """

    def __init__(self, status: int, error_type: str | None, message: str, body: Any = None):
        self.status = status
        self.error_type = error_type
        self.message = message
        self.body = body
        kind = f" {error_type}" if error_type else ""
        super().__init__(f"Request failed with status {status}{kind}: {message}")
