"""
Error Taxonomy

Failures of outbound inference calls are never raised across the Operation
boundary. They are described by an ErrorKind and carried as data inside a
Failed operation so that every consumer (CLI, HTTP service, tests) can render
them the same way.

Exceptions are reserved for programming and UI-discipline errors, such as
starting an operation that is already pending.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kind of terminal failure carried by a Failed operation."""

    RATE_LIMITED = "rate_limited"
    SERVICE_ERROR = "service_error"
    MALFORMED_RESPONSE = "malformed_response"
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_STATE = "invalid_state"
    TRANSPORT_ERROR = "transport_error"
    UNEXPECTED = "unexpected"


_MESSAGES = {
    ErrorKind.RATE_LIMITED: "The service is busy (rate limited). Please try again in a moment.",
    ErrorKind.MALFORMED_RESPONSE: "The service returned an unexpected response.",
    ErrorKind.MISSING_CREDENTIAL: "API key missing.",
    ErrorKind.INVALID_STATE: "An operation is already in progress.",
    ErrorKind.TRANSPORT_ERROR: "Could not reach the service.",
    ErrorKind.UNEXPECTED: "Something went wrong.",
}


@dataclass(frozen=True)
class OperationError:
    """
    Failure attached to a Failed operation.

    Attributes:
        kind: Category of the failure
        detail: Technical detail (status line, parser complaint, exception text)
        status: HTTP status code when the failure came from a response
    """

    kind: ErrorKind
    detail: str = ""
    status: Optional[int] = None

    @property
    def message(self) -> str:
        """Short, user-facing text suitable for rendering as-is."""
        if self.kind == ErrorKind.SERVICE_ERROR:
            if self.status is not None:
                return f"Service error ({self.status})."
            return "Service error."
        return _MESSAGES[self.kind]


class AtelierError(Exception):
    """Base class for errors raised by atelier."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNEXPECTED):
        super().__init__(message)
        self.kind = kind


class InvalidStateError(AtelierError):
    """Raised when an operation is started or completed from the wrong state."""

    def __init__(self, message: str):
        super().__init__(message, kind=ErrorKind.INVALID_STATE)
