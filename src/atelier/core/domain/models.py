"""
Core Domain Models

Data types shared by the orchestration layer:
- Operation: one tracked unit of user-triggered asynchronous work
- Outcome: terminal result of a single request execution
- ImageReference: remote URL or inline base64 image payload
- GeneratedArtifact: generated image plus its optional description
- ChatTranscript: append-only conversation history
- RequestSpec: everything needed to send one HTTP request
"""

import base64
import mimetypes
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from atelier.core.domain.errors import ErrorKind, OperationError


class OperationKind(str, Enum):
    """What a tracked operation does."""

    GENERATE = "generate"
    DESCRIBE = "describe"
    CHAT = "chat"


class OperationState(str, Enum):
    """Lifecycle state of an operation."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OperationState.SUCCEEDED, OperationState.FAILED)


@dataclass
class Operation:
    """
    One user-triggered unit of asynchronous work.

    Only OperationStateMachine moves an operation between states. `result`
    is set only when Succeeded and `error` only when Failed; both stay None
    while Idle or Pending. Once terminal, the operation is never modified.

    Attributes:
        kind: Generate, Describe or Chat
        id: Unique identifier for this invocation
        state: Current lifecycle state
        attempt: Number of HTTP attempts made so far
        result: Payload on success (image reference, description, reply)
        error: Failure details on failure
    """

    kind: OperationKind
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: OperationState = OperationState.IDLE
    attempt: int = 0
    result: Any = None
    error: Optional[OperationError] = None

    @property
    def succeeded(self) -> bool:
        return self.state == OperationState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.state == OperationState.FAILED


@dataclass(frozen=True)
class Outcome:
    """
    Terminal result of one RequestExecutor invocation.

    A successful outcome carries the parsed `value` and the raw JSON `body`;
    a failed one carries an OperationError. `attempts` is the number of HTTP
    requests actually sent.
    """

    value: Any = None
    body: Any = None
    error: Optional[OperationError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any, body: Any = None, attempts: int = 1) -> "Outcome":
        return cls(value=value, body=body, attempts=attempts)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        detail: str = "",
        status: Optional[int] = None,
        attempts: int = 0,
    ) -> "Outcome":
        return cls(error=OperationError(kind=kind, detail=detail, status=status), attempts=attempts)


@dataclass(frozen=True)
class ImageReference:
    """
    Image handed to the vision model.

    Attributes:
        value: Remote URL, or base64-encoded bytes when `inline` is True
        inline: Whether `value` holds base64 data rather than a URL
        mime_type: MIME type used when building a data URL for inline data
    """

    value: str
    inline: bool = False
    mime_type: str = "image/jpeg"

    def as_url(self) -> str:
        """URL form accepted by the `image_url` content part."""
        if self.inline:
            return f"data:{self.mime_type};base64,{self.value}"
        return self.value

    @classmethod
    def from_url(cls, url: str) -> "ImageReference":
        return cls(value=url)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = "image/jpeg") -> "ImageReference":
        return cls(value=base64.b64encode(data).decode("ascii"), inline=True, mime_type=mime_type)

    @classmethod
    def from_file(cls, path: Path) -> "ImageReference":
        """Read a local image and encode it inline."""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls.from_bytes(path.read_bytes(), mime_type=mime_type or "image/jpeg")

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageReference":
        """Split a `data:<mime>;base64,<payload>` URL into an inline reference."""
        header, sep, payload = data_url.partition(",")
        if not sep or not header.startswith("data:"):
            raise ValueError("Not a data URL")
        mime_type = header[len("data:"):].split(";")[0] or "image/jpeg"
        return cls(value=payload, inline=True, mime_type=mime_type)


@dataclass
class GeneratedArtifact:
    """
    Result of a successful generation.

    `description` is filled in later by the dependent Describe operation and
    stays None if that operation fails or is superseded.
    """

    image_ref: str
    prompt: str = ""
    description: Optional[str] = None
    describe_operation: Optional[Operation] = None


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class ChatTranscript:
    """
    Append-only, ordered conversation history.

    The whole transcript is replayed as context on every chat call, so
    entries are never reordered, edited or removed.
    """

    def __init__(self, messages: Optional[list[ChatMessage]] = None):
        self._messages: list[ChatMessage] = list(messages or [])

    def append(self, role: ChatRole, content: str) -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self._messages.append(message)
        return message

    def to_messages(self) -> list[dict[str, str]]:
        """Wire form: a fresh list of `{role, content}` dicts."""
        return [m.to_dict() for m in self._messages]

    @property
    def last(self) -> Optional[ChatMessage]:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))


@dataclass(frozen=True)
class RequestSpec:
    """
    One outbound HTTP request plus the parser for its success body.

    Attributes:
        url: Absolute endpoint URL
        body: JSON body
        credential: Secret sent with the request; None means not configured
        extract: Pulls the expected payload out of a parsed JSON body and
                 returns None when the shape is wrong
        method: HTTP method
        headers: Extra headers
        auth: "bearer" sends an Authorization header, "query" sends `?key=`
        name: Short label used in logs
    """

    url: str
    body: dict[str, Any]
    credential: Optional[str]
    extract: Callable[[Any], Any]
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    auth: str = "bearer"
    name: str = "request"
