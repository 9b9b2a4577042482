"""Event types for user-visible notices.

- ``RawEvent`` — envelope with type string + JSON content
- ``Notice`` — a message the presentation layer shows to the user
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any


class NoticeKind(enum.StrEnum):
    """Kinds of notices the engine publishes."""

    CANCELLATION = "cancellation"
    CONNECTION_FAILED = "connection_failed"
    PERMISSION_DENIED = "permission_denied"
    PROVIDER_FAILURE = "provider_failure"
    PRECONDITION = "precondition"
    BACKEND_FAILURE = "backend_failure"
    TRANSPORT_FAILURE = "transport_failure"
    ORDINAL_CREATED = "ordinal_created"
    NETWORK_SWITCHED = "network_switched"
    ERROR = "error"


@dataclass(frozen=True)
class RawEvent:
    """Generic event envelope sent to subscribers."""

    type: str
    content: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict."""
        return asdict(self)


@dataclass(frozen=True)
class Notice(RawEvent):
    """A user-facing notice.

    ``retryable`` tells the UI whether offering a retry makes sense; the
    engine itself never retries.
    """

    type: str = "notice"
    kind: str = NoticeKind.ERROR.value
    message: str = ""
    retryable: bool = False

    @classmethod
    def from_error(cls, exc: Exception, *, retryable: bool = False) -> Notice:
        """Build a notice from an engine error (or any exception)."""
        kind = getattr(exc, "notice", NoticeKind.ERROR.value)
        message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        return cls(kind=kind, message=message, retryable=retryable)
