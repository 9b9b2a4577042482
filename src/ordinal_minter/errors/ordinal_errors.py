"""OrdinalError — base exception and failure taxonomy for the engine.

Every failure carries the ``notice`` kind it is surfaced as, so component
boundaries can turn any caught error into a user-visible notice without a
lookup table.
"""

from __future__ import annotations


class OrdinalError(Exception):
    """Base error for all ordinal engine operations.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code string.
        notice: Notice kind the error is surfaced as.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "ordinal-error",
        notice: str = "error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.notice = notice


class UserCancellation(OrdinalError):
    """A wallet prompt was dismissed. Not an error, never retried."""

    def __init__(self, message: str = "canceled by user") -> None:
        super().__init__(message, code="user-cancellation", notice="cancellation")


class PreconditionViolation(OrdinalError):
    """An operation was invoked in a state that forbids it.

    Raised before any network call is made.
    """

    def __init__(self, message: str, *, code: str = "precondition-violation") -> None:
        super().__init__(message, code=code, notice="precondition")


class CapabilityDenied(OrdinalError):
    """The user refused a wallet permission. Requires an explicit re-trigger."""

    def __init__(self, message: str = "wallet permission denied") -> None:
        super().__init__(message, code="capability-denied", notice="permission_denied")


class CapabilityError(OrdinalError):
    """The wallet capability is missing or failed to answer."""

    def __init__(self, message: str, *, rpc_code: int | None = None) -> None:
        super().__init__(message, code="capability-error", notice="connection_failed")
        self.rpc_code = rpc_code


class ProviderFailure(OrdinalError):
    """Blockchain data provider or inscription enumeration failed."""

    def __init__(self, message: str, *, code: str = "provider-failure") -> None:
        super().__init__(message, code=code, notice="provider_failure")


class BackendFailure(OrdinalError):
    """The backend answered a preparation or broadcast call with a non-2xx status."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, code="backend-failure", notice="backend_failure")
        self.status_code = status_code


class TransportFailure(OrdinalError):
    """A remote endpoint was unreachable.

    Balance and listing call sites surface it as a provider failure; the
    creation pipeline reports it unchanged.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="transport-failure", notice="transport_failure")
