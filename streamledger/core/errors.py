"""Error taxonomy for the streaming ledger.

`ErrorKind` enumerates the expected, caller-recoverable outcomes. The core
reports them in ``StepResult.rejection``; ``raise_for()`` turns a kind into the
matching ``StreamError`` subclass for callers that prefer exceptions.

Host-level failures (authentication, token transfer, invariant breach) are not
part of the taxonomy and have their own exception types.
"""

from __future__ import annotations

from enum import Enum, unique


@unique
class ErrorKind(Enum):
    ALREADY_INITIALIZED = 1
    NOT_INITIALIZED = 2
    NOT_ADMIN = 3
    INVALID_FEE_RATE = 4
    INVALID_AMOUNT = 5
    INVALID_DURATION = 6
    INVALID_TOKEN_ADDRESS = 7
    STREAM_NOT_FOUND = 8
    UNAUTHORIZED = 9
    STREAM_INACTIVE = 10


class StreamError(Exception):
    """Base class for taxonomy errors. ``kind`` identifies the outcome."""

    kind: ErrorKind

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind.name.lower())


class AlreadyInitializedError(StreamError):
    kind = ErrorKind.ALREADY_INITIALIZED


class NotInitializedError(StreamError):
    kind = ErrorKind.NOT_INITIALIZED


class NotAdminError(StreamError):
    kind = ErrorKind.NOT_ADMIN


class InvalidFeeRateError(StreamError):
    kind = ErrorKind.INVALID_FEE_RATE


class InvalidAmountError(StreamError):
    kind = ErrorKind.INVALID_AMOUNT


class InvalidDurationError(StreamError):
    kind = ErrorKind.INVALID_DURATION


class InvalidTokenAddressError(StreamError):
    kind = ErrorKind.INVALID_TOKEN_ADDRESS


class StreamNotFoundError(StreamError):
    kind = ErrorKind.STREAM_NOT_FOUND


class UnauthorizedError(StreamError):
    kind = ErrorKind.UNAUTHORIZED


class StreamInactiveError(StreamError):
    kind = ErrorKind.STREAM_INACTIVE


_BY_KIND: dict[ErrorKind, type[StreamError]] = {
    cls.kind: cls
    for cls in (
        AlreadyInitializedError,
        NotInitializedError,
        NotAdminError,
        InvalidFeeRateError,
        InvalidAmountError,
        InvalidDurationError,
        InvalidTokenAddressError,
        StreamNotFoundError,
        UnauthorizedError,
        StreamInactiveError,
    )
}


def error_for(kind: ErrorKind) -> StreamError:
    """Return a fresh exception instance for *kind*."""
    return _BY_KIND[kind]()


def raise_for(kind: ErrorKind) -> None:
    raise error_for(kind)


class AuthenticationError(Exception):
    """Raised by the auth oracle when the caller is not the claimed identity."""


class TransferError(Exception):
    """Raised by the token service when a transfer cannot be executed."""


class InvariantViolation(Exception):
    """Raised when a planned post-state violates one or more invariants."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
