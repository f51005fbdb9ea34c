"""Error taxonomy for session issuance, verification and ownership checks."""

from __future__ import annotations

from enum import Enum

# User-facing messages. All token verification failures share one message.
AUTH_REQUIRED_MESSAGE = "Authentication required"
SESSION_EXPIRED_MESSAGE = "Session expired, please refresh the page"
SERVER_CONFIG_MESSAGE = "Server configuration error"
ORIGIN_REJECTED_MESSAGE = "Invalid origin"
RATE_LIMITED_MESSAGE = "Too many requests. Please wait and try again."
NOT_AUTHORIZED_MESSAGE = "Not authorized"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class VerificationFailure(str, Enum):
    """Reason a presented session token was rejected."""

    MALFORMED = "malformed"
    EXPIRED = "expired"
    ORIGIN_MISMATCH = "origin_mismatch"
    BAD_SIGNATURE = "bad_signature"


class SessionError(RuntimeError):
    """Base exception for session token failures."""

    status_code: int = 500
    public_message: str = SERVER_CONFIG_MESSAGE


class OriginNotAllowed(SessionError):
    """Raised when the requesting origin fails the allow-list."""

    status_code = 403
    public_message = ORIGIN_REJECTED_MESSAGE


class RateLimited(SessionError):
    """Raised when a client exceeds its request window."""

    status_code = 429
    public_message = RATE_LIMITED_MESSAGE


class ServerMisconfigured(SessionError):
    """Raised when the signing secret is absent.

    Fatal: callers must abort the operation instead of issuing or accepting
    unsigned tokens.
    """

    status_code = 500
    public_message = SERVER_CONFIG_MESSAGE


class InvalidSessionToken(SessionError):
    """Raised when a presented token fails verification."""

    status_code = 401
    public_message = SESSION_EXPIRED_MESSAGE

    def __init__(self, reason: VerificationFailure) -> None:
        super().__init__(reason.value)
        self.reason = reason


class MalformedToken(InvalidSessionToken):
    def __init__(self) -> None:
        super().__init__(VerificationFailure.MALFORMED)


class Expired(InvalidSessionToken):
    def __init__(self) -> None:
        super().__init__(VerificationFailure.EXPIRED)


class OriginMismatch(InvalidSessionToken):
    def __init__(self) -> None:
        super().__init__(VerificationFailure.ORIGIN_MISMATCH)


class BadSignature(InvalidSessionToken):
    def __init__(self) -> None:
        super().__init__(VerificationFailure.BAD_SIGNATURE)


class Unauthorized(SessionError):
    """Raised when a caller tries to mutate a resource owned by another session."""

    status_code = 403
    public_message = NOT_AUTHORIZED_MESSAGE


_FAILURE_TYPES: dict[VerificationFailure, type[InvalidSessionToken]] = {
    VerificationFailure.MALFORMED: MalformedToken,
    VerificationFailure.EXPIRED: Expired,
    VerificationFailure.ORIGIN_MISMATCH: OriginMismatch,
    VerificationFailure.BAD_SIGNATURE: BadSignature,
}


def error_for_failure(reason: VerificationFailure) -> InvalidSessionToken:
    """Return the exception instance matching a verification failure reason."""
    return _FAILURE_TYPES[reason]()
