"""
Ledger error taxonomy.

Every failure the transfer engine reports is a ``LedgerError`` carrying a
machine-readable ``code``, the HTTP status the API maps it to, and a message
that is safe to show to the requester.
"""
from __future__ import annotations

from typing import Any


class ErrorCodes:
    UNAUTHORIZED = "UNAUTHORIZED"
    USER_NOT_ONBOARDED = "USER_NOT_ONBOARDED"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    INVALID_REQUEST = "INVALID_REQUEST"
    IDEMPOTENCY_KEY_REUSED = "IDEMPOTENCY_KEY_REUSED"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    TRANSFER_FAILED = "TRANSFER_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LedgerError(Exception):
    code = ErrorCodes.INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str, *, field: str | None = None, context: dict[str, Any] | None = None):
        self.message = message
        self.field = field
        self.context = context or {}
        super().__init__(message)


class InvalidRequest(LedgerError):
    code = ErrorCodes.INVALID_REQUEST
    status_code = 400


class IdempotencyKeyReused(InvalidRequest):
    """The idempotency key was already used for a different transfer."""

    code = ErrorCodes.IDEMPOTENCY_KEY_REUSED
    status_code = 422


class NotFound(LedgerError):
    """Account missing or not owned by the requester.

    ``side`` is ``"source"`` or ``"destination"`` so callers can report which
    leg failed. Both cases look identical to the requester on purpose: an
    account owned by somebody else is reported exactly like a missing one.
    """

    code = ErrorCodes.ACCOUNT_NOT_FOUND
    status_code = 404

    def __init__(self, message: str, *, side: str | None = None):
        super().__init__(message, field=_side_field(side))
        self.side = side


class AccountInactive(LedgerError):
    code = ErrorCodes.ACCOUNT_INACTIVE
    status_code = 400

    def __init__(self, message: str, *, side: str | None = None):
        super().__init__(message, field=_side_field(side))
        self.side = side


class InsufficientFunds(LedgerError):
    code = ErrorCodes.INSUFFICIENT_FUNDS
    status_code = 409


class TransferFailed(LedgerError):
    """The atomic write did not commit; nothing was persisted.

    ``retryable`` is set when the failure came from a lost concurrency race or
    a lock timeout, i.e. running the same request again may succeed.
    """

    code = ErrorCodes.TRANSFER_FAILED
    status_code = 500

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class InternalError(LedgerError):
    code = ErrorCodes.INTERNAL_ERROR
    status_code = 500


def _side_field(side: str | None) -> str | None:
    if side is None:
        return None
    return f"{side}_account_id"


class DuplicateIdempotencyKey(TransferFailed):
    """A concurrent request with the same idempotency key committed first."""

    def __init__(self, message: str = "A transfer with this idempotency key is already recorded"):
        super().__init__(message, retryable=True)
