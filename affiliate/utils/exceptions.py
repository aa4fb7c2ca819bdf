"""
Exception handling utilities.

Defines the domain error hierarchy and categorizes storage exceptions
for proper retry and error handling.
"""

from sqlalchemy.exc import DBAPIError, OperationalError


class AffiliateError(Exception):
    """
    Base class for affiliate domain errors.

    Attributes:
        code: Stable machine-readable error code
        http_status: HTTP status the API surfaces
        message: Human-readable message, safe to show to clients
    """

    code = "AFFILIATE_ERROR"
    http_status = 400
    default_message = "Affiliate operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAddress(AffiliateError):
    """Wallet does not match 0x followed by 40 hex characters."""

    code = "INVALID_ADDRESS"
    default_message = "Invalid wallet address format"


class UnknownCode(AffiliateError):
    """Referral code does not resolve to a referrer."""

    code = "UNKNOWN_CODE"
    default_message = "Invalid referral code"


class SelfReferral(AffiliateError):
    """Referee equals the referrer's own wallet."""

    code = "SELF_REFERRAL"
    default_message = "Cannot refer yourself"


class NotRegistered(AffiliateError):
    """Wallet has no referrer row."""

    code = "NOT_REGISTERED"
    default_message = "Wallet not registered as affiliate"


class InvalidAmount(AffiliateError):
    """Negative or non-finite USD amount."""

    code = "INVALID_AMOUNT"
    default_message = "Amount must be a finite, non-negative USD value"


class CodeCollision(AffiliateError):
    """No free referral code found within the attempt limit."""

    code = "CODE_COLLISION"
    http_status = 500
    default_message = "Could not allocate a unique referral code"


class Conflict(AffiliateError):
    """Repeated serialization failure; the client may retry."""

    code = "CONFLICT"
    http_status = 409
    default_message = "Concurrent modification, please retry"


class Timeout(AffiliateError):
    """Deadline expired; the transaction was rolled back."""

    code = "TIMEOUT"
    http_status = 504
    default_message = "Request timed out"


class StorageError(AffiliateError):
    """Storage failure; the transaction was rolled back and is safe to retry."""

    code = "STORAGE_ERROR"
    http_status = 503
    default_message = "Storage temporarily unavailable"


class PayoutNotFound(AffiliateError):
    """Payout id does not exist."""

    code = "PAYOUT_NOT_FOUND"
    http_status = 404
    default_message = "Payout not found"


class InvalidPayoutState(AffiliateError):
    """Requested payout transition is not allowed from the current status."""

    code = "INVALID_PAYOUT_STATE"
    default_message = "Payout transition not allowed"


class InsufficientBalance(AffiliateError):
    """Payout amount exceeds the available pending balance."""

    code = "INSUFFICIENT_BALANCE"
    default_message = "Amount exceeds available pending payout"


class InvalidTransactionHash(AffiliateError):
    """Settlement tx hash is not 0x-prefixed hex of at most 66 chars."""

    code = "INVALID_TX_HASH"
    default_message = "Invalid transaction hash"


class Unauthorized(AffiliateError):
    """Caller is not allowed to perform an administrative action."""

    code = "UNAUTHORIZED"
    http_status = 401
    default_message = "Unauthorized"


# SQLSTATE codes that mean "retry the whole transaction"
RETRYABLE_SQLSTATES = frozenset({
    "40001",  # serialization_failure
    "40P01",  # deadlock_detected
    "55P03",  # lock_not_available
})

# Driver messages for the same condition (SQLite, asyncpg wrappers)
RETRYABLE_MESSAGES = (
    "database is locked",
    "could not obtain lock",
    "could not serialize access",
    "deadlock detected",
)


def _sqlstate(exc: DBAPIError) -> str | None:
    """Extract SQLSTATE from the wrapped driver exception, if any."""
    orig = getattr(exc, "orig", None)
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    return None


def is_retryable_conflict(exc: BaseException) -> bool:
    """
    Check if exception is a concurrency conflict worth retrying.

    Args:
        exc: Exception to check

    Returns:
        True for serialization failures, deadlocks and lock timeouts
    """
    if not isinstance(exc, (OperationalError, DBAPIError)):
        return False

    if _sqlstate(exc) in RETRYABLE_SQLSTATES:
        return True

    error_str = str(exc).lower()
    return any(message in error_str for message in RETRYABLE_MESSAGES)
