"""
Model enumerations.
"""

from enum import Enum


class PayoutStatus(str, Enum):
    """Payout lifecycle status."""

    PENDING = "PENDING"  # Requested, reserves part of pending_payout
    PROCESSING = "PROCESSING"  # Approved, transfer in flight
    COMPLETED = "COMPLETED"  # Settled; amount moved to total_earned
    FAILED = "FAILED"  # Rejected or transfer failed; reservation released

    @classmethod
    def open_statuses(cls) -> tuple["PayoutStatus", ...]:
        """Statuses that still hold a reservation on pending_payout."""
        return (cls.PENDING, cls.PROCESSING)


# Allowed payout transitions: current -> set of next statuses
PAYOUT_TRANSITIONS: dict[PayoutStatus, frozenset[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset({PayoutStatus.PROCESSING, PayoutStatus.FAILED}),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
    PayoutStatus.COMPLETED: frozenset(),
    PayoutStatus.FAILED: frozenset(),
}
