"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from affiliate.models.base import Base
from affiliate.models.enums import PAYOUT_TRANSITIONS, PayoutStatus
from affiliate.models.payout import Payout
from affiliate.models.referral import Referral
from affiliate.models.referral_volume import ReferralVolume
from affiliate.models.referrer import Referrer

__all__ = [
    # Base
    "Base",
    # Enums
    "PayoutStatus",
    "PAYOUT_TRANSITIONS",
    # Models
    "Referrer",
    "Referral",
    "ReferralVolume",
    "Payout",
]
