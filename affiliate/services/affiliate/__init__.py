"""
Affiliate services package.

Contains modular services for the affiliate program:
- registration: Affiliate registration, referral tracking and lookups
- attribution: Volume attribution, commission accrual and tier promotion
- queries: Dashboard statistics and history
- payouts: Payout request/approve/complete/fail lifecycle
"""

from affiliate.services.affiliate.attribution import (
    AttributionEngine,
    AttributionResult,
)
from affiliate.services.affiliate.payouts import PayoutManager, PayoutPage
from affiliate.services.affiliate.queries import (
    AffiliateQueryManager,
    AffiliateStats,
    DailyVolumeEntry,
    DailyVolumeReport,
)
from affiliate.services.affiliate.registration import (
    AffiliateRegistrationManager,
    referral_code_candidates,
)


__all__ = [
    # Managers
    "AffiliateRegistrationManager",
    "AttributionEngine",
    "AffiliateQueryManager",
    "PayoutManager",
    # Results
    "AttributionResult",
    "AffiliateStats",
    "DailyVolumeEntry",
    "DailyVolumeReport",
    "PayoutPage",
    # Helpers
    "referral_code_candidates",
]
