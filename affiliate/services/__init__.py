"""
Services.

Business logic layer.
"""

from affiliate.services.affiliate_service import AffiliateService
from affiliate.services.base_service import (
    BaseService,
    log_operation,
    transaction,
)


__all__ = [
    # Base Service Infrastructure
    "BaseService",
    "transaction",
    "log_operation",
    # Affiliate
    "AffiliateService",
]
