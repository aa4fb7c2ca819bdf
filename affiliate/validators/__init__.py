"""
Validators package.

Provides common validation functions for affiliate input.
"""

from affiliate.validators.unified import (
    normalize_referral_code,
    normalize_wallet_address,
    parse_usd_amount,
    validate_transaction_hash,
    validate_wallet_address,
)


__all__ = [
    "validate_wallet_address",
    "normalize_wallet_address",
    "normalize_referral_code",
    "parse_usd_amount",
    "validate_transaction_hash",
]
