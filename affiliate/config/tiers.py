"""
Single source of truth for affiliate tier configuration.

Tiers are a pure function of the referrer's cumulative attributed volume.
All other modules must import tier constants from this file.
"""

from decimal import Decimal
from enum import Enum
from typing import NamedTuple


class AffiliateTier(str, Enum):
    """Affiliate commission tiers, in ascending order."""

    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    DIAMOND = "DIAMOND"

    @property
    def order(self) -> int:
        """Ordinal position (BRONZE=0 ... DIAMOND=3)."""
        return TIERS[self].order

    @property
    def commission_rate(self) -> Decimal:
        """Commission rate applied to attributed volume."""
        return TIERS[self].commission_rate

    @property
    def min_volume(self) -> Decimal:
        """Minimum cumulative volume (USD) to hold this tier."""
        return TIERS[self].min_volume


class TierConfig(NamedTuple):
    """Tier configuration."""

    tier: AffiliateTier
    order: int
    commission_rate: Decimal
    min_volume: Decimal  # Inclusive threshold in USD
    next_tier: AffiliateTier | None  # None for the top tier


TIERS: dict[AffiliateTier, TierConfig] = {
    AffiliateTier.BRONZE: TierConfig(
        tier=AffiliateTier.BRONZE,
        order=0,
        commission_rate=Decimal("0.10"),
        min_volume=Decimal("0"),
        next_tier=AffiliateTier.SILVER,
    ),
    AffiliateTier.SILVER: TierConfig(
        tier=AffiliateTier.SILVER,
        order=1,
        commission_rate=Decimal("0.15"),
        min_volume=Decimal("500000"),
        next_tier=AffiliateTier.GOLD,
    ),
    AffiliateTier.GOLD: TierConfig(
        tier=AffiliateTier.GOLD,
        order=2,
        commission_rate=Decimal("0.20"),
        min_volume=Decimal("2000000"),
        next_tier=AffiliateTier.DIAMOND,
    ),
    AffiliateTier.DIAMOND: TierConfig(
        tier=AffiliateTier.DIAMOND,
        order=3,
        commission_rate=Decimal("0.25"),
        min_volume=Decimal("10000000"),
        next_tier=None,
    ),
}

# Ascending order for threshold scans
TIER_ORDER = [
    AffiliateTier.BRONZE,
    AffiliateTier.SILVER,
    AffiliateTier.GOLD,
    AffiliateTier.DIAMOND,
]

TOP_TIER = TIER_ORDER[-1]


def get_tier(tier: str | AffiliateTier) -> AffiliateTier:
    """
    Coerce a stored tier value into the enum.

    Args:
        tier: Tier name or enum member

    Returns:
        AffiliateTier member

    Raises:
        ValueError: If the name is not a known tier
    """
    if isinstance(tier, AffiliateTier):
        return tier
    return AffiliateTier(tier.upper())


def tier_for_volume(volume: Decimal) -> AffiliateTier:
    """
    Highest tier whose min_volume is <= volume.

    Thresholds are inclusive: exactly 500 000 USD is SILVER.

    Args:
        volume: Cumulative volume in USD

    Returns:
        Tier for that volume
    """
    result = AffiliateTier.BRONZE
    for tier in TIER_ORDER:
        if TIERS[tier].min_volume <= volume:
            result = tier
    return result


def commission_rate(tier: str | AffiliateTier) -> Decimal:
    """Commission rate for a tier."""
    return TIERS[get_tier(tier)].commission_rate


def next_tier(tier: str | AffiliateTier) -> AffiliateTier | None:
    """Next tier up, or None at the top tier."""
    return TIERS[get_tier(tier)].next_tier


def volume_to_next_tier(
    tier: str | AffiliateTier, current_volume: Decimal
) -> Decimal:
    """
    Volume still required to reach the next tier.

    Args:
        tier: Current tier
        current_volume: Current cumulative volume in USD

    Returns:
        max(0, next.min_volume - current_volume); 0 at the top tier
    """
    upcoming = next_tier(tier)
    if upcoming is None:
        return Decimal("0")
    return max(Decimal("0"), TIERS[upcoming].min_volume - current_volume)


def is_promotion(current: str | AffiliateTier, candidate: str | AffiliateTier) -> bool:
    """True if candidate is strictly above current in tier order."""
    return TIERS[get_tier(candidate)].order > TIERS[get_tier(current)].order
