"""
Affiliate query module.

Read-only projections for the affiliate dashboard and history.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.config.constants import DAILY_VOLUME_WINDOW_DAYS
from affiliate.config.tiers import AffiliateTier, next_tier, volume_to_next_tier
from affiliate.models.payout import Payout
from affiliate.models.referral import Referral
from affiliate.models.referrer import Referrer
from affiliate.repositories.payout_repository import PayoutRepository
from affiliate.repositories.referral_repository import ReferralRepository
from affiliate.repositories.referral_volume_repository import (
    ReferralVolumeRepository,
)
from affiliate.repositories.referrer_repository import ReferrerRepository
from affiliate.utils.datetime_utils import days_ago, local_today
from affiliate.utils.exceptions import NotRegistered
from affiliate.validators import normalize_wallet_address


@dataclass(frozen=True)
class AffiliateStats:
    """Dashboard statistics for one affiliate."""

    wallet_address: str
    referral_code: str
    tier: AffiliateTier
    commission_rate: Decimal
    total_volume_generated: Decimal
    total_referrals: int
    total_earned: Decimal
    pending_payout: Decimal
    volume_to_next_tier: Decimal
    next_tier: AffiliateTier | None  # None at the top tier


@dataclass(frozen=True)
class DailyVolumeEntry:
    """One day of the referrer's roll-up."""

    date: date
    volume_usd: Decimal
    commission_usd: Decimal
    trade_count: int


@dataclass
class DailyVolumeReport:
    """Daily roll-up window with its totals."""

    wallet_address: str
    days: int
    since: date
    entries: list[DailyVolumeEntry] = field(default_factory=list)

    @property
    def window_volume(self) -> Decimal:
        """Volume over the window, derived from daily rows."""
        return sum((e.volume_usd for e in self.entries), Decimal("0"))

    @property
    def window_commission(self) -> Decimal:
        """Commission over the window, derived from daily rows."""
        return sum((e.commission_usd for e in self.entries), Decimal("0"))

    @property
    def window_trades(self) -> int:
        """Trade count over the window."""
        return sum(e.trade_count for e in self.entries)


class AffiliateQueryManager:
    """Handles affiliate dashboard queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize query manager."""
        self.session = session
        self.referrer_repo = ReferrerRepository(session)
        self.referral_repo = ReferralRepository(session)
        self.volume_repo = ReferralVolumeRepository(session)
        self.payout_repo = PayoutRepository(session)

    async def _require_referrer(self, wallet_address: str) -> Referrer:
        """Resolve a registered referrer or raise NotRegistered."""
        wallet = normalize_wallet_address(wallet_address)
        referrer = await self.referrer_repo.get_by_wallet(wallet)
        if referrer is None:
            raise NotRegistered()
        return referrer

    async def get_stats(self, wallet_address: str) -> AffiliateStats:
        """
        Get dashboard statistics.

        Args:
            wallet_address: Affiliate wallet in any case

        Returns:
            AffiliateStats

        Raises:
            InvalidAddress: If the wallet is malformed
            NotRegistered: If the wallet is not an affiliate
        """
        referrer = await self._require_referrer(wallet_address)
        tier = referrer.tier_enum
        total_referrals = await self.referral_repo.count_by_referrer(referrer.id)

        return AffiliateStats(
            wallet_address=referrer.wallet_address,
            referral_code=referrer.referral_code,
            tier=tier,
            commission_rate=tier.commission_rate,
            total_volume_generated=referrer.total_volume,
            total_referrals=total_referrals,
            total_earned=referrer.total_earned,
            pending_payout=referrer.pending_payout,
            volume_to_next_tier=volume_to_next_tier(tier, referrer.total_volume),
            next_tier=next_tier(tier),
        )

    async def get_referrals(self, wallet_address: str) -> list[Referral]:
        """
        Get the affiliate's referees, oldest first.

        Raises:
            NotRegistered: If the wallet is not an affiliate
        """
        referrer = await self._require_referrer(wallet_address)
        return await self.referral_repo.get_by_referrer(referrer.id)

    async def get_payouts(self, wallet_address: str) -> list[Payout]:
        """
        Get the affiliate's payout history, newest first.

        Raises:
            NotRegistered: If the wallet is not an affiliate
        """
        referrer = await self._require_referrer(wallet_address)
        return await self.payout_repo.get_by_referrer(referrer.id)

    async def get_daily_volume(
        self,
        wallet_address: str,
        days: int = DAILY_VOLUME_WINDOW_DAYS,
        today: date | None = None,
    ) -> DailyVolumeReport:
        """
        Get the daily roll-up for the last `days` local dates.

        Args:
            wallet_address: Affiliate wallet in any case
            days: Window length in days (at least 1)
            today: Override the server's local date

        Returns:
            DailyVolumeReport, newest day first

        Raises:
            NotRegistered: If the wallet is not an affiliate
        """
        referrer = await self._require_referrer(wallet_address)
        days = max(days, 1)
        since = days_ago(days, today or local_today())

        rows = await self.volume_repo.get_since(referrer.id, since)
        return DailyVolumeReport(
            wallet_address=referrer.wallet_address,
            days=days,
            since=since,
            entries=[
                DailyVolumeEntry(
                    date=row.date,
                    volume_usd=row.volume_usd,
                    commission_usd=row.commission_usd,
                    trade_count=row.trade_count,
                )
                for row in rows
            ],
        )
