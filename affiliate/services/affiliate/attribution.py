"""
Volume attribution module.

Credits a referred trader's volume to their referrer: per-referee totals,
the daily roll-up, commission accrual and tier promotion, all in one
transaction.

Lock order is Referral row, then Referrer row. Payout transitions lock
Referrer then Payout, so the two paths cannot deadlock.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.config.constants import MONEY_QUANT
from affiliate.config.tiers import AffiliateTier, is_promotion, tier_for_volume
from affiliate.repositories.referral_repository import ReferralRepository
from affiliate.repositories.referral_volume_repository import (
    ReferralVolumeRepository,
)
from affiliate.repositories.referrer_repository import ReferrerRepository
from affiliate.services.base_service import BaseService, transaction
from affiliate.utils.datetime_utils import local_today, utc_now
from affiliate.utils.db_decorators import retry_on_conflict
from affiliate.utils.exceptions import StorageError
from affiliate.validators import normalize_wallet_address, parse_usd_amount


@dataclass(frozen=True)
class AttributionResult:
    """Outcome of a single attribution."""

    referrer_id: str
    referee_address: str
    volume_usd: Decimal
    commission_usd: Decimal
    tier_before: AffiliateTier
    tier_after: AffiliateTier

    @property
    def promoted(self) -> bool:
        """True if this trade moved the referrer up a tier."""
        return self.tier_after != self.tier_before


class AttributionEngine(BaseService):
    """Attributes trading volume to referrers."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize attribution engine."""
        super().__init__(session)
        self.referral_repo = ReferralRepository(session)
        self.referrer_repo = ReferrerRepository(session)
        self.volume_repo = ReferralVolumeRepository(session)

    @retry_on_conflict
    async def attribute_volume(
        self, trader_address: str, volume_usd: Decimal | float | int | str
    ) -> AttributionResult | None:
        """
        Attribute a trade's USD volume to the trader's referrer.

        Zero volume still counts as a trade. Unreferred traders are a
        silent no-op.

        Args:
            trader_address: Trader wallet in any case
            volume_usd: Non-negative USD volume

        Returns:
            AttributionResult, or None if the trader was never referred

        Raises:
            InvalidAmount: If volume is negative or non-finite
            InvalidAddress: If the trader wallet is malformed
            Conflict: If serialization failures persist after retries
            StorageError: On any other storage failure
        """
        usd = parse_usd_amount(volume_usd)
        trader = normalize_wallet_address(trader_address)
        return await self._attribute(trader, usd)

    @transaction
    async def _attribute(
        self, trader: str, usd: Decimal
    ) -> AttributionResult | None:
        """Transactional body of attribute_volume."""
        referral = await self.referral_repo.get_by_referee(
            trader, for_update=True
        )
        if referral is None:
            self.logger.debug(
                "Trader has no referrer, skipping attribution",
                extra={"trader": trader},
            )
            return None

        referrer = await self.referrer_repo.lock(referral.referrer_id)
        if referrer is None:
            self.logger.error(
                "Referral points to a missing referrer",
                extra={
                    "trader": trader,
                    "referrer_id": str(referral.referrer_id),
                },
            )
            raise StorageError()

        referral.lifetime_volume += usd
        # Accumulates only; the rolling figure comes from daily_volume()
        referral.last_30_days_volume += usd
        referral.last_active_at = utc_now()

        # Rate of the tier held before this trade
        tier_before = referrer.tier_enum
        commission = (usd * tier_before.commission_rate).quantize(
            MONEY_QUANT, rounding=ROUND_HALF_EVEN
        )

        await self.volume_repo.add_daily(
            referrer.id, local_today(), usd, commission
        )

        referrer.total_volume += usd
        referrer.pending_payout += commission

        tier_after = tier_before
        candidate = tier_for_volume(referrer.total_volume)
        if is_promotion(tier_before, candidate):
            referrer.tier = candidate.value
            tier_after = candidate
            self.logger.info(
                f"Affiliate {referrer.wallet_address} promoted "
                f"{tier_before.value} -> {candidate.value}",
                extra={
                    "referrer_id": str(referrer.id),
                    "total_volume": str(referrer.total_volume),
                },
            )

        await self.session.flush()

        self.logger.debug(
            "Volume attributed",
            extra={
                "trader": trader,
                "referrer_id": str(referrer.id),
                "volume_usd": str(usd),
                "commission_usd": str(commission),
            },
        )

        return AttributionResult(
            referrer_id=str(referrer.id),
            referee_address=trader,
            volume_usd=usd,
            commission_usd=commission,
            tier_before=tier_before,
            tier_after=tier_after,
        )
