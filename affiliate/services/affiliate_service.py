"""
Affiliate service.

Facade over the affiliate managers sharing one database session.
"""

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.config.constants import DAILY_VOLUME_WINDOW_DAYS, PAYOUTS_PAGE_SIZE
from affiliate.models.enums import PayoutStatus
from affiliate.models.payout import Payout
from affiliate.models.referral import Referral
from affiliate.models.referrer import Referrer
from affiliate.services.affiliate import (
    AffiliateQueryManager,
    AffiliateRegistrationManager,
    AffiliateStats,
    AttributionEngine,
    AttributionResult,
    DailyVolumeReport,
    PayoutManager,
    PayoutPage,
)
from affiliate.services.base_service import BaseService, log_operation


class AffiliateService(BaseService):
    """Affiliate program service: registration, attribution, queries, payouts."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize affiliate service."""
        super().__init__(session)
        self.registration = AffiliateRegistrationManager(session)
        self.attribution = AttributionEngine(session)
        self.queries = AffiliateQueryManager(session)
        self.payouts = PayoutManager(session)

    # Registration and lookup

    @log_operation
    async def register_affiliate(self, wallet_address: str) -> Referrer:
        """Register a wallet as affiliate (idempotent)."""
        return await self.registration.register_affiliate(wallet_address)

    @log_operation
    async def track_referral(
        self, referral_code: str, referee_address: str
    ) -> Referral:
        """Tie a referee to the referrer owning the code (idempotent)."""
        return await self.registration.track_referral(
            referral_code, referee_address
        )

    async def find_by_wallet(self, wallet_address: str) -> Referrer | None:
        """Find referrer by wallet; None for unknown or malformed input."""
        return await self.registration.find_by_wallet(wallet_address)

    async def find_by_code(self, referral_code: str) -> Referrer | None:
        """Find referrer by code; None for unknown or malformed input."""
        return await self.registration.find_by_code(referral_code)

    # Attribution

    @log_operation
    async def attribute_volume(
        self, trader_address: str, volume_usd: Decimal | float | int | str
    ) -> AttributionResult | None:
        """Attribute a trade's USD volume to the trader's referrer."""
        return await self.attribution.attribute_volume(trader_address, volume_usd)

    # Queries

    async def get_stats(self, wallet_address: str) -> AffiliateStats:
        """Dashboard statistics."""
        return await self.queries.get_stats(wallet_address)

    async def get_referrals(self, wallet_address: str) -> list[Referral]:
        """Referees of an affiliate, oldest first."""
        return await self.queries.get_referrals(wallet_address)

    async def get_payouts(self, wallet_address: str) -> list[Payout]:
        """Payout history of an affiliate, newest first."""
        return await self.queries.get_payouts(wallet_address)

    async def get_daily_volume(
        self,
        wallet_address: str,
        days: int = DAILY_VOLUME_WINDOW_DAYS,
        today: date | None = None,
    ) -> DailyVolumeReport:
        """Daily roll-up for the last `days` local dates."""
        return await self.queries.get_daily_volume(wallet_address, days, today)

    # Payouts

    @log_operation
    async def request_payout(
        self,
        wallet_address: str,
        amount: Decimal | float | int | str | None = None,
    ) -> Payout:
        """Request a payout of accrued commission."""
        return await self.payouts.request_payout(wallet_address, amount)

    @log_operation
    async def approve_payout(self, payout_id: uuid.UUID) -> Payout:
        """PENDING -> PROCESSING."""
        return await self.payouts.approve_payout(payout_id)

    @log_operation
    async def complete_payout(self, payout_id: uuid.UUID, tx_hash: str) -> Payout:
        """PROCESSING -> COMPLETED; settles the amount."""
        return await self.payouts.complete_payout(payout_id, tx_hash)

    @log_operation
    async def fail_payout(
        self, payout_id: uuid.UUID, error_message: str | None = None
    ) -> Payout:
        """PENDING/PROCESSING -> FAILED; releases the reservation."""
        return await self.payouts.fail_payout(payout_id, error_message)

    async def list_payouts(
        self,
        status: PayoutStatus | None = None,
        page: int = 1,
        per_page: int = PAYOUTS_PAGE_SIZE,
    ) -> PayoutPage:
        """Admin payout listing with status summary."""
        return await self.payouts.list_payouts(status, page, per_page)
