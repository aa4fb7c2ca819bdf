"""Pydantic request and response models for the affiliate HTTP API.

JSON keys are camelCase; USD amounts are serialized as JSON numbers.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from affiliate.models.payout import Payout
from affiliate.models.referral import Referral
from affiliate.models.referrer import Referrer
from affiliate.services.affiliate import (
    AffiliateStats,
    DailyVolumeEntry,
    DailyVolumeReport,
    PayoutPage,
)


class CamelModel(BaseModel):
    """Base model with camelCase aliases, accepting either key style."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# Requests


class RegisterRequest(CamelModel):
    """Body of POST /register."""

    wallet_address: str


class TrackRequest(CamelModel):
    """Body of POST /track."""

    referral_code: str
    referee_address: str


class PayoutRequestBody(CamelModel):
    """Body of POST /payouts/request."""

    wallet_address: str
    amount_usd: Decimal | None = Field(
        default=None, description="Defaults to the whole available balance"
    )


class PayoutActionRequest(CamelModel):
    """Body of PUT /admin/payouts/{id}."""

    action: Literal["approve", "reject", "complete"]
    tx_hash: str | None = None
    error: str | None = None


# Responses


class SuccessResponse(CamelModel):
    """Plain acknowledgement."""

    success: bool = True


class ErrorResponse(CamelModel):
    """Error envelope."""

    success: bool = False
    error: str
    code: str


class RegisterResponse(CamelModel):
    """Registration result."""

    success: bool = True
    referral_code: str
    wallet_address: str

    @classmethod
    def from_referrer(cls, referrer: Referrer) -> "RegisterResponse":
        return cls(
            referral_code=referrer.referral_code,
            wallet_address=referrer.wallet_address,
        )


class StatsResponse(CamelModel):
    """Affiliate dashboard statistics."""

    wallet_address: str
    referral_code: str
    tier: str
    commission_rate: float
    total_volume_generated: float
    total_referrals: int
    total_earned: float
    pending_payout: float
    volume_to_next_tier: float
    next_tier: str | None = None

    @classmethod
    def from_stats(cls, stats: AffiliateStats) -> "StatsResponse":
        return cls(
            wallet_address=stats.wallet_address,
            referral_code=stats.referral_code,
            tier=stats.tier.value,
            commission_rate=float(stats.commission_rate),
            total_volume_generated=float(stats.total_volume_generated),
            total_referrals=stats.total_referrals,
            total_earned=float(stats.total_earned),
            pending_payout=float(stats.pending_payout),
            volume_to_next_tier=float(stats.volume_to_next_tier),
            next_tier=stats.next_tier.value if stats.next_tier else None,
        )


class ReferralDto(CamelModel):
    """One referee of an affiliate."""

    address: str
    joined_at: datetime
    lifetime_volume: float
    last_30_days_volume: float = Field(alias="last30DaysVolume")
    last_active_at: datetime | None = None

    @classmethod
    def from_model(cls, referral: Referral) -> "ReferralDto":
        return cls(
            address=referral.referee_address,
            joined_at=referral.created_at,
            lifetime_volume=float(referral.lifetime_volume),
            last_30_days_volume=float(referral.last_30_days_volume),
            last_active_at=referral.last_active_at,
        )


class PayoutDto(CamelModel):
    """Payout record."""

    id: str
    amount: float
    status: str
    tx_hash: str | None = None
    created_at: datetime
    processed_at: datetime | None = None
    error_message: str | None = None

    @classmethod
    def from_model(cls, payout: Payout) -> "PayoutDto":
        return cls(
            id=str(payout.id),
            amount=float(payout.amount_usd),
            status=payout.status,
            tx_hash=payout.tx_hash,
            created_at=payout.created_at,
            processed_at=payout.processed_at,
            error_message=payout.error_message,
        )


class AdminPayoutDto(PayoutDto):
    """Payout record with its owner, for administration."""

    referrer_id: str

    @classmethod
    def from_model(cls, payout: Payout) -> "AdminPayoutDto":
        base = PayoutDto.from_model(payout)
        return cls(**base.model_dump(), referrer_id=str(payout.referrer_id))


class PayoutSummary(CamelModel):
    """Open payout totals."""

    pending_count: int
    processing_count: int
    pending_total: float


class PayoutListResponse(CamelModel):
    """Admin payout listing."""

    payouts: list[AdminPayoutDto]
    total: int
    page: int
    pages: int
    summary: PayoutSummary

    @classmethod
    def from_page(cls, page: PayoutPage) -> "PayoutListResponse":
        return cls(
            payouts=[AdminPayoutDto.from_model(p) for p in page.items],
            total=page.total,
            page=page.page,
            pages=page.pages,
            summary=PayoutSummary(
                pending_count=int(page.summary.get("pending_count", 0)),
                processing_count=int(page.summary.get("processing_count", 0)),
                pending_total=float(page.summary.get("pending_total", 0)),
            ),
        )


class DailyVolumeDto(CamelModel):
    """One day of the roll-up."""

    day: date = Field(alias="date")
    volume: float
    commission: float
    trade_count: int

    @classmethod
    def from_entry(cls, entry: DailyVolumeEntry) -> "DailyVolumeDto":
        return cls(
            day=entry.date,
            volume=float(entry.volume_usd),
            commission=float(entry.commission_usd),
            trade_count=entry.trade_count,
        )


class DailyVolumeResponse(CamelModel):
    """Daily roll-up window."""

    wallet_address: str
    days: int
    since: date
    window_volume: float
    window_commission: float
    window_trades: int
    entries: list[DailyVolumeDto]

    @classmethod
    def from_report(cls, report: DailyVolumeReport) -> "DailyVolumeResponse":
        return cls(
            wallet_address=report.wallet_address,
            days=report.days,
            since=report.since,
            window_volume=float(report.window_volume),
            window_commission=float(report.window_commission),
            window_trades=report.window_trades,
            entries=[DailyVolumeDto.from_entry(e) for e in report.entries],
        )


class CodeLookupResponse(CamelModel):
    """Referral code lookup."""

    valid: bool
    wallet_address: str | None = None


class WalletLookupResponse(CamelModel):
    """Wallet registration lookup."""

    registered: bool
    referral_code: str | None = None
    tier: str | None = None
