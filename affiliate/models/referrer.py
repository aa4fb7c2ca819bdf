"""
Referrer model.

Represents a wallet registered to earn affiliate commissions.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate.config.tiers import AffiliateTier, get_tier
from affiliate.models.base import Base
from affiliate.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate.models.payout import Payout
    from affiliate.models.referral import Referral
    from affiliate.models.referral_volume import ReferralVolume


class Referrer(Base):
    """Referrer model - wallets registered as affiliates."""

    __tablename__ = "referrers"
    __table_args__ = (
        CheckConstraint(
            "total_volume >= 0", name="total_volume_non_negative"
        ),
        CheckConstraint(
            "total_earned >= 0", name="total_earned_non_negative"
        ),
        CheckConstraint(
            "pending_payout >= 0", name="pending_payout_non_negative"
        ),
    )

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    # Identity
    wallet_address: Mapped[str] = mapped_column(
        String(42), unique=True, index=True, nullable=False
    )  # Lowercase 0x-prefixed hex
    referral_code: Mapped[str] = mapped_column(
        String(20), unique=True, index=True, nullable=False
    )  # Uppercase alphanumeric, 8-20 chars

    # Tier (stored as name, never regresses)
    tier: Mapped[str] = mapped_column(
        String(16), nullable=False, default=AffiliateTier.BRONZE.value
    )

    # Balances (USD)
    total_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    total_earned: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Commission already settled",
    )
    pending_payout: Mapped[Decimal] = mapped_column(
        MoneyType,
        default=Decimal("0"),
        nullable=False,
        comment="Accrued commission not yet settled",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    referrals: Mapped[list["Referral"]] = relationship(
        "Referral",
        back_populates="referrer",
        lazy="raise",
    )
    volumes: Mapped[list["ReferralVolume"]] = relationship(
        "ReferralVolume",
        back_populates="referrer",
        lazy="raise",
    )
    payouts: Mapped[list["Payout"]] = relationship(
        "Payout",
        back_populates="referrer",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referrer(id={self.id}, wallet={self.wallet_address}, "
            f"code={self.referral_code}, tier={self.tier})>"
        )

    @property
    def tier_enum(self) -> AffiliateTier:
        """Tier as enum member."""
        return get_tier(self.tier)
