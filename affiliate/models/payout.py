"""
Payout model.

Commission disbursement record for a referrer.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate.models.base import Base
from affiliate.models.enums import PayoutStatus
from affiliate.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate.models.referrer import Referrer


class Payout(Base):
    """
    Payout entity.

    Lifecycle: PENDING -> PROCESSING -> COMPLETED, with FAILED reachable
    from either open status. Open payouts reserve part of the referrer's
    pending_payout; only COMPLETED moves money to total_earned.

    Attributes:
        id: Primary key
        referrer_id: Referrer being paid
        amount_usd: Amount in USD (> 0)
        status: PayoutStatus value
        tx_hash: Settlement transaction hash (COMPLETED only)
        created_at: When the payout was requested
        processed_at: When it reached a terminal status
        error_message: Failure reason (FAILED only)
    """

    __tablename__ = "payouts"
    __table_args__ = (
        CheckConstraint("amount_usd > 0", name="amount_usd_positive"),
        Index("idx_payouts_referrer_created", "referrer_id", "created_at"),
        Index("idx_payouts_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    referrer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("referrers.id", ondelete="RESTRICT"),
        nullable=False,
    )

    amount_usd: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PayoutStatus.PENDING.value
    )
    tx_hash: Mapped[str | None] = mapped_column(String(66), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    processed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    referrer: Mapped["Referrer"] = relationship(
        "Referrer",
        back_populates="payouts",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Payout(id={self.id}, referrer_id={self.referrer_id}, "
            f"amount={self.amount_usd}, status={self.status})>"
        )

    @property
    def status_enum(self) -> PayoutStatus:
        """Status as enum member."""
        return PayoutStatus(self.status)

    @property
    def is_open(self) -> bool:
        """True while the payout still reserves pending balance."""
        return self.status_enum in PayoutStatus.open_statuses()
