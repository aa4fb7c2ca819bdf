"""
Referral model.

A referee wallet tied to exactly one referrer for life.
"""

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate.models.base import Base
from affiliate.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate.models.referrer import Referrer


class Referral(Base):
    """Referral model - referees and their attributed volume."""

    __tablename__ = "referrals"
    __table_args__ = (
        CheckConstraint(
            "lifetime_volume >= 0", name="lifetime_volume_non_negative"
        ),
        CheckConstraint(
            "last_30_days_volume >= 0", name="last_30_days_volume_non_negative"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    referrer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("referrers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # A wallet may be referred at most once, ever
    referee_address: Mapped[str] = mapped_column(
        String(42), unique=True, index=True, nullable=False
    )

    lifetime_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    # Accumulated only; decay belongs to an external rolling-window job
    last_30_days_volume: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    last_active_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    referrer: Mapped["Referrer"] = relationship(
        "Referrer",
        back_populates="referrals",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Referral(id={self.id}, referrer_id={self.referrer_id}, "
            f"referee={self.referee_address})>"
        )
