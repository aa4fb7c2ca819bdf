"""
ReferralVolume model.

Daily roll-up of attributed volume and commission per referrer.
"""

import datetime
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from affiliate.models.base import Base
from affiliate.models.types import MoneyType

if TYPE_CHECKING:
    from affiliate.models.referrer import Referrer


class ReferralVolume(Base):
    """ReferralVolume model - one row per (referrer, local date)."""

    __tablename__ = "referral_volumes"
    __table_args__ = (
        UniqueConstraint(
            "referrer_id", "date", name="uq_referral_volumes_referrer_date"
        ),
        CheckConstraint("volume_usd >= 0", name="volume_usd_non_negative"),
        CheckConstraint(
            "commission_usd >= 0", name="commission_usd_non_negative"
        ),
        CheckConstraint("trade_count >= 0", name="trade_count_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )

    referrer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("referrers.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    volume_usd: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    commission_usd: Mapped[Decimal] = mapped_column(
        MoneyType, default=Decimal("0"), nullable=False
    )
    trade_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    referrer: Mapped["Referrer"] = relationship(
        "Referrer",
        back_populates="volumes",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralVolume(referrer_id={self.referrer_id}, date={self.date}, "
            f"volume={self.volume_usd}, commission={self.commission_usd}, "
            f"trades={self.trade_count})>"
        )
