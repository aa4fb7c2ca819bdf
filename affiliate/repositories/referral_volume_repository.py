"""
Referral volume repository.

Data access layer for the daily ReferralVolume roll-up.
"""

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.models.referral_volume import ReferralVolume
from affiliate.repositories.base import BaseRepository


class ReferralVolumeRepository(BaseRepository[ReferralVolume]):
    """Daily volume repository with atomic upsert."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral volume repository."""
        super().__init__(ReferralVolume, session)

    def _insert(self):
        """Dialect-specific INSERT supporting ON CONFLICT."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(ReferralVolume)
        if dialect == "sqlite":
            return sqlite_insert(ReferralVolume)
        raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

    async def add_daily(
        self,
        referrer_id: uuid.UUID,
        day: date,
        volume_usd: Decimal,
        commission_usd: Decimal,
        trades: int = 1,
    ) -> None:
        """
        Add volume to the (referrer, day) row, creating it if absent.

        Single INSERT ... ON CONFLICT DO UPDATE keyed on the
        (referrer_id, date) unique constraint, so concurrent callers
        never lose an increment.

        Args:
            referrer_id: Referrer ID
            day: Local date of the trade
            volume_usd: Volume to add
            commission_usd: Commission to add
            trades: Trade count to add
        """
        stmt = self._insert().values(
            id=uuid.uuid4(),
            referrer_id=referrer_id,
            date=day,
            volume_usd=volume_usd,
            commission_usd=commission_usd,
            trade_count=trades,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ReferralVolume.referrer_id, ReferralVolume.date],
            set_={
                "volume_usd": ReferralVolume.volume_usd + stmt.excluded.volume_usd,
                "commission_usd": (
                    ReferralVolume.commission_usd + stmt.excluded.commission_usd
                ),
                "trade_count": ReferralVolume.trade_count + stmt.excluded.trade_count,
            },
        )
        await self.session.execute(stmt)

    async def get_for_date(
        self, referrer_id: uuid.UUID, day: date
    ) -> ReferralVolume | None:
        """
        Get the roll-up row for one day.

        Args:
            referrer_id: Referrer ID
            day: Local date

        Returns:
            Row or None
        """
        stmt = (
            select(ReferralVolume)
            .where(
                ReferralVolume.referrer_id == referrer_id,
                ReferralVolume.date == day,
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_since(
        self, referrer_id: uuid.UUID, since: date
    ) -> list[ReferralVolume]:
        """
        Get roll-up rows from `since` (inclusive), newest first.

        Args:
            referrer_id: Referrer ID
            since: First date included

        Returns:
            List of daily rows
        """
        stmt = (
            select(ReferralVolume)
            .where(
                ReferralVolume.referrer_id == referrer_id,
                ReferralVolume.date >= since,
            )
            .order_by(ReferralVolume.date.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_totals(
        self, referrer_id: uuid.UUID
    ) -> tuple[Decimal, Decimal, int]:
        """
        Sum all roll-up rows for a referrer.

        Uses SQL aggregation to avoid loading every row.

        Args:
            referrer_id: Referrer ID

        Returns:
            Tuple of (volume_usd, commission_usd, trade_count)
        """
        stmt = select(
            func.coalesce(func.sum(ReferralVolume.volume_usd), 0).label("volume"),
            func.coalesce(func.sum(ReferralVolume.commission_usd), 0).label(
                "commission"
            ),
            func.coalesce(func.sum(ReferralVolume.trade_count), 0).label("trades"),
        ).where(ReferralVolume.referrer_id == referrer_id)

        result = await self.session.execute(stmt)
        row = result.one()
        return (
            Decimal(str(row.volume)),
            Decimal(str(row.commission)),
            int(row.trades),
        )
