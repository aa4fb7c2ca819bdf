"""
Payout repository.

Data access layer for Payout model.
"""

import uuid
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.models.enums import PayoutStatus
from affiliate.models.payout import Payout
from affiliate.repositories.base import BaseRepository


class PayoutRepository(BaseRepository[Payout]):
    """Payout repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payout repository."""
        super().__init__(Payout, session)

    async def get_by_referrer(self, referrer_id: uuid.UUID) -> list[Payout]:
        """
        Get payout history for a referrer, newest first.

        Args:
            referrer_id: Referrer ID

        Returns:
            List of payouts
        """
        stmt = (
            select(Payout)
            .where(Payout.referrer_id == referrer_id)
            .order_by(Payout.created_at.desc(), Payout.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_reserved_amount(self, referrer_id: uuid.UUID) -> Decimal:
        """
        Sum of open (PENDING/PROCESSING) payouts for a referrer.

        Args:
            referrer_id: Referrer ID

        Returns:
            Amount reserved against pending_payout
        """
        stmt = select(
            func.coalesce(func.sum(Payout.amount_usd), 0)
        ).where(
            Payout.referrer_id == referrer_id,
            Payout.status.in_([s.value for s in PayoutStatus.open_statuses()]),
        )
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def find_paginated(
        self,
        status: PayoutStatus | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Payout], int]:
        """
        Find payouts with pagination, newest first.

        Args:
            status: Optional status filter
            page: Page number (1-indexed)
            per_page: Items per page

        Returns:
            Tuple of (items, total_count)
        """
        count_stmt = select(func.count(Payout.id))
        stmt = select(Payout)
        if status is not None:
            count_stmt = count_stmt.where(Payout.status == status.value)
            stmt = stmt.where(Payout.status == status.value)

        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar() or 0

        offset = (page - 1) * per_page
        stmt = (
            stmt.order_by(Payout.created_at.desc(), Payout.id.desc())
            .offset(offset)
            .limit(per_page)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def get_status_summary(self) -> dict[str, int | Decimal]:
        """
        Aggregate counts and pending total in a single query.

        Returns:
            Dict with pending_count, processing_count, pending_total
        """
        stmt = (
            select(
                Payout.status,
                func.count(Payout.id).label("count"),
                func.coalesce(func.sum(Payout.amount_usd), 0).label("total"),
            )
            .where(
                Payout.status.in_([
                    PayoutStatus.PENDING.value,
                    PayoutStatus.PROCESSING.value,
                ])
            )
            .group_by(Payout.status)
        )
        result = await self.session.execute(stmt)

        summary: dict[str, int | Decimal] = {
            "pending_count": 0,
            "processing_count": 0,
            "pending_total": Decimal("0"),
        }
        for row in result.all():
            if row.status == PayoutStatus.PENDING.value:
                summary["pending_count"] = row.count
                summary["pending_total"] = Decimal(str(row.total))
            elif row.status == PayoutStatus.PROCESSING.value:
                summary["processing_count"] = row.count

        return summary
