"""
Referral repository.

Data access layer for Referral model.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.models.referral import Referral
from affiliate.repositories.base import BaseRepository


class ReferralRepository(BaseRepository[Referral]):
    """Referral repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral repository."""
        super().__init__(Referral, session)

    async def get_by_referee(
        self, referee_address: str, for_update: bool = False
    ) -> Referral | None:
        """
        Get referral by referee wallet.

        Args:
            referee_address: Normalized (lowercase) referee wallet
            for_update: Lock the row (attribution path)

        Returns:
            Referral or None if the wallet was never referred
        """
        return await self.get_by(
            for_update=for_update, referee_address=referee_address
        )

    async def get_by_referrer(self, referrer_id: uuid.UUID) -> list[Referral]:
        """
        Get referrals by referrer, oldest first.

        Args:
            referrer_id: Referrer ID

        Returns:
            List of referrals
        """
        stmt = (
            select(Referral)
            .where(Referral.referrer_id == referrer_id)
            .order_by(Referral.created_at.asc(), Referral.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_referrer(self, referrer_id: uuid.UUID) -> int:
        """
        Count referrals for a referrer.

        Args:
            referrer_id: Referrer ID

        Returns:
            Number of referees
        """
        stmt = select(func.count(Referral.id)).where(
            Referral.referrer_id == referrer_id
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0
