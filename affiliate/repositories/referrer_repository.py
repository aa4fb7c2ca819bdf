"""
Referrer repository.

Data access layer for Referrer model.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.models.referrer import Referrer
from affiliate.repositories.base import BaseRepository


class ReferrerRepository(BaseRepository[Referrer]):
    """Referrer repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referrer repository."""
        super().__init__(Referrer, session)

    async def get_by_wallet(self, wallet_address: str) -> Referrer | None:
        """
        Get referrer by wallet address.

        Args:
            wallet_address: Normalized (lowercase) wallet address

        Returns:
            Referrer or None
        """
        return await self.get_by(wallet_address=wallet_address)

    async def get_by_code(self, referral_code: str) -> Referrer | None:
        """
        Get referrer by referral code.

        Args:
            referral_code: Normalized (uppercase) referral code

        Returns:
            Referrer or None
        """
        return await self.get_by(referral_code=referral_code)

    async def code_exists(self, referral_code: str) -> bool:
        """Check whether a referral code is taken."""
        stmt = select(Referrer.id).where(Referrer.referral_code == referral_code)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def lock(self, referrer_id: uuid.UUID) -> Referrer | None:
        """
        Load referrer with a row lock (SELECT FOR UPDATE).

        All balance and tier mutations go through a locked row.

        Args:
            referrer_id: Referrer ID

        Returns:
            Locked referrer or None
        """
        return await self.get_by_id(referrer_id, for_update=True)
