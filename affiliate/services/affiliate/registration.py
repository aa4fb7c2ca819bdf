"""
Affiliate registration module.

Handles affiliate registration, referral tracking and identity lookups.
"""

from collections.abc import Iterator
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.config.constants import (
    REFERRAL_CODE_MAX_ATTEMPTS,
    REFERRAL_CODE_PREFIX_SLICE,
)
from affiliate.config.tiers import AffiliateTier
from affiliate.models.referral import Referral
from affiliate.models.referrer import Referrer
from affiliate.repositories.referral_repository import ReferralRepository
from affiliate.repositories.referrer_repository import ReferrerRepository
from affiliate.services.base_service import BaseService, transaction
from affiliate.utils.db_decorators import retry_on_conflict
from affiliate.utils.exceptions import (
    CodeCollision,
    Conflict,
    SelfReferral,
    UnknownCode,
)
from affiliate.validators import (
    normalize_referral_code,
    normalize_wallet_address,
    validate_wallet_address,
)


def referral_code_candidates(wallet_address: str) -> Iterator[str]:
    """
    Yield referral code candidates for a wallet.

    The first candidate is the 8 hex chars after "0x", uppercased. Each
    fallback appends the next letter to the previous candidate
    (ABCD1234, ABCD1234A, ABCD1234AB, ...).

    Args:
        wallet_address: Normalized wallet address

    Yields:
        Candidate codes, REFERRAL_CODE_MAX_ATTEMPTS fallbacks after the base
    """
    code = wallet_address[REFERRAL_CODE_PREFIX_SLICE].upper()
    yield code
    for attempt in range(REFERRAL_CODE_MAX_ATTEMPTS):
        code = code + chr(ord("A") + attempt)
        yield code


class AffiliateRegistrationManager(BaseService):
    """Manages affiliate registration and referral tracking."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize registration manager."""
        super().__init__(session)
        self.referrer_repo = ReferrerRepository(session)
        self.referral_repo = ReferralRepository(session)

    @retry_on_conflict
    async def register_affiliate(self, wallet_address: str) -> Referrer:
        """
        Register a wallet as affiliate (idempotent).

        A concurrent registration of the same wallet or code surfaces as
        IntegrityError; the operation then reruns once starting from the
        idempotent read.

        Args:
            wallet_address: Wallet address in any case

        Returns:
            New or existing Referrer

        Raises:
            InvalidAddress: If the wallet is malformed
            CodeCollision: If no free code was found
            Conflict: If the rerun also violates a unique constraint
        """
        wallet = normalize_wallet_address(wallet_address)

        try:
            return await self._register(wallet)
        except IntegrityError:
            self.logger.info(
                "Concurrent registration detected, re-reading",
                extra={"wallet": wallet},
            )

        try:
            return await self._register(wallet)
        except IntegrityError as e:
            raise Conflict() from e

    @transaction
    async def _register(self, wallet: str) -> Referrer:
        """Insert-or-read body of register_affiliate."""
        existing = await self.referrer_repo.get_by_wallet(wallet)
        if existing:
            return existing

        code = await self._allocate_code(wallet)

        referrer = await self.referrer_repo.create(
            wallet_address=wallet,
            referral_code=code,
            tier=AffiliateTier.BRONZE.value,
            total_volume=Decimal("0"),
            total_earned=Decimal("0"),
            pending_payout=Decimal("0"),
        )

        self.logger.info(
            f"Registered new affiliate {wallet} with code {code}",
            extra={"referrer_id": str(referrer.id), "wallet": wallet},
        )
        return referrer

    async def _allocate_code(self, wallet: str) -> str:
        """
        Find the first free referral code candidate.

        Raises:
            CodeCollision: If every candidate is taken
        """
        for code in referral_code_candidates(wallet):
            if not await self.referrer_repo.code_exists(code):
                return code

        self.logger.error(
            "Referral code space exhausted",
            extra={"wallet": wallet, "attempts": REFERRAL_CODE_MAX_ATTEMPTS},
        )
        raise CodeCollision()

    @retry_on_conflict
    async def track_referral(
        self, referral_code: str, referee_address: str
    ) -> Referral:
        """
        Tie a referee wallet to the referrer owning a code (idempotent).

        A referee is tied to one referrer for life: re-tracking returns
        the existing Referral even when the code differs.

        Args:
            referral_code: Referral code in any case
            referee_address: Referee wallet in any case

        Returns:
            New or existing Referral

        Raises:
            InvalidAddress: If the referee wallet is malformed
            UnknownCode: If the code does not resolve
            SelfReferral: If the referee owns the code
            Conflict: If the rerun also violates a unique constraint
        """
        referee = normalize_wallet_address(referee_address)
        code = normalize_referral_code(referral_code)

        try:
            return await self._track(code, referee)
        except IntegrityError:
            self.logger.info(
                "Concurrent tracking detected, re-reading",
                extra={"referee": referee},
            )

        try:
            return await self._track(code, referee)
        except IntegrityError as e:
            raise Conflict() from e

    @transaction
    async def _track(self, code: str | None, referee: str) -> Referral:
        """Insert-or-read body of track_referral."""
        existing = await self.referral_repo.get_by_referee(referee)
        if existing:
            return existing

        referrer = None
        if code is not None:
            referrer = await self.referrer_repo.get_by_code(code)
        if referrer is None:
            raise UnknownCode()

        if referrer.wallet_address == referee:
            raise SelfReferral()

        referral = await self.referral_repo.create(
            referrer_id=referrer.id,
            referee_address=referee,
            lifetime_volume=Decimal("0"),
            last_30_days_volume=Decimal("0"),
        )

        self.logger.info(
            f"Tracked referral {referee} -> {code}",
            extra={"referrer_id": str(referrer.id), "referee": referee},
        )
        return referral

    async def find_by_wallet(self, wallet_address: str) -> Referrer | None:
        """
        Find referrer by wallet.

        Args:
            wallet_address: Wallet in any case

        Returns:
            Referrer, or None if unknown or malformed
        """
        is_valid, _ = validate_wallet_address(wallet_address)
        if not is_valid:
            return None
        return await self.referrer_repo.get_by_wallet(
            wallet_address.strip().lower()
        )

    async def find_by_code(self, referral_code: str) -> Referrer | None:
        """
        Find referrer by referral code.

        Args:
            referral_code: Code in any case

        Returns:
            Referrer, or None if unknown or malformed
        """
        code = normalize_referral_code(referral_code)
        if code is None:
            return None
        return await self.referrer_repo.get_by_code(code)
