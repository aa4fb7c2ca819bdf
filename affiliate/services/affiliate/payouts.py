"""
Payout lifecycle module.

Bookkeeping for commission payouts. A request reserves part of the
pending balance; only completion moves the amount from pending_payout to
total_earned, so pending_payout + total_earned always equals the accrued
commission.

Lock order is Referrer row, then Payout row.
"""

import math
import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from affiliate.config.constants import PAYOUTS_MAX_PAGE_SIZE, PAYOUTS_PAGE_SIZE
from affiliate.models.enums import PAYOUT_TRANSITIONS, PayoutStatus
from affiliate.models.payout import Payout
from affiliate.repositories.payout_repository import PayoutRepository
from affiliate.repositories.referrer_repository import ReferrerRepository
from affiliate.services.base_service import BaseService, transaction
from affiliate.utils.datetime_utils import utc_now
from affiliate.utils.db_decorators import retry_on_conflict
from affiliate.utils.exceptions import (
    InsufficientBalance,
    InvalidPayoutState,
    InvalidTransactionHash,
    NotRegistered,
    PayoutNotFound,
)
from affiliate.validators import (
    normalize_wallet_address,
    parse_usd_amount,
    validate_transaction_hash,
)


@dataclass
class PayoutPage:
    """Admin payout listing page."""

    items: list[Payout]
    total: int
    page: int
    per_page: int
    summary: dict = field(default_factory=dict)

    @property
    def pages(self) -> int:
        """Total number of pages."""
        return math.ceil(self.total / self.per_page) if self.per_page else 0


class PayoutManager(BaseService):
    """Manages the payout request/approve/complete/fail lifecycle."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payout manager."""
        super().__init__(session)
        self.referrer_repo = ReferrerRepository(session)
        self.payout_repo = PayoutRepository(session)

    async def get_available_balance(self, referrer_id: uuid.UUID) -> Decimal:
        """
        Pending payout not yet reserved by open payouts.

        Args:
            referrer_id: Referrer ID

        Returns:
            pending_payout minus the sum of PENDING/PROCESSING payouts
        """
        referrer = await self.referrer_repo.get_by_id(referrer_id)
        if referrer is None:
            return Decimal("0")
        reserved = await self.payout_repo.get_reserved_amount(referrer_id)
        return referrer.pending_payout - reserved

    @retry_on_conflict
    @transaction
    async def request_payout(
        self,
        wallet_address: str,
        amount: Decimal | float | int | str | None = None,
    ) -> Payout:
        """
        Request a payout of accrued commission.

        Args:
            wallet_address: Affiliate wallet in any case
            amount: USD amount; defaults to the whole available balance

        Returns:
            Created Payout in PENDING

        Raises:
            InvalidAmount: If amount is not a positive finite number
            NotRegistered: If the wallet is not an affiliate
            InsufficientBalance: If amount exceeds the available balance
        """
        wallet = normalize_wallet_address(wallet_address)
        requested = (
            parse_usd_amount(amount, allow_zero=False)
            if amount is not None
            else None
        )

        referrer = await self.referrer_repo.get_by_wallet(wallet)
        if referrer is None:
            raise NotRegistered()
        referrer = await self.referrer_repo.lock(referrer.id)

        available = await self.get_available_balance(referrer.id)
        value = requested if requested is not None else available

        if value <= 0 or value > available:
            self.logger.info(
                "Payout request exceeds available balance",
                extra={
                    "wallet": wallet,
                    "requested": str(value),
                    "available": str(available),
                },
            )
            raise InsufficientBalance()

        payout = await self.payout_repo.create(
            referrer_id=referrer.id,
            amount_usd=value,
            status=PayoutStatus.PENDING.value,
        )

        self.logger.info(
            f"Payout requested: {value} USD",
            extra={
                "payout_id": str(payout.id),
                "referrer_id": str(referrer.id),
                "amount": str(value),
            },
        )
        return payout

    async def _lock_payout(self, payout_id: uuid.UUID) -> Payout:
        """Lock the owning Referrer, then the Payout."""
        payout = await self.payout_repo.get_by_id(payout_id)
        if payout is None:
            raise PayoutNotFound()

        await self.referrer_repo.lock(payout.referrer_id)
        payout = await self.payout_repo.get_by_id(payout_id, for_update=True)
        if payout is None:
            raise PayoutNotFound()
        return payout

    def _check_transition(self, payout: Payout, target: PayoutStatus) -> None:
        """Raise InvalidPayoutState unless current -> target is allowed."""
        current = payout.status_enum
        if target not in PAYOUT_TRANSITIONS[current]:
            raise InvalidPayoutState(
                f"Cannot move payout from {current.value} to {target.value}"
            )

    @retry_on_conflict
    @transaction
    async def approve_payout(self, payout_id: uuid.UUID) -> Payout:
        """
        Approve a payout (PENDING -> PROCESSING).

        Raises:
            PayoutNotFound: If the id is unknown
            InvalidPayoutState: If the payout is not PENDING
        """
        payout = await self._lock_payout(payout_id)
        self._check_transition(payout, PayoutStatus.PROCESSING)

        payout.status = PayoutStatus.PROCESSING.value
        await self.session.flush()

        self.logger.info(
            "Payout approved",
            extra={"payout_id": str(payout.id), "amount": str(payout.amount_usd)},
        )
        return payout

    @retry_on_conflict
    @transaction
    async def complete_payout(self, payout_id: uuid.UUID, tx_hash: str) -> Payout:
        """
        Mark a payout settled (PROCESSING -> COMPLETED).

        Moves the amount from pending_payout to total_earned under the
        referrer lock.

        Args:
            payout_id: Payout ID
            tx_hash: Settlement transaction hash

        Raises:
            InvalidTransactionHash: If tx_hash is malformed
            PayoutNotFound: If the id is unknown
            InvalidPayoutState: If the payout is not PROCESSING
            InsufficientBalance: If pending_payout no longer covers it
        """
        if not validate_transaction_hash(tx_hash):
            raise InvalidTransactionHash()

        payout = await self._lock_payout(payout_id)
        self._check_transition(payout, PayoutStatus.COMPLETED)

        referrer = await self.referrer_repo.lock(payout.referrer_id)
        if referrer.pending_payout < payout.amount_usd:
            self.logger.error(
                "Pending balance below open payout amount",
                extra={
                    "payout_id": str(payout.id),
                    "referrer_id": str(referrer.id),
                    "pending_payout": str(referrer.pending_payout),
                    "amount": str(payout.amount_usd),
                },
            )
            raise InsufficientBalance()

        referrer.pending_payout -= payout.amount_usd
        referrer.total_earned += payout.amount_usd

        payout.status = PayoutStatus.COMPLETED.value
        payout.tx_hash = tx_hash.lower()
        payout.processed_at = utc_now()
        await self.session.flush()

        self.logger.info(
            "Payout completed",
            extra={
                "payout_id": str(payout.id),
                "referrer_id": str(referrer.id),
                "amount": str(payout.amount_usd),
                "tx_hash": payout.tx_hash,
            },
        )
        return payout

    @retry_on_conflict
    @transaction
    async def fail_payout(
        self, payout_id: uuid.UUID, error_message: str | None = None
    ) -> Payout:
        """
        Reject or fail a payout (PENDING/PROCESSING -> FAILED).

        The reservation is released; balances are untouched.

        Raises:
            PayoutNotFound: If the id is unknown
            InvalidPayoutState: If the payout is already closed
        """
        payout = await self._lock_payout(payout_id)
        self._check_transition(payout, PayoutStatus.FAILED)

        payout.status = PayoutStatus.FAILED.value
        payout.processed_at = utc_now()
        payout.error_message = error_message
        await self.session.flush()

        self.logger.info(
            "Payout failed",
            extra={
                "payout_id": str(payout.id),
                "error_message": error_message,
            },
        )
        return payout

    async def list_payouts(
        self,
        status: PayoutStatus | None = None,
        page: int = 1,
        per_page: int = PAYOUTS_PAGE_SIZE,
    ) -> PayoutPage:
        """
        List payouts for administration, newest first.

        Args:
            status: Optional status filter
            page: Page number (1-indexed)
            per_page: Items per page (capped)

        Returns:
            PayoutPage with the status summary
        """
        page = max(page, 1)
        per_page = min(max(per_page, 1), PAYOUTS_MAX_PAGE_SIZE)

        items, total = await self.payout_repo.find_paginated(
            status=status, page=page, per_page=per_page
        )
        summary = await self.payout_repo.get_status_summary()

        return PayoutPage(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            summary=summary,
        )
