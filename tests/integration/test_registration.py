"""Integration tests for registration and referral tracking."""

import asyncio

import pytest
from sqlalchemy import func, select

from affiliate.models.referral import Referral
from affiliate.models.referrer import Referrer
from affiliate.services.affiliate_service import AffiliateService
from affiliate.utils.exceptions import (
    InvalidAddress,
    SelfReferral,
    UnknownCode,
)

WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40
WALLET_C = "0x" + "c" * 40
WALLET_D = "0x" + "d" * 40
WALLET_E = "0x" + "e" * 40


async def count_rows(session_maker, model) -> int:
    async with session_maker() as fresh:
        result = await fresh.execute(select(func.count()).select_from(model))
        return result.scalar()


class TestRegisterAffiliate:
    """Tests for register_affiliate."""

    @pytest.mark.asyncio
    async def test_registration_idempotent(self, service, session_maker):
        """Same wallet twice yields one row with the same code."""
        first = await service.register_affiliate(WALLET_A)
        second = await service.register_affiliate(WALLET_A.upper().replace("0X", "0x"))

        assert first.referral_code == "AAAAAAAA"
        assert second.id == first.id
        assert second.referral_code == first.referral_code
        assert await count_rows(session_maker, Referrer) == 1

    @pytest.mark.asyncio
    async def test_new_referrer_defaults(self, service, fetch_referrer):
        """New affiliates start at BRONZE with zero balances."""
        await service.register_affiliate(WALLET_B)

        referrer = await fetch_referrer(WALLET_B)
        assert referrer.tier == "BRONZE"
        assert referrer.total_volume == 0
        assert referrer.pending_payout == 0
        assert referrer.total_earned == 0

    @pytest.mark.asyncio
    async def test_code_collision_gets_suffix(self, service):
        """Wallets sharing the first 8 hex chars get suffixed codes."""
        first = await service.register_affiliate("0x12345678" + "0" * 32)
        second = await service.register_affiliate("0x12345678" + "1" * 32)
        third = await service.register_affiliate("0x12345678" + "2" * 32)

        assert first.referral_code == "12345678"
        assert second.referral_code == "12345678A"
        assert third.referral_code == "12345678AB"

    @pytest.mark.asyncio
    async def test_invalid_wallet_rejected(self, service, session_maker):
        """Malformed wallets never reach the database."""
        with pytest.raises(InvalidAddress):
            await service.register_affiliate("0x1234")
        assert await count_rows(session_maker, Referrer) == 0


class TestTrackReferral:
    """Tests for track_referral."""

    @pytest.mark.asyncio
    async def test_track_creates_referral(self, service):
        """Tracking ties the referee to the code owner."""
        referrer = await service.register_affiliate(WALLET_A)

        referral = await service.track_referral("aaaaaaaa", WALLET_B)

        assert referral.referrer_id == referrer.id
        assert referral.referee_address == WALLET_B
        assert referral.lifetime_volume == 0

    @pytest.mark.asyncio
    async def test_track_idempotent(self, service, session_maker):
        """Repeating the same (code, referee) returns the same row."""
        await service.register_affiliate(WALLET_A)

        first = await service.track_referral("AAAAAAAA", WALLET_B)
        second = await service.track_referral("AAAAAAAA", WALLET_B)

        assert second.id == first.id
        assert await count_rows(session_maker, Referral) == 1

    @pytest.mark.asyncio
    async def test_self_referral_rejected(self, service, session_maker):
        """A wallet cannot refer itself."""
        referrer = await service.register_affiliate(WALLET_C)

        with pytest.raises(SelfReferral):
            await service.track_referral(referrer.referral_code, WALLET_C)

        assert await count_rows(session_maker, Referral) == 0

    @pytest.mark.asyncio
    async def test_unknown_code_rejected(self, service):
        """Codes that resolve to nobody are rejected."""
        with pytest.raises(UnknownCode):
            await service.track_referral("ZZZZZZZZ", WALLET_D)

    @pytest.mark.asyncio
    async def test_malformed_code_is_unknown(self, service):
        """Codes that can never resolve are reported as unknown."""
        with pytest.raises(UnknownCode):
            await service.track_referral("ab-cd", WALLET_D)

    @pytest.mark.asyncio
    async def test_duplicate_referee_keeps_first_referrer(self, service):
        """A referee belongs to the first referrer for life."""
        referrer_a = await service.register_affiliate(WALLET_A)
        referrer_b = await service.register_affiliate(WALLET_B)

        first = await service.track_referral(referrer_a.referral_code, WALLET_E)
        second = await service.track_referral(referrer_b.referral_code, WALLET_E)

        assert second.id == first.id
        assert second.referrer_id == referrer_a.id

    @pytest.mark.asyncio
    async def test_concurrent_tracking_single_row(self, session_maker):
        """Parallel tracking of one referee leaves exactly one referral."""
        async with session_maker() as setup:
            await AffiliateService(setup).register_affiliate(WALLET_A)

        async def track():
            async with session_maker() as own:
                return await AffiliateService(own).track_referral(
                    "AAAAAAAA", WALLET_B
                )

        results = await asyncio.gather(*(track() for _ in range(10)))

        assert len({r.id for r in results}) == 1
        assert await count_rows(session_maker, Referral) == 1


class TestLookups:
    """Tests for find_by_wallet and find_by_code."""

    @pytest.mark.asyncio
    async def test_find_by_code_case_insensitive(self, service):
        referrer = await service.register_affiliate(WALLET_A)

        found = await service.find_by_code("aaaaaaaa")

        assert found is not None
        assert found.id == referrer.id

    @pytest.mark.asyncio
    async def test_find_by_wallet_case_insensitive(self, service):
        referrer = await service.register_affiliate(WALLET_A)

        found = await service.find_by_wallet("0x" + "A" * 40)

        assert found is not None
        assert found.id == referrer.id

    @pytest.mark.asyncio
    async def test_unknown_and_malformed_return_none(self, service):
        assert await service.find_by_code("ZZZZZZZZ") is None
        assert await service.find_by_code("bad code") is None
        assert await service.find_by_wallet(WALLET_E) is None
        assert await service.find_by_wallet("garbage") is None
