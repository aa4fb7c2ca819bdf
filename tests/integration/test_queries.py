"""Integration tests for dashboard queries."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from affiliate.config.tiers import AffiliateTier
from affiliate.repositories.referral_volume_repository import (
    ReferralVolumeRepository,
)
from affiliate.utils.exceptions import InvalidAddress, NotRegistered

WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40
WALLET_C = "0x" + "c" * 40
WALLET_F = "0x" + "f" * 40


@pytest_asyncio.fixture
async def referrer(service):
    """WALLET_A registered, with WALLET_B then WALLET_C as referees."""
    created = await service.register_affiliate(WALLET_A)
    await service.track_referral(created.referral_code, WALLET_B)
    await service.track_referral(created.referral_code, WALLET_C)
    return created


class TestGetStats:
    """Tests for get_stats."""

    @pytest.mark.asyncio
    async def test_fresh_affiliate(self, service, referrer):
        stats = await service.get_stats(WALLET_A)

        assert stats.wallet_address == WALLET_A
        assert stats.referral_code == "AAAAAAAA"
        assert stats.tier == AffiliateTier.BRONZE
        assert stats.commission_rate == Decimal("0.10")
        assert stats.total_referrals == 2
        assert stats.total_volume_generated == 0
        assert stats.volume_to_next_tier == Decimal("500000")
        assert stats.next_tier == AffiliateTier.SILVER

    @pytest.mark.asyncio
    async def test_after_attribution(self, service, referrer):
        await service.attribute_volume(WALLET_B, 600000)

        stats = await service.get_stats(WALLET_A.upper().replace("0X", "0x"))

        assert stats.tier == AffiliateTier.SILVER
        assert stats.commission_rate == Decimal("0.15")
        assert stats.total_volume_generated == Decimal("600000")
        assert stats.pending_payout == Decimal("60000")
        assert stats.volume_to_next_tier == Decimal("1400000")
        assert stats.next_tier == AffiliateTier.GOLD

    @pytest.mark.asyncio
    async def test_top_tier_has_no_next(self, service, referrer):
        await service.attribute_volume(WALLET_B, 12000000)

        stats = await service.get_stats(WALLET_A)

        assert stats.tier == AffiliateTier.DIAMOND
        assert stats.next_tier is None
        assert stats.volume_to_next_tier == 0

    @pytest.mark.asyncio
    async def test_unregistered_wallet(self, service):
        with pytest.raises(NotRegistered):
            await service.get_stats(WALLET_F)

    @pytest.mark.asyncio
    async def test_malformed_wallet(self, service):
        with pytest.raises(InvalidAddress):
            await service.get_stats("0x12")


class TestHistory:
    """Tests for get_referrals and get_payouts."""

    @pytest.mark.asyncio
    async def test_referrals_oldest_first(self, service, referrer):
        referrals = await service.get_referrals(WALLET_A)

        assert [r.referee_address for r in referrals] == [WALLET_B, WALLET_C]

    @pytest.mark.asyncio
    async def test_referrals_unregistered(self, service):
        with pytest.raises(NotRegistered):
            await service.get_referrals(WALLET_F)

    @pytest.mark.asyncio
    async def test_payouts_newest_first(self, service, referrer):
        await service.attribute_volume(WALLET_B, 1000)
        first = await service.request_payout(WALLET_A, 10)
        second = await service.request_payout(WALLET_A, 20)

        payouts = await service.get_payouts(WALLET_A)

        assert [p.id for p in payouts] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_payouts_empty(self, service, referrer):
        assert await service.get_payouts(WALLET_A) == []


class TestDailyVolume:
    """Tests for get_daily_volume."""

    @pytest_asyncio.fixture
    async def history(self, session, referrer):
        """Daily rows for 2026-03-01 .. 2026-03-10, one per day."""
        repo = ReferralVolumeRepository(session)
        for offset in range(10):
            await repo.add_daily(
                referrer.id,
                date(2026, 3, 1) + timedelta(days=offset),
                Decimal("100"),
                Decimal("10"),
            )
        await session.commit()
        return date(2026, 3, 10)

    @pytest.mark.asyncio
    async def test_window_bounds(self, service, history):
        report = await service.get_daily_volume(WALLET_A, days=7, today=history)

        assert report.since == date(2026, 3, 4)
        assert [e.date for e in report.entries] == [
            date(2026, 3, 10) - timedelta(days=i) for i in range(7)
        ]
        assert report.window_volume == Decimal("700")
        assert report.window_commission == Decimal("70")
        assert report.window_trades == 7

    @pytest.mark.asyncio
    async def test_single_day_window(self, service, history):
        report = await service.get_daily_volume(WALLET_A, days=0, today=history)

        assert report.days == 1
        assert [e.date for e in report.entries] == [history]

    @pytest.mark.asyncio
    async def test_today_from_attribution(self, service, referrer):
        await service.attribute_volume(WALLET_B, 250)

        report = await service.get_daily_volume(WALLET_A)

        assert report.days == 30
        assert len(report.entries) == 1
        assert report.entries[0].volume_usd == Decimal("250")
        assert report.entries[0].commission_usd == Decimal("25")
        assert report.entries[0].trade_count == 1

    @pytest.mark.asyncio
    async def test_unregistered(self, service):
        with pytest.raises(NotRegistered):
            await service.get_daily_volume(WALLET_F)
