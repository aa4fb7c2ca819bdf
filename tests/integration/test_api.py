"""Integration tests for the HTTP API."""

import pytest
import pytest_asyncio
from aiohttp import test_utils

from affiliate.config.settings import Settings
from affiliate.web import create_app

ADMIN = "0x" + "9" * 40
WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40
WALLET_F = "0x" + "f" * 40

API = "/api/affiliate"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def api_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        environment="development",
        admin_wallets=ADMIN,
        log_file="",
    )


@pytest_asyncio.fixture
async def client(session_maker, api_settings):
    """Test client over the full application."""
    app = create_app(session_maker, api_settings)
    async with test_utils.TestClient(test_utils.TestServer(app)) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def referred(client):
    """WALLET_A registered with WALLET_B as referee."""
    await client.post(f"{API}/register", json={"walletAddress": WALLET_A})
    await client.post(
        f"{API}/track",
        json={"referralCode": "AAAAAAAA", "refereeAddress": WALLET_B},
    )


async def attribute(client, trader, volume):
    return await client.post(
        f"{API}/internal/volume",
        params={"traderAddress": trader, "volumeUsd": str(volume)},
    )


class TestHealth:
    """Tests for liveness and readiness."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")

        assert resp.status == 200
        assert (await resp.json())["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_readiness(self, client):
        resp = await client.get("/readiness")

        assert resp.status == 200
        assert (await resp.json())["ready"] is True


class TestRegistrationEndpoints:
    """Tests for /register, /track and the lookups."""

    @pytest.mark.asyncio
    async def test_register(self, client):
        resp = await client.post(f"{API}/register", json={"walletAddress": WALLET_A})

        assert resp.status == 200
        assert await resp.json() == {
            "success": True,
            "referralCode": "AAAAAAAA",
            "walletAddress": WALLET_A,
        }

    @pytest.mark.asyncio
    async def test_register_invalid_wallet(self, client):
        resp = await client.post(f"{API}/register", json={"walletAddress": "0x12"})

        assert resp.status == 400
        body = await resp.json()
        assert body["success"] is False
        assert body["code"] == "INVALID_ADDRESS"

    @pytest.mark.asyncio
    async def test_malformed_json(self, client):
        resp = await client.post(
            f"{API}/register",
            data="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status == 400
        assert (await resp.json())["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_track_unknown_code(self, client):
        resp = await client.post(
            f"{API}/track",
            json={"referralCode": "ZZZZZZZZ", "refereeAddress": WALLET_B},
        )

        assert resp.status == 400
        assert (await resp.json())["code"] == "UNKNOWN_CODE"

    @pytest.mark.asyncio
    async def test_track_self_referral(self, client):
        await client.post(f"{API}/register", json={"walletAddress": WALLET_A})

        resp = await client.post(
            f"{API}/track",
            json={"referralCode": "AAAAAAAA", "refereeAddress": WALLET_A},
        )

        assert resp.status == 400
        assert (await resp.json())["code"] == "SELF_REFERRAL"

    @pytest.mark.asyncio
    async def test_track_repeat_is_success(self, client, referred):
        resp = await client.post(
            f"{API}/track",
            json={"referralCode": "AAAAAAAA", "refereeAddress": WALLET_B},
        )

        assert resp.status == 200
        assert await resp.json() == {"success": True}

    @pytest.mark.asyncio
    async def test_lookup_code(self, client, referred):
        found = await client.get(f"{API}/lookup/code/aaaaaaaa")
        missing = await client.get(f"{API}/lookup/code/ZZZZZZZZ")

        assert await found.json() == {"valid": True, "walletAddress": WALLET_A}
        assert await missing.json() == {"valid": False}

    @pytest.mark.asyncio
    async def test_lookup_wallet(self, client, referred):
        found = await client.get(f"{API}/lookup/wallet/{WALLET_A}")
        missing = await client.get(f"{API}/lookup/wallet/{WALLET_F}")

        assert await found.json() == {
            "registered": True,
            "referralCode": "AAAAAAAA",
            "tier": "BRONZE",
        }
        assert await missing.json() == {"registered": False}


class TestDashboardEndpoints:
    """Tests for attribution and the dashboard reads."""

    @pytest.mark.asyncio
    async def test_attribution_reflected_in_stats(self, client, referred):
        resp = await attribute(client, WALLET_B, 1000)
        assert resp.status == 200

        stats = await client.get(f"{API}/stats", params={"walletAddress": WALLET_A})
        body = await stats.json()

        assert body["tier"] == "BRONZE"
        assert body["commissionRate"] == 0.1
        assert body["totalVolumeGenerated"] == 1000.0
        assert body["pendingPayout"] == 100.0
        assert body["totalReferrals"] == 1
        assert body["nextTier"] == "SILVER"

    @pytest.mark.asyncio
    async def test_missing_volume(self, client, referred):
        resp = await client.post(
            f"{API}/internal/volume", params={"traderAddress": WALLET_B}
        )

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_negative_volume(self, client, referred):
        resp = await attribute(client, WALLET_B, -5)

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_oversized_volume(self, client, referred):
        resp = await attribute(client, WALLET_B, "1e30")

        assert resp.status == 400
        assert (await resp.json())["code"] == "INVALID_AMOUNT"

        stats = await client.get(f"{API}/stats", params={"walletAddress": WALLET_A})
        assert (await stats.json())["totalVolumeGenerated"] == 0.0

    @pytest.mark.asyncio
    async def test_unreferred_trader_succeeds(self, client):
        resp = await attribute(client, WALLET_F, 100)

        assert resp.status == 200

    @pytest.mark.asyncio
    async def test_stats_unregistered(self, client):
        resp = await client.get(f"{API}/stats", params={"walletAddress": WALLET_F})

        assert resp.status == 400
        assert (await resp.json())["code"] == "NOT_REGISTERED"

    @pytest.mark.asyncio
    async def test_referrals(self, client, referred):
        await attribute(client, WALLET_B, 10)

        resp = await client.get(
            f"{API}/referrals", params={"walletAddress": WALLET_A}
        )
        body = await resp.json()

        assert len(body) == 1
        assert body[0]["address"] == WALLET_B
        assert body[0]["lifetimeVolume"] == 10.0
        assert body[0]["last30DaysVolume"] == 10.0
        assert body[0]["lastActiveAt"] is not None

    @pytest.mark.asyncio
    async def test_daily_volume(self, client, referred):
        await attribute(client, WALLET_B, 10)
        await attribute(client, WALLET_B, 20)

        resp = await client.get(
            f"{API}/daily-volume", params={"walletAddress": WALLET_A, "days": "7"}
        )
        body = await resp.json()

        assert body["days"] == 7
        assert body["windowVolume"] == 30.0
        assert body["windowTrades"] == 2
        assert body["entries"][0]["tradeCount"] == 2


class TestPayoutEndpoints:
    """Tests for payout requests and administration."""

    @pytest.mark.asyncio
    async def test_request_payout(self, client, referred):
        await attribute(client, WALLET_B, 1000)

        resp = await client.post(
            f"{API}/payouts/request",
            json={"walletAddress": WALLET_A, "amountUsd": 40},
        )
        body = await resp.json()

        assert resp.status == 201
        assert body["status"] == "PENDING"
        assert body["amount"] == 40.0

        history = await client.get(
            f"{API}/payouts", params={"walletAddress": WALLET_A}
        )
        assert [p["id"] for p in await history.json()] == [body["id"]]

    @pytest.mark.asyncio
    async def test_request_exceeding_balance(self, client, referred):
        resp = await client.post(
            f"{API}/payouts/request",
            json={"walletAddress": WALLET_A, "amountUsd": 1},
        )

        assert resp.status == 400
        assert (await resp.json())["code"] == "INSUFFICIENT_BALANCE"

    @pytest.mark.asyncio
    async def test_admin_requires_header(self, client):
        resp = await client.get(f"{API}/admin/payouts")

        assert resp.status == 401
        assert (await resp.json())["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_admin_rejects_other_wallet(self, client):
        resp = await client.get(
            f"{API}/admin/payouts", headers={"X-Admin-Wallet": WALLET_F}
        )

        assert resp.status == 401

    @pytest.mark.asyncio
    async def test_admin_lifecycle(self, client, referred):
        await attribute(client, WALLET_B, 1000)
        created = await client.post(
            f"{API}/payouts/request",
            json={"walletAddress": WALLET_A, "amountUsd": 40},
        )
        payout_id = (await created.json())["id"]
        admin = {"X-Admin-Wallet": ADMIN.upper().replace("0X", "0x")}

        listing = await client.get(f"{API}/admin/payouts", headers=admin)
        body = await listing.json()
        assert body["total"] == 1
        assert body["summary"] == {
            "pendingCount": 1,
            "processingCount": 0,
            "pendingTotal": 40.0,
        }
        assert body["payouts"][0]["referrerId"]

        approved = await client.put(
            f"{API}/admin/payouts/{payout_id}",
            json={"action": "approve"},
            headers=admin,
        )
        assert (await approved.json())["status"] == "PROCESSING"

        no_hash = await client.put(
            f"{API}/admin/payouts/{payout_id}",
            json={"action": "complete"},
            headers=admin,
        )
        assert no_hash.status == 400
        assert (await no_hash.json())["code"] == "INVALID_TX_HASH"

        completed = await client.put(
            f"{API}/admin/payouts/{payout_id}",
            json={"action": "complete", "txHash": TX_HASH},
            headers=admin,
        )
        body = await completed.json()
        assert body["status"] == "COMPLETED"
        assert body["txHash"] == TX_HASH

        stats = await client.get(f"{API}/stats", params={"walletAddress": WALLET_A})
        body = await stats.json()
        assert body["pendingPayout"] == 60.0
        assert body["totalEarned"] == 40.0

    @pytest.mark.asyncio
    async def test_admin_reject(self, client, referred):
        await attribute(client, WALLET_B, 1000)
        created = await client.post(
            f"{API}/payouts/request", json={"walletAddress": WALLET_A}
        )
        payout_id = (await created.json())["id"]

        resp = await client.put(
            f"{API}/admin/payouts/{payout_id}",
            json={"action": "reject"},
            headers={"X-Admin-Wallet": ADMIN},
        )
        body = await resp.json()

        assert body["status"] == "FAILED"
        assert body["errorMessage"] == "Rejected by admin"

    @pytest.mark.asyncio
    async def test_admin_unknown_payout(self, client):
        resp = await client.put(
            f"{API}/admin/payouts/not-a-uuid",
            json={"action": "approve"},
            headers={"X-Admin-Wallet": ADMIN},
        )

        assert resp.status == 404
        assert (await resp.json())["code"] == "PAYOUT_NOT_FOUND"


class TestMiddlewares:
    """Tests for request id, CORS and the error envelope."""

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        resp = await client.get("/health", headers={"X-Request-ID": "req-123"})

        assert resp.headers["X-Request-ID"] == "req-123"

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        resp = await client.get("/health")

        assert resp.headers.get("X-Request-ID")

    @pytest.mark.asyncio
    async def test_cors_preflight(self, client):
        resp = await client.options(
            f"{API}/register",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert resp.status == 204
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

    @pytest.mark.asyncio
    async def test_cors_unknown_origin(self, client):
        resp = await client.get("/health", headers={"Origin": "http://evil.test"})

        assert "Access-Control-Allow-Origin" not in resp.headers

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        resp = await client.get(f"{API}/nope")

        assert resp.status == 404
