"""
Affiliate HTTP handlers.

Thin mapping of the affiliate service operations to JSON endpoints.
Domain errors propagate to the error middleware.
"""

import uuid

from aiohttp import web
from loguru import logger
from pydantic import BaseModel

from affiliate.config.constants import DAILY_VOLUME_WINDOW_DAYS, PAYOUTS_PAGE_SIZE
from affiliate.models.enums import PayoutStatus
from affiliate.services.affiliate_service import AffiliateService
from affiliate.utils.exceptions import (
    InvalidAmount,
    InvalidTransactionHash,
    PayoutNotFound,
    Unauthorized,
)
from affiliate.web.keys import SETTINGS_KEY
from affiliate.web.schemas import (
    CodeLookupResponse,
    DailyVolumeResponse,
    PayoutActionRequest,
    PayoutDto,
    PayoutListResponse,
    PayoutRequestBody,
    ReferralDto,
    RegisterRequest,
    RegisterResponse,
    StatsResponse,
    SuccessResponse,
    TrackRequest,
    WalletLookupResponse,
)

ADMIN_WALLET_HEADER = "X-Admin-Wallet"

routes = web.RouteTableDef()


def _service(request: web.Request) -> AffiliateService:
    """Service bound to the request's session."""
    return AffiliateService(request["session"])


def _json(
    payload: BaseModel | list[BaseModel],
    status: int = 200,
    exclude_none: bool = False,
) -> web.Response:
    """Serialize DTOs with camelCase keys."""
    if isinstance(payload, list):
        data = [
            item.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)
            for item in payload
        ]
    else:
        data = payload.model_dump(
            mode="json", by_alias=True, exclude_none=exclude_none
        )
    return web.json_response(data, status=status)


def _int_query(request: web.Request, name: str, default: int) -> int:
    """Parse an optional integer query parameter, falling back to default."""
    raw = request.query.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _require_admin(request: web.Request) -> str:
    """
    Check the X-Admin-Wallet header against the configured admin wallets.

    With no admins configured the endpoints are open only in development.

    Raises:
        Unauthorized: If the caller is not an admin
    """
    settings = request.config_dict[SETTINGS_KEY]
    caller = request.headers.get(ADMIN_WALLET_HEADER, "").strip().lower()
    admins = settings.get_admin_wallets()

    if not admins and settings.is_development:
        return caller or "development"

    if caller and caller in admins:
        return caller

    logger.warning(
        "Rejected admin request",
        extra={"path": request.path, "caller": caller or None},
    )
    raise Unauthorized()


def _parse_payout_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except ValueError as e:
        raise PayoutNotFound() from e


# Registration and tracking


@routes.post("/register")
async def register(request: web.Request) -> web.Response:
    """Register a wallet as affiliate."""
    body = RegisterRequest.model_validate_json(await request.text() or "{}")
    referrer = await _service(request).register_affiliate(body.wallet_address)
    return _json(RegisterResponse.from_referrer(referrer))


@routes.post("/track")
async def track(request: web.Request) -> web.Response:
    """Track a referee signup."""
    body = TrackRequest.model_validate_json(await request.text() or "{}")
    await _service(request).track_referral(body.referral_code, body.referee_address)
    return _json(SuccessResponse())


# Dashboard


@routes.get("/stats")
async def stats(request: web.Request) -> web.Response:
    """Affiliate dashboard statistics."""
    wallet = request.query.get("walletAddress", "")
    result = await _service(request).get_stats(wallet)
    return _json(StatsResponse.from_stats(result))


@routes.get("/referrals")
async def referrals(request: web.Request) -> web.Response:
    """Referees of an affiliate."""
    wallet = request.query.get("walletAddress", "")
    result = await _service(request).get_referrals(wallet)
    return _json([ReferralDto.from_model(r) for r in result])


@routes.get("/payouts")
async def payouts(request: web.Request) -> web.Response:
    """Payout history of an affiliate."""
    wallet = request.query.get("walletAddress", "")
    result = await _service(request).get_payouts(wallet)
    return _json([PayoutDto.from_model(p) for p in result])


@routes.get("/daily-volume")
async def daily_volume(request: web.Request) -> web.Response:
    """Daily roll-up for the last N days."""
    wallet = request.query.get("walletAddress", "")
    days = _int_query(request, "days", DAILY_VOLUME_WINDOW_DAYS)
    report = await _service(request).get_daily_volume(wallet, days)
    return _json(DailyVolumeResponse.from_report(report))


# Lookups


@routes.get("/lookup/code/{code}")
async def lookup_code(request: web.Request) -> web.Response:
    """Check whether a referral code resolves."""
    referrer = await _service(request).find_by_code(request.match_info["code"])
    if referrer is None:
        return _json(CodeLookupResponse(valid=False), exclude_none=True)
    return _json(
        CodeLookupResponse(valid=True, wallet_address=referrer.wallet_address),
        exclude_none=True,
    )


@routes.get("/lookup/wallet/{address}")
async def lookup_wallet(request: web.Request) -> web.Response:
    """Check whether a wallet is registered."""
    referrer = await _service(request).find_by_wallet(request.match_info["address"])
    if referrer is None:
        return _json(WalletLookupResponse(registered=False), exclude_none=True)
    return _json(
        WalletLookupResponse(
            registered=True,
            referral_code=referrer.referral_code,
            tier=referrer.tier,
        ),
        exclude_none=True,
    )


# Internal


@routes.post("/internal/volume")
async def internal_volume(request: web.Request) -> web.Response:
    """Attribute trade volume (called by the trading engine)."""
    trader = request.query.get("traderAddress", "")
    volume = request.query.get("volumeUsd")
    if volume is None or volume.strip() == "":
        raise InvalidAmount("volumeUsd is required")

    await _service(request).attribute_volume(trader, volume)
    return _json(SuccessResponse())


# Payouts


@routes.post("/payouts/request")
async def request_payout(request: web.Request) -> web.Response:
    """Request a payout of accrued commission."""
    body = PayoutRequestBody.model_validate_json(await request.text() or "{}")
    payout = await _service(request).request_payout(
        body.wallet_address, body.amount_usd
    )
    return _json(PayoutDto.from_model(payout), status=201)


@routes.get("/admin/payouts")
async def admin_list_payouts(request: web.Request) -> web.Response:
    """List payouts with the open-payout summary."""
    _require_admin(request)

    status = None
    raw_status = request.query.get("status", "").strip().upper()
    if raw_status and raw_status != "ALL":
        try:
            status = PayoutStatus(raw_status)
        except ValueError:
            status = None

    page = await _service(request).list_payouts(
        status=status,
        page=_int_query(request, "page", 1),
        per_page=_int_query(request, "limit", PAYOUTS_PAGE_SIZE),
    )
    return _json(PayoutListResponse.from_page(page))


@routes.put("/admin/payouts/{payout_id}")
async def admin_update_payout(request: web.Request) -> web.Response:
    """Approve, reject or complete a payout."""
    admin = _require_admin(request)
    payout_id = _parse_payout_id(request.match_info["payout_id"])
    body = PayoutActionRequest.model_validate_json(await request.text() or "{}")
    service = _service(request)

    if body.action == "approve":
        payout = await service.approve_payout(payout_id)
    elif body.action == "reject":
        payout = await service.fail_payout(
            payout_id, body.error or "Rejected by admin"
        )
    else:
        if not body.tx_hash:
            raise InvalidTransactionHash("txHash is required to complete a payout")
        payout = await service.complete_payout(payout_id, body.tx_hash)

    logger.info(
        "Admin payout action applied",
        extra={
            "admin": admin,
            "payout_id": str(payout_id),
            "action": body.action,
        },
    )
    return _json(PayoutDto.from_model(payout))
