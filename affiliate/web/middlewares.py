"""
HTTP middlewares.

Applied outermost first: correlation id, CORS, error envelope,
database session, request deadline.
"""

import uuid
from collections.abc import Awaitable, Callable

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from affiliate.utils.db_decorators import run_with_deadline
from affiliate.utils.exceptions import AffiliateError
from affiliate.web.keys import SESSION_MAKER_KEY, SETTINGS_KEY
from affiliate.web.schemas import ErrorResponse

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

REQUEST_ID_HEADER = "X-Request-ID"

CORS_ALLOW_METHODS = "GET, POST, PUT, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, X-Admin-Wallet, X-Request-ID"


def error_response(message: str, code: str, status: int) -> web.Response:
    """Build the JSON error envelope."""
    body = ErrorResponse(error=message, code=code)
    return web.json_response(body.model_dump(by_alias=True), status=status)


@web.middleware
async def request_id_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Attach a correlation id to the request, its logs and its response."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request["request_id"] = request_id

    with logger.contextualize(request_id=request_id):
        response = await handler(request)

    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@web.middleware
async def cors_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Answer preflights and allow configured origins."""
    origin = request.headers.get("Origin")
    allowed = request.config_dict[SETTINGS_KEY].get_cors_origins()

    if request.method == "OPTIONS" and origin:
        response: web.StreamResponse = web.Response(status=204)
    else:
        response = await handler(request)

    if origin and origin.rstrip("/") in allowed:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        response.headers["Vary"] = "Origin"

    return response


@web.middleware
async def error_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """
    Map exceptions to the {success:false, error, code} envelope.

    Client errors carry the domain message; 5xx responses never include
    internal detail.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except AffiliateError as e:
        if e.http_status >= 500:
            logger.error(
                "Request failed with infrastructure error",
                extra={
                    "method": request.method,
                    "path": request.path,
                    "error_code": e.code,
                    "query": dict(request.query),
                },
            )
            return error_response(e.default_message, e.code, e.http_status)

        logger.info(
            "Request rejected",
            extra={
                "method": request.method,
                "path": request.path,
                "error_code": e.code,
            },
        )
        return error_response(e.message, e.code, e.http_status)
    except ValidationError as e:
        errors = e.errors()
        detail = errors[0]["msg"] if errors else "invalid body"
        logger.info(
            "Invalid request body",
            extra={"path": request.path, "errors": len(errors)},
        )
        return error_response(f"Invalid request: {detail}", "VALIDATION_ERROR", 400)
    except Exception:
        logger.exception(f"Unhandled error in {request.method} {request.path}")
        return error_response("Internal server error", "INTERNAL_ERROR", 500)


@web.middleware
async def session_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Open one database session per request."""
    session_maker = request.config_dict[SESSION_MAKER_KEY]
    async with session_maker() as session:
        request["session"] = session
        return await handler(request)


@web.middleware
async def deadline_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Run the handler under the request deadline; roll back on expiry."""
    timeout = request.config_dict[SETTINGS_KEY].request_timeout_seconds
    return await run_with_deadline(
        handler(request), timeout, session=request.get("session")
    )


MIDDLEWARES = [
    request_id_middleware,
    cors_middleware,
    error_middleware,
    session_middleware,
    deadline_middleware,
]
