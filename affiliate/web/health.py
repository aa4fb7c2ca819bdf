"""
Health check endpoints.

Provides HTTP endpoints for liveness and database readiness.
"""

from aiohttp import web
from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from affiliate.utils.datetime_utils import utc_now


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response indicating the process is alive
    """
    return web.json_response(
        {
            "status": "healthy",
            "service": "affiliate",
            "timestamp": utc_now().isoformat(),
        }
    )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        JSON response indicating if the database accepts queries
    """
    try:
        await request["session"].execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(
            "Readiness check failed",
            extra={"error": str(e)},
        )
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
        }
    )


def add_health_routes(app: web.Application) -> None:
    """Register /health and /readiness on an application."""
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
