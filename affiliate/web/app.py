"""
Affiliate HTTP application.

Application factory and server lifecycle helpers.
"""

import asyncio

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from affiliate.config.settings import Settings, settings as default_settings
from affiliate.web.handlers import routes
from affiliate.web.health import add_health_routes
from affiliate.web.keys import SESSION_MAKER_KEY, SETTINGS_KEY
from affiliate.web.middlewares import MIDDLEWARES


def create_app(
    session_maker: async_sessionmaker[AsyncSession],
    settings: Settings | None = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        session_maker: Session maker used for one session per request
        settings: Settings override (defaults to the global settings)

    Returns:
        Configured application with the affiliate routes mounted under
        settings.api_prefix and /health, /readiness at the root
    """
    settings = settings or default_settings

    app = web.Application(middlewares=MIDDLEWARES)
    app[SESSION_MAKER_KEY] = session_maker
    app[SETTINGS_KEY] = settings

    add_health_routes(app)

    if settings.api_prefix:
        api = web.Application()
        api.add_routes(routes)
        app.add_subapp(settings.api_prefix, api)
    else:
        app.add_routes(routes)

    return app


async def start_server(
    app: web.Application,
    host: str = "0.0.0.0",
    port: int = 8080,
) -> tuple[web.AppRunner, web.TCPSite]:
    """
    Start the HTTP server.

    Args:
        app: Application to serve
        host: Host to bind to
        port: Port to bind to

    Returns:
        Tuple of (AppRunner, TCPSite) for cleanup
    """
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    prefix = app[SETTINGS_KEY].api_prefix
    logger.info(f"Affiliate API started on {host}:{port}")
    logger.info(f"  - API: http://{host}:{port}{prefix}")
    logger.info(f"  - Health: http://{host}:{port}/health")
    logger.info(f"  - Readiness: http://{host}:{port}/readiness")

    return runner, site


async def stop_server(
    runner: web.AppRunner,
    timeout: int = 5,
) -> None:
    """
    Stop the HTTP server gracefully.

    Args:
        runner: AppRunner to cleanup
        timeout: Maximum time to wait for cleanup in seconds
    """
    logger.info("Stopping affiliate API...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
        logger.info("Affiliate API stopped successfully")
    except TimeoutError:
        logger.warning(f"Affiliate API cleanup timed out after {timeout}s")
