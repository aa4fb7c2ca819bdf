"""
Affiliate service entry point.

Usage:
    python -m affiliate
"""

import asyncio
import contextlib

from loguru import logger

from affiliate.config.settings import settings
from affiliate.utils.database import create_engine, create_session_maker
from affiliate.utils.logging_setup import setup_logging
from affiliate.web import create_app, start_server, stop_server


async def main() -> None:
    """Initialize and run the affiliate API."""
    setup_logging(settings)

    engine = create_engine()
    session_maker = create_session_maker(engine)
    app = create_app(session_maker, settings)

    runner, _ = await start_server(app, settings.api_host, settings.api_port)
    try:
        await asyncio.Event().wait()
    finally:
        await stop_server(runner)
        await engine.dispose()
        logger.info("Database engine disposed")


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
