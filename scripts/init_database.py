#!/usr/bin/env python3
"""Initialize affiliate database tables (local development)."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from loguru import logger  # noqa: E402

from affiliate.config.settings import settings  # noqa: E402
from affiliate.models import Base  # noqa: E402
from affiliate.utils.database import create_engine  # noqa: E402

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all affiliate tables."""
    logger.info("Connecting to database...")
    engine = create_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(
            Base.metadata.create_all,
            checkfirst=True
        )

    await engine.dispose()
    logger.success(
        f"Affiliate tables created: {', '.join(sorted(Base.metadata.tables))}"
    )


if __name__ == "__main__":
    asyncio.run(init_database())
