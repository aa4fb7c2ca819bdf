"""
Logging setup.

Configures loguru for the affiliate service.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from affiliate.config.settings import Settings, settings as default_settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[request_id]}</cyan> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(settings: Settings | None = None) -> None:
    """Configure stderr and rotating file sinks."""
    settings = settings or default_settings

    logger.remove()
    # Records logged outside a request carry "-" as correlation id
    logger.configure(extra={"request_id": "-"})

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        backtrace=settings.debug,
        diagnose=settings.debug,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="1 day",
            retention="7 days",
            level=settings.log_level.upper(),
            format=LOG_FORMAT,
            encoding="utf-8",
        )

    logger.info(
        f"Logging configured (level={settings.log_level.upper()}, "
        f"environment={settings.environment})"
    )
