"""Typed application keys shared by the web modules."""

from aiohttp import web
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from affiliate.config.settings import Settings

SESSION_MAKER_KEY = web.AppKey("session_maker", async_sessionmaker[AsyncSession])
SETTINGS_KEY = web.AppKey("settings", Settings)
