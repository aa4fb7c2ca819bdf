"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings; must be set before importing affiliate
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("CONFLICT_RETRY_DELAY_BASE", "0.001")
os.environ.setdefault("ADMIN_WALLETS", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from affiliate.models import Base  # noqa: E402
from affiliate.repositories.referral_volume_repository import (  # noqa: E402
    ReferralVolumeRepository,
)
from affiliate.repositories.referrer_repository import (  # noqa: E402
    ReferrerRepository,
)
from affiliate.services.affiliate_service import AffiliateService  # noqa: E402
from affiliate.utils.database import (  # noqa: E402
    create_engine,
    create_session_maker,
)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def sample_transaction_hash():
    """Sample settlement transaction hash."""
    return "0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef"


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Per-test SQLite file database built with the production engine factory."""
    db_engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'affiliate.db'}", echo=False
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield db_engine

    await db_engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session maker bound to the test engine."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """One database session for the test body."""
    async with session_maker() as db_session:
        yield db_session


@pytest.fixture
def service(session):
    """AffiliateService over the test session."""
    return AffiliateService(session)


@pytest.fixture
def fetch_referrer(session_maker):
    """Read a referrer's committed state through a fresh session."""

    async def _fetch(wallet: str):
        async with session_maker() as fresh:
            return await ReferrerRepository(fresh).get_by_wallet(wallet.lower())

    return _fetch


@pytest.fixture
def fetch_volume_totals(session_maker):
    """Sum a referrer's daily rows through a fresh session."""

    async def _fetch(referrer_id) -> tuple[Decimal, Decimal, int]:
        async with session_maker() as fresh:
            return await ReferralVolumeRepository(fresh).get_totals(referrer_id)

    return _fetch
