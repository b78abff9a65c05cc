from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from uuid import UUID

import pytest
import pytest_asyncio

# Ensure environment variables are set before application settings are imported.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./tests/test.db")
os.environ.setdefault("DATABASE_POOL_PRE_PING", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from broadcast_ledger.core.logger import configure_logging
from broadcast_ledger.db.session import AsyncSessionFactory, engine
from broadcast_ledger.models.base import Base
from broadcast_ledger.models.job_id import JobIDV2, LegacyJobID
from broadcast_ledger.services.log_broadcast_store import BroadcastConsumptionStore

configure_logging()


@pytest_asyncio.fixture(autouse=True)
async def reset_database() -> AsyncGenerator[None, None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest.fixture
def store() -> BroadcastConsumptionStore:
    return BroadcastConsumptionStore(AsyncSessionFactory)


@pytest.fixture
def v2_job_id() -> JobIDV2:
    return JobIDV2(value=42)


@pytest.fixture
def legacy_job_id() -> LegacyJobID:
    return LegacyJobID(value=UUID("5a3b2e59-0f1c-4c7e-9b5d-8f6a2c4d1e07"))
