"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment has to be in place first
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JSON_LOGS"] = "false"
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)
os.environ.pop("REPUTATION_SERVICE_URL", None)

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from core.integrations.blocks import set_block_source
from core.integrations.chat import set_chat_provisioner
from core.integrations.notifications import set_notifier
from core.integrations.reputation import set_reputation_service
from database.engine import AsyncSessionLocal, Base
from database.models import applications, chats, companies, history, interviews, jobs  # noqa: F401
from database.models.applications import JobType
from database.models.companies import Company, CompanyBlock
from database.models.jobs import Job


class RecordingNotifier:
    """Collects notifications instead of dispatching them."""

    def __init__(self):
        self.events = []

    async def notify(self, event_type, payload):
        self.events.append((event_type, payload))

    def types(self):
        return [event_type for event_type, _ in self.events]


class RecordingReputationService:
    def __init__(self):
        self.outcomes = []

    async def report_outcome(self, seeker_id, outcome, context=None):
        self.outcomes.append((seeker_id, outcome.value, context or {}))


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh SQLite database per test, bound to the global session factory."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'hirelane.db'}",
        connect_args={"timeout": 15},
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    AsyncSessionLocal.configure(bind=engine)
    yield engine
    await engine.dispose()


@pytest.fixture(autouse=True)
def notifier():
    recorder = RecordingNotifier()
    set_notifier(recorder)
    yield recorder
    set_notifier(None)


@pytest.fixture(autouse=True)
def reputation():
    recorder = RecordingReputationService()
    set_reputation_service(recorder)
    yield recorder
    set_reputation_service(None)


@pytest.fixture(autouse=True)
def reset_integrations():
    yield
    set_chat_provisioner(None)
    set_block_source(None)


async def _add(*rows):
    async with AsyncSessionLocal() as session:
        session.add_all(rows)
        await session.commit()
    return rows[0] if len(rows) == 1 else rows


@pytest_asyncio.fixture
async def company(db):
    return await _add(Company(id="company-1", name="Harbor Cafe"))


@pytest_asyncio.fixture
async def interview_job(company):
    return await _add(
        Job(
            id="job-interview",
            company_id=company.id,
            title="Barista",
            hiring_type=JobType.INTERVIEW_FIRST,
        )
    )


@pytest_asyncio.fixture
async def host_job(company):
    return await _add(
        Job(
            id="job-host",
            company_id=company.id,
            title="Host",
            hiring_type=JobType.INTERVIEW_FIRST,
        )
    )


@pytest_asyncio.fixture
async def instant_job(company):
    return await _add(
        Job(
            id="job-instant",
            company_id=company.id,
            title="Event Staff",
            hiring_type=JobType.INSTANT_HIRE,
        )
    )


@pytest_asyncio.fixture
async def add_block(company):
    """Insert a block row for the shared company."""

    async def _block(seeker_id, is_active=True, reason="No-show last month"):
        return await _add(
            CompanyBlock(
                company_id=company.id,
                seeker_id=seeker_id,
                reason=reason,
                is_active=is_active,
            )
        )

    return _block
