"""
Shared fixtures: a throwaway SQLite database per test, seeded users and a
job posting, and the lifecycle service wired to real repositories.
"""
import os

# Must be set before anything under back-end/src is imported
os.environ.setdefault("JOBBOARD_SECRET_KEY", "test-secret-" + "k" * 64)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from database import create_db_and_tables
from models.relational_models import JobPosting, User
from repositories.job_application import JobApplicationRepository
from repositories.job_posting import JobPostingRepository
from repositories.notification import NotificationRepository
from services.application_lifecycle import ApplicationLifecycleService
from services.authorization import Actor
from utilities.enumerables import JobPostingJobType, UserRole


class FakeClock:
    """Deterministic, manually advanced UTC clock"""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def build_lifecycle(clock):
    def _build(session: AsyncSession, notifications=None) -> ApplicationLifecycleService:
        return ApplicationLifecycleService(
            applications=JobApplicationRepository(session, clock=clock),
            jobs=JobPostingRepository(session),
            notifications=notifications or NotificationRepository(session, clock=clock),
            clock=clock,
        )
    return _build


@pytest.fixture
def lifecycle(session, build_lifecycle):
    return build_lifecycle(session)


@pytest.fixture
def make_user(session):
    async def _make(role: UserRole, username: str, full_name: str | None = None) -> User:
        user = User(
            full_name=full_name,
            email=f"{username}@example.com",
            username=username,
            role=role,
            # Never used to log in from these fixtures
            password="unusable",
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user
    return _make


@pytest.fixture
def make_job(session):
    async def _make(poster: User, title: str = "Backend Engineer", **overrides) -> JobPosting:
        fields = {
            "title": title,
            "description": "Build and operate the job board API.",
            "location": "Remote",
            "job_type": JobPostingJobType.FULL_TIME,
            "posted_by_id": poster.id,
        }
        fields.update(overrides)
        job = JobPosting(**fields)
        session.add(job)
        await session.commit()
        await session.refresh(job)
        return job
    return _make


@pytest_asyncio.fixture
async def employer(make_user):
    return await make_user(UserRole.EMPLOYER, "acme", "Acme Hiring")


@pytest_asyncio.fixture
async def other_employer(make_user):
    return await make_user(UserRole.EMPLOYER, "globex", "Globex Hiring")


@pytest_asyncio.fixture
async def seeker(make_user):
    return await make_user(UserRole.JOB_SEEKER, "sam", "Sam Seeker")


@pytest_asyncio.fixture
async def other_seeker(make_user):
    return await make_user(UserRole.JOB_SEEKER, "riley", "Riley Other")


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN, "root", "Site Admin")


@pytest_asyncio.fixture
async def job(make_job, employer):
    return await make_job(employer)


def as_actor(user: User) -> Actor:
    return Actor(id=user.id, role=user.role, full_name=user.full_name)


@pytest.fixture
def actor_of():
    return as_actor
