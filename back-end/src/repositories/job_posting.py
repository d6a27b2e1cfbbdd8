from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from models.relational_models import JobPosting
from utilities.clock import as_utc, utc_now
from utilities.exceptions import DependencyFailureException


@dataclass(frozen=True)
class JobSummary:
    """What the application lifecycle needs to know about a job."""
    id: UUID
    title: str
    poster_id: UUID
    is_open: bool


def is_expired(job: JobPosting, now: datetime) -> bool:
    deadline = as_utc(job.application_deadline)
    return deadline is not None and as_utc(now) > deadline


def is_open(job: JobPosting, now: datetime) -> bool:
    return bool(job.is_active) and not is_expired(job, now)


class JobPostingRepository:
    """Read side of job postings plus the application counter."""

    def __init__(self, session: AsyncSession, clock: Callable = utc_now):
        self.session = session
        self.clock = clock

    async def get(self, job_id: UUID) -> JobSummary | None:
        try:
            job = await self.session.get(JobPosting, job_id)
        except SQLAlchemyError as e:
            raise DependencyFailureException("Job directory", str(e)) from e

        if job is None:
            return None

        return JobSummary(
            id=job.id,
            title=job.title,
            poster_id=job.posted_by_id,
            is_open=is_open(job, self.clock()),
        )

    async def increment_application_count(self, job_id: UUID) -> None:
        try:
            conn = await self.session.connection()
            await conn.execute(
                update(JobPosting)
                .where(JobPosting.id == job_id)
                .values(applications_count=JobPosting.applications_count + 1)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyFailureException("Job directory", str(e)) from e
