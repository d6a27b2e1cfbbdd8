from typing import Callable
from uuid import UUID

from loguru import logger
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from models.relational_models import JobApplication
from repositories.pagination import DEFAULT_PAGE_SIZE, Page
from utilities.clock import utc_now
from utilities.enumerables import JobApplicationStatus
from utilities.exceptions import ConflictException, DuplicateApplicationException


class JobApplicationRepository:
    """
    Durable store of job applications.

    Inserts rely on the (user_id, job_posting_id) unique constraint to reject
    duplicates that slip past the caller's existence check. Updates are
    compare-and-swap on `version`, so a writer holding a stale row loses
    with ConflictException instead of overwriting a concurrent transition.
    """

    def __init__(self, session: AsyncSession, clock: Callable = utc_now):
        self.session = session
        self.clock = clock

    async def get(self, application_id: UUID) -> JobApplication | None:
        return await self.session.get(JobApplication, application_id)

    async def exists_for_applicant_and_job(self, applicant_id: UUID, job_id: UUID) -> bool:
        stmt = (
            select(JobApplication.id)
            .where(JobApplication.user_id == applicant_id)
            .where(JobApplication.job_posting_id == job_id)
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def save(self, job_application: JobApplication) -> JobApplication:
        if job_application.version is None:
            return await self._insert(job_application)
        return await self._update(job_application)

    async def _insert(self, job_application: JobApplication) -> JobApplication:
        applicant_id = job_application.user_id
        job_id = job_application.job_posting_id

        job_application.version = 1
        if job_application.applied_at is None:
            job_application.applied_at = self.clock()

        self.session.add(job_application)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            if await self.exists_for_applicant_and_job(applicant_id, job_id):
                logger.warning(f"Duplicate application rejected by constraint: user={applicant_id} job={job_id}")
                raise DuplicateApplicationException(applicant_id, job_id)
            raise

        await self.session.refresh(job_application)
        return job_application

    async def _update(self, job_application: JobApplication) -> JobApplication:
        application_id = job_application.id
        expected_version = job_application.version

        # Claim the row first; the ORM flush at commit then writes the
        # pending attribute changes inside the same transaction.
        conn = await self.session.connection()
        claimed = await conn.execute(
            update(JobApplication)
            .where(JobApplication.id == application_id)
            .where(JobApplication.version == expected_version)
            .values(version=expected_version + 1)
        )

        if claimed.rowcount != 1:
            # Rollback expires the instance; only the saved id is safe to read
            await self.session.rollback()
            raise ConflictException(
                f"Job application {application_id} was modified concurrently; reload and retry"
            )

        await self.session.commit()
        await self.session.refresh(job_application)
        return job_application

    async def reload(self, job_application: JobApplication) -> JobApplication:
        await self.session.refresh(job_application)
        return job_application

    async def list_by_applicant(self, applicant_id: UUID, offset: int = 0, limit: int = DEFAULT_PAGE_SIZE) -> Page[JobApplication]:
        return await self._page(JobApplication.user_id == applicant_id, offset, limit)

    async def list_by_job(self, job_id: UUID, offset: int = 0, limit: int = DEFAULT_PAGE_SIZE) -> Page[JobApplication]:
        return await self._page(JobApplication.job_posting_id == job_id, offset, limit)

    async def list_by_status(self, status: JobApplicationStatus, offset: int = 0, limit: int = DEFAULT_PAGE_SIZE) -> Page[JobApplication]:
        return await self._page(JobApplication.status == status, offset, limit)

    async def count_by_applicant(self, applicant_id: UUID) -> int:
        return await self._count(JobApplication.user_id == applicant_id)

    async def count_by_job(self, job_id: UUID) -> int:
        return await self._count(JobApplication.job_posting_id == job_id)

    async def _page(self, condition, offset: int, limit: int) -> Page[JobApplication]:
        stmt = (
            select(JobApplication)
            .where(condition)
            .order_by(JobApplication.applied_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.exec(stmt)
        total = await self._count(condition)
        return Page(items=list(result.all()), total=total, offset=offset, limit=limit)

    async def _count(self, condition) -> int:
        stmt = select(func.count()).select_from(JobApplication).where(condition)
        result = await self.session.exec(stmt)
        return int(result.one())
