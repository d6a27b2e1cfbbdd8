from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from dependencies import get_actor, get_session, require_roles
from loguru import logger
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError

from models.relational_models import JobPosting
from schemas.job_posting import JobPostingCreate, JobPostingPublic
from services.authorization import Actor
from utilities.enumerables import UserRole
from utilities.authentication import oauth2_scheme


router = APIRouter()


# Roles allowed to READ (JobSeekers and Employers included)
READ_ROLE_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
        UserRole.EMPLOYER.value,
        UserRole.JOB_SEEKER.value,
    )
)

# Roles allowed to WRITE (Employer allowed but only for own postings)
WRITE_ROLE_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
        UserRole.EMPLOYER.value,
    )
)


@router.post(
    "/job_postings/",
    response_model=JobPostingPublic,
    status_code=201,
)
async def create_job_posting(
    *,
    session: AsyncSession = Depends(get_session),
    job_posting_create: JobPostingCreate,
    actor: Actor = Depends(get_actor),
    _user: dict = WRITE_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Create a job posting owned by the authenticated employer (or admin).
    """
    try:
        db_job_posting = JobPosting(
            title=job_posting_create.title,
            description=job_posting_create.description,
            location=job_posting_create.location,
            job_type=job_posting_create.job_type,
            experience_level=job_posting_create.experience_level,
            is_remote=job_posting_create.is_remote,
            application_deadline=job_posting_create.application_deadline,
            posted_by_id=actor.id,
        )
        session.add(db_job_posting)
        await session.commit()
        await session.refresh(db_job_posting)

    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="Database constraint violated or duplicate")

    logger.info(f"Job posting {db_job_posting.id} created by user {actor.id}")
    return db_job_posting


@router.get(
    "/job_postings/{job_posting_id}",
    response_model=JobPostingPublic,
)
async def get_job_posting(
    *,
    session: AsyncSession = Depends(get_session),
    job_posting_id: UUID,
    _user: dict = READ_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    job_posting = await session.get(JobPosting, job_posting_id)
    if not job_posting:
        raise HTTPException(status_code=404, detail="Job posting not found")
    return job_posting


@router.patch(
    "/job_postings/{job_posting_id}/close",
    response_model=JobPostingPublic,
)
async def close_job_posting(
    *,
    session: AsyncSession = Depends(get_session),
    job_posting_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = WRITE_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Stop accepting applications for a posting:
    - ADMIN: any posting
    - EMPLOYER: only postings they created
    """
    job_posting = await session.get(JobPosting, job_posting_id)
    if not job_posting:
        raise HTTPException(status_code=404, detail="Job posting not found")

    if not actor.is_admin and job_posting.posted_by_id != actor.id:
        raise HTTPException(status_code=403, detail="You can only close your own job postings")

    job_posting.is_active = False
    session.add(job_posting)
    await session.commit()
    await session.refresh(job_posting)
    return job_posting
