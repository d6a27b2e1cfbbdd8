from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query

from dependencies import get_actor, get_session, require_roles
from sqlmodel.ext.asyncio.session import AsyncSession

from models.relational_models import JobPosting, SavedJob
from schemas.saved_job import SavedJobPublic
from services.authorization import Actor
from sqlmodel import func, select
from sqlalchemy.exc import IntegrityError

from utilities.enumerables import UserRole
from utilities.authentication import oauth2_scheme


router = APIRouter()

# Note: these endpoints require authentication; EMPLOYERs are explicitly excluded
COMMON_ROLE_DEPENDENCY = Depends(
    require_roles(
        UserRole.ADMIN.value,
        UserRole.JOB_SEEKER.value,
    )
)


@router.get(
    "/saved_jobs/",
    response_model=list[SavedJobPublic],
)
async def get_saved_jobs(
    *,
    session: AsyncSession = Depends(get_session),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, le=100),
    actor: Actor = Depends(get_actor),
    _user: dict = COMMON_ROLE_DEPENDENCY,
    _: str = Depends(oauth2_scheme),
):
    """
    The authenticated user's saved jobs, most recently saved first.
    """
    stmt = (
        select(SavedJob)
        .where(SavedJob.user_id == actor.id)
        .order_by(SavedJob.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.exec(stmt)
    return result.all()


@router.get(
    "/saved_jobs/count/",
    response_model=dict[str, int],
)
async def count_saved_jobs(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    _user: dict = COMMON_ROLE_DEPENDENCY,
    _: str = Depends(oauth2_scheme),
):
    stmt = select(func.count()).select_from(SavedJob).where(SavedJob.user_id == actor.id)
    result = await session.exec(stmt)
    return {"saved_jobs": result.one()}


@router.post(
    "/saved_jobs/{job_posting_id}",
    response_model=SavedJobPublic,
    status_code=201,
)
async def save_job(
    *,
    session: AsyncSession = Depends(get_session),
    job_posting_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = COMMON_ROLE_DEPENDENCY,
    _: str = Depends(oauth2_scheme),
):
    posting = await session.get(JobPosting, job_posting_id)
    if not posting:
        raise HTTPException(status_code=404, detail="Job posting not found")

    try:
        db_saved_job = SavedJob(user_id=actor.id, job_posting_id=job_posting_id)
        session.add(db_saved_job)
        await session.commit()
        await session.refresh(db_saved_job)
        return db_saved_job

    except IntegrityError:
        await session.rollback()
        raise HTTPException(
            status_code=409,
            detail="Job is already saved"
        )


@router.delete(
    "/saved_jobs/{job_posting_id}",
    response_model=dict[str, str],
)
async def unsave_job(
    *,
    session: AsyncSession = Depends(get_session),
    job_posting_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = COMMON_ROLE_DEPENDENCY,
    _: str = Depends(oauth2_scheme),
):
    stmt = (
        select(SavedJob)
        .where(SavedJob.user_id == actor.id)
        .where(SavedJob.job_posting_id == job_posting_id)
    )
    saved_job = (await session.exec(stmt)).one_or_none()
    if not saved_job:
        raise HTTPException(status_code=404, detail="Saved job not found")

    await session.delete(saved_job)
    await session.commit()
    return {"msg": "Saved job deleted successfully"}


@router.get(
    "/saved_jobs/{job_posting_id}/is_saved",
    response_model=dict[str, bool],
)
async def is_job_saved(
    *,
    session: AsyncSession = Depends(get_session),
    job_posting_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = COMMON_ROLE_DEPENDENCY,
    _: str = Depends(oauth2_scheme),
):
    stmt = (
        select(SavedJob.id)
        .where(SavedJob.user_id == actor.id)
        .where(SavedJob.job_posting_id == job_posting_id)
        .limit(1)
    )
    result = await session.exec(stmt)
    return {"is_saved": result.first() is not None}
