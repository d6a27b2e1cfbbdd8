from uuid import UUID
from fastapi import APIRouter, Depends, Query

from dependencies import get_actor, get_application_lifecycle, require_roles

from repositories.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Page
from schemas.job_application import (
    JobApplicationCreate,
    JobApplicationInterviewSchedule,
    JobApplicationPage,
    JobApplicationPublic,
    JobApplicationStats,
    JobApplicationStatusUpdate,
)
from services.application_lifecycle import ApplicationLifecycleService
from services.authorization import Actor
from utilities.enumerables import JobApplicationStatus, UserRole
from utilities.authentication import oauth2_scheme


router = APIRouter()


# Any authenticated role; per-application rules are enforced by the lifecycle service
READ_ROLE_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
        UserRole.EMPLOYER.value,
        UserRole.JOB_SEEKER.value,
    )
)

# Only job seekers apply for jobs
CREATE_ROLE_DEP = Depends(
    require_roles(
        UserRole.JOB_SEEKER.value,
    )
)

# Status changes and interviews: the job's poster (an employer) or an admin
REVIEW_ROLE_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
        UserRole.EMPLOYER.value,
    )
)

ADMIN_ROLE_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
    )
)


def _to_page(page: Page) -> JobApplicationPage:
    return JobApplicationPage(
        items=[JobApplicationPublic.model_validate(item) for item in page.items],
        total=page.total,
        offset=page.offset,
        limit=page.limit,
    )


@router.post(
    "/job_applications/",
    response_model=JobApplicationPublic,
    status_code=201,
)
async def create_job_application(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_application_create: JobApplicationCreate,
    actor: Actor = Depends(get_actor),
    _user: dict = CREATE_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Apply for a job posting as the authenticated job seeker.

    - 404 when the posting does not exist
    - 400 when it is inactive or past its deadline
    - 409 when the user has already applied
    """
    return await lifecycle.submit(
        actor,
        job_application_create.job_posting_id,
        cover_letter=job_application_create.cover_letter,
        resume_url=job_application_create.resume_url,
    )


@router.get(
    "/job_applications/",
    response_model=JobApplicationPage,
)
async def get_my_job_applications(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
    _user: dict = READ_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Applications submitted by the authenticated user, newest first.
    """
    page = await lifecycle.list_by_applicant(actor.id, offset, limit)
    return _to_page(page)


@router.get(
    "/job_applications/stats/",
    response_model=JobApplicationStats,
)
async def get_my_job_application_stats(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    actor: Actor = Depends(get_actor),
    _user: dict = READ_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    total = await lifecycle.count_by_applicant(actor.id)
    return JobApplicationStats(total_applications=total)


@router.get(
    "/job_applications/has_applied/{job_posting_id}",
    response_model=dict[str, bool],
)
async def has_applied(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_posting_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = READ_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    return {"has_applied": await lifecycle.has_applied(actor.id, job_posting_id)}


@router.get(
    "/job_applications/job/{job_posting_id}",
    response_model=JobApplicationPage,
)
async def get_job_applications_for_job(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_posting_id: UUID,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
    _user: dict = REVIEW_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Applications received by a job posting:
    - ADMIN: any posting
    - EMPLOYER: only postings they created
    """
    page = await lifecycle.list_by_job(job_posting_id, offset, limit, actor=actor)
    return _to_page(page)


@router.get(
    "/job_applications/status/{status}",
    response_model=JobApplicationPage,
)
async def get_job_applications_by_status(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    status: JobApplicationStatus,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _user: dict = ADMIN_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    page = await lifecycle.list_by_status(status, offset, limit)
    return _to_page(page)


@router.get(
    "/job_applications/{job_application_id}",
    response_model=JobApplicationPublic,
)
async def get_job_application(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_application_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = READ_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Retrieve a single application:
    - ADMIN: any
    - EMPLOYER: only applications to their own postings
    - JOB_SEEKER: only their own applications
    """
    return await lifecycle.get(job_application_id, actor)


@router.patch(
    "/job_applications/{job_application_id}/status",
    response_model=JobApplicationPublic,
)
async def change_job_application_status(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_application_id: UUID,
    status_update: JobApplicationStatusUpdate,
    actor: Actor = Depends(get_actor),
    _user: dict = REVIEW_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Move an application to a new status.

    Only transitions allowed from the current status are accepted (409
    otherwise). Withdrawal goes through DELETE and is reserved to the applicant.
    """
    return await lifecycle.change_status(
        job_application_id,
        actor,
        status_update.status,
        status_update.notes,
    )


@router.post(
    "/job_applications/{job_application_id}/interview",
    response_model=JobApplicationPublic,
)
async def schedule_job_application_interview(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_application_id: UUID,
    interview: JobApplicationInterviewSchedule,
    actor: Actor = Depends(get_actor),
    _user: dict = REVIEW_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    return await lifecycle.schedule_interview(
        job_application_id,
        actor,
        interview.interview_time,
        interview.notes,
    )


@router.delete(
    "/job_applications/{job_application_id}",
    response_model=JobApplicationPublic,
)
async def withdraw_job_application(
    *,
    lifecycle: ApplicationLifecycleService = Depends(get_application_lifecycle),
    job_application_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = READ_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Withdraw an application. The record is kept with status `withdrawn`;
    only the applicant may do this.
    """
    return await lifecycle.withdraw(job_application_id, actor)
