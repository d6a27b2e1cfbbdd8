from datetime import datetime
from typing import Callable
from uuid import UUID

from loguru import logger

from models.relational_models import JobApplication
from repositories.job_application import JobApplicationRepository
from repositories.job_posting import JobPostingRepository, JobSummary
from repositories.notification import NotificationRepository
from repositories.pagination import DEFAULT_PAGE_SIZE, Page
from services.authorization import Actor, ensure_authorized
from services.transitions import validate_transition
from utilities.clock import as_utc, utc_now
from utilities.enumerables import JobApplicationAction, JobApplicationStatus, NotificationType
from utilities.exceptions import (
    ApplicationNotFoundException,
    AuthorizationException,
    DuplicateApplicationException,
    JobClosedException,
    JobNotFoundException,
    ValidationException,
)
from utilities.fields_validator import parse_timestamp


class ApplicationLifecycleService:
    """
    Creation, status transitions and queries for job applications.

    Every operation takes the acting user explicitly. Mutations are validated
    (authorization, then transition table) before the record is touched, and
    are committed before any notification or counter update runs. Those side
    effects are best-effort: their failures are logged and never reach the
    caller.
    """

    def __init__(
        self,
        applications: JobApplicationRepository,
        jobs: JobPostingRepository,
        notifications: NotificationRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.applications = applications
        self.jobs = jobs
        self.notifications = notifications
        self.clock = clock

    async def submit(
        self,
        applicant: Actor,
        job_id: UUID,
        cover_letter: str | None = None,
        resume_url: str | None = None,
    ) -> JobApplication:
        job = await self.jobs.get(job_id)
        if job is None:
            raise JobNotFoundException(job_id)
        if not job.is_open:
            raise JobClosedException(job_id)
        if await self.applications.exists_for_applicant_and_job(applicant.id, job_id):
            raise DuplicateApplicationException(applicant.id, job_id)

        job_application = JobApplication(
            user_id=applicant.id,
            job_posting_id=job_id,
            cover_letter=cover_letter,
            resume_url=resume_url,
            status=JobApplicationStatus.PENDING,
            applied_at=self.clock(),
        )
        job_application = await self.applications.save(job_application)

        logger.info(f"Application {job_application.id} submitted by user {applicant.id} for job {job_id}")

        counted = await self._increment_application_count(job_id)
        delivered = await self._notify(
            job.poster_id,
            "New Job Application",
            f"{applicant.display_name} has applied for your job: {job.title}",
            NotificationType.JOB_APPLICATION,
            f"/jobs/{job_id}/applications",
        )

        return await self._settled(job_application, counted and delivered)

    async def change_status(
        self,
        application_id: UUID,
        actor: Actor,
        new_status: JobApplicationStatus,
        notes: str | None = None,
    ) -> JobApplication:
        job_application, job = await self._load(application_id)
        poster_id = job.poster_id if job else None

        ensure_authorized(actor, JobApplicationAction.CHANGE_STATUS, job_application, poster_id)
        if new_status == JobApplicationStatus.WITHDRAWN:
            raise AuthorizationException("Only the applicant can withdraw an application")
        if new_status == JobApplicationStatus.INTERVIEW_SCHEDULED:
            raise ValidationException("status", "An interview needs a time; schedule it instead of setting the status")

        previous = job_application.status
        validate_transition(previous, new_status)

        job_application.status = new_status
        job_application.reviewed_at = self.clock()
        job_application.notes = notes
        if new_status == JobApplicationStatus.REJECTED:
            job_application.rejection_reason = notes

        job_application = await self.applications.save(job_application)

        logger.info(
            f"Application {application_id} moved {previous.value} -> {new_status.value} by user {actor.id}"
        )

        delivered = await self._notify(
            job_application.user_id,
            "Application Status Update",
            f"Your application for {self._title(job)} has been {new_status.label}",
            NotificationType.APPLICATION_STATUS_UPDATE,
            f"/applications/{application_id}",
        )

        return await self._settled(job_application, delivered)

    async def schedule_interview(
        self,
        application_id: UUID,
        actor: Actor,
        interview_time: str | datetime,
        notes: str | None = None,
    ) -> JobApplication:
        job_application, job = await self._load(application_id)
        poster_id = job.poster_id if job else None

        ensure_authorized(actor, JobApplicationAction.SCHEDULE_INTERVIEW, job_application, poster_id)

        interview_at = as_utc(parse_timestamp("interview_time", interview_time))

        previous = job_application.status
        validate_transition(previous, JobApplicationStatus.INTERVIEW_SCHEDULED)

        job_application.status = JobApplicationStatus.INTERVIEW_SCHEDULED
        job_application.interview_scheduled_at = interview_at
        job_application.reviewed_at = self.clock()
        job_application.notes = notes

        job_application = await self.applications.save(job_application)

        logger.info(
            f"Interview for application {application_id} scheduled at {interview_at.isoformat()} by user {actor.id}"
        )

        delivered = await self._notify(
            job_application.user_id,
            "Interview Scheduled",
            f"An interview has been scheduled for your application: {self._title(job)} on {interview_at.isoformat()}",
            NotificationType.INTERVIEW_SCHEDULED,
            f"/applications/{application_id}",
        )

        return await self._settled(job_application, delivered)

    async def withdraw(self, application_id: UUID, actor: Actor) -> JobApplication:
        job_application, job = await self._load(application_id)

        ensure_authorized(actor, JobApplicationAction.WITHDRAW, job_application, job.poster_id if job else None)

        previous = job_application.status
        validate_transition(previous, JobApplicationStatus.WITHDRAWN)

        job_application.status = JobApplicationStatus.WITHDRAWN
        job_application.reviewed_at = self.clock()

        job_application = await self.applications.save(job_application)

        logger.info(f"Application {application_id} withdrawn from {previous.value} by user {actor.id}")

        return job_application

    async def get(self, application_id: UUID, actor: Actor) -> JobApplication:
        job_application, job = await self._load(application_id)
        ensure_authorized(actor, JobApplicationAction.VIEW, job_application, job.poster_id if job else None)
        return job_application

    async def list_by_applicant(
        self, applicant_id: UUID, offset: int = 0, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[JobApplication]:
        return await self.applications.list_by_applicant(applicant_id, offset, limit)

    async def list_by_job(
        self,
        job_id: UUID,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
        actor: Actor | None = None,
    ) -> Page[JobApplication]:
        if actor is not None:
            job = await self.jobs.get(job_id)
            if job is None:
                raise JobNotFoundException(job_id)
            if not (actor.is_admin or actor.id == job.poster_id):
                raise AuthorizationException(f"User {actor.id} cannot view applications for job {job_id}")

        return await self.applications.list_by_job(job_id, offset, limit)

    async def list_by_status(
        self, status: JobApplicationStatus, offset: int = 0, limit: int = DEFAULT_PAGE_SIZE
    ) -> Page[JobApplication]:
        return await self.applications.list_by_status(status, offset, limit)

    async def count_by_applicant(self, applicant_id: UUID) -> int:
        return await self.applications.count_by_applicant(applicant_id)

    async def count_by_job(self, job_id: UUID) -> int:
        return await self.applications.count_by_job(job_id)

    async def has_applied(self, applicant_id: UUID, job_id: UUID) -> bool:
        return await self.applications.exists_for_applicant_and_job(applicant_id, job_id)

    async def _load(self, application_id: UUID) -> tuple[JobApplication, JobSummary | None]:
        job_application = await self.applications.get(application_id)
        if job_application is None:
            raise ApplicationNotFoundException(application_id)

        job = await self.jobs.get(job_application.job_posting_id)
        return job_application, job

    @staticmethod
    def _title(job: JobSummary | None) -> str:
        return job.title if job else "a job"

    async def _increment_application_count(self, job_id: UUID) -> bool:
        try:
            await self.jobs.increment_application_count(job_id)
        except Exception:
            logger.exception(f"Could not increment application count for job {job_id}")
            return False
        return True

    async def _notify(
        self,
        recipient_id: UUID,
        title: str,
        message: str,
        category: NotificationType,
        action_url: str | None,
    ) -> bool:
        try:
            await self.notifications.notify(recipient_id, title, message, category, action_url)
        except Exception:
            logger.exception(f"Could not deliver '{title}' notification to user {recipient_id}")
            return False
        return True

    async def _settled(self, job_application: JobApplication, side_effects_ok: bool) -> JobApplication:
        # A failed side effect rolls the shared session back, which expires
        # the already committed application.
        if not side_effects_ok:
            await self.applications.reload(job_application)
        return job_application
