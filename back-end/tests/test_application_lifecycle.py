"""
Tests for the job application lifecycle service.

Runs against a real SQLite database so the unique constraint, the
versioned updates and the notification rows are all exercised.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlmodel import func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from models.relational_models import JobApplication, Notification
from repositories.notification import NotificationRepository
from utilities.clock import as_utc
from utilities.enumerables import JobApplicationStatus as Status, NotificationType
from utilities.exceptions import (
    ApplicationNotFoundException,
    AuthorizationException,
    ConflictException,
    DependencyFailureException,
    DuplicateApplicationException,
    InvalidTransitionException,
    JobClosedException,
    JobNotFoundException,
    ValidationException,
)


async def notifications_for(session: AsyncSession, user_id) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id).order_by(Notification.created_at)
    return list((await session.exec(stmt)).all())


async def application_count(session: AsyncSession) -> int:
    return (await session.exec(select(func.count()).select_from(JobApplication))).one()


class RaisingNotifications:
    """Sink that is always down"""

    def __init__(self):
        self.calls = 0

    async def notify(self, recipient_id, title, message, category, action_url=None):
        self.calls += 1
        raise DependencyFailureException("Notification sink", "smtp relay unreachable")


class RollingBackNotifications(NotificationRepository):
    """Sink whose failure leaves the shared session rolled back"""

    async def notify(self, recipient_id, title, message, category, action_url=None):
        await self.session.rollback()
        raise DependencyFailureException("Notification sink", "insert failed")


class TestSubmit:

    @pytest.mark.asyncio
    async def test_creates_pending_application_and_notifies_poster(
        self, session, lifecycle, clock, job, employer, seeker, actor_of
    ):
        application = await lifecycle.submit(actor_of(seeker), job.id, cover_letter="Hello", resume_url="https://cv.example.com/sam")

        assert application.status == Status.PENDING
        assert application.user_id == seeker.id
        assert application.job_posting_id == job.id
        assert application.version == 1
        assert as_utc(application.applied_at) == clock.now
        assert application.reviewed_at is None

        await session.refresh(job)
        assert job.applications_count == 1

        [notification] = await notifications_for(session, employer.id)
        assert notification.title == "New Job Application"
        assert notification.message == "Sam Seeker has applied for your job: Backend Engineer"
        assert notification.type == NotificationType.JOB_APPLICATION
        assert notification.action_url == f"/jobs/{job.id}/applications"
        assert notification.is_read is False

    @pytest.mark.asyncio
    async def test_second_submission_is_a_duplicate(self, session, lifecycle, job, seeker, actor_of):
        await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(DuplicateApplicationException):
            await lifecycle.submit(actor_of(seeker), job.id)

        assert await lifecycle.count_by_applicant(seeker.id) == 1
        await session.refresh(job)
        assert job.applications_count == 1

    @pytest.mark.asyncio
    async def test_unknown_job(self, session, lifecycle, seeker, actor_of):
        with pytest.raises(JobNotFoundException):
            await lifecycle.submit(actor_of(seeker), uuid4())
        assert await application_count(session) == 0

    @pytest.mark.asyncio
    async def test_inactive_job_is_closed(self, session, lifecycle, make_job, employer, seeker, actor_of):
        job = await make_job(employer, is_active=False)

        with pytest.raises(JobClosedException):
            await lifecycle.submit(actor_of(seeker), job.id)

        assert await application_count(session) == 0
        assert await notifications_for(session, employer.id) == []

    @pytest.mark.asyncio
    async def test_expired_job_is_closed(self, session, lifecycle, make_job, employer, seeker, actor_of):
        job = await make_job(employer, application_deadline=datetime.now(timezone.utc) - timedelta(days=1))

        with pytest.raises(JobClosedException):
            await lifecycle.submit(actor_of(seeker), job.id)

        assert await application_count(session) == 0

    @pytest.mark.asyncio
    async def test_future_deadline_is_open(self, lifecycle, make_job, employer, seeker, actor_of):
        job = await make_job(employer, application_deadline=datetime.now(timezone.utc) + timedelta(days=7))

        application = await lifecycle.submit(actor_of(seeker), job.id)
        assert application.status == Status.PENDING

    @pytest.mark.asyncio
    async def test_has_applied(self, lifecycle, job, seeker, other_seeker, actor_of):
        await lifecycle.submit(actor_of(seeker), job.id)

        assert await lifecycle.has_applied(seeker.id, job.id)
        assert not await lifecycle.has_applied(other_seeker.id, job.id)


class TestChangeStatus:

    @pytest.mark.asyncio
    async def test_shortlist_then_interview_notifies_applicant_twice(
        self, session, lifecycle, clock, job, employer, seeker, actor_of
    ):
        application = await lifecycle.submit(actor_of(seeker), job.id)
        applied_at = as_utc(application.applied_at)

        shortlisted_at = clock.advance(hours=2)
        application = await lifecycle.change_status(application.id, actor_of(employer), Status.SHORTLISTED, "Strong profile")

        assert application.status == Status.SHORTLISTED
        assert as_utc(application.reviewed_at) == shortlisted_at
        assert application.notes == "Strong profile"
        assert application.version == 2

        scheduled_at = clock.advance(days=1)
        application = await lifecycle.schedule_interview(
            application.id, actor_of(employer), "2026-10-10T14:30:00Z", "Video call"
        )

        assert application.status == Status.INTERVIEW_SCHEDULED
        assert as_utc(application.reviewed_at) == scheduled_at
        assert as_utc(application.interview_scheduled_at) == datetime(2026, 10, 10, 14, 30, tzinfo=timezone.utc)
        assert as_utc(application.applied_at) == applied_at
        assert application.version == 3

        first, second = await notifications_for(session, seeker.id)
        assert first.title == "Application Status Update"
        assert first.message == "Your application for Backend Engineer has been shortlisted"
        assert first.type == NotificationType.APPLICATION_STATUS_UPDATE
        assert first.action_url == f"/applications/{application.id}"
        assert second.title == "Interview Scheduled"
        assert second.message == (
            "An interview has been scheduled for your application: Backend Engineer on 2026-10-10T14:30:00+00:00"
        )
        assert second.type == NotificationType.INTERVIEW_SCHEDULED

    @pytest.mark.asyncio
    async def test_interview_status_requires_scheduling(self, session, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(ValidationException):
            await lifecycle.change_status(application.id, actor_of(employer), Status.INTERVIEW_SCHEDULED)

        await session.refresh(application)
        assert application.status == Status.PENDING
        assert application.interview_scheduled_at is None
        assert await notifications_for(session, seeker.id) == []

        application = await lifecycle.schedule_interview(application.id, actor_of(employer), "2026-10-12T09:00:00Z")
        assert application.status == Status.INTERVIEW_SCHEDULED
        assert as_utc(application.interview_scheduled_at) == datetime(2026, 10, 12, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_pending_to_accepted_is_invalid_and_changes_nothing(
        self, session, lifecycle, job, employer, seeker, actor_of
    ):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(InvalidTransitionException):
            await lifecycle.change_status(application.id, actor_of(employer), Status.ACCEPTED, "Hire now")

        await session.refresh(application)
        assert application.status == Status.PENDING
        assert application.reviewed_at is None
        assert application.notes is None
        assert application.version == 1
        assert await notifications_for(session, seeker.id) == []

    @pytest.mark.asyncio
    async def test_rejection_records_reason(self, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        application = await lifecycle.change_status(application.id, actor_of(employer), Status.REJECTED, "Position filled")

        assert application.status == Status.REJECTED
        assert application.rejection_reason == "Position filled"

    @pytest.mark.asyncio
    async def test_non_rejection_leaves_reason_empty(self, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        application = await lifecycle.change_status(application.id, actor_of(employer), Status.REVIEWED, "Looks fine")

        assert application.rejection_reason is None

    @pytest.mark.asyncio
    async def test_admin_may_change_status(self, lifecycle, job, admin, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        application = await lifecycle.change_status(application.id, actor_of(admin), Status.REVIEWED)
        assert application.status == Status.REVIEWED

    @pytest.mark.asyncio
    async def test_unrelated_employer_is_forbidden(
        self, session, lifecycle, job, other_employer, seeker, actor_of
    ):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(AuthorizationException):
            await lifecycle.change_status(application.id, actor_of(other_employer), Status.SHORTLISTED)

        await session.refresh(application)
        assert application.status == Status.PENDING

    @pytest.mark.asyncio
    async def test_applicant_cannot_review_own_application(self, lifecycle, job, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(AuthorizationException):
            await lifecycle.change_status(application.id, actor_of(seeker), Status.SHORTLISTED)

    @pytest.mark.asyncio
    async def test_withdrawn_is_not_reachable_through_change_status(
        self, session, lifecycle, job, employer, admin, seeker, actor_of
    ):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        for reviewer in (employer, admin):
            with pytest.raises(AuthorizationException):
                await lifecycle.change_status(application.id, actor_of(reviewer), Status.WITHDRAWN)

        await session.refresh(application)
        assert application.status == Status.PENDING

    @pytest.mark.asyncio
    async def test_unknown_application(self, lifecycle, employer, actor_of):
        with pytest.raises(ApplicationNotFoundException):
            await lifecycle.change_status(uuid4(), actor_of(employer), Status.REVIEWED)

    @pytest.mark.asyncio
    async def test_full_path_to_acceptance(self, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)
        poster = actor_of(employer)

        await lifecycle.change_status(application.id, poster, Status.REVIEWED)
        await lifecycle.change_status(application.id, poster, Status.SHORTLISTED)
        await lifecycle.schedule_interview(application.id, poster, datetime(2026, 10, 20, 10, tzinfo=timezone.utc))
        await lifecycle.change_status(application.id, poster, Status.INTERVIEWED)
        application = await lifecycle.change_status(application.id, poster, Status.ACCEPTED, "Welcome aboard")

        assert application.status == Status.ACCEPTED
        assert application.version == 6

        with pytest.raises(InvalidTransitionException):
            await lifecycle.change_status(application.id, poster, Status.REJECTED)


class TestScheduleInterview:

    @pytest.mark.asyncio
    async def test_unparsable_time(self, session, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(ValidationException):
            await lifecycle.schedule_interview(application.id, actor_of(employer), "next tuesday")

        await session.refresh(application)
        assert application.status == Status.PENDING
        assert application.interview_scheduled_at is None

    @pytest.mark.asyncio
    async def test_cannot_reschedule(self, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)
        await lifecycle.schedule_interview(application.id, actor_of(employer), "2026-10-10T14:30:00+00:00")

        with pytest.raises(InvalidTransitionException):
            await lifecycle.schedule_interview(application.id, actor_of(employer), "2026-10-11T14:30:00+00:00")

    @pytest.mark.asyncio
    async def test_applicant_cannot_schedule(self, lifecycle, job, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        with pytest.raises(AuthorizationException):
            await lifecycle.schedule_interview(application.id, actor_of(seeker), "2026-10-10T14:30:00+00:00")

    @pytest.mark.asyncio
    async def test_naive_time_is_treated_as_utc(self, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        application = await lifecycle.schedule_interview(application.id, actor_of(employer), "2026-10-10T14:30:00")

        assert as_utc(application.interview_scheduled_at) == datetime(2026, 10, 10, 14, 30, tzinfo=timezone.utc)


class TestWithdraw:

    @pytest.mark.asyncio
    async def test_applicant_withdraws_without_notification(
        self, session, lifecycle, clock, job, employer, seeker, actor_of
    ):
        application = await lifecycle.submit(actor_of(seeker), job.id)
        employer_inbox = len(await notifications_for(session, employer.id))

        withdrawn_at = clock.advance(minutes=30)
        application = await lifecycle.withdraw(application.id, actor_of(seeker))

        assert application.status == Status.WITHDRAWN
        assert as_utc(application.reviewed_at) == withdrawn_at
        assert len(await notifications_for(session, employer.id)) == employer_inbox
        assert await notifications_for(session, seeker.id) == []

    @pytest.mark.asyncio
    async def test_only_applicant_may_withdraw(self, session, lifecycle, job, employer, admin, other_seeker, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        for user in (employer, admin, other_seeker):
            with pytest.raises(AuthorizationException):
                await lifecycle.withdraw(application.id, actor_of(user))

        await session.refresh(application)
        assert application.status == Status.PENDING

    @pytest.mark.asyncio
    async def test_cannot_withdraw_after_decision(self, lifecycle, job, employer, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)
        await lifecycle.change_status(application.id, actor_of(employer), Status.REJECTED)

        with pytest.raises(InvalidTransitionException):
            await lifecycle.withdraw(application.id, actor_of(seeker))

    @pytest.mark.asyncio
    async def test_withdrawn_application_is_kept(self, session, lifecycle, job, seeker, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)
        await lifecycle.withdraw(application.id, actor_of(seeker))

        assert await application_count(session) == 1
        assert await lifecycle.has_applied(seeker.id, job.id)


class TestQueries:

    @pytest.mark.asyncio
    async def test_get_is_view_authorized(self, lifecycle, job, employer, admin, seeker, other_seeker, other_employer, actor_of):
        application = await lifecycle.submit(actor_of(seeker), job.id)

        for user in (seeker, employer, admin):
            fetched = await lifecycle.get(application.id, actor_of(user))
            assert fetched.id == application.id

        for user in (other_seeker, other_employer):
            with pytest.raises(AuthorizationException):
                await lifecycle.get(application.id, actor_of(user))

    @pytest.mark.asyncio
    async def test_get_unknown(self, lifecycle, admin, actor_of):
        with pytest.raises(ApplicationNotFoundException):
            await lifecycle.get(uuid4(), actor_of(admin))

    @pytest.mark.asyncio
    async def test_list_by_job_checks_poster(self, lifecycle, job, employer, other_employer, admin, seeker, other_seeker, actor_of):
        await lifecycle.submit(actor_of(seeker), job.id)
        await lifecycle.submit(actor_of(other_seeker), job.id)

        page = await lifecycle.list_by_job(job.id, actor=actor_of(employer))
        assert page.total == 2
        assert len(page.items) == 2

        page = await lifecycle.list_by_job(job.id, offset=0, limit=1, actor=actor_of(admin))
        assert page.total == 2
        assert len(page.items) == 1

        with pytest.raises(AuthorizationException):
            await lifecycle.list_by_job(job.id, actor=actor_of(other_employer))

        with pytest.raises(JobNotFoundException):
            await lifecycle.list_by_job(uuid4(), actor=actor_of(admin))

    @pytest.mark.asyncio
    async def test_list_by_applicant_and_status(self, lifecycle, make_job, employer, seeker, actor_of):
        first = await make_job(employer, title="Backend Engineer")
        second = await make_job(employer, title="Data Engineer")

        a1 = await lifecycle.submit(actor_of(seeker), first.id)
        await lifecycle.submit(actor_of(seeker), second.id)
        await lifecycle.change_status(a1.id, actor_of(employer), Status.REVIEWED)

        page = await lifecycle.list_by_applicant(seeker.id)
        assert page.total == 2

        reviewed = await lifecycle.list_by_status(Status.REVIEWED)
        assert [a.id for a in reviewed.items] == [a1.id]

        assert await lifecycle.count_by_job(first.id) == 1


class TestSideEffects:

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_fail_operations(self, session, build_lifecycle, job, employer, seeker, actor_of):
        sink = RaisingNotifications()
        lifecycle = build_lifecycle(session, notifications=sink)

        application = await lifecycle.submit(actor_of(seeker), job.id)
        application = await lifecycle.change_status(application.id, actor_of(employer), Status.SHORTLISTED)
        application = await lifecycle.schedule_interview(application.id, actor_of(employer), "2026-10-10T14:30:00Z")

        assert application.status == Status.INTERVIEW_SCHEDULED
        assert sink.calls == 3

        await session.refresh(job)
        assert job.applications_count == 1

    @pytest.mark.asyncio
    async def test_rolled_back_sink_leaves_committed_application_readable(
        self, session, build_lifecycle, job, employer, seeker, actor_of
    ):
        lifecycle = build_lifecycle(session, notifications=RollingBackNotifications(session))

        application = await lifecycle.submit(actor_of(seeker), job.id)
        assert application.status == Status.PENDING

        application = await lifecycle.change_status(application.id, actor_of(employer), Status.REVIEWED)
        assert application.status == Status.REVIEWED
        assert application.version == 2

    @pytest.mark.asyncio
    async def test_counter_failure_does_not_fail_submission(self, session, lifecycle, job, seeker, actor_of):
        async def broken_increment(job_id):
            raise DependencyFailureException("Job directory", "counter table locked")

        lifecycle.jobs.increment_application_count = broken_increment

        application = await lifecycle.submit(actor_of(seeker), job.id)

        assert application.status == Status.PENDING
        await session.refresh(job)
        assert job.applications_count == 0


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_stale_writer_gets_conflict(self, engine, session, lifecycle, build_lifecycle, job, employer, seeker, actor_of):
        reviewer = actor_of(employer)
        application = await lifecycle.submit(actor_of(seeker), job.id)
        application_id = application.id

        # A second request moves the application on while ours still holds version 1
        async with AsyncSession(engine, expire_on_commit=False) as other_session:
            await build_lifecycle(other_session).change_status(application_id, reviewer, Status.SHORTLISTED)

        with pytest.raises(ConflictException):
            await lifecycle.change_status(application_id, reviewer, Status.REVIEWED)

        await session.refresh(application)
        assert application.status == Status.SHORTLISTED
        assert application.version == 2

    @pytest.mark.asyncio
    async def test_retry_after_conflict_succeeds(self, engine, session, lifecycle, build_lifecycle, job, employer, seeker, actor_of):
        reviewer = actor_of(employer)
        application = await lifecycle.submit(actor_of(seeker), job.id)
        application_id = application.id

        async with AsyncSession(engine, expire_on_commit=False) as other_session:
            await build_lifecycle(other_session).change_status(application_id, reviewer, Status.SHORTLISTED)

        with pytest.raises(ConflictException):
            await lifecycle.change_status(application_id, reviewer, Status.REJECTED)

        application = await lifecycle.change_status(application_id, reviewer, Status.REJECTED)
        assert application.status == Status.REJECTED
        assert application.version == 3

    @pytest.mark.asyncio
    async def test_racing_submissions_store_one_application(self, engine, session, build_lifecycle, job, seeker, actor_of):
        applicant = actor_of(seeker)
        job_id = job.id

        async def submit_in_own_session():
            async with AsyncSession(engine, expire_on_commit=False) as own_session:
                return await build_lifecycle(own_session).submit(applicant, job_id)

        outcomes = await asyncio.gather(
            submit_in_own_session(),
            submit_in_own_session(),
            return_exceptions=True,
        )

        stored = [o for o in outcomes if isinstance(o, JobApplication)]
        rejected = [o for o in outcomes if isinstance(o, DuplicateApplicationException)]
        assert len(stored) == 1
        assert len(rejected) == 1
        assert await application_count(session) == 1
