from datetime import datetime
from uuid import uuid4, UUID

from sqlalchemy import UniqueConstraint
from sqlmodel import Column, DateTime, Field, SQLModel, func

from schemas.base.job_application import JobApplicationBase
from schemas.base.job_posting import JobPostingBase
from schemas.base.notification import NotificationBase
from schemas.base.user import UserBase
from utilities.clock import utc_now
from utilities.enumerables import JobApplicationStatus


class User(UserBase, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    password: str = Field(...)

    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), server_default=func.now()),
    )

    updated_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True), onupdate=func.now()),
    )


class JobPosting(JobPostingBase, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    is_active: bool = Field(default=True, index=True)

    applications_count: int = Field(default=0)

    posted_by_id: UUID = Field(foreign_key="user.id", ondelete="CASCADE", index=True)

    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), server_default=func.now()),
    )

    updated_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True), onupdate=func.now()),
    )


class JobApplication(JobApplicationBase, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "job_posting_id", name="uq_jobapplication_user_job"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="user.id", ondelete="CASCADE", index=True)

    job_posting_id: UUID = Field(foreign_key="jobposting.id", ondelete="CASCADE", index=True)

    status: JobApplicationStatus = Field(default=JobApplicationStatus.PENDING, index=True)

    # Set once by the store on first insert
    applied_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), index=True),
    )

    reviewed_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )

    interview_scheduled_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )

    notes: str | None = Field(default=None)

    rejection_reason: str | None = Field(default=None)

    # Optimistic lock counter, bumped by every successful update
    version: int | None = Field(default=None)

    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), server_default=func.now()),
    )

    updated_at: datetime | None = Field(
        sa_column=Column(DateTime(timezone=True), onupdate=func.now()),
    )


class Notification(NotificationBase, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="user.id", ondelete="CASCADE", index=True)

    is_read: bool = Field(default=False, index=True)

    read_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True)),
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), index=True),
    )


class SavedJob(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "job_posting_id", name="uq_savedjob_user_job"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="user.id", ondelete="CASCADE", index=True)

    job_posting_id: UUID = Field(foreign_key="jobposting.id", ondelete="CASCADE")

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True)),
    )
