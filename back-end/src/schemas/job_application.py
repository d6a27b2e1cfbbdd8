from uuid import UUID
from datetime import datetime

from sqlmodel import Field, SQLModel

from schemas.base.job_application import JobApplicationBase
from utilities.enumerables import JobApplicationStatus


class JobApplicationPublic(JobApplicationBase):
    id: UUID
    user_id: UUID
    job_posting_id: UUID
    status: JobApplicationStatus
    applied_at: datetime
    reviewed_at: datetime | None
    interview_scheduled_at: datetime | None
    notes: str | None
    rejection_reason: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class JobApplicationCreate(JobApplicationBase):
    job_posting_id: UUID


class JobApplicationStatusUpdate(SQLModel):
    status: JobApplicationStatus = Field(...)

    # Stored as the reviewer note, and as the rejection reason on rejection
    notes: str | None = Field(default=None)


class JobApplicationInterviewSchedule(SQLModel):
    # ISO 8601, e.g. 2026-11-02T10:30:00+00:00
    interview_time: str = Field(...)

    notes: str | None = Field(default=None)


class JobApplicationPage(SQLModel):
    items: list[JobApplicationPublic] = []
    total: int
    offset: int
    limit: int


class JobApplicationStats(SQLModel):
    total_applications: int
