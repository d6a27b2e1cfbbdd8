from uuid import UUID
from datetime import datetime

from schemas.base.job_posting import JobPostingBase


class JobPostingPublic(JobPostingBase):
    id: UUID
    is_active: bool
    applications_count: int
    posted_by_id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class JobPostingCreate(JobPostingBase):
    pass
