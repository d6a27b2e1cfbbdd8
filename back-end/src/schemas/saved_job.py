from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel


class SavedJobPublic(SQLModel):
    id: UUID
    user_id: UUID
    job_posting_id: UUID
    created_at: datetime | None = None
