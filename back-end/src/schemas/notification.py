from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

from schemas.base.notification import NotificationBase


class NotificationPublic(NotificationBase):
    id: UUID
    user_id: UUID
    is_read: bool
    read_at: datetime | None
    created_at: datetime | None = None


class NotificationPage(SQLModel):
    items: list[NotificationPublic] = []
    total: int
    offset: int
    limit: int
