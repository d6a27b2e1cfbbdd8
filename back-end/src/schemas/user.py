from uuid import UUID
from datetime import datetime

from sqlmodel import Field

from schemas.base.user import UserBase


class UserPublic(UserBase):
    id: UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(UserBase):
    full_name: str | None = Field(default=None, min_length=3, max_length=60)

    username: str = Field(min_length=3, max_length=30)

    phone: str | None = Field(default=None, max_length=20)

    password: str = Field(...)
