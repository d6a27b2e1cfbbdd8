from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from utilities.enumerables import UserAccountStatus, UserRole


class UserBase(SQLModel):
    """
    Account columns shared by the table and its request/response shapes.

    Only the uniqueness rules live here. Length limits are checked on
    sign-up (see `UserCreate`) so rows seeded directly are never rejected
    when they are read back.
    """
    # Shown in notification texts; sign-up falls back to the username
    full_name: str | None = Field(default=None)

    email: EmailStr = Field(unique=True, index=True)

    phone: str | None = Field(default=None, unique=True)

    # Login name
    username: str = Field(unique=True, index=True)

    role: UserRole = Field(...)

    # Only active accounts can log in
    account_status: UserAccountStatus = Field(default=UserAccountStatus.ACTIVE)
