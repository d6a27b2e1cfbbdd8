from uuid import UUID

from sqlmodel import SQLModel


class TokenPair(SQLModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginResponse(TokenPair):
    user_id: UUID
    user_role: str
    user_full_name: str | None = None
    user_status: str
    access_expires_in: int
    refresh_expires_in: int
