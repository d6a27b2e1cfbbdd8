import os
from datetime import timedelta, timezone, datetime
from uuid import UUID

import jwt
from fastapi import HTTPException
from fastapi.security import APIKeyHeader, OAuth2PasswordBearer, OAuth2PasswordRequestForm
from loguru import logger
from passlib.context import CryptContext
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select

from models.relational_models import User
from utilities.enumerables import UserAccountStatus

ACCESS_TOKEN_EXPIRE_MINUTES = 15
REFRESH_TOKEN_EXPIRE_MINUTES = 7 * 24 * 60

SECRET_KEY = os.getenv("JOBBOARD_SECRET_KEY")

ALGORITHM = "HS512"

pwd_context = CryptContext(schemes=["pbkdf2_sha512"], deprecated="auto", pbkdf2_sha512__default_rounds=300_000)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login/")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login/", auto_error=False)
refresh_header_scheme = APIKeyHeader(name="Authorization-Refresh", auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | int | None = None) -> str:
    """
    Sign `data` as an HS512 JWT.

    `expires_delta` is a timedelta or a number of minutes; the access token
    lifetime applies when it is omitted.
    """
    if expires_delta is None:
        expires_delta = ACCESS_TOKEN_EXPIRE_MINUTES
    if isinstance(expires_delta, int):
        expires_delta = timedelta(minutes=expires_delta)
    if not isinstance(expires_delta, timedelta):
        raise TypeError("expires_delta must be None, int (minutes), or timedelta")

    expire = datetime.now(timezone.utc) + expires_delta
    claims = {**data, "exp": int(expire.timestamp())}

    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def issue_token_pair(user_id: UUID | str, role: str, full_name: str | None) -> dict:
    """
    Mint a fresh access/refresh pair for one user.

    Both tokens carry the subject, role and display name; `token_type`
    tells them apart so a refresh token is never accepted as an access token.
    """
    subject = str(user_id)
    issued = int(datetime.now(timezone.utc).timestamp())

    def claims(token_type: str) -> dict:
        return {
            "sub": subject,
            "role": role,
            "full_name": full_name,
            "token_type": token_type,
            "jti": f"{token_type}-{subject}-{issued}",
        }

    return {
        "access_token": create_access_token(claims("access"), ACCESS_TOKEN_EXPIRE_MINUTES),
        "refresh_token": create_access_token(claims("refresh"), REFRESH_TOKEN_EXPIRE_MINUTES),
        "token_type": "bearer",
    }


def decode_access_token(token: str, verify_exp: bool = True) -> dict:
    """
    Decode and verify a JWT. Raises HTTPException(401) on any failure.
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], options={"verify_exp": verify_exp})

    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.InvalidSignatureError:
        raise HTTPException(status_code=401, detail="Invalid token signature")
    except jwt.InvalidAlgorithmError:
        raise HTTPException(status_code=401, detail="Unsupported token algorithm")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Malformed token")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a plain password against its stored PBKDF2-SHA512 hash.

    A stored value that passlib cannot parse counts as a mismatch.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


async def authenticate_user(credentials: OAuth2PasswordRequestForm, session: AsyncSession) -> User:
    result = await session.exec(select(User).where(User.username == credentials.username))
    user = result.one_or_none()

    if not user or not verify_password(credentials.password, user.password):
        logger.info(f"Failed login for username '{credentials.username}'")
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    if user.account_status != UserAccountStatus.ACTIVE:
        raise HTTPException(status_code=403, detail="Account is not active")

    return user
