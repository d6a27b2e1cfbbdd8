from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from dependencies import get_session
from models.relational_models import User
from schemas.authentication import LoginResponse, TokenPair
from schemas.user import UserCreate, UserPublic
from utilities.authentication import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_MINUTES,
    authenticate_user,
    decode_access_token,
    get_password_hash,
    issue_token_pair,
    optional_oauth2_scheme,
    refresh_header_scheme,
)
from utilities.enumerables import UserRole
from utilities.fields_validator import validate_password_value


router = APIRouter()


@router.post(
    "/sign-up/",
    response_model=UserPublic,
    status_code=201,
)
async def sign_up(
        *,
        session: AsyncSession = Depends(get_session),
        user_create: UserCreate,
):
    """
    Register a job seeker or employer account. Admins are provisioned out of band.
    """
    if user_create.role == UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin accounts cannot be self-registered")

    validate_password_value(user_create.password)

    db_user = User(
        full_name=user_create.full_name or user_create.username,
        email=user_create.email,
        phone=user_create.phone,
        username=user_create.username,
        role=user_create.role,
        account_status=user_create.account_status,
        password=get_password_hash(user_create.password),
    )

    session.add(db_user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="Username, email or phone number is already registered")

    await session.refresh(db_user)
    logger.info(f"User {db_user.id} signed up as {db_user.role.value}")
    return db_user


@router.post("/login/", response_model=LoginResponse)
async def login(
        *,
        session: AsyncSession = Depends(get_session),
        form: OAuth2PasswordRequestForm = Depends(),
):
    user = await authenticate_user(form, session)

    tokens = issue_token_pair(user.id, user.role.value, user.full_name)

    return LoginResponse(
        user_id=user.id,
        user_role=user.role.value,
        user_full_name=user.full_name,
        user_status=user.account_status.value,
        access_expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        refresh_expires_in=REFRESH_TOKEN_EXPIRE_MINUTES * 60,
        **tokens,
    )


@router.post("/refresh-token/", response_model=TokenPair)
async def refresh_token(
    refresh_header: str | None = Depends(refresh_header_scheme),
    authorization: str | None = Depends(optional_oauth2_scheme),
):
    """
    Exchange a refresh token for a new access/refresh pair.

    The token is read from the `Authorization-Refresh` header, falling back
    to the standard bearer `Authorization` header.
    """
    token = refresh_header.removeprefix("Bearer").strip() if refresh_header else authorization

    if not token:
        raise HTTPException(status_code=401, detail="No refresh token found in Authorization-Refresh or Authorization header")

    payload = decode_access_token(token)

    if payload.get("token_type") != "refresh":
        raise HTTPException(status_code=401, detail="Provided token is not a refresh token")

    return TokenPair(**issue_token_pair(payload.get("sub"), payload.get("role"), payload.get("full_name")))
