from typing import AsyncGenerator, Any, Callable, Dict

from fastapi import HTTPException, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from database import async_engine
from repositories.job_application import JobApplicationRepository
from repositories.job_posting import JobPostingRepository
from repositories.notification import NotificationRepository
from services.application_lifecycle import ApplicationLifecycleService
from services.authorization import Actor
from utilities.authentication import decode_access_token, oauth2_scheme


async def get_current_user(token: str = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Resolve the caller from the bearer access token.

    Refresh tokens are refused here, and the token must name both a subject
    and a role. Returns the claims with the subject exposed as `id`.
    """
    payload = decode_access_token(token)

    if payload.get("token_type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Provided token is not an access token")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token claims are incomplete")

    claims = {k: v for k, v in payload.items() if k != "sub"}
    return {**claims, "id": user_id}


def require_roles(*required_roles: str) -> Callable[..., Dict[str, Any]]:
    """
    Dependency factory gating an endpoint on the caller's role.

        @router.get("/admin")
        async def admin_route(user = Depends(require_roles("admin"))):
            ...

    With no roles given any authenticated user passes.
    """
    def dependency(_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if required_roles and _user.get("role") not in required_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have permission to perform this action")
        return _user

    return dependency


async def get_actor(_user: Dict[str, Any] = Depends(get_current_user)) -> Actor:
    try:
        return Actor.from_claims(_user)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token claims are malformed")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    One database session per request.

    Objects stay loaded after commit so responses can be built from them
    without another round trip.
    """
    async with AsyncSession(async_engine, expire_on_commit=False) as session:
        yield session


def get_application_lifecycle(session: AsyncSession = Depends(get_session)) -> ApplicationLifecycleService:
    return ApplicationLifecycleService(
        applications=JobApplicationRepository(session),
        jobs=JobPostingRepository(session),
        notifications=NotificationRepository(session),
    )
