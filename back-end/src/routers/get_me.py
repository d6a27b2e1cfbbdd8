from fastapi import APIRouter, Depends, HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from dependencies import get_actor, get_session, require_roles
from models.relational_models import User
from schemas.user import UserPublic
from services.authorization import Actor
from utilities.authentication import oauth2_scheme
from utilities.enumerables import UserRole


router = APIRouter()

@router.get(
    "/get_me/",
    response_model=UserPublic
)
async def get_me(
    *,
    session: AsyncSession = Depends(get_session),
    _user: dict = Depends(
        require_roles(
            UserRole.ADMIN.value,
            UserRole.JOB_SEEKER.value,
            UserRole.EMPLOYER.value
        )
    ),
    _: str = Depends(oauth2_scheme),
    actor: Actor = Depends(get_actor)
):
    """
    Return the currently authenticated user's details.

    - Resolves the caller from the bearer token.
    - Fetches the full User record with an async DB session.
    - No request body or query parameters are required; the request must be authenticated.
    """
    db_user = await session.get(User, actor.id)

    if db_user is None:
        # Token outlived the account
        raise HTTPException(status_code=404, detail="User not found")

    return db_user
