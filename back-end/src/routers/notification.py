from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query

from dependencies import get_actor, get_session, require_roles
from sqlmodel.ext.asyncio.session import AsyncSession

from models.relational_models import Notification
from repositories.notification import NotificationRepository
from repositories.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from schemas.notification import NotificationPage, NotificationPublic
from services.authorization import Actor
from sqlmodel import func, select

from utilities.clock import utc_now
from utilities.enumerables import UserRole
from utilities.authentication import oauth2_scheme


router = APIRouter()

# Dependency that allows all standard roles (EMPLOYER included)
ALL_ROLES_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
        UserRole.EMPLOYER.value,
        UserRole.JOB_SEEKER.value,
    )
)

ADMIN_ROLE_DEP = Depends(
    require_roles(
        UserRole.ADMIN.value,
    )
)


async def _get_own_notification(session: AsyncSession, notification_id: UUID, actor: Actor) -> Notification:
    notification = await session.get(Notification, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    if notification.user_id != actor.id:
        raise HTTPException(status_code=403, detail="Not allowed to access this notification")
    return notification


@router.get(
    "/notifications/",
    response_model=NotificationPage,
)
async def get_notifications(
    *,
    session: AsyncSession = Depends(get_session),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    The authenticated user's inbox, newest first.
    """
    stmt = (
        select(Notification)
        .where(Notification.user_id == actor.id)
        .order_by(Notification.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    result = await session.exec(stmt)

    total = (await session.exec(
        select(func.count()).select_from(Notification).where(Notification.user_id == actor.id)
    )).one()

    return NotificationPage(
        items=[NotificationPublic.model_validate(n) for n in result.all()],
        total=total,
        offset=offset,
        limit=limit,
    )


@router.get(
    "/notifications/unread/",
    response_model=list[NotificationPublic],
)
async def get_unread_notifications(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    stmt = (
        select(Notification)
        .where(Notification.user_id == actor.id)
        .where(Notification.is_read == False)  # noqa: E712
        .order_by(Notification.created_at.desc())
    )
    result = await session.exec(stmt)
    return result.all()


@router.get(
    "/notifications/count/",
    response_model=dict[str, int],
)
async def count_unread_notifications(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == actor.id)
        .where(Notification.is_read == False)  # noqa: E712
    )
    result = await session.exec(stmt)
    return {"unread": result.one()}


@router.patch(
    "/notifications/read_all/",
    response_model=dict[str, int],
)
async def mark_all_notifications_read(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    stmt = (
        select(Notification)
        .where(Notification.user_id == actor.id)
        .where(Notification.is_read == False)  # noqa: E712
    )
    unread = (await session.exec(stmt)).all()

    now = utc_now()
    for notification in unread:
        notification.is_read = True
        notification.read_at = now
        session.add(notification)

    await session.commit()
    return {"updated": len(unread)}


@router.delete(
    "/notifications/old/",
    response_model=dict[str, int],
)
async def delete_old_notifications(
    *,
    session: AsyncSession = Depends(get_session),
    days: int = Query(default=30, ge=1),
    _user: dict = ADMIN_ROLE_DEP,
    _: str = Depends(oauth2_scheme),
):
    """
    Purge read notifications older than `days` days (admin maintenance).
    """
    deleted = await NotificationRepository(session).delete_old_notifications(days)
    return {"deleted": deleted}


@router.get(
    "/notifications/{notification_id}",
    response_model=NotificationPublic,
)
async def get_notification(
    *,
    session: AsyncSession = Depends(get_session),
    notification_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    return await _get_own_notification(session, notification_id, actor)


@router.patch(
    "/notifications/{notification_id}/read",
    response_model=NotificationPublic,
)
async def mark_notification_read(
    *,
    session: AsyncSession = Depends(get_session),
    notification_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    notification = await _get_own_notification(session, notification_id, actor)

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utc_now()
        session.add(notification)
        await session.commit()
        await session.refresh(notification)

    return notification


@router.delete(
    "/notifications/{notification_id}",
    response_model=dict[str, str],
)
async def delete_notification(
    *,
    session: AsyncSession = Depends(get_session),
    notification_id: UUID,
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    notification = await _get_own_notification(session, notification_id, actor)

    await session.delete(notification)
    await session.commit()
    return {"msg": "Notification deleted successfully"}


@router.delete(
    "/notifications/",
    response_model=dict[str, int],
)
async def delete_all_notifications(
    *,
    session: AsyncSession = Depends(get_session),
    actor: Actor = Depends(get_actor),
    _user: dict = ALL_ROLES_DEP,
    _: str = Depends(oauth2_scheme),
):
    stmt = select(Notification).where(Notification.user_id == actor.id)
    notifications = (await session.exec(stmt)).all()

    for notification in notifications:
        await session.delete(notification)

    await session.commit()
    return {"deleted": len(notifications)}
