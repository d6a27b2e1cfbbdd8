from datetime import timedelta
from typing import Callable
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from models.relational_models import Notification
from utilities.clock import utc_now
from utilities.enumerables import NotificationType
from utilities.exceptions import DependencyFailureException


class NotificationRepository:
    """Records notifications for later retrieval from the user's inbox."""

    def __init__(self, session: AsyncSession, clock: Callable = utc_now):
        self.session = session
        self.clock = clock

    async def notify(
        self,
        recipient_id: UUID,
        title: str,
        message: str,
        category: NotificationType,
        action_url: str | None = None,
    ) -> Notification:
        notification = Notification(
            user_id=recipient_id,
            title=title,
            message=message,
            type=category,
            action_url=action_url,
            is_read=False,
            created_at=self.clock(),
        )

        self.session.add(notification)
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DependencyFailureException("Notification sink", str(e)) from e

        return notification

    async def delete_old_notifications(self, days_old: int) -> int:
        """
        Purge read notifications older than `days_old` days.

        Unread notifications are kept regardless of age. Returns the number
        of rows removed.
        """
        cutoff = self.clock() - timedelta(days=days_old)

        conn = await self.session.connection()
        result = await conn.execute(
            delete(Notification)
            .where(Notification.created_at < cutoff)
            .where(Notification.is_read.is_(True))
        )
        await self.session.commit()
        return result.rowcount
