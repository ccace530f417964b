# minty/crud/notification.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc, func
from minty.models.notification import Notification
from minty.models.notification_settings import NotificationSettings
from minty.schemas.notification import NotificationCreate, NotificationSettingsUpdate
from typing import List, Optional
import uuid

async def create_notification(db: AsyncSession, notification: NotificationCreate) -> Notification:
    """Create a new notification"""
    db_notification = Notification(**notification.model_dump())
    db.add(db_notification)
    await db.commit()
    await db.refresh(db_notification)
    return db_notification

async def get_notifications_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    unread_only: bool = False,
    limit: int = 50
) -> List[Notification]:
    """Get notifications for a specific user with filtering options"""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712
    query = query.order_by(desc(Notification.created_at)).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()

async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Get count of unread notifications for a user"""
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
    )
    return result.scalar_one() or 0

async def mark_notification_as_read(db: AsyncSession, notification_id: uuid.UUID, user_id: uuid.UUID) -> Optional[Notification]:
    """Mark a notification as read if it belongs to the user"""
    result = await db.execute(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    notification = result.scalar_one_or_none()
    if not notification:
        return None
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification

async def mark_all_notifications_as_read(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Mark all notifications as read for a user, returns the number updated"""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount or 0


async def get_notification_settings(db: AsyncSession, user_id: uuid.UUID) -> NotificationSettings:
    """Load the user's notification settings, creating the all-off default row on first access."""
    result = await db.execute(
        select(NotificationSettings).where(NotificationSettings.user_id == user_id)
    )
    settings_row = result.scalar_one_or_none()
    if settings_row is None:
        settings_row = NotificationSettings(user_id=user_id)
        db.add(settings_row)
        await db.commit()
        await db.refresh(settings_row)
    return settings_row

async def update_notification_settings(
    db: AsyncSession, user_id: uuid.UUID, settings_in: NotificationSettingsUpdate
) -> NotificationSettings:
    settings_row = await get_notification_settings(db, user_id)
    for field, value in settings_in.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(settings_row, field, value)
    await db.commit()
    await db.refresh(settings_row)
    return settings_row

async def get_user_ids_with_setting(db: AsyncSession, flag: str) -> List[uuid.UUID]:
    """Users who granted push permission and turned on the given notification flag."""
    column = getattr(NotificationSettings, flag)
    result = await db.execute(
        select(NotificationSettings.user_id).where(
            NotificationSettings.push_notifications == True,  # noqa: E712
            column == True,  # noqa: E712
        )
    )
    return [row[0] for row in result.all()]
