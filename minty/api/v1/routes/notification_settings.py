# minty/api/v1/routes/notification_settings.py
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from minty.core.auth import User
from minty.core.database import get_async_session
from minty.crud.notification import get_notification_settings, update_notification_settings
from minty.schemas.notification import NotificationSettingsRead, NotificationSettingsUpdate
from minty.api.deps import get_current_user

router = APIRouter(prefix="/notification-settings", tags=["Notifications"])

@router.get("", response_model=NotificationSettingsRead)
async def read_notification_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Everything is off until the user opts in; push_notifications gates all delivery."""
    return await get_notification_settings(db, user.id)

@router.patch("", response_model=NotificationSettingsRead)
async def patch_notification_settings(
    settings_in: NotificationSettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await update_notification_settings(db, user.id, settings_in)
