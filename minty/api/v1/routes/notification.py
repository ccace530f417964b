# minty/api/v1/routes/notification.py
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from datetime import datetime
import logging

from minty.schemas.notification import NotificationRead
from minty.crud import notification as crud_notification
from minty.api import deps
from minty.core.database import AsyncSessionLocal, get_async_session
from minty.core.auth import User

router = APIRouter()
logger = logging.getLogger(__name__)

@router.get("", response_model=List[NotificationRead])
async def get_notifications(
    unread_only: bool = Query(False, description="Filter to only unread notifications"),
    limit: int = Query(50, ge=1, le=200, description="Maximum number of notifications to return"),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(deps.get_current_user)
):
    """Get notifications for the current user with optional filtering"""
    return await crud_notification.get_notifications_for_user(
        db,
        user_id=current_user.id,
        unread_only=unread_only,
        limit=limit
    )

@router.get("/unread-count", response_model=int)
async def get_unread_count(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(deps.get_current_user)
):
    """Get count of unread notifications for the current user"""
    return await crud_notification.get_unread_count(db, current_user.id)

@router.post("/read-all", response_model=int)
async def mark_all_notifications_as_read(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(deps.get_current_user)
):
    """Mark all notifications for the current user as read"""
    return await crud_notification.mark_all_notifications_as_read(db, current_user.id)

@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_as_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(deps.get_current_user)
):
    """Mark a specific notification as read, ensuring it belongs to the current user"""
    notification = await crud_notification.mark_notification_as_read(db, notification_id, current_user.id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification

@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
):
    """
    Change feed for the token's owner.

    Pushes {"type": "change", ...} whenever a category, budget or transaction
    changes and {"type": "notification", ...} for new notifications.
    """
    async with AsyncSessionLocal() as db:
        try:
            user = await deps.get_user_from_token(token, db)
        except HTTPException:
            await websocket.close(code=4001, reason="Authentication failed")
            return

    connections = websocket.app.state.notification_service.connections
    await websocket.accept()
    connections.connect(websocket, user.id)

    try:
        # Keep the connection alive; clients may send pings
        while True:
            await websocket.receive_text()
            await websocket.send_json({"status": "received", "timestamp": datetime.utcnow().isoformat()})
    except WebSocketDisconnect:
        pass
    finally:
        connections.disconnect(websocket, user.id)
