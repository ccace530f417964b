# minty/utils/notifications.py
import logging
import uuid
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from sqlalchemy.ext.asyncio import AsyncSession

from minty.core.config import settings
from minty.crud import notification as crud_notification
from minty.crud.category import get_categories_for_user
from minty.crud.transaction import count_transactions_since, get_transactions_for_user
from minty.models.budget import Budget
from minty.models.notification import Notification
from minty.schemas.notification import NotificationCreate, NotificationRead
from minty.utils import aggregation
from minty.utils.throttle import RequestThrottle

logger = logging.getLogger(__name__)

# Days without a new transaction before a reminder is sent
REMINDER_QUIET_DAYS = 3


class ConnectionManager:
    """WebSocket subscribers grouped by owner."""

    def __init__(self):
        self.active_connections: Dict[uuid.UUID, List[WebSocket]] = {}

    def connect(self, websocket: WebSocket, user_id: uuid.UUID) -> None:
        self.active_connections.setdefault(user_id, []).append(websocket)
        logger.info(f"User {user_id} connected. Total connections: {len(self.active_connections[user_id])}")

    def disconnect(self, websocket: WebSocket, user_id: uuid.UUID) -> None:
        connections = self.active_connections.get(user_id)
        if connections is not None:
            if websocket in connections:
                connections.remove(websocket)
            if not connections:
                del self.active_connections[user_id]
        logger.info(f"User {user_id} disconnected. Remaining connections: {self.connection_count(user_id)}")

    def connection_count(self, user_id: uuid.UUID) -> int:
        return len(self.active_connections.get(user_id, []))

    async def publish(self, user_id: uuid.UUID, payload: Dict[str, Any]) -> int:
        """Send ``payload`` to every socket of the owner; returns how many received it."""
        delivered = 0
        dead_connections = []
        for websocket in list(self.active_connections.get(user_id, [])):
            try:
                await websocket.send_json(payload)
                delivered += 1
            except Exception as e:
                logger.error(f"Failed to send to websocket: {str(e)}")
                dead_connections.append(websocket)

        for dead in dead_connections:
            self.disconnect(dead, user_id)
        return delivered


class NotificationService:
    """
    Change feed and in-app notifications for the whole application.

    Built once in minty.main and handed to routes through deps.get_notification_service.
    """

    def __init__(
        self,
        connections: Optional[ConnectionManager] = None,
        throttle: Optional[RequestThrottle] = None,
        alert_percent: Optional[float] = None,
    ):
        self.connections = connections or ConnectionManager()
        self.throttle = throttle or RequestThrottle()
        self.alert_percent = settings.BUDGET_ALERT_PERCENT if alert_percent is None else alert_percent

    async def publish_change(self, user_id: uuid.UUID, table: str, event: str, record: Dict[str, Any]) -> int:
        """Tell the owner's subscribers that a row changed so they can re-read."""
        return await self.connections.publish(user_id, {
            "type": "change",
            "table": table,
            "event": event,
            "record": record,
        })

    async def notify(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        title: str,
        message: str,
        type: str,
        status: str = "info",
        budget_id: Optional[uuid.UUID] = None,
    ) -> Notification:
        """Persist a notification and push it to any open sockets."""
        notification = await crud_notification.create_notification(db, NotificationCreate(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            status=status,
            budget_id=budget_id,
        ))
        await self.connections.publish(user_id, {
            "type": "notification",
            "data": NotificationRead.model_validate(notification).model_dump(mode="json"),
        })
        logger.info(f"📣 {type} notification sent to user {user_id}")
        return notification

    async def _is_enabled(self, db: AsyncSession, user_id: uuid.UUID, flag: str) -> bool:
        prefs = await crud_notification.get_notification_settings(db, user_id)
        return bool(prefs.push_notifications and getattr(prefs, flag))

    async def handle_budget_update(self, db: AsyncSession, budget: Budget) -> Optional[Notification]:
        """Alert the owner once a budget crosses the alert threshold."""
        if not budget.total_amount:
            return None
        pct = aggregation.budget_utilization(budget.spent_amount, budget.total_amount)
        if pct < self.alert_percent:
            return None
        if not await self._is_enabled(db, budget.user_id, "budget_alerts"):
            return None

        budget_id, user_id, name = budget.id, budget.user_id, budget.name

        async def send():
            return await self.notify(
                db,
                user_id,
                title="Budget Alert",
                message=f"You've used {pct:.0f}% of your {name} budget",
                type="budget_alert",
                status="alert",
                budget_id=budget_id,
            )

        return await self.throttle.run(f"budget-alert:{budget_id}", send, scope=str(user_id))

    async def send_transaction_reminder(
        self, db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None
    ) -> Optional[Notification]:
        """Remind the user to log transactions if nothing was recorded recently."""
        if not await self._is_enabled(db, user_id, "transaction_reminders"):
            return None
        today = today or date.today()
        recent = await count_transactions_since(user_id, today - timedelta(days=REMINDER_QUIET_DAYS), db)
        if recent:
            return None

        async def send():
            return await self.notify(
                db,
                user_id,
                title="Transaction Reminder",
                message="Don't forget to log your recent transactions!",
                type="transaction_reminder",
                status="reminder",
            )

        return await self.throttle.run(f"transaction-reminder:{user_id}", send, scope=str(user_id))

    async def send_weekly_report(
        self, db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None
    ) -> Optional[Notification]:
        if not await self._is_enabled(db, user_id, "weekly_reports"):
            return None
        today = today or date.today()
        transactions = await get_transactions_for_user(user_id, db, start_date=today - timedelta(days=13))
        categories = await get_categories_for_user(user_id, db)
        summary = aggregation.week_summary(transactions, categories, today)

        message = f"You spent ${summary['total_spent']:,.2f} this week."
        if summary["top_category"]:
            message += f" Top category: {summary['top_category']}."
        change = summary["change_percent"]
        if change is not None:
            if change > 0:
                message += f" That's {change:.0f}% more than last week."
            else:
                message += f" That's {abs(change):.0f}% less than last week."

        async def send():
            return await self.notify(
                db, user_id, title="Weekly Spending Summary", message=message, type="weekly_report"
            )

        return await self.throttle.run(f"weekly-report:{user_id}", send, scope=str(user_id))

    async def send_monthly_report(
        self, db: AsyncSession, user_id: uuid.UUID, today: Optional[date] = None
    ) -> Optional[Notification]:
        if not await self._is_enabled(db, user_id, "monthly_reports"):
            return None
        today = today or date.today()
        start = today.replace(day=1)
        transactions = await get_transactions_for_user(user_id, db, start_date=start)
        categories = await get_categories_for_user(user_id, db)
        summary = aggregation.month_summary(transactions, categories, today.year, today.month)

        top = ", ".join(row["name"] for row in summary["top_categories"]) or "None"
        message = (
            f"Total Spent: ${summary['total_spent']:,.2f}. "
            f"Saved: ${summary['saved']:,.2f}. "
            f"Top Categories: {top}"
        )

        async def send():
            return await self.notify(
                db, user_id, title="Monthly Financial Overview", message=message, type="monthly_report"
            )

        return await self.throttle.run(f"monthly-report:{user_id}", send, scope=str(user_id))
