# minty/utils/scheduler.py
import asyncio
import logging
import random
from typing import Awaitable, Callable, List

from minty.core.config import settings
from minty.core.database import AsyncSessionLocal
from minty.crud.notification import get_user_ids_with_setting
from minty.utils.notifications import NotificationService

logger = logging.getLogger(__name__)


class PeriodicChecks:
    """Timer-driven reminder and report checks, one asyncio task per check."""

    def __init__(self, service: NotificationService, session_factory=AsyncSessionLocal):
        self.service = service
        self.session_factory = session_factory
        self.tasks: List[asyncio.Task] = []

    def _checks(self):
        return [
            (
                "transaction_reminders",
                self.service.send_transaction_reminder,
                settings.REMINDER_INITIAL_DELAY_SECONDS,
                settings.REMINDER_INTERVAL_SECONDS,
            ),
            (
                "weekly_reports",
                self.service.send_weekly_report,
                settings.WEEKLY_REPORT_INITIAL_DELAY_SECONDS,
                settings.WEEKLY_REPORT_INTERVAL_SECONDS,
            ),
            (
                "monthly_reports",
                self.service.send_monthly_report,
                settings.MONTHLY_REPORT_INITIAL_DELAY_SECONDS,
                settings.MONTHLY_REPORT_INTERVAL_SECONDS,
            ),
        ]

    async def run_check(self, flag: str, handler: Callable[..., Awaitable]) -> int:
        """Run one check for every user who enabled ``flag``; returns how many were notified."""
        sent = 0
        async with self.session_factory() as db:
            user_ids = await get_user_ids_with_setting(db, flag)
            for user_id in user_ids:
                try:
                    if await handler(db, user_id):
                        sent += 1
                except Exception as e:
                    await db.rollback()
                    logger.error(f"❌ {flag} check failed for user {user_id}: {str(e)}")
        if sent:
            logger.info(f"{flag} check notified {sent} user(s)")
        return sent

    async def _loop(self, flag: str, handler: Callable[..., Awaitable], initial_delay: float, interval: float) -> None:
        # Jitter keeps the checks from all firing at the same moment
        await asyncio.sleep(initial_delay + random.uniform(0, settings.SCHEDULER_JITTER_SECONDS))
        while True:
            try:
                await self.run_check(flag, handler)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"❌ Periodic {flag} check crashed: {str(e)}")
            await asyncio.sleep(interval)

    def start(self) -> None:
        if self.tasks:
            return
        for flag, handler, initial_delay, interval in self._checks():
            self.tasks.append(asyncio.create_task(self._loop(flag, handler, initial_delay, interval)))
        logger.info(f"⏰ Started {len(self.tasks)} periodic notification checks")

    async def stop(self) -> None:
        for task in self.tasks:
            task.cancel()
        if self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks = []
        logger.info("Periodic notification checks stopped")
