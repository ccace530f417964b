import time
from datetime import date, timedelta

from sqlalchemy import select

from minty.crud.notification import get_notification_settings, get_user_ids_with_setting
from minty.models.notification import Notification
from minty.models.transaction import TransactionType
from minty.utils.notifications import ConnectionManager, NotificationService
from minty.utils.scheduler import PeriodicChecks
from minty.utils.throttle import RequestThrottle
from minty.core.database import AsyncSessionLocal


class FakeSocket:
    def __init__(self, broken=False):
        self.broken = broken
        self.sent = []

    async def send_json(self, payload):
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(payload)


def make_service():
    return NotificationService(throttle=RequestThrottle(min_interval=0))


async def enable(db, user_id, **flags):
    prefs = await get_notification_settings(db, user_id)
    prefs.push_notifications = True
    for name, value in flags.items():
        setattr(prefs, name, value)
    await db.commit()


async def test_publish_reaches_owner_and_drops_dead_sockets(user, other_user):
    manager = ConnectionManager()
    alive, dead, stranger = FakeSocket(), FakeSocket(broken=True), FakeSocket()
    manager.connect(alive, user.id)
    manager.connect(dead, user.id)
    manager.connect(stranger, other_user.id)

    delivered = await manager.publish(user.id, {"type": "change", "table": "budgets"})

    assert delivered == 1
    assert alive.sent == [{"type": "change", "table": "budgets"}]
    assert stranger.sent == []
    assert manager.connection_count(user.id) == 1


async def test_budget_alert_requires_permission_and_flag(db, user, make_budget):
    service = make_service()
    budget = await make_budget(user.id, name="Food", total_amount=100, spent_amount=85)

    assert await service.handle_budget_update(db, budget) is None

    await enable(db, user.id, budget_alerts=True)
    socket = FakeSocket()
    service.connections.connect(socket, user.id)

    notification = await service.handle_budget_update(db, budget)

    assert notification.type == "budget_alert"
    assert notification.message == "You've used 85% of your Food budget"
    assert notification.budget_id == budget.id
    assert socket.sent[0]["type"] == "notification"
    assert socket.sent[0]["data"]["title"] == "Budget Alert"


async def test_budget_alerts_for_different_owners_do_not_wait_on_each_other(
    db, user, other_user, make_budget
):
    service = NotificationService(throttle=RequestThrottle(min_interval=2.0))
    await enable(db, user.id, budget_alerts=True)
    await enable(db, other_user.id, budget_alerts=True)
    mine = await make_budget(user.id, name="Food", total_amount=100, spent_amount=90)
    theirs = await make_budget(other_user.id, name="Rent", total_amount=100, spent_amount=95)

    assert await service.handle_budget_update(db, mine) is not None
    started = time.monotonic()
    assert await service.handle_budget_update(db, theirs) is not None
    assert time.monotonic() - started < 1.0


async def test_budget_below_threshold_is_quiet(db, user, make_budget):
    service = make_service()
    await enable(db, user.id, budget_alerts=True)
    budget = await make_budget(user.id, total_amount=100, spent_amount=79)
    assert await service.handle_budget_update(db, budget) is None


async def test_transaction_reminder_only_when_quiet(db, user, make_transaction):
    service = make_service()
    await enable(db, user.id, transaction_reminders=True)

    reminder = await service.send_transaction_reminder(db, user.id)
    assert reminder.message == "Don't forget to log your recent transactions!"

    await make_transaction(user.id, -5, transaction_date=date.today() - timedelta(days=1))
    assert await service.send_transaction_reminder(db, user.id) is None


async def test_weekly_report_message(db, user, make_category, make_transaction):
    service = make_service()
    await enable(db, user.id, weekly_reports=True)
    food = await make_category(user.id, name="Food")
    today = date.today()
    await make_transaction(user.id, -75, category_id=food.id, transaction_date=today)
    await make_transaction(user.id, -50, category_id=food.id, transaction_date=today - timedelta(days=8))

    report = await service.send_weekly_report(db, user.id, today=today)

    assert report.title == "Weekly Spending Summary"
    assert "You spent $75.00 this week." in report.message
    assert "Top category: Food." in report.message
    assert "50% more than last week" in report.message


async def test_monthly_report_message(db, user, make_category, make_transaction):
    service = make_service()
    await enable(db, user.id, monthly_reports=True)
    rent = await make_category(user.id, name="Rent")
    today = date.today()
    await make_transaction(user.id, 1000, type=TransactionType.income, transaction_date=today.replace(day=1))
    await make_transaction(user.id, -400, category_id=rent.id, transaction_date=today.replace(day=1))

    report = await service.send_monthly_report(db, user.id, today=today)

    assert report.message == "Total Spent: $400.00. Saved: $600.00. Top Categories: Rent"


async def test_periodic_check_notifies_enabled_users(db, user, other_user):
    await enable(db, user.id, transaction_reminders=True)
    # other_user granted permission but did not opt in to reminders
    await enable(db, other_user.id)

    assert await get_user_ids_with_setting(db, "transaction_reminders") == [user.id]

    checks = PeriodicChecks(make_service(), session_factory=AsyncSessionLocal)
    assert await checks.run_check("transaction_reminders", checks.service.send_transaction_reminder) == 1

    result = await db.execute(select(Notification).where(Notification.type == "transaction_reminder"))
    assert [n.user_id for n in result.scalars().all()] == [user.id]


async def test_periodic_checks_start_and_stop():
    checks = PeriodicChecks(make_service())
    checks.start()
    assert len(checks.tasks) == 3
    await checks.stop()
    assert checks.tasks == []
