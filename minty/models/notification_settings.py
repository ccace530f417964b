# minty/models/notification_settings.py
from datetime import datetime
from sqlalchemy import Column, ForeignKey, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from minty.core.database import Base

class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    budget_alerts = Column(Boolean, nullable=False, default=False)
    transaction_reminders = Column(Boolean, nullable=False, default=False)
    weekly_reports = Column(Boolean, nullable=False, default=False)
    monthly_reports = Column(Boolean, nullable=False, default=False)
    email_notifications = Column(Boolean, nullable=False, default=False)
    # Permission gate: nothing is delivered unless this is on
    push_notifications = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
