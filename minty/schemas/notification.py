from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid

class NotificationBase(BaseModel):
    title: str
    message: str
    type: str
    status: str
    budget_id: Optional[uuid.UUID] = None

class NotificationCreate(NotificationBase):
    user_id: uuid.UUID

class NotificationRead(NotificationBase):
    id: uuid.UUID
    user_id: uuid.UUID
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True

class NotificationSettingsRead(BaseModel):
    budget_alerts: bool
    transaction_reminders: bool
    weekly_reports: bool
    monthly_reports: bool
    email_notifications: bool
    push_notifications: bool

    class Config:
        from_attributes = True

class NotificationSettingsUpdate(BaseModel):
    budget_alerts: Optional[bool] = None
    transaction_reminders: Optional[bool] = None
    weekly_reports: Optional[bool] = None
    monthly_reports: Optional[bool] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
