# minty/models/user.py
# Note: User is defined in core/auth.py next to the fastapi-users wiring.
# Importing this module registers every mapped class on Base.metadata.

from minty.core.auth import User
from .category import Category
from .budget import Budget
from .transaction import Transaction
from .notification import Notification
from .profile import Profile
from .notification_settings import NotificationSettings

__all__ = [
    "User",
    "Category",
    "Budget",
    "Transaction",
    "Notification",
    "Profile",
    "NotificationSettings",
]
