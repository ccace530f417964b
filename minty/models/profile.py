# minty/models/profile.py
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Integer, DateTime
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from minty.core.database import Base

class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the owning user
    id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    currency = Column(String(length=3), nullable=False, default="USD")
    date_format = Column(String(length=20), nullable=False, default="MM/dd/yyyy")
    language = Column(String(length=10), nullable=False, default="en")
    theme = Column(String(length=10), nullable=False, default="system")
    timezone = Column(String(length=64), nullable=False, default="UTC")
    week_start_day = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Profile id={self.id} currency={self.currency}>"
