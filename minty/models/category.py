# minty/models/category.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Boolean, Integer, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from minty.core.database import Base

class CategoryType(str, enum.Enum):
    income = "income"
    expense = "expense"

class Category(Base):
    __tablename__ = "categories"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(length=100), nullable=False)
    type = Column(Enum(CategoryType), default=CategoryType.expense, nullable=False)
    color = Column(String(length=20), nullable=False, default="#8884d8")
    # 0 means "no limit"
    monthly_limit = Column(Float, nullable=False, default=0.0)
    alert_enabled = Column(Boolean(), nullable=False, default=False)
    # Percentage of monthly_limit (1-100) at which the category is flagged
    alert_threshold = Column(Integer, nullable=False, default=90)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="categories")

    def __repr__(self):
        return f"<Category name={self.name} type={self.type} user_id={self.user_id}>"
