# minty/models/budget.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Date, DateTime, Enum
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from minty.core.database import Base

class BudgetType(str, enum.Enum):
    monthly = "monthly"
    goal = "goal"
    event = "event"
    savings = "savings"

class Budget(Base):
    __tablename__ = "budgets"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(length=150), nullable=False)
    type = Column(Enum(BudgetType), default=BudgetType.monthly, nullable=False)
    total_amount = Column(Float, nullable=False)
    # Running total of linked expense transactions, maintained by minty.utils.ledger
    spent_amount = Column(Float, nullable=False, default=0.0)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="budgets")

    def __repr__(self):
        return f"<Budget name={self.name} spent={self.spent_amount}/{self.total_amount} user_id={self.user_id}>"
