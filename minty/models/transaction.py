# minty/models/transaction.py
import uuid
import enum
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Float, Date, DateTime, Enum, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from minty.core.database import Base

class TransactionType(str, enum.Enum):
    income = "income"
    expense = "expense"

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(length=255), nullable=False)
    # Signed: expenses are stored negative, income positive
    amount = Column(Float, nullable=False)
    type = Column(Enum(TransactionType), nullable=False)
    # Deleting a category leaves its transactions in place ("Uncategorized")
    category_id = Column(PG_UUID(as_uuid=True), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    budget_id = Column(PG_UUID(as_uuid=True), ForeignKey("budgets.id", ondelete="SET NULL"), nullable=True, index=True)
    transaction_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=False, default="")
    # Comma-joined tag list
    tags = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="transactions")
    category = relationship("Category", lazy="joined")

    def __repr__(self):
        return f"<Transaction {self.type} amount={self.amount} date={self.transaction_date} user_id={self.user_id}>"
