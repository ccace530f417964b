# minty/schemas/budget.py
from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, Field, model_validator
import uuid

from minty.models.budget import BudgetType

class BudgetBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    type: BudgetType = BudgetType.monthly
    total_amount: float = Field(..., gt=0)
    start_date: date
    end_date: date

class BudgetCreate(BudgetBase):
    @model_validator(mode="after")
    def check_date_range(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self

class BudgetUpdate(BaseModel):
    """spent_amount is deliberately absent: only the ledger writes it."""
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[BudgetType] = None
    total_amount: Optional[float] = Field(None, gt=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

class BudgetRead(BudgetBase):
    id: uuid.UUID
    user_id: uuid.UUID
    spent_amount: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class BudgetLinkedCount(BaseModel):
    budget_id: uuid.UUID
    linked_transactions: int

class BudgetUtilization(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    type: Optional[str] = None
    spent: float
    limit: float
    utilization: float
    remaining: float
    status: str
    is_active: bool = True
