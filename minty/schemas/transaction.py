# minty/schemas/transaction.py
from typing import List, Optional, Union
from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
import uuid

from minty.models.transaction import TransactionType


def split_tags(value: Union[str, List[str], None]) -> List[str]:
    """Accept a comma-joined string or a list and return clean, non-empty tags."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [tag.strip() for tag in value if tag and tag.strip()]


class TransactionBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=255, description="E.g. Grocery at Costco")
    amount: float = Field(..., description="Magnitude; the sign is derived from type")
    type: TransactionType
    category_id: uuid.UUID
    budget_id: Optional[uuid.UUID] = None
    transaction_date: date = Field(..., description="ISO 8601 date of the transaction")
    notes: str = ""
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return split_tags(value)

    @field_validator("description", "notes")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

class TransactionCreate(TransactionBase):
    @field_validator("amount")
    @classmethod
    def non_zero_amount(cls, value: float) -> float:
        if value == 0:
            raise ValueError("amount must not be zero")
        return value

class TransactionUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = None
    type: Optional[TransactionType] = None
    category_id: Optional[uuid.UUID] = None
    budget_id: Optional[uuid.UUID] = None
    transaction_date: Optional[date] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        if value is None:
            return None
        return split_tags(value)

    @field_validator("amount")
    @classmethod
    def non_zero_amount(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and value == 0:
            raise ValueError("amount must not be zero")
        return value

class TransactionRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    description: str
    amount: float
    type: TransactionType
    category_id: Optional[uuid.UUID] = None
    budget_id: Optional[uuid.UUID] = None
    transaction_date: date
    notes: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return split_tags(value)

    class Config:
        from_attributes = True
