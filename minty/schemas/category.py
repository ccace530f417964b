# minty/schemas/category.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
import uuid

from minty.models.category import CategoryType

class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType = CategoryType.expense
    color: str = "#8884d8"
    monthly_limit: float = Field(0.0, ge=0, description="0 means no limit")
    alert_enabled: bool = False
    alert_threshold: int = Field(90, ge=1, le=100, description="Percent of monthly_limit that triggers a warning")

class CategoryCreate(CategoryBase):
    pass

class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: Optional[CategoryType] = None
    color: Optional[str] = None
    monthly_limit: Optional[float] = Field(None, ge=0)
    alert_enabled: Optional[bool] = None
    alert_threshold: Optional[int] = Field(None, ge=1, le=100)

class CategoryRead(CategoryBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CategoryStats(BaseModel):
    category_id: uuid.UUID
    name: str
    type: CategoryType
    transaction_count: int
    total: float
    monthly_limit: float
    remaining: Optional[float] = None
    percentage: float
    status: str
