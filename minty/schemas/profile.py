# minty/schemas/profile.py
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
import uuid

class ProfileRead(BaseModel):
    id: uuid.UUID
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    currency: str
    date_format: str
    language: str
    theme: str
    timezone: str
    week_start_day: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    date_format: Optional[str] = None
    language: Optional[str] = None
    theme: Optional[str] = Field(None, pattern="^(light|dark|system)$")
    timezone: Optional[str] = None
    week_start_day: Optional[int] = Field(None, ge=0, le=6)
