# app/schemas/profile.py

from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    avatar_url: Optional[str] = None
    role: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    date_of_birth: Optional[date] = None
    avatar_url: Optional[str] = None


class ProfileRoleUpdate(BaseModel):
    role: Literal["user", "admin", "superadmin"]


class ProfileListResponse(BaseModel):
    users: List[ProfileResponse]
    total: int
    page: int
    size: int
    total_pages: int
