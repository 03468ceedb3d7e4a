# app/schemas/access.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class AccessCheckResponse(BaseModel):
    course_id: int
    has_access: bool


class CourseAccessGrant(BaseModel):
    user_id: str
    course_id: int
    access_type: Literal["purchased", "gifted", "promotional", "admin_granted"] = (
        "admin_granted"
    )
    expires_at: Optional[datetime] = None


class CourseAccessResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    course_id: int
    access_type: str
    expires_at: Optional[datetime] = None
    granted_at: datetime
