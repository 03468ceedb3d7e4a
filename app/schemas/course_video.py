# app/schemas/course_video.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CourseVideoCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1)
    duration: int = Field(0, ge=0, description="Duration in seconds")
    order_index: Optional[int] = Field(None, ge=1)
    is_active: bool = True


class CourseVideoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, min_length=1)
    duration: Optional[int] = Field(None, ge=0)
    order_index: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class CourseVideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    title: str
    url: str
    duration: int
    order_index: int
    is_active: bool
    created_at: datetime


class CourseContentResponse(BaseModel):
    course_id: int
    title: str
    video_url: Optional[str] = None
    videos: List[CourseVideoResponse]
