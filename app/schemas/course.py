# app/schemas/course.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ==================== Course Schemas ====================


class CourseBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: int = Field(..., ge=0, description="Price in minor currency units")
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    instructor_name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    level: Optional[Literal["beginner", "intermediate", "advanced"]] = None
    duration: Optional[int] = Field(None, ge=0)
    is_active: bool = True
    is_published: bool = True


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    instructor_name: Optional[str] = Field(None, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    level: Optional[Literal["beginner", "intermediate", "advanced"]] = None
    duration: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    is_published: Optional[bool] = None


class CourseResponse(CourseBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    updated_at: datetime


class CoursePublicResponse(BaseModel):
    """Catalog view of a course. The video URL is only exposed through the content route."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    price: int
    thumbnail_url: Optional[str] = None
    instructor_name: Optional[str] = None
    category: Optional[str] = None
    level: Optional[str] = None
    duration: Optional[int] = None
    created_at: datetime
    has_access: Optional[bool] = None


class CourseListResponse(BaseModel):
    courses: List[CoursePublicResponse]
    total: int
    page: int
    size: int
    total_pages: int


class AdminCourseListResponse(BaseModel):
    courses: List[CourseResponse]
    total: int
    page: int
    size: int
    total_pages: int
