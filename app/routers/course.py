# app/routers/course.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_profile, get_optional_profile
from app.models.profile import Profile
from app.schemas.access import AccessCheckResponse
from app.schemas.course import CourseListResponse, CoursePublicResponse
from app.schemas.course_video import CourseContentResponse
from app.services.access import AccessService
from app.services.course import CourseService

router = APIRouter(
    prefix="/courses",
    tags=["Courses"],
    responses={404: {"description": "Not found"}},
)


@router.get("/", response_model=CourseListResponse)
def get_courses(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Items per page",
    ),
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search in title, description and instructor"),
    db: Session = Depends(get_db),
    current_profile: Optional[Profile] = Depends(get_optional_profile),
):
    """
    Catalog of active, published courses.
    Signed-in users also get ``has_access`` on each course.
    """
    courses, pagination = CourseService(db).get_courses(
        page=page, size=size, category=category, search=search
    )

    access_service = AccessService(db)
    items = []
    for course in courses:
        item = CoursePublicResponse.model_validate(course)
        if current_profile:
            item.has_access = access_service.has_access(current_profile.id, course.id)
        items.append(item)

    return CourseListResponse(courses=items, **pagination)


@router.get("/{course_id}", response_model=CoursePublicResponse)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_profile: Optional[Profile] = Depends(get_optional_profile),
):
    course = CourseService(db).get_available_course(course_id)
    item = CoursePublicResponse.model_validate(course)
    if current_profile:
        item.has_access = AccessService(db).has_access(current_profile.id, course.id)
    return item


@router.get("/{course_id}/access", response_model=AccessCheckResponse)
def check_course_access(
    course_id: int,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return AccessCheckResponse(
        course_id=course_id,
        has_access=AccessService(db).has_access(profile.id, course_id),
    )


@router.get("/{course_id}/content", response_model=CourseContentResponse)
def get_course_content(
    course_id: int,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Video content, only for users with access"""
    return AccessService(db).get_content(profile, course_id)
