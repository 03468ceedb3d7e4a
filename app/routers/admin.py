# app/routers/admin.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.dependencies import get_current_admin, get_current_superadmin
from app.models.profile import Profile
from app.schemas.access import CourseAccessGrant, CourseAccessResponse
from app.schemas.admin import (
    ActivityLogListResponse,
    ActivityLogResponse,
    ConfigurationStatusResponse,
    DashboardStatsResponse,
)
from app.schemas.common import MessageResponse
from app.schemas.course import (
    AdminCourseListResponse,
    CourseCreate,
    CourseResponse,
    CourseUpdate,
)
from app.schemas.course_video import (
    CourseVideoCreate,
    CourseVideoResponse,
    CourseVideoUpdate,
)
from app.schemas.order import (
    AdminOrderListResponse,
    AdminOrderResponse,
    OrderStatusUpdate,
)
from app.schemas.profile import ProfileListResponse, ProfileResponse, ProfileRoleUpdate
from app.services.activity_log import ActivityLogService
from app.services.admin import AdminService, get_configuration_status
from app.services.course import CourseService
from app.services.course_video import CourseVideoService
from app.services.profile import ProfileService

router = APIRouter(prefix="/admin", tags=["Admin"])

PageQuery = Query(1, ge=1)
SizeQuery = Query(settings.default_page_size, ge=1, le=settings.max_page_size)


@router.get("/dashboard", response_model=DashboardStatsResponse)
def get_dashboard(
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return AdminService(db).get_dashboard_stats()


# ==================== Courses ====================


@router.get("/courses", response_model=AdminCourseListResponse)
def list_courses(
    page: int = PageQuery,
    size: int = SizeQuery,
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    """All courses, including inactive and unpublished ones"""
    courses, pagination = CourseService(db).get_courses(
        page=page, size=size, category=category, search=search, include_inactive=True
    )
    return AdminCourseListResponse(
        courses=[CourseResponse.model_validate(c) for c in courses], **pagination
    )


@router.post("/courses", response_model=CourseResponse, status_code=201)
def create_course(
    course_in: CourseCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseService(db).create_course(course_in, admin.id)


@router.get("/courses/{course_id}", response_model=CourseResponse)
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseService(db).get_course_or_404(course_id)


@router.put("/courses/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    course_in: CourseUpdate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseService(db).update_course(course_id, course_in, admin.id)


@router.patch("/courses/{course_id}/toggle", response_model=CourseResponse)
def toggle_course(
    course_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseService(db).toggle_active(course_id, admin.id)


@router.delete("/courses/{course_id}", response_model=MessageResponse)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    CourseService(db).delete_course(course_id, admin.id)
    return MessageResponse(message="Course deleted")


# ==================== Course videos ====================


@router.get("/courses/{course_id}/videos", response_model=List[CourseVideoResponse])
def list_videos(
    course_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseVideoService(db).get_videos(course_id)


@router.post(
    "/courses/{course_id}/videos", response_model=CourseVideoResponse, status_code=201
)
def add_video(
    course_id: int,
    video_in: CourseVideoCreate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseVideoService(db).add_video(course_id, video_in, admin.id)


@router.put("/courses/{course_id}/videos/{video_id}", response_model=CourseVideoResponse)
def update_video(
    course_id: int,
    video_id: int,
    video_in: CourseVideoUpdate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseVideoService(db).update_video(course_id, video_id, video_in, admin.id)


@router.patch(
    "/courses/{course_id}/videos/{video_id}/toggle", response_model=CourseVideoResponse
)
def toggle_video(
    course_id: int,
    video_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return CourseVideoService(db).toggle_video(course_id, video_id, admin.id)


@router.delete("/courses/{course_id}/videos/{video_id}", response_model=MessageResponse)
def delete_video(
    course_id: int,
    video_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    CourseVideoService(db).delete_video(course_id, video_id, admin.id)
    return MessageResponse(message="Video deleted")


# ==================== Orders ====================


@router.get("/orders", response_model=AdminOrderListResponse)
def list_orders(
    page: int = PageQuery,
    size: int = SizeQuery,
    status: Optional[Literal["pending", "completed", "cancelled", "failed"]] = Query(None),
    search: Optional[str] = Query(None, description="Email, course title or order id"),
    sort_by: Literal["created_at", "total_amount", "status"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    orders, pagination = AdminService(db).get_orders(
        page=page,
        size=size,
        status=status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return AdminOrderListResponse(
        orders=[AdminOrderResponse.model_validate(o) for o in orders], **pagination
    )


@router.get("/orders/{order_id}", response_model=AdminOrderResponse)
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return AdminService(db).get_order(order_id)


@router.patch("/orders/{order_id}/status", response_model=AdminOrderResponse)
def update_order_status(
    order_id: int,
    status_in: OrderStatusUpdate,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return AdminService(db).update_order_status(order_id, status_in.status, admin.id)


# ==================== Users and access ====================


@router.get("/users", response_model=ProfileListResponse)
def list_users(
    page: int = PageQuery,
    size: int = SizeQuery,
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    profiles, pagination = ProfileService(db).get_profiles(
        page=page, size=size, search=search
    )
    return ProfileListResponse(
        users=[ProfileResponse.model_validate(p) for p in profiles], **pagination
    )


@router.patch("/users/{profile_id}/role", response_model=ProfileResponse)
def change_role(
    profile_id: str,
    role_in: ProfileRoleUpdate,
    db: Session = Depends(get_db),
    superadmin: Profile = Depends(get_current_superadmin),
):
    return AdminService(db).change_role(profile_id, role_in.role, superadmin)


@router.post("/access", response_model=CourseAccessResponse, status_code=201)
def grant_access(
    grant: CourseAccessGrant,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    return AdminService(db).grant_access(grant, admin.id)


@router.delete("/access/{profile_id}/{course_id}", response_model=MessageResponse)
def revoke_access(
    profile_id: str,
    course_id: int,
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    AdminService(db).revoke_access(profile_id, course_id, admin.id)
    return MessageResponse(message="Access revoked")


# ==================== Audit and configuration ====================


@router.get("/activity", response_model=ActivityLogListResponse)
def list_activity(
    page: int = PageQuery,
    size: int = Query(50, ge=1, le=settings.max_page_size),
    resource_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: Profile = Depends(get_current_admin),
):
    entries, pagination = ActivityLogService(db).get_entries(
        page=page, size=size, resource_type=resource_type
    )
    return ActivityLogListResponse(
        entries=[ActivityLogResponse.model_validate(e) for e in entries], **pagination
    )


@router.get("/configuration", response_model=ConfigurationStatusResponse)
def get_configuration(admin: Profile = Depends(get_current_admin)):
    """Which integrations are configured. Secret values are never returned."""
    return get_configuration_status()
