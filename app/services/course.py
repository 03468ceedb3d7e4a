# app/services/course.py
import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.decorator import ErrorCode, ServiceError
from app.models.course import Course
from app.models.order import OrderItem
from app.schemas.course import CourseCreate, CourseUpdate
from app.services.activity_log import ActivityLogService
from app.utils.file_upload import file_upload_service

logger = logging.getLogger(__name__)


class CourseService:
    def __init__(self, db: Session):
        self.db = db
        self.activity = ActivityLogService(db)

    def get_course(self, course_id: int) -> Optional[Course]:
        """Get a course by ID"""
        return self.db.query(Course).filter(Course.id == course_id).first()

    def get_course_or_404(self, course_id: int) -> Course:
        course = self.get_course(course_id)
        if not course:
            raise ServiceError(ErrorCode.NOT_FOUND, "Course not found", 404)
        return course

    def get_available_course(self, course_id: int) -> Course:
        """Course visible in the catalog (active and published)"""
        course = (
            self.db.query(Course)
            .filter(
                Course.id == course_id,
                Course.is_active.is_(True),
                Course.is_published.is_(True),
            )
            .first()
        )
        if not course:
            raise ServiceError(ErrorCode.NOT_FOUND, "Course not found", 404)
        return course

    def get_courses(
        self,
        page: int = 1,
        size: int = 20,
        category: Optional[str] = None,
        search: Optional[str] = None,
        include_inactive: bool = False,
    ) -> Tuple[List[Course], dict]:
        """Get list of courses with pagination and filters"""
        query = self.db.query(Course)

        if not include_inactive:
            query = query.filter(
                Course.is_active.is_(True), Course.is_published.is_(True)
            )

        if category:
            query = query.filter(Course.category == category)

        if search:
            search_pattern = f"%{search}%"
            query = query.filter(
                (Course.title.ilike(search_pattern))
                | (Course.description.ilike(search_pattern))
                | (Course.instructor_name.ilike(search_pattern))
            )

        total = query.count()

        offset = (page - 1) * size
        courses = (
            query.order_by(Course.created_at.desc(), Course.id.desc())
            .offset(offset)
            .limit(size)
            .all()
        )

        total_pages = math.ceil(total / size) if size > 0 else 0
        pagination = {
            "total": total,
            "page": page,
            "size": size,
            "total_pages": total_pages,
        }

        return courses, pagination

    def create_course(self, course_in: CourseCreate, admin_id: str) -> Course:
        """Create a new course (admin only)"""
        course = Course(**course_in.model_dump())

        self.db.add(course)
        self.db.flush()
        self.activity.log(
            admin_id,
            "CREATE",
            "COURSE",
            course.id,
            {"title": course.title, "price": course.price},
        )
        self.db.commit()
        self.db.refresh(course)

        logger.info(f"Course {course.id} created by {admin_id}")
        return course

    def update_course(
        self, course_id: int, course_in: CourseUpdate, admin_id: str
    ) -> Course:
        """Update a course (admin only)"""
        course = self.get_course_or_404(course_id)

        changes = course_in.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(course, field, value)

        self.activity.log(admin_id, "UPDATE", "COURSE", course.id, changes)
        self.db.commit()
        self.db.refresh(course)

        return course

    def toggle_active(self, course_id: int, admin_id: str) -> Course:
        course = self.get_course_or_404(course_id)
        course.is_active = not course.is_active

        self.activity.log(
            admin_id, "UPDATE", "COURSE", course.id, {"is_active": course.is_active}
        )
        self.db.commit()
        self.db.refresh(course)
        return course

    def delete_course(self, course_id: int, admin_id: str) -> bool:
        """Delete a course (admin only). Courses that were ordered can only be deactivated."""
        course = self.get_course_or_404(course_id)

        ordered = (
            self.db.query(OrderItem.id).filter(OrderItem.course_id == course_id).first()
        )
        if ordered:
            raise ServiceError(
                ErrorCode.VALIDATION_ERROR,
                "Course has orders and cannot be deleted. Deactivate it instead.",
                409,
            )

        if course.thumbnail_url and course.thumbnail_url.startswith("/storage/"):
            file_upload_service.delete_image(course.thumbnail_url[len("/storage/") :])

        self.activity.log(admin_id, "DELETE", "COURSE", course.id, {"title": course.title})
        self.db.delete(course)
        self.db.commit()

        logger.info(f"Course {course_id} deleted by {admin_id}")
        return True
