# app/services/access.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.database import insert_or_ignore
from app.core.decorator import ErrorCode, ServiceError
from app.models.course import Course
from app.models.course_access import CourseAccess
from app.models.course_video import CourseVideo
from app.models.profile import Profile
from app.models.purchase import Purchase

logger = logging.getLogger(__name__)


def _is_expired(expires_at: Optional[datetime]) -> bool:
    if expires_at is None:
        return False
    # SQLite hands back naive datetimes; they are stored as UTC
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    return expires_at < datetime.now(timezone.utc)


class AccessService:
    def __init__(self, db: Session):
        self.db = db

    def has_access(self, user_id: str, course_id: int) -> bool:
        """
        Whether a user may view a course's content.

        An access grant decides on its own (expired grants deny). Without a
        grant, a completed purchase allows access and a purchased grant is
        derived from it.
        """
        grant = (
            self.db.query(CourseAccess)
            .filter(CourseAccess.user_id == user_id, CourseAccess.course_id == course_id)
            .first()
        )
        if grant:
            return not _is_expired(grant.expires_at)

        purchase = (
            self.db.query(Purchase.id)
            .filter(
                Purchase.user_id == user_id,
                Purchase.course_id == course_id,
                Purchase.status == "completed",
            )
            .first()
        )
        if not purchase:
            return False

        created = insert_or_ignore(
            self.db,
            CourseAccess,
            {"user_id": user_id, "course_id": course_id, "access_type": "purchased"},
            ["user_id", "course_id"],
        )
        self.db.commit()
        if created:
            logger.info(f"Derived access grant for {user_id} on course {course_id}")
        return True

    def list_accessible_courses(self, user_id: str) -> List[Course]:
        grants = (
            self.db.query(CourseAccess)
            .filter(CourseAccess.user_id == user_id)
            .all()
        )
        granted = {g.course_id for g in grants if not _is_expired(g.expires_at)}
        denied = {g.course_id for g in grants if _is_expired(g.expires_at)}

        purchased = {
            course_id
            for (course_id,) in self.db.query(Purchase.course_id).filter(
                Purchase.user_id == user_id, Purchase.status == "completed"
            )
        }

        course_ids = granted | (purchased - denied)
        if not course_ids:
            return []

        return (
            self.db.query(Course)
            .filter(Course.id.in_(course_ids))
            .order_by(Course.title)
            .all()
        )

    def get_content(self, profile: Profile, course_id: int) -> dict:
        """
        Video content of a course for a user with access (admins always see it).

        Raises:
            ServiceError: NOT_FOUND for unknown courses, UNAUTHORIZED without access
        """
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise ServiceError(ErrorCode.NOT_FOUND, "Course not found", 404)

        if not profile.is_admin and not self.has_access(profile.id, course_id):
            raise ServiceError(
                ErrorCode.UNAUTHORIZED,
                "You need to purchase this course to view its content",
                403,
            )

        videos = (
            self.db.query(CourseVideo)
            .filter(CourseVideo.course_id == course_id, CourseVideo.is_active.is_(True))
            .order_by(CourseVideo.order_index, CourseVideo.id)
            .all()
        )
        return {
            "course_id": course.id,
            "title": course.title,
            "video_url": course.video_url,
            "videos": videos,
        }
