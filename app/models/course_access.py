# app/models/course_access.py
from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from app.core.database import Base

ACCESS_TYPES = ("purchased", "gifted", "promotional", "admin_granted")


class CourseAccess(Base):
    """
    Content entitlement for a (user, course) pair.
    Optionally time-bounded through ``expires_at``.
    """

    __tablename__ = "course_access"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_course_access_user_course"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    access_type = Column(String(20), nullable=False, default="purchased")
    expires_at = Column(DateTime(timezone=True), nullable=True)
    granted_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<CourseAccess(user_id='{self.user_id}', course_id={self.course_id}, type={self.access_type})>"
