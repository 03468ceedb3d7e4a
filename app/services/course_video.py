# app/services/course_video.py
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.decorator import ErrorCode, ServiceError
from app.models.course import Course
from app.models.course_video import CourseVideo
from app.schemas.course_video import CourseVideoCreate, CourseVideoUpdate
from app.services.activity_log import ActivityLogService


class CourseVideoService:
    def __init__(self, db: Session):
        self.db = db
        self.activity = ActivityLogService(db)

    def _get_course(self, course_id: int) -> Course:
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise ServiceError(ErrorCode.NOT_FOUND, "Course not found", 404)
        return course

    def _get_video(self, course_id: int, video_id: int) -> CourseVideo:
        video = (
            self.db.query(CourseVideo)
            .filter(CourseVideo.id == video_id, CourseVideo.course_id == course_id)
            .first()
        )
        if not video:
            raise ServiceError(ErrorCode.NOT_FOUND, "Video not found", 404)
        return video

    def get_videos(
        self, course_id: int, include_inactive: bool = True
    ) -> List[CourseVideo]:
        self._get_course(course_id)
        query = self.db.query(CourseVideo).filter(CourseVideo.course_id == course_id)
        if not include_inactive:
            query = query.filter(CourseVideo.is_active.is_(True))
        return query.order_by(CourseVideo.order_index, CourseVideo.id).all()

    def add_video(
        self, course_id: int, video_in: CourseVideoCreate, admin_id: str
    ) -> CourseVideo:
        self._get_course(course_id)

        order_index = video_in.order_index
        if order_index is None:
            last_index = (
                self.db.query(func.max(CourseVideo.order_index))
                .filter(CourseVideo.course_id == course_id)
                .scalar()
            )
            order_index = (last_index or 0) + 1

        video = CourseVideo(
            course_id=course_id,
            title=video_in.title,
            url=video_in.url,
            duration=video_in.duration,
            order_index=order_index,
            is_active=video_in.is_active,
        )
        self.db.add(video)
        self.db.flush()

        self.activity.log(
            admin_id,
            "CREATE",
            "VIDEO",
            video.id,
            {"course_id": course_id, "title": video.title, "url": video.url},
        )
        self.db.commit()
        self.db.refresh(video)
        return video

    def update_video(
        self,
        course_id: int,
        video_id: int,
        video_in: CourseVideoUpdate,
        admin_id: str,
    ) -> CourseVideo:
        video = self._get_video(course_id, video_id)

        changes = video_in.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(video, field, value)

        self.activity.log(
            admin_id, "UPDATE", "VIDEO", video.id, {"course_id": course_id, **changes}
        )
        self.db.commit()
        self.db.refresh(video)
        return video

    def toggle_video(self, course_id: int, video_id: int, admin_id: str) -> CourseVideo:
        video = self._get_video(course_id, video_id)
        video.is_active = not video.is_active

        self.activity.log(
            admin_id,
            "UPDATE",
            "VIDEO",
            video.id,
            {"course_id": course_id, "is_active": video.is_active},
        )
        self.db.commit()
        self.db.refresh(video)
        return video

    def delete_video(self, course_id: int, video_id: int, admin_id: str) -> bool:
        video = self._get_video(course_id, video_id)

        self.activity.log(admin_id, "DELETE", "VIDEO", video.id, {"course_id": course_id})
        self.db.delete(video)
        self.db.commit()
        return True
