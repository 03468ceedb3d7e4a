from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.core.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Minor currency units (pence)
    price = Column(Integer, nullable=False, default=0)

    thumbnail_url = Column(Text, nullable=True)
    video_url = Column(Text, nullable=True)
    instructor_name = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True, index=True)
    level = Column(String(20), nullable=True)  # beginner, intermediate, advanced
    duration = Column(Integer, nullable=True)  # minutes

    is_active = Column(Boolean, default=True, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_available(self) -> bool:
        return bool(self.is_active and self.is_published)

    def __repr__(self):
        return f"Course(id={self.id}, title={self.title}, price={self.price})"
