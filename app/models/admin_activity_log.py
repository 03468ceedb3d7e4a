from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.core.database import Base


class AdminActivityLog(Base):
    __tablename__ = "admin_activity_log"

    id = Column(Integer, primary_key=True, index=True)
    admin_user_id = Column(String(64), nullable=False, index=True)
    action_type = Column(String(20), nullable=False)  # CREATE, UPDATE, DELETE
    resource_type = Column(String(20), nullable=False)  # COURSE, VIDEO, ORDER, USER, ACCESS
    resource_id = Column(String(64), nullable=False)
    details = Column(JSON, nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
