from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from app.core.database import Base


class CartItem(Base):
    """
    A course waiting in a user's cart.
    Course fields are snapshotted when the line is added.
    """

    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_cart_items_user_course"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        String(64), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Snapshot
    price = Column(Integer, nullable=False)
    title = Column(String(255), nullable=False)
    thumbnail_url = Column(Text, nullable=True)
    instructor_name = Column(String(255), nullable=True)

    added_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<CartItem(user_id='{self.user_id}', course_id={self.course_id}, price={self.price})>"
