# app/models/relations.py

from sqlalchemy.orm import relationship

from .cart_item import CartItem
from .course import Course
from .course_access import CourseAccess
from .course_video import CourseVideo
from .order import Order, OrderItem
from .profile import Profile
from .purchase import Purchase


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # 1. Order to Items (One-to-Many)
    Order.items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    OrderItem.order = relationship("Order", back_populates="items")

    # 2. Profile to Orders (One-to-Many)
    Profile.orders = relationship("Order", back_populates="user")
    Order.user = relationship("Profile", back_populates="orders")

    # 3. Course to Videos (One-to-Many)
    Course.videos = relationship(
        "CourseVideo",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CourseVideo.order_index",
    )
    CourseVideo.course = relationship("Course", back_populates="videos")

    # 4. Lines that point at a course (read side only)
    CartItem.course = relationship("Course")
    OrderItem.course = relationship("Course")
    CourseAccess.course = relationship("Course")
    Purchase.course = relationship("Course")

    # 5. Profile to Access grants
    Profile.course_access = relationship(
        "CourseAccess",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
