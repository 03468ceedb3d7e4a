# app/services/cart.py
import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.database import insert_or_ignore
from app.core.decorator import ErrorCode, ServiceError
from app.models.cart_item import CartItem
from app.models.course import Course
from app.services.access import AccessService

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: str) -> List[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .order_by(CartItem.added_at, CartItem.id)
            .all()
        )

    def add_to_cart(self, user_id: str, course_id: int) -> CartItem:
        """
        Add a course to the user's cart, snapshotting its price and details.

        Raises:
            ServiceError: NOT_FOUND, ALREADY_OWNED or ALREADY_IN_CART
        """
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

        if AccessService(self.db).has_access(user_id, course_id):
            raise ServiceError(
                ErrorCode.ALREADY_OWNED, "You already own this course", 409
            )

        inserted = insert_or_ignore(
            self.db,
            CartItem,
            {
                "user_id": user_id,
                "course_id": course.id,
                "price": course.price,
                "title": course.title,
                "thumbnail_url": course.thumbnail_url,
                "instructor_name": course.instructor_name,
            },
            ["user_id", "course_id"],
        )
        if not inserted:
            self.db.rollback()
            raise ServiceError(
                ErrorCode.ALREADY_IN_CART, "Course already in cart", 409
            )

        self.db.commit()
        logger.info(f"Course {course_id} added to cart of {user_id}")

        return (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.course_id == course_id)
            .one()
        )

    def remove_from_cart(self, user_id: str, course_id: int) -> bool:
        deleted = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.course_id == course_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def clear_cart(self, user_id: str) -> int:
        deleted = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def get_cart(self, user_id: str) -> dict:
        items = self.get_items(user_id)
        return {
            "items": items,
            "total": sum(item.price for item in items),
            "count": len(items),
        }

    def get_cart_count(self, user_id: str) -> int:
        return self.db.query(CartItem).filter(CartItem.user_id == user_id).count()
