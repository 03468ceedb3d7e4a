# app/services/order.py
import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.decorator import ErrorCode, ServiceError
from app.models.order import Order, OrderItem

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, user_id: str, items: Sequence) -> Order:
        """
        Turn cart lines into a pending order with one item per line.

        ``items`` are cart line snapshots exposing ``course_id``, ``price``
        and ``title``. The order row is written before its items; when the
        items cannot be written the order is deleted again.

        Raises:
            ServiceError: EMPTY_CART when there are no items, PERSISTENCE_ERROR
                when the order or its items cannot be stored
        """
        if not items:
            raise ServiceError(ErrorCode.EMPTY_CART, "Your cart is empty", 400)

        total_amount = sum(item.price for item in items)

        order = Order(
            user_id=user_id,
            total_amount=total_amount,
            currency=settings.payment_currency,
            status="pending",
        )
        try:
            self.db.add(order)
            self.db.commit()
            self.db.refresh(order)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create order for {user_id}: {e}")
            raise ServiceError(ErrorCode.PERSISTENCE_ERROR, str(e), 500)

        order_id = order.id

        try:
            for item in items:
                self.db.add(
                    OrderItem(
                        order_id=order_id,
                        course_id=item.course_id,
                        price=item.price,
                        course_title=item.title,
                    )
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create items for order {order_id}: {e}")
            self._discard(order_id)
            raise ServiceError(ErrorCode.PERSISTENCE_ERROR, str(e), 500)

        self.db.refresh(order)
        logger.info(
            f"Order {order.id} created for {user_id}: {len(items)} item(s), total {total_amount}"
        )
        return order

    def _discard(self, order_id: int) -> None:
        try:
            self.db.query(Order).filter(Order.id == order_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not delete orphaned order {order_id}: {e}")

    def get_order(self, user_id: str, order_id: int) -> Order:
        order = (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.user_id == user_id)
            .first()
        )
        if not order:
            raise ServiceError(ErrorCode.NOT_FOUND, "Order not found", 404)
        return order

    def list_orders(self, user_id: str) -> List[Order]:
        return (
            self.db.query(Order)
            .filter(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    def cancel_order(self, user_id: str, order_id: int) -> Order:
        order = self.get_order(user_id, order_id)
        if order.status != "pending":
            raise ServiceError(
                ErrorCode.ORDER_NOT_PENDING,
                f"Order is {order.status} and can no longer be cancelled",
                409,
            )

        order.status = "cancelled"
        self.db.commit()
        self.db.refresh(order)

        logger.info(f"Order {order.id} cancelled by {user_id}")
        return order
