from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from app.core.database import Base

ORDER_STATUSES = ("pending", "completed", "cancelled", "failed")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)

    total_amount = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=False, default="gbp")
    status = Column(String(20), nullable=False, default="pending", index=True)

    # Processor references
    stripe_payment_intent_id = Column(String(255), nullable=True, index=True)
    stripe_customer_id = Column(String(255), nullable=True)
    stripe_charge_id = Column(String(255), nullable=True)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def course_ids(self) -> list:
        return [item.course_id for item in self.items]

    def __repr__(self):
        return f"<Order(id={self.id}, user_id='{self.user_id}', total={self.total_amount}, status='{self.status}')>"


class OrderItem(Base):
    """Immutable snapshot of a cart line at order creation time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    price = Column(Integer, nullable=False)
    course_title = Column(String(255), nullable=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self):
        return f"<OrderItem(order_id={self.order_id}, course_id={self.course_id}, price={self.price})>"
