# app/services/payment.py
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import insert_or_ignore
from app.core.decorator import ErrorCode, ServiceError
from app.models.order import Order
from app.models.profile import Profile
from app.models.stripe import StripeCustomer
from app.services.entitlement import EntitlementService
from app.utils.stripe_service import StripeService, stripe_service

logger = logging.getLogger(__name__)


def _charge_id(intent) -> Optional[str]:
    charge = getattr(intent, "latest_charge", None)
    if charge is None or isinstance(charge, str):
        return charge
    return getattr(charge, "id", None)


class PaymentService:
    """
    Pays a pending order synchronously.

    Steps run in order and a failing step raises its own error code.
    Earlier steps are not undone, so a failure after confirmation leaves a
    charge without a completed order until the webhook reconciles it.
    """

    def __init__(self, db: Session, processor: StripeService = stripe_service):
        self.db = db
        self.processor = processor

    def pay_order(
        self, profile: Profile, order_id: int, payment_method_id: Optional[str] = None
    ) -> Order:
        order = (
            self.db.query(Order)
            .filter(Order.id == order_id, Order.user_id == profile.id)
            .first()
        )
        if not order:
            raise ServiceError(ErrorCode.NOT_FOUND, "Order not found", 404)
        if order.status != "pending":
            raise ServiceError(
                ErrorCode.ORDER_NOT_PENDING, f"Order is already {order.status}", 409
            )

        customer_id = self.resolve_customer(profile)

        try:
            intent = self.processor.create_payment_intent(
                amount=order.total_amount,
                currency=order.currency,
                customer_id=customer_id,
                metadata={"order_id": str(order.id), "user_id": profile.id},
            )
        except Exception as e:
            logger.error(f"Payment intent creation failed for order {order.id}: {e}")
            raise ServiceError(ErrorCode.INTENT_CREATE_FAILED, str(e), 502)

        return_url = f"{settings.base_url.rstrip('/')}/order/success?order_id={order.id}"
        try:
            confirmed = self.processor.confirm_payment_intent(
                intent.id,
                payment_method=payment_method_id or settings.stripe_confirm_payment_method,
                return_url=return_url,
            )
        except Exception as e:
            logger.error(f"Payment confirmation failed for order {order.id}: {e}")
            raise ServiceError(ErrorCode.CONFIRM_FAILED, str(e), 402)

        if confirmed.status != "succeeded":
            logger.warning(
                f"Payment intent {confirmed.id} for order {order.id} ended as {confirmed.status}"
            )
            raise ServiceError(
                ErrorCode.CONFIRM_FAILED,
                f"Payment was not completed (status: {confirmed.status})",
                402,
            )

        charge_id = _charge_id(confirmed)
        try:
            order.stripe_payment_intent_id = confirmed.id
            order.stripe_customer_id = customer_id
            order.stripe_charge_id = charge_id
            order.status = "completed"
            order.completed_at = datetime.now(timezone.utc)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not complete order {order_id} after payment: {e}")
            raise ServiceError(ErrorCode.ORDER_UPDATE_FAILED, str(e), 500)

        try:
            EntitlementService(self.db).grant_for_courses(
                profile.id,
                order.course_ids,
                order_id=order.id,
                currency=order.currency,
                payment_intent_id=confirmed.id,
                charge_id=charge_id,
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not grant entitlement for order {order_id}: {e}")
            raise ServiceError(ErrorCode.PERSISTENCE_ERROR, str(e), 500)

        self.db.refresh(order)
        logger.info(f"Order {order.id} paid with intent {confirmed.id}")
        return order

    def resolve_customer(self, profile: Profile) -> str:
        """Stored Stripe customer for the profile, created on first payment."""
        existing = (
            self.db.query(StripeCustomer)
            .filter(StripeCustomer.user_id == profile.id)
            .first()
        )
        if existing:
            return existing.stripe_customer_id

        try:
            customer = self.processor.create_customer(
                email=profile.email, name=profile.full_name, user_id=profile.id
            )
            insert_or_ignore(
                self.db,
                StripeCustomer,
                {
                    "user_id": profile.id,
                    "stripe_customer_id": customer.id,
                    "email": profile.email,
                    "name": profile.full_name,
                },
                ["user_id"],
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Stripe customer creation failed for {profile.id}: {e}")
            raise ServiceError(ErrorCode.CUSTOMER_CREATE_FAILED, str(e), 502)

        # A concurrent payment may have stored its customer first
        stored = (
            self.db.query(StripeCustomer.stripe_customer_id)
            .filter(StripeCustomer.user_id == profile.id)
            .scalar()
        )
        return stored or customer.id
