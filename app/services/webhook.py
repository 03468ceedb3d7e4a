# app/services/webhook.py
import json
import logging
from datetime import datetime, timezone
from typing import Optional

import stripe
from sqlalchemy.orm import Session

from app.core.database import insert_or_ignore
from app.core.decorator import ErrorCode, ServiceError
from app.models.order import Order
from app.models.purchase import Purchase
from app.models.stripe import StripeCustomer, StripePaymentMethod, StripeWebhookLog
from app.services.entitlement import EntitlementService
from app.utils.stripe_service import StripeService, stripe_service

logger = logging.getLogger(__name__)

LOGGED_ONLY_EVENTS = {
    "payment_intent.created",
    "charge.updated",
    "checkout.session.completed",
}


class WebhookService:
    """
    Applies Stripe events that arrive outside the synchronous payment path.

    Every verified delivery is written to the webhook log. Processing errors
    are recorded on that entry and never reach the caller.
    """

    def __init__(self, db: Session, processor: StripeService = stripe_service):
        self.db = db
        self.processor = processor

    def handle(self, payload: bytes, signature: Optional[str]) -> dict:
        if not signature:
            raise ServiceError(
                ErrorCode.VALIDATION_ERROR, "Webhook Error: missing signature", 400
            )

        try:
            self.processor.construct_event(payload, signature)
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning(f"Rejected webhook delivery: {e}")
            raise ServiceError(ErrorCode.VALIDATION_ERROR, f"Webhook Error: {e}", 400)

        event = json.loads(payload)
        event_type = event.get("type", "")
        logger.info(f"Stripe event {event.get('id')} received: {event_type}")

        processed = True
        error_message = None
        try:
            self.dispatch(event)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            processed = False
            error_message = str(e)
            logger.exception(f"Failed to process Stripe event {event.get('id')}")

        self.record(event, processed, error_message)
        return {"received": True}

    def dispatch(self, event: dict) -> None:
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == "payment_intent.succeeded":
            self.payment_intent_succeeded(obj)
        elif event_type == "payment_method.attached":
            self.payment_method_attached(obj)
        elif event_type == "charge.succeeded":
            self.charge_succeeded(obj)
        elif event_type in LOGGED_ONLY_EVENTS:
            logger.info(f"Stripe event {event_type} for {obj.get('id')} acknowledged")
        else:
            logger.info(f"Unhandled Stripe event type {event_type}")

    def record(
        self, event: dict, processed: bool, error_message: Optional[str]
    ) -> None:
        entry = StripeWebhookLog(
            stripe_event_id=event.get("id", ""),
            event_type=event.get("type", ""),
            processed=processed,
            data=event.get("data"),
            error_message=error_message,
        )
        if event.get("created"):
            entry.created_at = datetime.fromtimestamp(event["created"], tz=timezone.utc)

        try:
            self.db.add(entry)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Could not log Stripe event {event.get('id')}: {e}")

    def payment_intent_succeeded(self, intent: dict) -> None:
        metadata = intent.get("metadata") or {}
        order_id = metadata.get("order_id")
        user_id = metadata.get("user_id")
        if not order_id or not user_id:
            raise ValueError(f"Payment intent {intent.get('id')} has no order metadata")

        order = (
            self.db.query(Order)
            .filter(Order.id == int(order_id), Order.user_id == user_id)
            .first()
        )
        if not order:
            raise ValueError(f"Order {order_id} for user {user_id} not found")

        intent_id = intent.get("id")
        charge_id = intent.get("latest_charge")

        if order.status == "pending":
            order.stripe_payment_intent_id = intent_id
            order.stripe_customer_id = intent.get("customer") or order.stripe_customer_id
            order.stripe_charge_id = charge_id
            order.status = "completed"
            order.completed_at = datetime.now(timezone.utc)
            EntitlementService(self.db).grant_for_courses(
                user_id,
                order.course_ids,
                order_id=order.id,
                currency=order.currency,
                payment_intent_id=intent_id,
                charge_id=charge_id,
                prices={item.course_id: item.price for item in order.items},
            )
            logger.info(f"Order {order.id} completed from webhook")
        elif not order.stripe_charge_id and charge_id:
            order.stripe_charge_id = charge_id

        purchases = (
            self.db.query(Purchase)
            .filter(
                Purchase.user_id == user_id,
                Purchase.course_id.in_(order.course_ids),
            )
            .all()
        )
        for purchase in purchases:
            purchase.stripe_payment_intent_id = intent_id
            if charge_id:
                purchase.stripe_charge_id = charge_id
            if not purchase.order_id:
                purchase.order_id = order.id
            purchase.status = "completed"

    def payment_method_attached(self, payment_method: dict) -> None:
        customer_id = payment_method.get("customer")
        mapping = (
            self.db.query(StripeCustomer)
            .filter(StripeCustomer.stripe_customer_id == customer_id)
            .first()
        )
        if not mapping:
            raise ValueError(f"No user found for Stripe customer {customer_id}")

        card = payment_method.get("card") or {}
        values = {
            "user_id": mapping.user_id,
            "stripe_customer_id": customer_id,
            "stripe_payment_method_id": payment_method["id"],
            "type": payment_method.get("type", "card"),
            "card_brand": card.get("brand"),
            "card_last4": card.get("last4"),
            "card_exp_month": card.get("exp_month"),
            "card_exp_year": card.get("exp_year"),
            "is_default": False,
        }
        inserted = insert_or_ignore(
            self.db, StripePaymentMethod, values, ["stripe_payment_method_id"]
        )
        if not inserted:
            existing = (
                self.db.query(StripePaymentMethod)
                .filter(
                    StripePaymentMethod.stripe_payment_method_id == payment_method["id"]
                )
                .one()
            )
            for field, value in values.items():
                if field != "is_default":
                    setattr(existing, field, value)

    def charge_succeeded(self, charge: dict) -> None:
        intent_id = charge.get("payment_intent")
        if not intent_id:
            return

        order = (
            self.db.query(Order)
            .filter(Order.stripe_payment_intent_id == intent_id)
            .first()
        )
        if order and not order.stripe_charge_id:
            order.stripe_charge_id = charge.get("id")

        self.db.query(Purchase).filter(
            Purchase.stripe_payment_intent_id == intent_id,
            Purchase.stripe_charge_id.is_(None),
        ).update({"stripe_charge_id": charge.get("id")}, synchronize_session=False)
