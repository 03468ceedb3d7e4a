# app/services/entitlement.py
import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from app.core.config import settings
from app.core.database import insert_or_ignore, upsert
from app.models.cart_item import CartItem
from app.models.course import Course
from app.models.course_access import CourseAccess
from app.models.purchase import Purchase

logger = logging.getLogger(__name__)


class EntitlementService:
    """
    Writes access grants and purchase records for paid courses.

    Writes are keyed on (user_id, course_id), so the synchronous payment
    path and the webhook can both call it safely. A paid course always ends
    with a permanent ``purchased`` grant, replacing any earlier gifted,
    promotional or expired one. Callers own the commit.
    """

    def __init__(self, db: Session):
        self.db = db

    def grant_for_courses(
        self,
        user_id: str,
        course_ids: Iterable[int],
        order_id: Optional[int] = None,
        currency: Optional[str] = None,
        payment_intent_id: Optional[str] = None,
        charge_id: Optional[str] = None,
        prices: Optional[Dict[int, int]] = None,
    ) -> None:
        """
        Grant purchased access to ``course_ids`` and record completed purchases.

        Without ``prices`` the purchase amount is the course's current price,
        which can differ from the order item price if it changed since checkout.
        """
        course_ids = list(dict.fromkeys(course_ids))
        if not course_ids:
            return

        for course_id in course_ids:
            upsert(
                self.db,
                CourseAccess,
                {
                    "user_id": user_id,
                    "course_id": course_id,
                    "access_type": "purchased",
                },
                ["user_id", "course_id"],
                update={
                    "access_type": "purchased",
                    "expires_at": None,
                    "granted_at": func.now(),
                },
            )

        if prices is None:
            prices = dict(
                self.db.query(Course.id, Course.price)
                .filter(Course.id.in_(course_ids))
                .all()
            )
        currency = currency or settings.payment_currency

        for course_id in course_ids:
            inserted = insert_or_ignore(
                self.db,
                Purchase,
                {
                    "user_id": user_id,
                    "course_id": course_id,
                    "order_id": order_id,
                    "amount_paid": prices.get(course_id, 0),
                    "currency": currency,
                    "status": "completed",
                    "stripe_payment_intent_id": payment_intent_id,
                    "stripe_charge_id": charge_id,
                },
                ["user_id", "course_id"],
            )
            if not inserted:
                self._refresh_purchase(
                    user_id,
                    course_id,
                    order_id,
                    prices.get(course_id, 0),
                    currency,
                    payment_intent_id,
                    charge_id,
                )

        removed = (
            self.db.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.course_id.in_(course_ids))
            .delete(synchronize_session=False)
        )

        logger.info(
            f"Entitlement granted to {user_id} for courses {course_ids} "
            f"({removed} cart line(s) removed)"
        )

    def _refresh_purchase(
        self,
        user_id: str,
        course_id: int,
        order_id: Optional[int],
        amount_paid: int,
        currency: str,
        payment_intent_id: Optional[str],
        charge_id: Optional[str],
    ) -> None:
        """Point an existing purchase row at the payment that just settled."""
        purchase = (
            self.db.query(Purchase)
            .filter(Purchase.user_id == user_id, Purchase.course_id == course_id)
            .first()
        )
        if not purchase:
            return

        purchase.status = "completed"
        purchase.amount_paid = amount_paid
        purchase.currency = currency
        if order_id:
            purchase.order_id = order_id
        if payment_intent_id:
            purchase.stripe_payment_intent_id = payment_intent_id
        if charge_id:
            purchase.stripe_charge_id = charge_id

    def get_purchases(self, user_id: str) -> List[dict]:
        rows = (
            self.db.query(Purchase, Course.title)
            .join(Course, Course.id == Purchase.course_id)
            .filter(Purchase.user_id == user_id)
            .order_by(Purchase.created_at.desc(), Purchase.id.desc())
            .all()
        )
        purchases = []
        for purchase, title in rows:
            purchases.append(
                {
                    "id": purchase.id,
                    "user_id": purchase.user_id,
                    "course_id": purchase.course_id,
                    "order_id": purchase.order_id,
                    "amount_paid": purchase.amount_paid,
                    "currency": purchase.currency,
                    "status": purchase.status,
                    "stripe_payment_intent_id": purchase.stripe_payment_intent_id,
                    "stripe_charge_id": purchase.stripe_charge_id,
                    "created_at": purchase.created_at,
                    "course_title": title,
                }
            )
        return purchases
