"""
Test the Stripe webhook receiver and reconciliation
"""

import json

from app.models.cart_item import CartItem
from app.models.course_access import CourseAccess
from app.models.order import Order
from app.models.purchase import Purchase
from app.models.stripe import StripeCustomer, StripePaymentMethod, StripeWebhookLog
from app.services.cart import CartService
from app.services.order import OrderService
from app.services.payment import PaymentService
from conftest import make_course, signed_webhook

WEBHOOK_URL = "/api/stripe/webhook"


def event(event_type, obj, event_id="evt_test_1"):
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "created": 1760000000,
        "data": {"object": obj},
    }


def intent_succeeded(
    order, intent_id="pi_hook_1", charge_id="ch_hook_1", event_id="evt_pi_1"
):
    return event(
        "payment_intent.succeeded",
        {
            "id": intent_id,
            "object": "payment_intent",
            "customer": "cus_hook_1",
            "latest_charge": charge_id,
            "metadata": {"order_id": str(order.id), "user_id": order.user_id},
        },
        event_id=event_id,
    )


def pending_order(db, user, course):
    CartService(db).add_to_cart(user.id, course.id)
    return OrderService(db).create_order(user.id, CartService(db).get_items(user.id))


def post_event(client, payload_event):
    payload, headers = signed_webhook(payload_event)
    return client.post(WEBHOOK_URL, content=payload, headers=headers)


def test_rejects_bad_signature(client, db):
    payload, headers = signed_webhook(
        event("charge.updated", {"id": "ch_1"}), secret="whsec_wrong"
    )

    response = client.post(WEBHOOK_URL, content=payload, headers=headers)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert db.query(StripeWebhookLog).count() == 0


def test_rejects_missing_signature(client, db):
    response = client.post(WEBHOOK_URL, content=json.dumps(event("charge.updated", {})))

    assert response.status_code == 400
    assert db.query(StripeWebhookLog).count() == 0


def test_intent_succeeded_completes_pending_order(client, db, user):
    course = make_course(db, price=500)
    order = pending_order(db, user, course)

    response = post_event(client, intent_succeeded(order))

    assert response.status_code == 200
    assert response.json() == {"received": True}

    db.expire_all()
    stored = db.get(Order, order.id)
    assert stored.status == "completed"
    assert stored.stripe_payment_intent_id == "pi_hook_1"
    assert stored.stripe_charge_id == "ch_hook_1"

    purchase = db.query(Purchase).filter_by(user_id=user.id, course_id=course.id).one()
    assert purchase.status == "completed"
    assert purchase.amount_paid == 500
    assert purchase.stripe_payment_intent_id == "pi_hook_1"
    assert db.query(CourseAccess).filter_by(user_id=user.id).count() == 1
    assert db.query(CartItem).filter_by(user_id=user.id).count() == 0

    log = db.query(StripeWebhookLog).one()
    assert log.stripe_event_id == "evt_pi_1"
    assert log.event_type == "payment_intent.succeeded"
    assert log.processed is True
    assert log.error_message is None


def test_duplicate_delivery_is_logged_twice_without_duplicating_entitlement(
    client, db, user
):
    order = pending_order(db, user, make_course(db))
    duplicate = intent_succeeded(order, event_id="evt_dup")

    assert post_event(client, duplicate).status_code == 200
    assert post_event(client, duplicate).status_code == 200

    logs = db.query(StripeWebhookLog).filter_by(stripe_event_id="evt_dup").all()
    assert len(logs) == 2
    assert all(log.processed for log in logs)
    assert db.query(CourseAccess).filter_by(user_id=user.id).count() == 1
    assert db.query(Purchase).filter_by(user_id=user.id).count() == 1


def test_webhook_after_synchronous_payment(client, db, user, fake_stripe):
    course = make_course(db, price=500)
    order = pending_order(db, user, course)
    paid = PaymentService(db, fake_stripe).pay_order(user, order.id)

    response = post_event(
        client,
        intent_succeeded(
            order, intent_id=paid.stripe_payment_intent_id, charge_id=paid.stripe_charge_id
        ),
    )

    assert response.status_code == 200
    assert db.query(CourseAccess).filter_by(user_id=user.id).count() == 1
    purchases = db.query(Purchase).filter_by(user_id=user.id).all()
    assert len(purchases) == 1
    assert purchases[0].stripe_payment_intent_id == paid.stripe_payment_intent_id


def test_processing_error_still_acknowledged(client, db):
    broken = event(
        "payment_intent.succeeded",
        {"id": "pi_orphan", "object": "payment_intent", "metadata": {}},
        event_id="evt_broken",
    )

    response = post_event(client, broken)

    assert response.status_code == 200
    log = db.query(StripeWebhookLog).one()
    assert log.processed is False
    assert "no order metadata" in log.error_message


def test_payment_method_attached_is_stored(client, db, user):
    db.add(
        StripeCustomer(
            user_id=user.id, stripe_customer_id="cus_pm_1", email=user.email
        )
    )
    db.commit()
    attached = event(
        "payment_method.attached",
        {
            "id": "pm_123",
            "object": "payment_method",
            "customer": "cus_pm_1",
            "type": "card",
            "card": {"brand": "visa", "last4": "4242", "exp_month": 12, "exp_year": 2030},
        },
        event_id="evt_pm_1",
    )

    assert post_event(client, attached).status_code == 200
    assert post_event(client, attached).status_code == 200

    method = db.query(StripePaymentMethod).one()
    assert method.user_id == user.id
    assert method.card_brand == "visa"
    assert method.card_last4 == "4242"
    assert method.card_exp_year == 2030


def test_payment_method_for_unknown_customer(client, db):
    attached = event(
        "payment_method.attached",
        {"id": "pm_x", "customer": "cus_unknown", "type": "card"},
    )

    assert post_event(client, attached).status_code == 200
    assert db.query(StripePaymentMethod).count() == 0
    assert db.query(StripeWebhookLog).one().processed is False


def test_charge_succeeded_backfills_charge_id(client, db, user):
    order = pending_order(db, user, make_course(db))
    db.query(Order).filter_by(id=order.id).update(
        {"stripe_payment_intent_id": "pi_cs_1"}
    )
    db.commit()

    charge = event(
        "charge.succeeded",
        {"id": "ch_cs_1", "object": "charge", "payment_intent": "pi_cs_1"},
        event_id="evt_ch_1",
    )
    assert post_event(client, charge).status_code == 200

    db.expire_all()
    assert db.get(Order, order.id).stripe_charge_id == "ch_cs_1"


def test_other_events_are_only_logged(client, db):
    for event_type in (
        "payment_intent.created",
        "checkout.session.completed",
        "customer.created",
    ):
        delivery = event(event_type, {"id": "obj_1"}, event_id=f"evt_{event_type}")
        response = post_event(client, delivery)
        assert response.status_code == 200

    logs = db.query(StripeWebhookLog).all()
    assert len(logs) == 3
    assert all(log.processed for log in logs)
