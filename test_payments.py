"""
Test the synchronous payment flow: customer, intent, confirmation, entitlement
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.decorator import ErrorCode, ServiceError
from app.models.cart_item import CartItem
from app.models.course import Course
from app.models.course_access import CourseAccess
from app.models.order import Order
from app.models.purchase import Purchase
from app.models.stripe import StripeCustomer
from app.services.access import AccessService
from app.services.cart import CartService
from app.services.order import OrderService
from app.services.payment import PaymentService
from conftest import auth_headers, make_course


def pending_order(db, user, *courses):
    cart = CartService(db)
    for course in courses:
        cart.add_to_cart(user.id, course.id)
    return OrderService(db).create_order(user.id, cart.get_items(user.id))


def test_cart_to_paid_order_scenario(client, db, user, fake_stripe):
    """Empty checkout fails, then a 500 pence course is bought end to end."""
    headers = auth_headers(user)
    course = make_course(db, title="Intro to Testing", price=500)

    empty = client.post("/orders/checkout", headers=headers)
    assert empty.status_code == 400
    assert empty.json()["error"] == "Your cart is empty"
    assert db.query(Order).count() == 0

    client.post("/cart/items", json={"course_id": course.id}, headers=headers)
    cart = client.get("/cart/", headers=headers).json()["data"]
    assert cart["total"] == 500

    checkout = client.post("/orders/checkout", headers=headers).json()["data"]
    assert checkout["total_amount"] == 500
    assert checkout["status"] == "pending"

    paid = client.post(f"/orders/{checkout['id']}/pay", headers=headers)
    assert paid.status_code == 200
    order = paid.json()["data"]
    assert order["status"] == "completed"
    assert order["completed_at"] is not None
    assert order["stripe_payment_intent_id"].startswith("pi_test_")
    assert order["stripe_charge_id"].startswith("ch_test_")

    grants = db.query(CourseAccess).filter_by(user_id=user.id, course_id=course.id).all()
    assert len(grants) == 1
    assert grants[0].access_type == "purchased"

    purchases = db.query(Purchase).filter_by(user_id=user.id, course_id=course.id).all()
    assert len(purchases) == 1
    assert purchases[0].amount_paid == 500
    assert purchases[0].status == "completed"
    assert purchases[0].order_id == checkout["id"]

    assert db.query(CartItem).filter_by(user_id=user.id).count() == 0

    intent = fake_stripe.calls_to("create_payment_intent")[0]
    assert intent["amount"] == 500
    assert intent["currency"] == "gbp"
    assert intent["metadata"] == {"order_id": str(checkout["id"]), "user_id": user.id}


def test_confirmation_uses_configured_method_and_return_url(db, user, fake_stripe):
    course = make_course(db)
    order = pending_order(db, user, course)

    PaymentService(db, fake_stripe).pay_order(user, order.id)

    confirm = fake_stripe.calls_to("confirm_payment_intent")[0]
    assert confirm["payment_method"] == "pm_card_visa"
    assert confirm["return_url"] == (
        f"http://shop.example.com/order/success?order_id={order.id}"
    )


def test_request_can_supply_payment_method(client, db, user, fake_stripe):
    order = pending_order(db, user, make_course(db))

    response = client.post(
        f"/orders/{order.id}/pay",
        json={"payment_method_id": "pm_card_mastercard"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert fake_stripe.calls_to("confirm_payment_intent")[0]["payment_method"] == (
        "pm_card_mastercard"
    )


def test_stripe_customer_is_created_once(db, user, fake_stripe):
    payments = PaymentService(db, fake_stripe)

    first = pending_order(db, user, make_course(db, title="One"))
    payments.pay_order(user, first.id)
    second = pending_order(db, user, make_course(db, title="Two"))
    payments.pay_order(user, second.id)

    assert len(fake_stripe.calls_to("create_customer")) == 1
    assert db.query(StripeCustomer).filter_by(user_id=user.id).count() == 1
    customer_ids = {c["customer_id"] for c in fake_stripe.calls_to("create_payment_intent")}
    assert len(customer_ids) == 1


def test_purchase_records_current_course_price(db, user, fake_stripe):
    course = make_course(db, price=500)
    order = pending_order(db, user, course)

    # Price changes between checkout and payment
    db.query(Course).filter_by(id=course.id).update({"price": 800})
    db.commit()

    PaymentService(db, fake_stripe).pay_order(user, order.id)

    db.expire_all()
    assert db.get(Order, order.id).total_amount == 500
    purchase = db.query(Purchase).filter_by(user_id=user.id).one()
    assert purchase.amount_paid == 800


@pytest.mark.parametrize(
    "step, code",
    [
        ("customer", ErrorCode.CUSTOMER_CREATE_FAILED),
        ("intent", ErrorCode.INTENT_CREATE_FAILED),
        ("confirm", ErrorCode.CONFIRM_FAILED),
    ],
)
def test_processor_failures_leave_order_pending(db, user, fake_stripe, step, code):
    course = make_course(db)
    order = pending_order(db, user, course)
    fake_stripe.fail_on = step

    with pytest.raises(ServiceError) as exc:
        PaymentService(db, fake_stripe).pay_order(user, order.id)

    assert exc.value.code == code
    db.expire_all()
    assert db.get(Order, order.id).status == "pending"
    assert db.query(CourseAccess).count() == 0
    assert db.query(Purchase).count() == 0
    assert db.query(CartItem).filter_by(user_id=user.id).count() == 1


def test_unsuccessful_confirmation_status(client, db, user, fake_stripe):
    order = pending_order(db, user, make_course(db))
    fake_stripe.confirm_status = "requires_action"

    response = client.post(f"/orders/{order.id}/pay", headers=auth_headers(user))

    assert response.status_code == 402
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "CONFIRM_FAILED"
    assert "requires_action" in body["error"]


def test_paying_twice_is_rejected(client, db, user):
    order = pending_order(db, user, make_course(db))
    headers = auth_headers(user)

    assert client.post(f"/orders/{order.id}/pay", headers=headers).status_code == 200
    again = client.post(f"/orders/{order.id}/pay", headers=headers)

    assert again.status_code == 409
    assert again.json()["code"] == "ORDER_NOT_PENDING"


def test_cannot_pay_someone_elses_order(client, db, user, admin, fake_stripe):
    order = pending_order(db, user, make_course(db))

    response = client.post(f"/orders/{order.id}/pay", headers=auth_headers(admin))

    assert response.status_code == 404
    assert fake_stripe.calls == []


def test_expanded_charge_object_is_read(db, user, fake_stripe):
    order = pending_order(db, user, make_course(db))
    fake_stripe.confirm_payment_intent = lambda intent_id, payment_method, return_url: (
        SimpleNamespace(
            id=intent_id, status="succeeded", latest_charge=SimpleNamespace(id="ch_expanded")
        )
    )

    paid = PaymentService(db, fake_stripe).pay_order(user, order.id)

    assert paid.stripe_charge_id == "ch_expanded"


def test_buying_after_an_expired_grant_restores_access(client, db, user, fake_stripe):
    headers = auth_headers(user)
    course = make_course(db, title="Seasonal Masterclass", price=1500)
    db.add(
        CourseAccess(
            user_id=user.id,
            course_id=course.id,
            access_type="promotional",
            expires_at=datetime.now(timezone.utc) - timedelta(days=1),
        )
    )
    db.commit()
    assert AccessService(db).has_access(user.id, course.id) is False

    assert client.post(
        "/cart/items", json={"course_id": course.id}, headers=headers
    ).status_code == 201
    order = client.post("/orders/checkout", headers=headers).json()["data"]
    paid = client.post(f"/orders/{order['id']}/pay", headers=headers)
    assert paid.json()["data"]["status"] == "completed"

    db.expire_all()
    grant = db.query(CourseAccess).filter_by(user_id=user.id, course_id=course.id).one()
    assert grant.access_type == "purchased"
    assert grant.expires_at is None
    assert AccessService(db).has_access(user.id, course.id) is True

    content = client.get(f"/courses/{course.id}/content", headers=headers)
    assert content.status_code == 200


def test_buying_again_refreshes_a_refunded_purchase(db, user, fake_stripe):
    course = make_course(db, price=2500)
    db.add(
        Purchase(
            user_id=user.id,
            course_id=course.id,
            amount_paid=900,
            currency="usd",
            status="refunded",
            stripe_payment_intent_id="pi_old",
        )
    )
    db.commit()

    order = pending_order(db, user, course)
    PaymentService(db, fake_stripe).pay_order(user, order.id)

    db.expire_all()
    purchase = db.query(Purchase).filter_by(user_id=user.id, course_id=course.id).one()
    assert purchase.status == "completed"
    assert purchase.amount_paid == 2500
    assert purchase.currency == "gbp"
    assert purchase.order_id == order.id
    assert purchase.stripe_payment_intent_id.startswith("pi_test_")
