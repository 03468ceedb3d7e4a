"""
Test order creation from the cart, listing and cancellation
"""

from types import SimpleNamespace

import pytest

from app.core.decorator import ErrorCode, ServiceError
from app.models.order import Order, OrderItem
from app.services.cart import CartService
from app.services.order import OrderService
from conftest import auth_headers, make_course


def line(course_id, price, title="Course"):
    return SimpleNamespace(course_id=course_id, price=price, title=title)


def test_order_total_is_sum_of_item_prices(db, user):
    first = make_course(db, title="SQL", price=1299)
    second = make_course(db, title="Django", price=2500)
    third = make_course(db, title="Free intro", price=0)

    order = OrderService(db).create_order(
        user.id,
        [
            line(first.id, 1299, "SQL"),
            line(second.id, 2500, "Django"),
            line(third.id, 0, "Free intro"),
        ],
    )

    assert order.status == "pending"
    assert order.currency == "gbp"
    assert order.total_amount == 3799
    assert len(order.items) == 3
    assert sum(item.price for item in order.items) == order.total_amount
    assert [item.course_title for item in order.items] == ["SQL", "Django", "Free intro"]


def test_empty_cart_fails_without_writes(db, user):
    with pytest.raises(ServiceError) as exc:
        OrderService(db).create_order(user.id, [])

    assert exc.value.code == ErrorCode.EMPTY_CART
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


def test_item_failure_removes_the_order(db, user, course):
    with pytest.raises(ServiceError) as exc:
        OrderService(db).create_order(
            user.id, [line(course.id, 500), line(987654, 700, "Missing course")]
        )

    assert exc.value.code == ErrorCode.PERSISTENCE_ERROR
    assert exc.value.status_code == 500
    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


def test_checkout_with_empty_cart(client, db, user):
    response = client.post("/orders/checkout", headers=auth_headers(user))

    assert response.status_code == 400
    body = response.json()
    assert body == {"success": False, "error": "Your cart is empty", "code": "EMPTY_CART"}
    assert db.query(Order).count() == 0


def test_checkout_creates_pending_order_from_cart(client, db, user):
    course = make_course(db, title="Data Science", price=500)
    headers = auth_headers(user)

    added = client.post("/cart/items", json={"course_id": course.id}, headers=headers)
    assert added.status_code == 201

    response = client.post("/orders/checkout", headers=headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    order = body["data"]
    assert order["total_amount"] == 500
    assert order["status"] == "pending"
    assert [item["course_id"] for item in order["items"]] == [course.id]
    # The cart is only cleared once the order is paid
    assert CartService(db).get_cart_count(user.id) == 1


def test_list_and_get_orders_are_scoped_to_owner(client, db, user, admin):
    rust = make_course(db, title="Rust", price=900)
    order = OrderService(db).create_order(user.id, [line(rust.id, 900, "Rust")])
    OrderService(db).create_order(admin.id, [line(rust.id, 900, "Rust")])

    headers = auth_headers(user)
    listed = client.get("/orders/", headers=headers)
    assert listed.status_code == 200
    assert [o["id"] for o in listed.json()] == [order.id]

    fetched = client.get(f"/orders/{order.id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["total_amount"] == 900


def test_other_users_cannot_see_an_order(client, db, user, admin, course):
    order = OrderService(db).create_order(user.id, [line(course.id, 500)])

    response = client.get(f"/orders/{order.id}", headers=auth_headers(admin))

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_cancel_only_from_pending(client, db, user, course):
    order = OrderService(db).create_order(user.id, [line(course.id, 500)])
    headers = auth_headers(user)

    first = client.post(f"/orders/{order.id}/cancel", headers=headers)
    assert first.status_code == 200
    assert first.json()["data"]["status"] == "cancelled"

    second = client.post(f"/orders/{order.id}/cancel", headers=headers)
    assert second.status_code == 409
    assert second.json()["code"] == "ORDER_NOT_PENDING"
