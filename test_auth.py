"""
Test registration, login, token resolution and first sign-in profile creation
"""

from types import SimpleNamespace

import redis

from app.core.cache import ProfileExistenceCache
from app.core.security import jwt_manager
from app.models.profile import Profile
from app.services.cart import CartService
from app.services.order import OrderService
from app.services.payment import PaymentService
from conftest import FakeRedis, auth_headers, make_course, make_profile


def external_token(sub, email, full_name=None):
    claims = SimpleNamespace(id=sub, email=email, role="user", full_name=full_name)
    return {"Authorization": f"Bearer {jwt_manager.create_access_token(claims)}"}


def test_register_and_me(client, db):
    response = client.post(
        "/auth/register",
        json={
            "email": "New.Learner@Example.com",
            "password": "correct-horse",
            "full_name": "New Learner",
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["profile"]["email"] == "new.learner@example.com"
    assert body["profile"]["role"] == "user"

    me = client.get(
        "/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"}
    )
    assert me.status_code == 200
    assert me.json()["id"] == body["profile"]["id"]


def test_register_duplicate_email(client, db, user):
    response = client.post(
        "/auth/register",
        json={"email": user.email, "password": "another-pass", "full_name": "Copy"},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_register_validates_input(client, db):
    response = client.post(
        "/auth/register",
        json={"email": "not-an-email", "password": "short", "full_name": ""},
    )

    assert response.status_code == 422
    assert response.json()["success"] is False


def test_login(client, db):
    client.post(
        "/auth/register",
        json={"email": "login@example.com", "password": "s3cret-pass", "full_name": "Lo"},
    )

    ok = client.post(
        "/auth/login", json={"email": "login@example.com", "password": "s3cret-pass"}
    )
    bad = client.post(
        "/auth/login", json={"email": "login@example.com", "password": "wrong-pass"}
    )

    assert ok.status_code == 200
    assert ok.json()["access_token"]
    assert bad.status_code == 401
    assert bad.json()["code"] == "NOT_AUTHENTICATED"


def test_missing_and_invalid_tokens(client, db):
    assert client.get("/users/me").status_code == 401

    invalid = client.get("/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert invalid.status_code == 401
    assert invalid.json()["code"] == "NOT_AUTHENTICATED"


def test_first_sign_in_creates_profile(client, db, fake_redis):
    headers = external_token("ext-user-1", "First.Timer@example.com", "First Timer")

    response = client.get("/users/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["email"] == "first.timer@example.com"
    profile = db.query(Profile).filter_by(id="ext-user-1").one()
    assert profile.full_name == "First Timer"
    assert profile.role == "user"
    assert fake_redis.get("profile-exists:ext-user-1") == "1"
    assert fake_redis.expirations["profile-exists:ext-user-1"] == 300

    # Repeated requests neither fail nor duplicate the profile
    assert client.get("/users/me", headers=headers).status_code == 200
    assert db.query(Profile).filter_by(email="first.timer@example.com").count() == 1


def test_stale_cache_entry_is_forgotten(client, db, fake_redis):
    fake_redis.set("profile-exists:ghost", "1")

    response = client.get("/users/me", headers=external_token("ghost", "g@example.com"))

    assert response.status_code == 401
    assert fake_redis.get("profile-exists:ghost") is None


def test_inactive_profile_is_refused(client, db):
    profile = make_profile(db, is_active=False)

    response = client.get("/users/me", headers=auth_headers(profile))

    assert response.status_code == 403
    assert response.json()["code"] == "UNAUTHORIZED"


def test_update_my_profile(client, db, user):
    response = client.patch(
        "/users/me",
        json={"full_name": "Lena L.", "phone": "+44 20 7946 0000"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json()["full_name"] == "Lena L."
    assert response.json()["phone"] == "+44 20 7946 0000"


def test_my_purchases(client, db, user, fake_stripe):
    course = make_course(db, title="Purchased course", price=750)
    CartService(db).add_to_cart(user.id, course.id)
    order = OrderService(db).create_order(user.id, CartService(db).get_items(user.id))
    PaymentService(db, fake_stripe).pay_order(user, order.id)

    response = client.get("/users/me/purchases", headers=auth_headers(user))

    assert response.status_code == 200
    purchases = response.json()
    assert len(purchases) == 1
    assert purchases[0]["course_title"] == "Purchased course"
    assert purchases[0]["amount_paid"] == 750
    assert purchases[0]["order_id"] == order.id


class BrokenRedis(FakeRedis):
    def get(self, key):
        raise redis.ConnectionError("redis is down")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("redis is down")


def test_cache_errors_degrade_to_miss():
    cache = ProfileExistenceCache(BrokenRedis(), ttl=60)

    assert cache.exists("anyone") is False
    cache.remember("anyone")
