"""
Shared fixtures: in-memory SQLite database, FastAPI test client, and
doubles for Redis and the Stripe processor.
"""

import hashlib
import hmac
import json
import os
import tempfile
import time
import uuid
from types import SimpleNamespace

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["AUTH_RATE_LIMIT"] = "1000/minute"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_CONFIRM_PAYMENT_METHOD"] = "pm_card_visa"
os.environ["BASE_URL"] = "http://shop.example.com"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="course-storage-")
os.environ["S3_ACCESS_KEY"] = "test-access-key"
os.environ["S3_SECRET_KEY"] = "test-secret-key"

import pytest
from fastapi.testclient import TestClient

from app.core.cache import ProfileExistenceCache, get_profile_cache
from app.core.database import Base, SessionLocal, engine
from app.core.dependencies import get_payment_processor
from app.core.security import jwt_manager
from app.models.course import Course
from app.models.profile import Profile
from app.utils.stripe_service import StripeService
from main import app

WEBHOOK_SECRET = "whsec_test_secret"


class FakeRedis:
    """Dict-backed stand-in for the redis client (get/set/delete only)."""

    def __init__(self):
        self.store = {}
        self.expirations = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = value
        self.expirations[key] = ex
        return True

    def delete(self, key):
        self.expirations.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0


class FakeStripe(StripeService):
    """
    Records processor calls and returns canned objects.

    Webhook signature checks are inherited from StripeService and run for real.
    """

    def __init__(self):
        super().__init__()
        self.calls = []
        self.fail_on = None
        self.confirm_status = "succeeded"
        self._counter = 0

    def _next(self, prefix):
        self._counter += 1
        return f"{prefix}_test_{self._counter}"

    def _maybe_fail(self, step):
        if self.fail_on == step:
            raise RuntimeError(f"{step} rejected by processor")

    def create_customer(self, email, name, user_id):
        self.calls.append(("create_customer", {"email": email, "user_id": user_id}))
        self._maybe_fail("customer")
        return SimpleNamespace(id=self._next("cus"))

    def create_payment_intent(self, amount, currency, customer_id, metadata):
        self.calls.append(
            (
                "create_payment_intent",
                {
                    "amount": amount,
                    "currency": currency,
                    "customer_id": customer_id,
                    "metadata": metadata,
                },
            )
        )
        self._maybe_fail("intent")
        return SimpleNamespace(id=self._next("pi"), status="requires_confirmation")

    def confirm_payment_intent(self, intent_id, payment_method, return_url):
        self.calls.append(
            (
                "confirm_payment_intent",
                {
                    "intent_id": intent_id,
                    "payment_method": payment_method,
                    "return_url": return_url,
                },
            )
        )
        self._maybe_fail("confirm")
        return SimpleNamespace(
            id=intent_id,
            status=self.confirm_status,
            latest_charge=self._next("ch"),
        )

    def calls_to(self, name):
        return [kwargs for call, kwargs in self.calls if call == name]


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def fake_stripe():
    return FakeStripe()


@pytest.fixture
def client(db, fake_redis, fake_stripe):
    app.dependency_overrides[get_profile_cache] = lambda: ProfileExistenceCache(
        fake_redis, ttl=300
    )
    app.dependency_overrides[get_payment_processor] = lambda: fake_stripe
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_profile(db, role="user", email=None, full_name="Test User", **fields):
    profile = Profile(
        id=str(uuid.uuid4()),
        email=email or f"{uuid.uuid4().hex[:10]}@example.com",
        full_name=full_name,
        role=role,
        **fields,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


def make_course(db, title="Python Basics", price=500, **fields):
    course = Course(title=title, price=price, instructor_name="Ada", **fields)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def auth_headers(profile):
    return {"Authorization": f"Bearer {jwt_manager.create_access_token(profile)}"}


def signed_webhook(event: dict, secret: str = WEBHOOK_SECRET):
    """Serialize an event and build a valid Stripe-Signature header for it."""
    payload = json.dumps(event)
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"),
        f"{timestamp}.{payload}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return payload, {
        "Stripe-Signature": f"t={timestamp},v1={signature}",
        "Content-Type": "application/json",
    }


@pytest.fixture
def user(db):
    return make_profile(db, email="learner@example.com", full_name="Lena Learner")


@pytest.fixture
def admin(db):
    return make_profile(db, role="admin", email="staff@example.com", full_name="Sam Staff")


@pytest.fixture
def superadmin(db):
    return make_profile(
        db, role="superadmin", email="owner@example.com", full_name="Olive Owner"
    )


@pytest.fixture
def course(db):
    return make_course(db)
