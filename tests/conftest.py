"""
Shared fixtures for the marketplace API tests.
Runs the FastAPI app against an in-memory SQLite database recreated per test.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_marketplace")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from auth.utils import create_access_token, get_password_hash
from core.paystack_service import PaystackConfig, PaystackService
from database.config import SessionLocal, engine
from database.models import Base, User, UserRole
from database.marketplace_models import Gig, GigStatusDB
from server import app

PAYSTACK_SECRET = "sk_test_marketplace"


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def api():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make(role=UserRole.CLIENT, **fields):
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"{role.value}{counter['n']}@example.com"),
            password_hash=get_password_hash(fields.pop("password", "secret123")),
            name=fields.pop("name", f"{role.value.title()} {counter['n']}"),
            role=role,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def client_user(make_user):
    return make_user(UserRole.CLIENT)


@pytest.fixture
def freelancer(make_user):
    return make_user(UserRole.FREELANCER)


@pytest.fixture
def admin(make_user):
    return make_user(UserRole.ADMIN)


def auth_headers(user):
    token = create_access_token({"sub": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth():
    return auth_headers


@pytest.fixture
def active_gig(db, freelancer):
    gig = Gig(
        freelancer_id=freelancer.id,
        title="Logo design",
        description="A professional logo in three concepts",
        category="design",
        price=Decimal("1000.00"),
        delivery_time=5,
        revisions=2,
        status=GigStatusDB.ACTIVE,
    )
    db.add(gig)
    db.commit()
    db.refresh(gig)
    return gig


@pytest.fixture
def place_order(api, active_gig):
    """Place an order on the active gig through the API and return its JSON."""

    def _place(client, amount=1000, gig=None):
        gig = gig or active_gig
        response = api.post(
            "/api/orders",
            json={
                "gig_id": gig.id,
                "title": "Logo for my bakery",
                "description": "Warm colours, round shapes",
                "amount": amount,
                "delivery_date": (datetime.utcnow() + timedelta(days=7)).isoformat(),
            },
            headers=auth_headers(client),
        )
        assert response.status_code == 201, response.text
        return response.json()["order"]

    return _place


@pytest.fixture
def advance_order(api):
    """Walk an order through the given statuses as its freelancer."""

    def _advance(order_id, freelancer, *statuses):
        response = None
        for next_status in statuses:
            response = api.patch(
                f"/api/orders/{order_id}/status",
                json={"status": next_status},
                headers=auth_headers(freelancer),
            )
            assert response.status_code == 200, response.text
        return response.json()["order"]

    return _advance


@pytest.fixture
def paystack(monkeypatch):
    """Stand-in for the Paystack HTTP API; records calls and serves canned responses."""

    class FakePaystack:
        def __init__(self):
            self.initialized = []
            self.verify_status = "success"
            self.channel = "card"

        def initialize_transaction(self, service, **kwargs):
            self.initialized.append(kwargs)
            reference = kwargs.get("reference")
            return {
                "status": True,
                "message": "Authorization URL created",
                "data": {
                    "authorization_url": f"https://checkout.paystack.com/{reference}",
                    "access_code": "acc_test",
                    "reference": reference,
                },
            }

        def verify_transaction(self, service, reference):
            return {
                "status": True,
                "data": {
                    "reference": reference,
                    "status": self.verify_status,
                    "channel": self.channel,
                },
            }

    fake = FakePaystack()
    monkeypatch.setattr(PaystackConfig, "SECRET_KEY", PAYSTACK_SECRET)
    monkeypatch.setattr(
        PaystackService, "initialize_transaction",
        lambda service, **kwargs: fake.initialize_transaction(service, **kwargs),
    )
    monkeypatch.setattr(
        PaystackService, "verify_transaction",
        lambda service, reference: fake.verify_transaction(service, reference),
    )
    return fake
