"""
Registration, login and role checks.
"""

from fastapi.testclient import TestClient

from auth.roles import Permission, UserType, has_permission
from database.models import UserRole
from server import app


def test_register_and_me(api):
    response = api.post(
        "/api/auth/register",
        json={"name": "Priya", "email": "priya@example.com", "password": "secret123", "role": "freelancer"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["role"] == "freelancer"
    assert body["user"]["total_earnings"] == 0

    me = api.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "priya@example.com"


def test_register_rejects_admin_role(api):
    response = api.post(
        "/api/auth/register",
        json={"name": "Mallory", "email": "mallory@example.com", "password": "secret123", "role": "admin"},
    )
    assert response.status_code == 400


def test_duplicate_email(api, client_user):
    response = api.post(
        "/api/auth/register",
        json={"name": "Copy", "email": client_user.email, "password": "secret123"},
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Email already registered"}


def test_login(api, client_user):
    ok = api.post("/api/auth/login", json={"email": client_user.email, "password": "secret123"})
    assert ok.status_code == 200
    assert ok.json()["access_token"]

    bad = api.post("/api/auth/login", json={"email": client_user.email, "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"message": "Incorrect email or password"}


def test_deactivated_account(api, make_user):
    user = make_user(UserRole.CLIENT, is_active=False)
    response = api.post("/api/auth/login", json={"email": user.email, "password": "secret123"})
    assert response.status_code == 403


def test_role_gated_listing(api, auth, client_user, freelancer, admin):
    assert api.get("/api/orders/freelancer", headers=auth(client_user)).status_code == 403
    assert api.get("/api/orders/freelancer", headers=auth(freelancer)).status_code == 200
    assert api.get("/api/orders/freelancer", headers=auth(admin)).status_code == 200


def test_health(api):
    assert api.get("/health").json() == {"status": "healthy"}


def test_permission_table():
    assert has_permission(UserType.FREELANCER, Permission.MANAGE_GIGS)
    assert not has_permission(UserType.CLIENT, Permission.MANAGE_GIGS)
    assert has_permission(UserType.ADMIN, Permission.WITHDRAW_FUNDS)
    assert has_permission(UserType.FREELANCER, Permission.DELIVER_ORDERS)
    assert not has_permission(UserType.CLIENT, Permission.DELIVER_ORDERS)
    for user_type in UserType:
        assert has_permission(user_type, Permission.VIEW_OWN_ORDERS)
        assert has_permission(user_type, Permission.CANCEL_ORDERS)


def test_freelancer_cannot_pay(api, auth, freelancer):
    response = api.post("/api/payments/checkout", json={"order_number": "ORD1"}, headers=auth(freelancer))
    assert response.status_code == 403
    assert response.json() == {"message": "You don't have permission to perform this action"}


def test_startup_seeds_admin(monkeypatch):
    monkeypatch.setenv("ADMIN_USER", "root@example.com")
    monkeypatch.setenv("ADMIN_PASS", "rootpass123")

    with TestClient(app) as api:
        response = api.post("/api/auth/login", json={"email": "root@example.com", "password": "rootpass123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"
