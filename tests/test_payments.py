"""
Escrow payments, Paystack checkout sessions, webhooks and withdrawals.
"""

import hashlib
import hmac
import json
from decimal import Decimal

from core.paystack_service import PaystackConfig
from database.models import User, UserRole


def _create_payment(api, auth, client, order, method="upi"):
    return api.post(
        "/api/payments",
        json={
            "order_number": order["order_number"],
            "payment_method": method,
            "billing_details": {"name": "Asha", "email": "asha@example.com"},
        },
        headers=auth(client),
    )


def _sign(body: bytes) -> str:
    return hmac.new(PaystackConfig.SECRET_KEY.encode("utf-8"), body, hashlib.sha512).hexdigest()


# ============================================================================
# MANUAL PAYMENTS
# ============================================================================

def test_create_payment_mirrors_order_amounts(api, auth, client_user, place_order):
    order = place_order(client_user, amount=2500)

    response = _create_payment(api, auth, client_user, order)
    assert response.status_code == 201
    payment = response.json()["payment"]
    assert payment["payment_number"].startswith("PAY")
    assert payment["status"] == "pending"
    assert payment["amount"] == 2500.0
    assert payment["platform_fee"] == 250.0
    assert payment["freelancer_amount"] == 2250.0
    assert payment["billing_details"]["name"] == "Asha"

    # Creating the record alone does not mark the order paid
    fetched = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert fetched["payment_status"] == "pending"


def test_duplicate_payment_rejected(api, auth, client_user, place_order):
    order = place_order(client_user)
    assert _create_payment(api, auth, client_user, order).status_code == 201

    response = _create_payment(api, auth, client_user, order, method="credit_card")
    assert response.status_code == 400
    assert response.json() == {"message": "Payment already exists for this order"}


def test_payment_for_someone_elses_order(api, auth, make_user, client_user, place_order):
    order = place_order(client_user)
    other = make_user(UserRole.CLIENT)

    response = _create_payment(api, auth, other, order)
    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_process_payment_marks_order_paid(api, auth, client_user, place_order):
    order = place_order(client_user)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]

    response = api.post(
        f"/api/payments/{payment['id']}/process",
        json={"transaction_id": "txn_123"},
        headers=auth(client_user),
    )
    assert response.status_code == 200
    processed = response.json()["payment"]
    assert processed["status"] == "completed"
    assert processed["transaction_id"] == "txn_123"
    assert processed["completed_date"] is not None
    assert processed["processed_date"] is not None
    assert processed["gateway_response"]["code"] == "SUCCESS"

    fetched = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert fetched["payment_status"] == "paid"


def test_only_paying_client_processes(api, auth, client_user, freelancer, place_order):
    order = place_order(client_user)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]

    response = api.post(f"/api/payments/{payment['id']}/process", headers=auth(freelancer))
    assert response.status_code == 403


def test_escrow_released_on_completion(api, db, auth, client_user, freelancer, place_order, advance_order):
    order = place_order(client_user, amount=1000)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]
    api.post(f"/api/payments/{payment['id']}/process", headers=auth(client_user))

    completed = advance_order(order["id"], freelancer, "in_progress", "delivered", "completed")
    assert completed["escrow_released"] is True
    assert completed["escrow_release_date"] is not None

    db.expire_all()
    assert db.get(User, freelancer.id).total_earnings == Decimal("900.00")

    fetched = api.get(f"/api/payments/{payment['id']}", headers=auth(freelancer)).json()["payment"]
    assert fetched["escrow_released"] is True


def test_unpaid_completion_releases_nothing(api, db, auth, client_user, freelancer, place_order, advance_order):
    order = place_order(client_user)
    completed = advance_order(order["id"], freelancer, "in_progress", "delivered", "completed")

    assert completed["escrow_released"] is False
    db.expire_all()
    assert db.get(User, freelancer.id).total_earnings == Decimal("0.00")


def _pay(api, auth, client, order):
    payment = _create_payment(api, auth, client, order).json()["payment"]
    response = api.post(f"/api/payments/{payment['id']}/process", headers=auth(client))
    assert response.status_code == 200, response.text
    return response.json()["payment"]


def test_dispute_resolved_as_completed_releases_escrow(api, db, auth, client_user, freelancer, place_order, advance_order):
    order = place_order(client_user, amount=1000)
    payment = _pay(api, auth, client_user, order)

    disputed = advance_order(order["id"], freelancer, "in_progress", "delivered", "disputed")
    assert disputed["payment_status"] == "disputed"
    assert disputed["escrow_released"] is False

    completed = advance_order(order["id"], freelancer, "completed")
    assert completed["status"] == "completed"
    assert completed["payment_status"] == "paid"
    assert completed["escrow_released"] is True

    db.expire_all()
    assert db.get(User, freelancer.id).total_earnings == Decimal("900.00")
    fetched = api.get(f"/api/payments/{payment['id']}", headers=auth(client_user)).json()["payment"]
    assert fetched["escrow_released"] is True


def test_dispute_resolved_as_cancelled_refunds_client(api, db, auth, client_user, freelancer, place_order, advance_order):
    order = place_order(client_user, amount=1000)
    payment = _pay(api, auth, client_user, order)

    advance_order(order["id"], freelancer, "in_progress", "delivered", "disputed")
    response = api.patch(
        f"/api/orders/{order['id']}/status",
        json={"status": "cancelled", "reason": "Work not delivered as agreed"},
        headers=auth(freelancer),
    )
    assert response.status_code == 200
    cancelled = response.json()["order"]
    assert cancelled["status"] == "cancelled"
    assert cancelled["payment_status"] == "refunded"
    assert cancelled["escrow_released"] is False

    refunded = api.get(f"/api/payments/{payment['id']}", headers=auth(client_user)).json()["payment"]
    assert refunded["status"] == "refunded"
    assert refunded["refund_amount"] == 1000.0
    assert refunded["refund_reason"] == "Work not delivered as agreed"
    assert refunded["refund_date"] is not None

    db.expire_all()
    assert db.get(User, freelancer.id).total_earnings == Decimal("0.00")


def test_cancelling_paid_order_refunds_client(api, auth, client_user, place_order):
    order = place_order(client_user)
    payment = _pay(api, auth, client_user, order)

    response = api.patch(f"/api/orders/{order['id']}/cancel", json={"reason": "Changed plans"}, headers=auth(client_user))
    assert response.status_code == 200
    assert response.json()["order"]["payment_status"] == "refunded"

    refunded = api.get(f"/api/payments/{payment['id']}", headers=auth(client_user)).json()["payment"]
    assert refunded["status"] == "refunded"
    assert refunded["refund_amount"] == 1000.0


def test_cancelling_unpaid_order_records_no_refund(api, auth, client_user, place_order):
    order = place_order(client_user)
    cancelled = api.patch(f"/api/orders/{order['id']}/cancel", headers=auth(client_user)).json()["order"]
    assert cancelled["payment_status"] == "pending"


def test_paying_completed_order_releases_escrow(api, db, auth, client_user, freelancer, place_order, advance_order):
    order = place_order(client_user, amount=1000)
    advance_order(order["id"], freelancer, "in_progress", "delivered", "completed")

    _pay(api, auth, client_user, order)

    fetched = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert fetched["payment_status"] == "paid"
    assert fetched["escrow_released"] is True
    db.expire_all()
    assert db.get(User, freelancer.id).total_earnings == Decimal("900.00")


def test_processed_payment_cannot_be_processed_again(api, auth, client_user, freelancer, place_order, advance_order):
    order = place_order(client_user)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]
    api.post(f"/api/payments/{payment['id']}/process", json={"transaction_id": "txn_1"}, headers=auth(client_user))
    advance_order(order["id"], freelancer, "in_progress", "delivered", "disputed")

    response = api.post(f"/api/payments/{payment['id']}/process", headers=auth(client_user))
    assert response.status_code == 400
    assert response.json() == {"message": "Payment has already been processed"}

    fetched = api.get(f"/api/payments/{payment['id']}", headers=auth(client_user)).json()["payment"]
    assert fetched["transaction_id"] == "txn_1"
    order_now = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert order_now["payment_status"] == "disputed"


def test_payment_for_cancelled_order_rejected(api, auth, client_user, place_order):
    order = place_order(client_user)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]
    api.patch(f"/api/orders/{order['id']}/cancel", headers=auth(client_user))

    response = api.post(f"/api/payments/{payment['id']}/process", headers=auth(client_user))
    assert response.status_code == 400
    assert response.json() == {"message": "Order has been cancelled"}


def test_payment_listing_and_stats(api, auth, client_user, freelancer, place_order):
    first = place_order(client_user, amount=1000)
    second = place_order(client_user, amount=3000)
    paid = _create_payment(api, auth, client_user, first).json()["payment"]
    _create_payment(api, auth, client_user, second, method="credit_card")
    api.post(f"/api/payments/{paid['id']}/process", headers=auth(client_user))

    body = api.get("/api/payments", params={"status": "completed"}, headers=auth(client_user)).json()
    assert [p["id"] for p in body["payments"]] == [paid["id"]]
    assert body["pagination"]["total_payments"] == 1

    by_type = api.get("/api/payments", params={"type": "credit_card"}, headers=auth(freelancer)).json()
    assert len(by_type["payments"]) == 1

    stats = api.get("/api/payments/stats", headers=auth(freelancer)).json()["stats"]
    assert stats["total_payments"] == 2
    assert stats["completed_payments"] == 1
    assert stats["pending_payments"] == 1
    assert stats["total_amount"] == 4000.0
    assert stats["average_amount"] == 2000.0


def test_payment_visible_to_parties_only(api, auth, make_user, client_user, place_order):
    order = place_order(client_user)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]
    outsider = make_user(UserRole.CLIENT)

    assert api.get(f"/api/payments/{payment['id']}", headers=auth(outsider)).status_code == 403
    assert api.get("/api/payments/missing", headers=auth(client_user)).status_code == 404


# ============================================================================
# CHECKOUT SESSIONS
# ============================================================================

def test_checkout_then_verify(api, auth, client_user, place_order, paystack):
    order = place_order(client_user, amount=1500)

    response = api.post("/api/payments/checkout", json={"order_number": order["order_number"]}, headers=auth(client_user))
    assert response.status_code == 200
    checkout = response.json()["checkout"]
    assert checkout["reference"].startswith("CHK")
    assert checkout["authorization_url"].endswith(checkout["reference"])
    assert paystack.initialized[0]["amount"] == 150000
    assert paystack.initialized[0]["metadata"]["order_id"] == order["id"]

    verified = api.get(f"/api/payments/checkout/verify/{checkout['reference']}", headers=auth(client_user))
    assert verified.status_code == 200
    body = verified.json()
    assert body["order"]["payment_status"] == "paid"
    assert body["payment"]["status"] == "completed"
    assert body["payment"]["payment_gateway"] == "paystack"
    assert body["payment"]["transaction_id"] == checkout["reference"]
    assert body["payment"]["amount"] == 1500.0

    # Verifying twice does not create a second payment
    again = api.get(f"/api/payments/checkout/verify/{checkout['reference']}", headers=auth(client_user)).json()
    assert again["payment"]["id"] == body["payment"]["id"]


def test_failed_checkout_leaves_order_unpaid(api, auth, client_user, place_order, paystack):
    order = place_order(client_user)
    checkout = api.post(
        "/api/payments/checkout", json={"order_number": order["order_number"]}, headers=auth(client_user),
    ).json()["checkout"]
    paystack.verify_status = "failed"

    response = api.get(f"/api/payments/checkout/verify/{checkout['reference']}", headers=auth(client_user))
    assert response.status_code == 400
    assert response.json() == {"message": "Payment was not successful"}

    fetched = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert fetched["payment_status"] == "pending"


def test_checkout_of_paid_order_rejected(api, auth, client_user, place_order, paystack):
    order = place_order(client_user)
    payment = _create_payment(api, auth, client_user, order).json()["payment"]
    api.post(f"/api/payments/{payment['id']}/process", headers=auth(client_user))

    response = api.post("/api/payments/checkout", json={"order_number": order["order_number"]}, headers=auth(client_user))
    assert response.status_code == 400
    assert response.json() == {"message": "Order is already paid"}


def test_webhook_confirms_checkout(api, auth, client_user, place_order, paystack):
    order = place_order(client_user)
    checkout = api.post(
        "/api/payments/checkout", json={"order_number": order["order_number"]}, headers=auth(client_user),
    ).json()["checkout"]

    body = json.dumps({
        "event": "charge.success",
        "data": {"reference": checkout["reference"], "status": "success", "channel": "bank_transfer", "amount": 100000},
    }).encode("utf-8")
    response = api.post(
        "/api/payments/webhook",
        content=body,
        headers={"x-paystack-signature": _sign(body), "Content-Type": "application/json"},
    )
    assert response.status_code == 200

    fetched = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert fetched["payment_status"] == "paid"
    payments = api.get("/api/payments", headers=auth(client_user)).json()["payments"]
    assert payments[0]["payment_method"] == "bank_transfer"


def test_webhook_rejects_bad_signature(api, paystack):
    body = json.dumps({"event": "charge.success", "data": {"reference": "CHK1"}}).encode("utf-8")
    response = api.post("/api/payments/webhook", content=body, headers={"x-paystack-signature": "forged"})
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid signature"}


def test_webhook_ignores_unknown_reference(api, paystack):
    body = json.dumps({"event": "charge.success", "data": {"reference": "CHK000", "status": "success"}}).encode("utf-8")
    response = api.post("/api/payments/webhook", content=body, headers={"x-paystack-signature": _sign(body)})
    assert response.status_code == 200


# ============================================================================
# WITHDRAWALS
# ============================================================================

def test_withdrawal_endpoint(api, auth, make_user):
    freelancer = make_user(UserRole.FREELANCER, total_earnings=Decimal("2000"))

    response = api.post(
        "/api/payments/withdrawals",
        json={"amount": 1000, "method": "bank_transfer", "account_details": {"account_number": "1234"}},
        headers=auth(freelancer),
    )
    assert response.status_code == 201
    withdrawal = response.json()["withdrawal"]
    assert withdrawal["processing_fee"] == 20.0
    assert withdrawal["net_amount"] == 980.0
    assert withdrawal["status"] == "pending"

    me = api.get("/api/auth/me", headers=auth(freelancer)).json()["user"]
    assert me["total_earnings"] == 1000.0

    listing = api.get("/api/payments/withdrawals", headers=auth(freelancer)).json()
    assert listing["pagination"]["total_withdrawals"] == 1

    stats = api.get("/api/payments/withdrawals/stats", headers=auth(freelancer)).json()["stats"]
    assert stats["total_fees"] == 20.0


def test_withdrawal_below_minimum(api, auth, make_user):
    freelancer = make_user(UserRole.FREELANCER, total_earnings=Decimal("2000"))
    response = api.post(
        "/api/payments/withdrawals", json={"amount": 499, "method": "upi"}, headers=auth(freelancer),
    )
    assert response.status_code == 400
    assert response.json() == {"message": "Minimum withdrawal amount is ₹500"}


def test_clients_cannot_withdraw(api, auth, client_user):
    response = api.post(
        "/api/payments/withdrawals", json={"amount": 1000, "method": "upi"}, headers=auth(client_user),
    )
    assert response.status_code == 403
