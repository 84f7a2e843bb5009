# Payments Router for the Gig Marketplace
# Handles order payments, Paystack checkout sessions and freelancer withdrawals

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import Optional

from database.config import get_db
from database.models import User
from database.marketplace_models import Payment, Withdrawal
from schemas.marketplace import (
    PaymentCreate,
    PaymentProcess,
    PaymentResponse,
    CheckoutCreate,
    OrderResponse,
    WithdrawalCreate,
    WithdrawalResponse,
)
from auth.roles import UserType, Permission
from auth.decorators import require_user_type, require_permission
from services.payment_service import PaymentService
from services.ledger import WithdrawalService

router = APIRouter(prefix="/payments", tags=["Payments"])


def _payment_to_response(payment: Payment) -> dict:
    return PaymentResponse.model_validate(payment).model_dump(mode="json")


def _withdrawal_to_response(withdrawal: Withdrawal) -> dict:
    return WithdrawalResponse.model_validate(withdrawal).model_dump(mode="json")


# ============================================================================
# PAYMENT LISTINGS
# ============================================================================

@router.get("")
async def get_user_payments(
    status_filter: Optional[str] = Query(None, alias="status"),
    method: Optional[str] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_OWN_PAYMENTS)),
):
    """Payments made by a client, or received by a freelancer."""
    payments, pagination = PaymentService(db).list_payments(
        current_user, status_filter=status_filter, method=method, page=page, limit=limit,
    )
    return {
        "success": True,
        "payments": [_payment_to_response(p) for p in payments],
        "pagination": pagination,
    }


@router.get("/stats")
async def get_payment_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_OWN_PAYMENTS)),
):
    return {"success": True, "stats": PaymentService(db).payment_stats(current_user)}


# ============================================================================
# WITHDRAWALS
# ============================================================================

@router.get("/withdrawals")
async def get_withdrawals(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.FREELANCER)),
):
    withdrawals, pagination = WithdrawalService(db).list_withdrawals(
        current_user, status_filter=status_filter, page=page, limit=limit,
    )
    return {
        "success": True,
        "withdrawals": [_withdrawal_to_response(w) for w in withdrawals],
        "pagination": pagination,
    }


@router.get("/withdrawals/stats")
async def get_withdrawal_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.FREELANCER)),
):
    return {"success": True, "stats": WithdrawalService(db).withdrawal_stats(current_user)}


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def create_withdrawal(
    withdrawal_data: WithdrawalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.WITHDRAW_FUNDS)),
):
    """Request a payout from the freelancer's earnings (2% processing fee)."""
    withdrawal = WithdrawalService(db).create_withdrawal(
        current_user,
        amount=withdrawal_data.amount,
        method=withdrawal_data.method,
        account_details=withdrawal_data.account_details,
        notes=withdrawal_data.notes,
    )
    return {
        "success": True,
        "message": "Withdrawal request created successfully",
        "withdrawal": _withdrawal_to_response(withdrawal),
    }


# ============================================================================
# CHECKOUT SESSIONS (Paystack)
# ============================================================================

@router.post("/checkout")
async def start_checkout(
    checkout_data: CheckoutCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MAKE_PAYMENTS)),
):
    """Open a Paystack checkout for an order; redirect the client to authorization_url."""
    session = PaymentService(db).start_checkout(
        current_user, checkout_data.order_number, checkout_data.callback_url,
    )
    return {"success": True, "message": "Checkout session created", "checkout": session}


@router.get("/checkout/verify/{reference}")
async def verify_checkout(
    reference: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MAKE_PAYMENTS)),
):
    order, payment = PaymentService(db).confirm_checkout(reference, user=current_user)
    return {
        "success": True,
        "message": "Payment verified successfully",
        "order": OrderResponse.model_validate(order).model_dump(mode="json"),
        "payment": _payment_to_response(payment),
    }


@router.post("/webhook")
async def paystack_webhook(request: Request, db: Session = Depends(get_db)):
    """Handle Paystack webhooks. Authenticated by the x-paystack-signature header."""
    signature = request.headers.get("x-paystack-signature")
    body = await request.body()
    PaymentService(db).handle_webhook(body, signature)
    return {"success": True, "message": "Webhook processed"}


# ============================================================================
# PAYMENT RECORDS
# ============================================================================

@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_OWN_PAYMENTS)),
):
    payment = PaymentService(db).get_payment(current_user, payment_id)
    return {"success": True, "payment": _payment_to_response(payment)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MAKE_PAYMENTS)),
):
    billing = payment_data.billing_details.model_dump() if payment_data.billing_details else None
    payment = PaymentService(db).create_payment(
        current_user,
        payment_data.order_number,
        payment_data.payment_method,
        billing_details=billing,
        notes=payment_data.notes,
    )
    return {
        "success": True,
        "message": "Payment created successfully",
        "payment": _payment_to_response(payment),
    }


@router.post("/{payment_id}/process")
async def process_payment(
    payment_id: str,
    process_data: Optional[PaymentProcess] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MAKE_PAYMENTS)),
):
    process_data = process_data or PaymentProcess()
    payment = PaymentService(db).process_payment(
        current_user,
        payment_id,
        transaction_id=process_data.transaction_id,
        gateway_response=process_data.gateway_response,
    )
    return {
        "success": True,
        "message": "Payment processed successfully",
        "payment": _payment_to_response(payment),
    }
