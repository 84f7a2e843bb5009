# Ledger Service for the Gig Marketplace
# Fee splits, freelancer withdrawals and escrow release against cached earnings

from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Tuple
import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from config.app_config import (
    PLATFORM_FEE_PERCENT,
    WITHDRAWAL_FEE_PERCENT,
    MIN_WITHDRAWAL_AMOUNT,
    WITHDRAWAL_DELIVERY_DAYS,
    DEFAULT_CURRENCY,
)
from core.exceptions import ValidationError
from database.models import User, generate_reference
from database.marketplace_models import (
    Order, Withdrawal,
    OrderPaymentStatusDB, PaymentStatusDB, WithdrawalMethodDB, WithdrawalStatusDB,
)
from services.query_builder import apply_filter, paginate, aggregate_stats

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Order payment states in which the client's money is held by the platform
ESCROWED_PAYMENT_STATUSES = {OrderPaymentStatusDB.PAID, OrderPaymentStatusDB.DISPUTED}


def to_money(value) -> Decimal:
    """Coerce a number to a Decimal with two places."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _percent_of(amount: Decimal, percent: int) -> Decimal:
    return (amount * Decimal(percent) / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)


def split_order_amount(amount) -> Tuple[Decimal, Decimal]:
    """
    Split an order amount into (platform_fee, freelancer_amount).

    platform_fee is rounded to the currency's minor unit and
    freelancer_amount takes the remainder, so the two always sum to amount.
    """
    amount = to_money(amount)
    platform_fee = _percent_of(amount, PLATFORM_FEE_PERCENT)
    return platform_fee, amount - platform_fee


def withdrawal_fee(amount) -> Tuple[Decimal, Decimal]:
    """Return (processing_fee, net_amount) for a withdrawal."""
    amount = to_money(amount)
    processing_fee = _percent_of(amount, WITHDRAWAL_FEE_PERCENT)
    return processing_fee, amount - processing_fee


def release_order_escrow(db: Session, order: Order) -> bool:
    """
    Credit the freelancer's earnings with a paid order's payout.

    Runs inside the caller's transaction; returns False when there is
    nothing to release (unpaid, refunded or already released). A disputed
    payment is settled back to paid on release.
    """
    if order.payment_status not in ESCROWED_PAYMENT_STATUSES or order.escrow_released:
        return False

    order.payment_status = OrderPaymentStatusDB.PAID

    now = datetime.utcnow()
    db.execute(
        update(User)
        .where(User.id == order.freelancer_id)
        .values(total_earnings=User.total_earnings + order.freelancer_amount)
        .execution_options(synchronize_session=False)
    )
    order.escrow_released = True
    order.escrow_release_date = now
    if order.payment is not None:
        order.payment.escrow_released = True
        order.payment.escrow_release_date = now

    logger.info(f"Escrow released for order {order.order_number}: {order.freelancer_amount} to {order.freelancer_id}")
    return True


def refund_order_payment(order: Order, reason: Optional[str] = None) -> bool:
    """
    Return a cancelled order's escrowed payment to the client.

    Runs inside the caller's transaction; returns False when nothing was
    held (unpaid or already released).
    """
    if order.payment_status not in ESCROWED_PAYMENT_STATUSES or order.escrow_released:
        return False

    now = datetime.utcnow()
    order.payment_status = OrderPaymentStatusDB.REFUNDED
    if order.payment is not None:
        order.payment.status = PaymentStatusDB.REFUNDED
        order.payment.refund_amount = order.payment.amount
        order.payment.refund_reason = reason
        order.payment.refund_date = now

    logger.info(f"Payment for order {order.order_number} refunded to {order.client_id}: {order.amount}")
    return True


class WithdrawalService:
    """Freelancer payout requests debited from cached total earnings."""

    def __init__(self, db: Session):
        self.db = db

    def create_withdrawal(
        self,
        freelancer: User,
        amount,
        method: WithdrawalMethodDB,
        account_details: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> Withdrawal:
        amount = to_money(amount)

        if amount < MIN_WITHDRAWAL_AMOUNT:
            raise ValidationError(f"Minimum withdrawal amount is ₹{MIN_WITHDRAWAL_AMOUNT}")

        if to_money(freelancer.total_earnings or 0) < amount:
            raise ValidationError("Insufficient balance")

        processing_fee, net_amount = withdrawal_fee(amount)

        withdrawal = Withdrawal(
            withdrawal_number=generate_reference("WTH"),
            freelancer_id=freelancer.id,
            amount=amount,
            currency=DEFAULT_CURRENCY,
            processing_fee=processing_fee,
            net_amount=net_amount,
            method=method,
            account_details=account_details or {},
            status=WithdrawalStatusDB.PENDING,
            requested_date=datetime.utcnow(),
            estimated_delivery=datetime.utcnow() + timedelta(days=WITHDRAWAL_DELIVERY_DAYS),
            notes=notes,
        )

        try:
            self.db.add(withdrawal)
            # Conditional debit: a concurrent withdrawal that already spent
            # the balance makes this match zero rows.
            result = self.db.execute(
                update(User)
                .where(User.id == freelancer.id, User.total_earnings >= amount)
                .values(total_earnings=User.total_earnings - amount)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ValidationError("Insufficient balance")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(withdrawal)
        self.db.refresh(freelancer)
        logger.info(f"Withdrawal {withdrawal.withdrawal_number} created for {freelancer.id}: {amount} (net {net_amount})")
        return withdrawal

    def list_withdrawals(self, freelancer: User, status_filter=None, page: int = 1, limit: int = 10):
        query = self.db.query(Withdrawal).filter(Withdrawal.freelancer_id == freelancer.id)
        query = apply_filter(query, Withdrawal.status, status_filter)
        query = query.order_by(Withdrawal.requested_date.desc(), Withdrawal.created_at.desc())
        return paginate(query, page, limit, "withdrawals")

    def withdrawal_stats(self, freelancer: User) -> dict:
        return aggregate_stats(
            self.db,
            Withdrawal.id,
            [Withdrawal.freelancer_id == freelancer.id],
            total_label="total_withdrawals",
            counts={
                "completed_withdrawals": Withdrawal.status == WithdrawalStatusDB.COMPLETED,
                "pending_withdrawals": Withdrawal.status == WithdrawalStatusDB.PENDING,
                "failed_withdrawals": Withdrawal.status == WithdrawalStatusDB.FAILED,
            },
            sums={
                "total_amount": Withdrawal.amount,
                "total_fees": Withdrawal.processing_fee,
            },
        )
