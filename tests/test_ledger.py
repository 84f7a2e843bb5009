"""
Fee splits and withdrawals against cached freelancer earnings.
"""

from decimal import Decimal, ROUND_HALF_UP

import pytest

from core.exceptions import ValidationError
from database.models import UserRole
from database.marketplace_models import WithdrawalMethodDB, WithdrawalStatusDB
from services.ledger import WithdrawalService, split_order_amount, to_money, withdrawal_fee


@pytest.mark.parametrize("amount", ["1000", "999.99", "0.05", "12345.67", "1"])
def test_fee_split_sums_to_amount(amount):
    platform_fee, freelancer_amount = split_order_amount(amount)
    assert platform_fee + freelancer_amount == Decimal(amount)
    assert platform_fee == (Decimal(amount) * Decimal("0.1")).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def test_fee_split_of_1000():
    assert split_order_amount(1000) == (Decimal("100.00"), Decimal("900.00"))


def test_withdrawal_fee_is_two_percent():
    assert withdrawal_fee(1000) == (Decimal("20.00"), Decimal("980.00"))


def test_to_money_rounds_half_up():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(3) == Decimal("3.00")


def test_withdrawal_below_minimum_rejected(db, make_user):
    freelancer = make_user(role=UserRole.FREELANCER, total_earnings=Decimal("5000"))
    with pytest.raises(ValidationError, match="Minimum withdrawal amount is ₹500"):
        WithdrawalService(db).create_withdrawal(freelancer, 499, WithdrawalMethodDB.UPI)


def test_withdrawal_over_balance_rejected(db, make_user):
    freelancer = make_user(role=UserRole.FREELANCER, total_earnings=Decimal("500"))
    with pytest.raises(ValidationError, match="Insufficient balance"):
        WithdrawalService(db).create_withdrawal(freelancer, 1000, WithdrawalMethodDB.BANK_TRANSFER)

    db.refresh(freelancer)
    assert freelancer.total_earnings == Decimal("500.00")
    assert WithdrawalService(db).withdrawal_stats(freelancer)["total_withdrawals"] == 0


def test_withdrawal_debits_earnings(db, make_user):
    freelancer = make_user(role=UserRole.FREELANCER, total_earnings=Decimal("2000"))
    withdrawal = WithdrawalService(db).create_withdrawal(
        freelancer, 1000, WithdrawalMethodDB.UPI, account_details={"upi_id": "me@bank"},
    )

    assert withdrawal.withdrawal_number.startswith("WTH")
    assert withdrawal.status == WithdrawalStatusDB.PENDING
    assert withdrawal.processing_fee == Decimal("20.00")
    assert withdrawal.net_amount == Decimal("980.00")
    assert withdrawal.estimated_delivery is not None
    assert freelancer.total_earnings == Decimal("1000.00")


def test_second_withdrawal_cannot_overdraw(db, make_user):
    freelancer = make_user(role=UserRole.FREELANCER, total_earnings=Decimal("1500"))
    service = WithdrawalService(db)
    service.create_withdrawal(freelancer, 1000, WithdrawalMethodDB.UPI)

    with pytest.raises(ValidationError, match="Insufficient balance"):
        service.create_withdrawal(freelancer, 1000, WithdrawalMethodDB.UPI)

    stats = service.withdrawal_stats(freelancer)
    assert stats["total_withdrawals"] == 1
    assert stats["pending_withdrawals"] == 1
    assert stats["total_amount"] == 1000.0
    assert stats["total_fees"] == 20.0
