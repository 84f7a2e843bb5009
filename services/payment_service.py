# Payment Service for the Gig Marketplace
# Escrow payment records, manual processing and Paystack checkout sessions

from datetime import datetime
from typing import Optional, Tuple
import json
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.ownership import ensure_order_client, ensure_payment_client, ensure_payment_participant
from config.app_config import DEFAULT_PAYMENT_GATEWAY, FRONTEND_URL
from core.exceptions import ValidationError, NotFoundError, ConflictError, GatewayError
from core.paystack_service import PaystackService, PaystackConfig, PaystackWebhookHandler
from database.models import User, generate_reference
from database.marketplace_models import (
    Order, Payment,
    OrderStatusDB, OrderPaymentStatusDB, PaymentMethodDB, PaymentStatusDB,
)
from services.ledger import release_order_escrow
from services.query_builder import apply_filter, paginate, aggregate_stats

logger = logging.getLogger(__name__)

PAYSTACK_GATEWAY = "paystack"

PROCESSABLE_STATUSES = {PaymentStatusDB.PENDING, PaymentStatusDB.PROCESSING}

# Paystack charge channel -> our payment method
CHANNEL_METHODS = {
    "card": PaymentMethodDB.CREDIT_CARD,
    "bank": PaymentMethodDB.NET_BANKING,
    "bank_transfer": PaymentMethodDB.BANK_TRANSFER,
    "mobile_money": PaymentMethodDB.WALLET,
    "ussd": PaymentMethodDB.WALLET,
    "qr": PaymentMethodDB.UPI,
}


def parse_payment_method(value) -> PaymentMethodDB:
    if isinstance(value, PaymentMethodDB):
        return value
    try:
        return PaymentMethodDB(value)
    except ValueError:
        raise ValidationError("Invalid payment method")


class PaymentService:
    """
    Payment records bound one-to-one to orders.

    A payment is either created by the client and processed with a
    gateway response (the manual path), or produced by confirming a
    Paystack checkout session for the order.
    """

    def __init__(self, db: Session, gateway: Optional[PaystackService] = None):
        self.db = db
        self.gateway = gateway or PaystackService()

    def _client_order(self, client: User, order_number: str) -> Order:
        order = self.db.query(Order).filter(
            Order.order_number == order_number,
            Order.client_id == client.id,
        ).first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    def _load(self, payment_id: str) -> Payment:
        payment = self.db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    # ------------------------------------------------------------------
    # Manual path
    # ------------------------------------------------------------------

    def create_payment(
        self,
        client: User,
        order_number: str,
        payment_method,
        billing_details: Optional[dict] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        if not order_number or not payment_method:
            raise ValidationError("Missing required fields")
        method = parse_payment_method(payment_method)

        order = self._client_order(client, order_number)

        if self.db.query(Payment.id).filter(Payment.order_id == order.id).first():
            raise ConflictError("Payment already exists for this order")

        # Amount breakdown is copied from the order, never recomputed
        payment = Payment(
            payment_number=generate_reference("PAY"),
            order_id=order.id,
            client_id=client.id,
            freelancer_id=order.freelancer_id,
            amount=order.amount,
            currency=order.currency,
            platform_fee=order.platform_fee,
            freelancer_amount=order.freelancer_amount,
            payment_method=method,
            payment_gateway=DEFAULT_PAYMENT_GATEWAY,
            status=PaymentStatusDB.PENDING,
            payment_date=datetime.utcnow(),
            billing_details=billing_details or {},
            notes=notes,
        )

        try:
            self.db.add(payment)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError("Payment already exists for this order")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(payment)
        logger.info(f"Payment {payment.payment_number} created for order {order.order_number}")
        return payment

    def process_payment(
        self,
        client: User,
        payment_id: str,
        transaction_id: Optional[str] = None,
        gateway_response: Optional[dict] = None,
    ) -> Payment:
        payment = self._load(payment_id)
        ensure_payment_client(payment, client)

        if payment.status not in PROCESSABLE_STATUSES:
            raise ConflictError("Payment has already been processed")
        order = payment.order
        if order is not None and order.status == OrderStatusDB.CANCELLED:
            raise ValidationError("Order has been cancelled")

        now = datetime.utcnow()
        try:
            payment.status = PaymentStatusDB.COMPLETED
            payment.transaction_id = transaction_id
            payment.processed_date = now
            payment.completed_date = now
            payment.gateway_response = gateway_response or {
                "success": True,
                "message": "Payment processed successfully",
                "code": "SUCCESS",
            }
            if order is not None:
                order.payment_status = OrderPaymentStatusDB.PAID
                if order.status == OrderStatusDB.COMPLETED:
                    release_order_escrow(self.db, order)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(payment)
        logger.info(f"Payment {payment.payment_number} processed (transaction {transaction_id})")
        return payment

    # ------------------------------------------------------------------
    # Checkout sessions (Paystack)
    # ------------------------------------------------------------------

    def start_checkout(self, client: User, order_number: str, callback_url: Optional[str] = None) -> dict:
        """
        Open a hosted checkout for an order and remember its reference.

        Returns the gateway's authorization_url, access_code and reference.
        """
        order = self._client_order(client, order_number)
        if order.status == OrderStatusDB.CANCELLED:
            raise ValidationError("Order has been cancelled")
        if order.payment_status in (OrderPaymentStatusDB.PAID, OrderPaymentStatusDB.DISPUTED):
            raise ConflictError("Order is already paid")

        reference = generate_reference("CHK")
        response = self.gateway.initialize_transaction(
            email=client.email,
            amount=PaystackService.to_minor_units(order.amount),
            callback_url=callback_url or f"{FRONTEND_URL}/orders/{order.id}/payment",
            reference=reference,
            metadata={
                "order_id": order.id,
                "order_number": order.order_number,
                "client_id": client.id,
            },
        )
        if not response.get("status"):
            logger.error(f"Paystack initialize failed for order {order.order_number}: {response.get('message')}")
            raise GatewayError("Payment initialization failed")

        data = response.get("data") or {}
        try:
            order.checkout_reference = data.get("reference") or reference
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        amount_display = PaystackService.format_amount(PaystackService.to_minor_units(order.amount))
        logger.info(f"Checkout {order.checkout_reference} started for order {order.order_number} ({amount_display})")
        return {
            "authorization_url": data.get("authorization_url"),
            "access_code": data.get("access_code"),
            "reference": order.checkout_reference,
        }

    def confirm_checkout(
        self,
        reference: str,
        gateway_data: Optional[dict] = None,
        user: Optional[User] = None,
    ) -> Tuple[Order, Payment]:
        """
        Persist a successful checkout session as the order's payment.

        `gateway_data` is the session payload when it has already been
        obtained (webhook); otherwise the session is fetched by reference.
        Repeated confirmations of the same session are no-ops.
        """
        order = self.db.query(Order).filter(Order.checkout_reference == reference).first()
        if not order:
            raise NotFoundError("Order not found")
        if user is not None:
            ensure_order_client(order, user)

        if gateway_data is None:
            response = self.gateway.verify_transaction(reference)
            gateway_data = response.get("data") or {}

        if gateway_data.get("status") != "success":
            raise ValidationError("Payment was not successful")

        payment = order.payment
        if payment is not None and payment.status not in PROCESSABLE_STATUSES:
            return order, payment

        now = datetime.utcnow()
        method = CHANNEL_METHODS.get(gateway_data.get("channel"), PaymentMethodDB.CREDIT_CARD)
        try:
            if payment is None:
                payment = Payment(
                    payment_number=generate_reference("PAY"),
                    order_id=order.id,
                    client_id=order.client_id,
                    freelancer_id=order.freelancer_id,
                    amount=order.amount,
                    currency=order.currency,
                    platform_fee=order.platform_fee,
                    freelancer_amount=order.freelancer_amount,
                    payment_method=method,
                    payment_date=now,
                )
                self.db.add(payment)

            payment.payment_gateway = PAYSTACK_GATEWAY
            payment.transaction_id = reference
            payment.status = PaymentStatusDB.COMPLETED
            payment.processed_date = now
            payment.completed_date = now
            payment.gateway_response = gateway_data
            order.payment_status = OrderPaymentStatusDB.PAID
            if order.status == OrderStatusDB.COMPLETED:
                release_order_escrow(self.db, order)
            self.db.commit()
        except IntegrityError:
            # A concurrent confirmation already recorded the payment
            self.db.rollback()
            order = self.db.query(Order).filter(Order.checkout_reference == reference).first()
            return order, order.payment
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        self.db.refresh(payment)
        logger.info(f"Checkout {reference} confirmed: order {order.order_number} paid")
        return order, payment

    def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> Optional[Order]:
        """Verify a Paystack event and apply charge.success to its order."""
        if not PaystackWebhookHandler.verify_webhook(raw_body, signature, PaystackConfig.SECRET_KEY):
            raise ValidationError("Invalid signature")

        try:
            event = json.loads(raw_body)
        except ValueError:
            raise ValidationError("Invalid payload")

        event_type = event.get("event")
        logger.info(f"Paystack webhook received: {event_type}")

        if event_type not in PaystackWebhookHandler.SUPPORTED_EVENTS:
            return None

        data = event.get("data") or {}
        info = PaystackWebhookHandler.handle_charge_success(data)
        reference = info.get("reference")
        if not reference:
            return None

        try:
            order, _ = self.confirm_checkout(reference, gateway_data=data)
        except NotFoundError:
            logger.warning(f"Webhook for unknown checkout reference {reference}")
            return None
        return order

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_payment(self, user: User, payment_id: str) -> Payment:
        payment = self._load(payment_id)
        ensure_payment_participant(payment, user)
        return payment

    def list_payments(self, user: User, status_filter=None, method=None, page: int = 1, limit: int = 10):
        column = Payment.freelancer_id if user.is_freelancer else Payment.client_id
        query = self.db.query(Payment).filter(column == user.id)
        query = apply_filter(query, Payment.status, status_filter)
        query = apply_filter(query, Payment.payment_method, method)
        query = query.order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        return paginate(query, page, limit, "payments")

    def payment_stats(self, user: User) -> dict:
        column = Payment.freelancer_id if user.is_freelancer else Payment.client_id
        return aggregate_stats(
            self.db,
            Payment.id,
            [column == user.id],
            total_label="total_payments",
            counts={
                "completed_payments": Payment.status == PaymentStatusDB.COMPLETED,
                "pending_payments": Payment.status == PaymentStatusDB.PENDING,
                "failed_payments": Payment.status == PaymentStatusDB.FAILED,
            },
            sums={"total_amount": Payment.amount},
            averages={"average_amount": Payment.amount},
        )
