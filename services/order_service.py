# Order Service for the Gig Marketplace
# Order placement, the status state machine, cancellation and the message log

from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.ownership import ensure_order_participant, ensure_order_freelancer, party_role
from core.exceptions import (
    ValidationError,
    NotFoundError,
    AccessDeniedError,
    InvalidTransitionError,
    ConflictError,
)
from config.app_config import DEFAULT_CURRENCY
from database.models import User, generate_reference
from database.marketplace_models import (
    Gig, Order, OrderMessage,
    GigStatusDB, OrderStatusDB, OrderPaymentStatusDB, PartyRoleDB,
)
from services.ledger import to_money, split_order_amount, release_order_escrow, refund_order_payment
from services.query_builder import apply_filter, apply_sort, text_search, paginate, aggregate_stats

logger = logging.getLogger(__name__)


# current -> allowed next
ALLOWED_TRANSITIONS = {
    OrderStatusDB.PENDING: {OrderStatusDB.IN_PROGRESS, OrderStatusDB.CANCELLED},
    OrderStatusDB.IN_PROGRESS: {OrderStatusDB.DELIVERED, OrderStatusDB.CANCELLED},
    OrderStatusDB.DELIVERED: {OrderStatusDB.COMPLETED, OrderStatusDB.DISPUTED},
    OrderStatusDB.DISPUTED: {OrderStatusDB.COMPLETED, OrderStatusDB.CANCELLED},
    OrderStatusDB.COMPLETED: set(),
    OrderStatusDB.CANCELLED: set(),
}

CANCELLABLE_STATUSES = {OrderStatusDB.PENDING, OrderStatusDB.IN_PROGRESS}

ORDER_SORT_OPTIONS = {
    "newest": (Order.order_date.desc(), Order.created_at.desc()),
    "oldest": (Order.order_date.asc(), Order.created_at.asc()),
    "amount_high": (Order.amount.desc(),),
    "amount_low": (Order.amount.asc(),),
    "delivery_date": (Order.delivery_date.asc(),),
}


def can_transition(current: OrderStatusDB, requested: OrderStatusDB) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(current, set())


def parse_order_status(value) -> OrderStatusDB:
    if isinstance(value, OrderStatusDB):
        return value
    try:
        return OrderStatusDB(value)
    except ValueError:
        raise ValidationError("Invalid order status")


class OrderService:
    """
    Order lifecycle operations.

    Every mutating method commits its own transaction and rolls the
    session back on failure, so a rejected request leaves no partial state.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _load(self, order_id: str) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFoundError("Order not found")
        return order

    def get_order(self, user: User, order_id: str) -> Order:
        order = self._load(order_id)
        ensure_order_participant(order, user)
        return order

    def list_orders(
        self,
        user: User,
        side: PartyRoleDB,
        status_filter=None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ):
        """Orders where `user` is on the given side (client or freelancer)."""
        column = Order.freelancer_id if side == PartyRoleDB.FREELANCER else Order.client_id
        query = self.db.query(Order).filter(column == user.id)
        query = apply_filter(query, Order.status, status_filter)
        query = text_search(query, [Order.order_number, Order.title], search)
        query = apply_sort(query, sort, ORDER_SORT_OPTIONS, "newest")
        return paginate(query, page, limit, "orders")

    def order_stats(self, user: User) -> dict:
        column = Order.freelancer_id if user.is_freelancer else Order.client_id
        return aggregate_stats(
            self.db,
            Order.id,
            [column == user.id],
            total_label="total_orders",
            counts={
                "pending_orders": Order.status == OrderStatusDB.PENDING,
                "in_progress_orders": Order.status == OrderStatusDB.IN_PROGRESS,
                "delivered_orders": Order.status == OrderStatusDB.DELIVERED,
                "completed_orders": Order.status == OrderStatusDB.COMPLETED,
                "cancelled_orders": Order.status == OrderStatusDB.CANCELLED,
                "disputed_orders": Order.status == OrderStatusDB.DISPUTED,
            },
            sums={"total_amount": Order.amount},
            averages={"average_amount": Order.amount},
        )

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------

    def create_order(
        self,
        client: User,
        gig_id: str,
        title: str,
        description: str,
        amount,
        delivery_date: datetime,
        requirements: Optional[str] = None,
    ) -> Order:
        if not gig_id or not title or not description or amount is None or not delivery_date:
            raise ValidationError("Missing required fields")

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        gig = self.db.query(Gig).filter(Gig.id == gig_id).first()
        if not gig:
            raise NotFoundError("Gig not found")
        if gig.status != GigStatusDB.ACTIVE:
            raise ValidationError("Gig is not available for orders")

        platform_fee, freelancer_amount = split_order_amount(amount)

        order = Order(
            order_number=generate_reference("ORD"),
            title=title.strip(),
            description=description.strip(),
            requirements=requirements,
            gig_id=gig.id,
            client_id=client.id,
            freelancer_id=gig.freelancer_id,
            amount=amount,
            currency=gig.currency or DEFAULT_CURRENCY,
            platform_fee=platform_fee,
            freelancer_amount=freelancer_amount,
            status=OrderStatusDB.PENDING,
            order_date=datetime.utcnow(),
            delivery_date=delivery_date,
            deliverables=[],
            max_revisions=gig.revisions or 0,
            payment_status=OrderPaymentStatusDB.PENDING,
        )

        try:
            self.db.add(order)
            self.db.execute(
                update(Gig)
                .where(Gig.id == gig.id)
                .values(orders=Gig.orders + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(User)
                .where(User.id == gig.freelancer_id)
                .values(total_orders=User.total_orders + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number} placed by {client.id} on gig {gig.id} for {amount}")
        return order

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------

    def update_status(
        self,
        user: User,
        order_id: str,
        new_status,
        deliverables: Optional[List[dict]] = None,
        reason: Optional[str] = None,
    ) -> Order:
        """
        Move an order along the transition table.

        Only the order's freelancer (or an admin) may advance status.
        Cancellation through this path is allowed where the table permits
        it, but the dedicated cancel operation also records who cancelled.
        """
        new_status = parse_order_status(new_status)
        order = self._load(order_id)
        ensure_order_freelancer(order, user)

        current = order.status
        if not can_transition(current, new_status):
            raise InvalidTransitionError(current.value, new_status.value)

        now = datetime.utcnow()
        try:
            order.status = new_status

            if new_status == OrderStatusDB.IN_PROGRESS and not order.start_date:
                order.start_date = now

            elif new_status == OrderStatusDB.DELIVERED and deliverables is not None:
                order.deliverables = [
                    {**item, "uploaded_at": item.get("uploaded_at") or now.isoformat()}
                    for item in deliverables
                ]

            elif new_status == OrderStatusDB.COMPLETED:
                order.completed_date = now
                release_order_escrow(self.db, order)

            elif new_status == OrderStatusDB.DISPUTED:
                order.is_disputed = True
                order.dispute_date = now
                order.dispute_reason = reason
                if order.payment_status == OrderPaymentStatusDB.PAID:
                    order.payment_status = OrderPaymentStatusDB.DISPUTED

            elif new_status == OrderStatusDB.CANCELLED:
                order.cancelled_by = party_role(order, user.id) or PartyRoleDB.ADMIN
                order.cancellation_reason = reason
                order.cancellation_date = now
                refund_order_payment(order, reason)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number} moved {current.value} -> {new_status.value} by {user.id}")
        return order

    def cancel_order(self, user: User, order_id: str, reason: Optional[str] = None) -> Order:
        order = self._load(order_id)
        cancelled_by = ensure_order_participant(order, user)

        if order.status not in CANCELLABLE_STATUSES:
            raise ValidationError("Order cannot be cancelled in current status")

        try:
            order.status = OrderStatusDB.CANCELLED
            order.cancellation_reason = reason
            order.cancelled_by = cancelled_by
            order.cancellation_date = datetime.utcnow()
            refund_order_payment(order, reason)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(f"Order {order.order_number} cancelled by {cancelled_by.value} ({user.id})")
        return order

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def add_message(
        self,
        user: User,
        order_id: str,
        message: Optional[str],
        attachments: Optional[List[dict]] = None,
    ) -> Order:
        text = (message or "").strip()
        if not text:
            raise ValidationError("Message is required")

        order = self._load(order_id)
        sender = party_role(order, user.id)
        if sender is None:
            raise AccessDeniedError()

        try:
            self.db.add(OrderMessage(
                order_id=order.id,
                position=len(order.messages),
                sender=sender,
                message=text,
                attachments=attachments or [],
                timestamp=datetime.utcnow(),
            ))
            self.db.commit()
        except IntegrityError:
            # Another message took this position first
            self.db.rollback()
            raise ConflictError("Message could not be added, please retry")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        return order
