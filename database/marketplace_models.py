# Marketplace Database Models
# Gigs, orders, payments, withdrawals and reviews built on the core User model

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, JSON, Enum, Boolean, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from database.models import Base, generate_uuid


# ============================================================================
# ENUMS
# ============================================================================

class GigStatusDB(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"


class OrderStatusDB(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"


class OrderPaymentStatusDB(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"
    DISPUTED = "disputed"


class PartyRoleDB(str, enum.Enum):
    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class PaymentMethodDB(str, enum.Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    UPI = "upi"
    NET_BANKING = "net_banking"
    WALLET = "wallet"
    BANK_TRANSFER = "bank_transfer"


class PaymentStatusDB(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class WithdrawalMethodDB(str, enum.Enum):
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    PAYPAL = "paypal"
    RAZORPAY = "razorpay"


class WithdrawalStatusDB(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ReviewStatusDB(str, enum.Enum):
    ACTIVE = "active"
    HIDDEN = "hidden"
    REPORTED = "reported"


def _enum(enum_cls, name):
    return Enum(enum_cls, values_callable=lambda x: [e.value for e in x], name=name)


# Shared by orders.cancelled_by and order_messages.sender
PARTY_ROLE = _enum(PartyRoleDB, "partyroledb")


# ============================================================================
# GIG
# ============================================================================

class Gig(Base):
    """Services offered by freelancers."""
    __tablename__ = "gigs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    freelancer_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    subcategory = Column(String(100))
    tags = Column(JSON)  # ["logo", "branding"]

    price = Column(Numeric(12, 2), nullable=False)
    price_type = Column(String(20), default="fixed")  # fixed, hourly
    min_price = Column(Numeric(12, 2))
    max_price = Column(Numeric(12, 2))
    currency = Column(String(3), default="INR")
    delivery_time = Column(Integer, nullable=False)  # days
    revisions = Column(Integer, nullable=False, default=0)

    images = Column(JSON)  # Array of URLs
    video = Column(String(500))

    status = Column(_enum(GigStatusDB, "gigstatusdb"), nullable=False, default=GigStatusDB.DRAFT)

    # Counters
    views = Column(Integer, nullable=False, default=0)
    clicks = Column(Integer, nullable=False, default=0)
    orders = Column(Integer, nullable=False, default=0)
    rating = Column(Numeric(3, 1), nullable=False, default=0)
    reviews_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    freelancer = relationship("User", backref="gigs")


# ============================================================================
# ORDER
# ============================================================================

class Order(Base):
    """Work ordered by a client against a freelancer's gig."""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_number = Column(String(20), unique=True, nullable=False, index=True)  # ORD123456789

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    requirements = Column(Text)

    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=False)
    client_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Pricing
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="INR")
    platform_fee = Column(Numeric(12, 2), nullable=False, default=0)
    freelancer_amount = Column(Numeric(12, 2), nullable=False)  # amount - platform_fee

    status = Column(_enum(OrderStatusDB, "orderstatusdb"), nullable=False, default=OrderStatusDB.PENDING, index=True)

    # Timeline
    order_date = Column(DateTime, server_default=func.now())
    start_date = Column(DateTime)
    delivery_date = Column(DateTime, nullable=False)
    completed_date = Column(DateTime)

    deliverables = Column(JSON)  # [{name, description, file_url, uploaded_at}]

    # Revisions
    revisions = Column(Integer, nullable=False, default=0)
    max_revisions = Column(Integer, nullable=False, default=0)

    # Payment & escrow
    payment_status = Column(_enum(OrderPaymentStatusDB, "orderpaymentstatusdb"), nullable=False, default=OrderPaymentStatusDB.PENDING, index=True)
    checkout_reference = Column(String(100), unique=True)  # Paystack reference
    is_escrowed = Column(Boolean, default=True)
    escrow_released = Column(Boolean, default=False)
    escrow_release_date = Column(DateTime)

    # Cancellation
    cancellation_reason = Column(Text)
    cancelled_by = Column(PARTY_ROLE)
    cancellation_date = Column(DateTime)

    # Dispute
    is_disputed = Column(Boolean, default=False)
    dispute_reason = Column(Text)
    dispute_date = Column(DateTime)

    # Review link (one-to-one, owned by reviews.order_id)
    has_review = Column(Boolean, default=False)
    review_id = Column(String(36))

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    gig = relationship("Gig", backref="order_list")
    client = relationship("User", foreign_keys=[client_id], backref="client_orders")
    freelancer = relationship("User", foreign_keys=[freelancer_id], backref="freelancer_orders")
    messages = relationship(
        "OrderMessage",
        back_populates="order",
        order_by="OrderMessage.position",
        cascade="all, delete-orphan",
    )
    review = relationship("Review", back_populates="order", uselist=False)
    payment = relationship("Payment", back_populates="order", uselist=False)

    __table_args__ = (
        Index("ix_orders_client_created", "client_id", "created_at"),
        Index("ix_orders_freelancer_created", "freelancer_id", "created_at"),
    )


class OrderMessage(Base):
    """Append-only communication log attached to an order."""
    __tablename__ = "order_messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)  # insertion index within the order

    sender = Column(PARTY_ROLE, nullable=False)
    message = Column(Text, nullable=False)
    attachments = Column(JSON)  # [{name, url, type}]
    timestamp = Column(DateTime, nullable=False)

    order = relationship("Order", back_populates="messages")

    __table_args__ = (
        UniqueConstraint("order_id", "position", name="uq_order_messages_position"),
    )


# ============================================================================
# PAYMENT
# ============================================================================

class Payment(Base):
    """Client payment held in escrow for an order."""
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    payment_number = Column(String(20), unique=True, nullable=False, index=True)  # PAY123456789
    transaction_id = Column(String(100), index=True)  # External gateway transaction ID

    # One payment per order, enforced by the database
    order_id = Column(String(36), ForeignKey("orders.id"), unique=True, nullable=False)
    client_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    # Amount details, mirrored from the order
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="INR")
    platform_fee = Column(Numeric(12, 2), nullable=False, default=0)
    freelancer_amount = Column(Numeric(12, 2), nullable=False)

    payment_method = Column(_enum(PaymentMethodDB, "paymentmethoddb"), nullable=False)
    payment_gateway = Column(String(30))  # razorpay, paystack

    status = Column(_enum(PaymentStatusDB, "paymentstatusdb"), nullable=False, default=PaymentStatusDB.PENDING, index=True)

    # Timeline
    payment_date = Column(DateTime, server_default=func.now())
    processed_date = Column(DateTime)
    completed_date = Column(DateTime)

    # Escrow
    is_escrowed = Column(Boolean, default=True)
    escrow_release_date = Column(DateTime)
    escrow_released = Column(Boolean, default=False)

    # Refunds
    refund_amount = Column(Numeric(12, 2), default=0)
    refund_reason = Column(Text)
    refund_date = Column(DateTime)

    gateway_response = Column(JSON)  # {success, message, code, data}
    billing_details = Column(JSON)  # {name, email, phone, address}
    notes = Column(Text)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    order = relationship("Order", back_populates="payment")
    client = relationship("User", foreign_keys=[client_id])
    freelancer = relationship("User", foreign_keys=[freelancer_id])


# ============================================================================
# WITHDRAWAL
# ============================================================================

class Withdrawal(Base):
    """Freelancer payout request debited from total earnings."""
    __tablename__ = "withdrawals"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    withdrawal_number = Column(String(20), unique=True, nullable=False, index=True)  # WTH123456789
    freelancer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="INR")
    processing_fee = Column(Numeric(12, 2), nullable=False, default=0)
    net_amount = Column(Numeric(12, 2), nullable=False)  # amount - processing_fee

    method = Column(_enum(WithdrawalMethodDB, "withdrawalmethoddb"), nullable=False)
    account_details = Column(JSON)  # {account_number, ifsc_code, upi_id, ...}

    status = Column(_enum(WithdrawalStatusDB, "withdrawalstatusdb"), nullable=False, default=WithdrawalStatusDB.PENDING, index=True)

    # Timeline
    requested_date = Column(DateTime, server_default=func.now())
    processed_date = Column(DateTime)
    completed_date = Column(DateTime)
    estimated_delivery = Column(DateTime)

    gateway_response = Column(JSON)
    rejection_reason = Column(Text)
    notes = Column(Text)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    freelancer = relationship("User", backref="withdrawals")


# ============================================================================
# REVIEW
# ============================================================================

class Review(Base):
    """Client review of a completed order."""
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    # One review per order, enforced by the database
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), unique=True, nullable=False)
    gig_id = Column(String(36), ForeignKey("gigs.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    freelancer_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    rating = Column(Integer, nullable=False)  # 1-5
    review_text = Column(Text, nullable=False)

    freelancer_reply = Column(Text)
    reply_date = Column(DateTime)

    status = Column(_enum(ReviewStatusDB, "reviewstatusdb"), nullable=False, default=ReviewStatusDB.ACTIVE)

    categories = Column(JSON)  # [{category, rating}]
    attachments = Column(JSON)

    helpful_votes = Column(Integer, default=0)
    total_votes = Column(Integer, default=0)
    is_verified = Column(Boolean, default=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    order = relationship("Order", back_populates="review")
    gig = relationship("Gig", backref="review_list")
    client = relationship("User", foreign_keys=[client_id], backref="given_reviews")
    freelancer = relationship("User", foreign_keys=[freelancer_id], backref="received_reviews")
