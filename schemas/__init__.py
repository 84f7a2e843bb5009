# Schemas module for the Gig Marketplace
# Organizes all Pydantic schemas in a modular structure

from schemas.marketplace import (
    # Enums
    GigStatus,
    OrderStatus,
    OrderPaymentStatus,
    PartyRole,
    PaymentMethod,
    PaymentStatus,
    WithdrawalMethod,
    WithdrawalStatus,
    ReviewStatus,

    # User schemas
    RegisterRequest,
    LoginRequest,
    UserBrief,
    UserResponse,

    # Gig schemas
    GigCreate,
    GigUpdate,
    GigStatusUpdate,
    GigBrief,
    GigResponse,

    # Order schemas
    Deliverable,
    Attachment,
    OrderCreate,
    OrderStatusUpdate,
    OrderCancel,
    OrderMessageCreate,
    OrderMessageResponse,
    OrderBrief,
    OrderResponse,

    # Payment schemas
    BillingDetails,
    PaymentCreate,
    PaymentProcess,
    CheckoutCreate,
    PaymentResponse,

    # Withdrawal schemas
    WithdrawalCreate,
    WithdrawalResponse,

    # Review schemas
    CategoryRating,
    ReviewCreate,
    ReplyRequest,
    ReviewResponse,
)

__all__ = [
    "GigStatus",
    "OrderStatus",
    "OrderPaymentStatus",
    "PartyRole",
    "PaymentMethod",
    "PaymentStatus",
    "WithdrawalMethod",
    "WithdrawalStatus",
    "ReviewStatus",
    "RegisterRequest",
    "LoginRequest",
    "UserBrief",
    "UserResponse",
    "GigCreate",
    "GigUpdate",
    "GigStatusUpdate",
    "GigBrief",
    "GigResponse",
    "Deliverable",
    "Attachment",
    "OrderCreate",
    "OrderStatusUpdate",
    "OrderCancel",
    "OrderMessageCreate",
    "OrderMessageResponse",
    "OrderBrief",
    "OrderResponse",
    "BillingDetails",
    "PaymentCreate",
    "PaymentProcess",
    "CheckoutCreate",
    "PaymentResponse",
    "WithdrawalCreate",
    "WithdrawalResponse",
    "CategoryRating",
    "ReviewCreate",
    "ReplyRequest",
    "ReviewResponse",
]
