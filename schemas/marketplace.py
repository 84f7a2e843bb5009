# Pydantic Schemas for the Gig Marketplace
# Request bodies and response shapes for gigs, orders, payments, withdrawals and reviews

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from database.models import UserRole
from database.marketplace_models import (
    GigStatusDB as GigStatus,
    OrderStatusDB as OrderStatus,
    OrderPaymentStatusDB as OrderPaymentStatus,
    PartyRoleDB as PartyRole,
    PaymentMethodDB as PaymentMethod,
    PaymentStatusDB as PaymentStatus,
    WithdrawalMethodDB as WithdrawalMethod,
    WithdrawalStatusDB as WithdrawalStatus,
    ReviewStatusDB as ReviewStatus,
)


# ============================================================================
# USER SCHEMAS
# ============================================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.CLIENT

    @field_validator("role")
    @classmethod
    def no_self_service_admin(cls, v):
        if v == UserRole.ADMIN:
            raise ValueError("Cannot register as admin")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserBrief(BaseModel):
    """Embedded party on orders, payments and reviews."""
    id: str
    name: str
    email: str
    profile_picture: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    professional_title: Optional[str] = None
    skills: Optional[List[str]] = None
    hourly_rate: Optional[float] = None
    is_verified: bool = False
    total_earnings: float = 0
    total_orders: int = 0
    average_rating: float = 0
    total_reviews: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# GIG SCHEMAS
# ============================================================================

class GigCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: str = Field(..., max_length=100)
    subcategory: Optional[str] = Field(None, max_length=100)
    tags: List[str] = []
    price: Decimal = Field(..., gt=0)
    price_type: str = Field("fixed", pattern="^(fixed|hourly)$")
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    delivery_time: int = Field(..., ge=1)  # days
    revisions: int = Field(0, ge=0)
    images: List[str] = []
    video: Optional[str] = None


class GigUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    subcategory: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    price: Optional[Decimal] = Field(None, gt=0)
    price_type: Optional[str] = Field(None, pattern="^(fixed|hourly)$")
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    delivery_time: Optional[int] = Field(None, ge=1)
    revisions: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    video: Optional[str] = None


class GigStatusUpdate(BaseModel):
    status: GigStatus


class GigBrief(BaseModel):
    id: str
    title: str
    category: str

    class Config:
        from_attributes = True


class GigResponse(BaseModel):
    id: str
    freelancer_id: str
    title: str
    description: str
    category: str
    subcategory: Optional[str] = None
    tags: List[str] = []
    price: float
    price_type: str = "fixed"
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    currency: str = "INR"
    delivery_time: int
    revisions: int = 0
    images: List[str] = []
    video: Optional[str] = None
    status: GigStatus
    views: int = 0
    clicks: int = 0
    orders: int = 0
    rating: float = 0
    reviews_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    freelancer: Optional[UserBrief] = None

    @field_validator("tags", "images", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


# ============================================================================
# ORDER SCHEMAS
# ============================================================================

class Deliverable(BaseModel):
    name: str
    description: Optional[str] = None
    file_url: Optional[str] = None
    uploaded_at: Optional[str] = None


class Attachment(BaseModel):
    name: str
    url: str
    type: Optional[str] = None


class OrderCreate(BaseModel):
    gig_id: str
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    requirements: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    delivery_date: datetime


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    deliverables: Optional[List[Deliverable]] = None
    reason: Optional[str] = Field(None, max_length=1000)


class OrderCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class OrderMessageCreate(BaseModel):
    message: Optional[str] = Field(None, max_length=2000)
    attachments: List[Attachment] = []


class OrderMessageResponse(BaseModel):
    position: int
    sender: PartyRole
    message: str
    attachments: List[dict] = []
    timestamp: datetime

    @field_validator("attachments", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


class OrderBrief(BaseModel):
    id: str
    order_number: str
    title: str

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    order_number: str
    title: str
    description: str
    requirements: Optional[str] = None
    gig_id: str
    client_id: str
    freelancer_id: str
    amount: float
    currency: str = "INR"
    platform_fee: float
    freelancer_amount: float
    status: OrderStatus
    order_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    delivery_date: datetime
    completed_date: Optional[datetime] = None
    deliverables: List[dict] = []
    revisions: int = 0
    max_revisions: int = 0
    payment_status: OrderPaymentStatus
    is_escrowed: bool = True
    escrow_released: bool = False
    escrow_release_date: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[PartyRole] = None
    cancellation_date: Optional[datetime] = None
    is_disputed: bool = False
    dispute_reason: Optional[str] = None
    dispute_date: Optional[datetime] = None
    has_review: bool = False
    review_id: Optional[str] = None
    created_at: Optional[datetime] = None

    client: Optional[UserBrief] = None
    freelancer: Optional[UserBrief] = None
    gig: Optional[GigBrief] = None
    messages: List[OrderMessageResponse] = []

    @field_validator("deliverables", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    class Config:
        from_attributes = True


# ============================================================================
# PAYMENT SCHEMAS
# ============================================================================

class BillingDetails(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[dict] = None


class PaymentCreate(BaseModel):
    order_number: str
    payment_method: PaymentMethod
    billing_details: Optional[BillingDetails] = None
    notes: Optional[str] = Field(None, max_length=1000)


class PaymentProcess(BaseModel):
    transaction_id: Optional[str] = Field(None, max_length=100)
    gateway_response: Optional[dict] = None


class CheckoutCreate(BaseModel):
    order_number: str
    callback_url: Optional[str] = None


class PaymentResponse(BaseModel):
    id: str
    payment_number: str
    transaction_id: Optional[str] = None
    order_id: str
    client_id: str
    freelancer_id: str
    amount: float
    currency: str = "INR"
    platform_fee: float
    freelancer_amount: float
    payment_method: PaymentMethod
    payment_gateway: Optional[str] = None
    status: PaymentStatus
    payment_date: Optional[datetime] = None
    processed_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    is_escrowed: bool = True
    escrow_released: bool = False
    escrow_release_date: Optional[datetime] = None
    refund_amount: float = 0
    refund_reason: Optional[str] = None
    refund_date: Optional[datetime] = None
    gateway_response: Optional[dict] = None
    billing_details: Optional[dict] = None
    notes: Optional[str] = None

    order: Optional[OrderBrief] = None

    @field_validator("refund_amount", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return v or 0

    class Config:
        from_attributes = True


# ============================================================================
# WITHDRAWAL SCHEMAS
# ============================================================================

class WithdrawalCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    method: WithdrawalMethod
    account_details: Optional[dict] = None  # {account_number, ifsc_code, upi_id, ...}
    notes: Optional[str] = Field(None, max_length=1000)


class WithdrawalResponse(BaseModel):
    id: str
    withdrawal_number: str
    freelancer_id: str
    amount: float
    currency: str = "INR"
    processing_fee: float
    net_amount: float
    method: WithdrawalMethod
    account_details: Optional[dict] = None
    status: WithdrawalStatus
    requested_date: Optional[datetime] = None
    processed_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    estimated_delivery: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


# ============================================================================
# REVIEW SCHEMAS
# ============================================================================

class CategoryRating(BaseModel):
    category: str
    rating: int = Field(..., ge=1, le=5)


class ReviewCreate(BaseModel):
    """Ratings and text bounds are checked by the service."""
    order_number: str
    rating: int
    review_text: str
    categories: List[CategoryRating] = []
    attachments: List[Attachment] = []


class ReplyRequest(BaseModel):
    reply_text: Optional[str] = None


class ReviewResponse(BaseModel):
    id: str
    order_id: str
    gig_id: str
    client_id: str
    freelancer_id: str
    rating: int
    review_text: str
    freelancer_reply: Optional[str] = None
    reply_date: Optional[datetime] = None
    status: ReviewStatus
    categories: List[dict] = []
    attachments: List[dict] = []
    helpful_votes: int = 0
    total_votes: int = 0
    is_verified: bool = False
    created_at: Optional[datetime] = None

    client: Optional[UserBrief] = None
    gig: Optional[GigBrief] = None
    order: Optional[OrderBrief] = None

    @field_validator("categories", "attachments", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []

    @field_validator("helpful_votes", "total_votes", mode="before")
    @classmethod
    def none_to_zero(cls, v):
        return v or 0

    class Config:
        from_attributes = True
