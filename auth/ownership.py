# Ownership Guards for the Gig Marketplace
# Record-level authorization applied uniformly by every mutating service call

from typing import Optional

from core.exceptions import AccessDeniedError
from database.models import User
from database.marketplace_models import Gig, Order, Payment, Review, PartyRoleDB


def party_role(order: Order, user_id: str) -> Optional[PartyRoleDB]:
    """Return which side of the order `user_id` is on, or None."""
    if order.client_id == user_id:
        return PartyRoleDB.CLIENT
    if order.freelancer_id == user_id:
        return PartyRoleDB.FREELANCER
    return None


def ensure_gig_owner(gig: Gig, user: User) -> None:
    if gig.freelancer_id != user.id and not user.is_admin:
        raise AccessDeniedError()


def ensure_order_participant(order: Order, user: User) -> PartyRoleDB:
    """Client or freelancer on the order. Admins read as admin."""
    role = party_role(order, user.id)
    if role is not None:
        return role
    if user.is_admin:
        return PartyRoleDB.ADMIN
    raise AccessDeniedError()


def ensure_order_freelancer(order: Order, user: User) -> None:
    if order.freelancer_id != user.id and not user.is_admin:
        raise AccessDeniedError()


def ensure_order_client(order: Order, user: User) -> None:
    if order.client_id != user.id:
        raise AccessDeniedError()


def ensure_payment_client(payment: Payment, user: User) -> None:
    if payment.client_id != user.id:
        raise AccessDeniedError()


def ensure_payment_participant(payment: Payment, user: User) -> None:
    if user.id not in (payment.client_id, payment.freelancer_id) and not user.is_admin:
        raise AccessDeniedError()


def ensure_review_freelancer(review: Review, user: User) -> None:
    if review.freelancer_id != user.id:
        raise AccessDeniedError()


def ensure_review_participant(review: Review, user: User) -> None:
    if user.id not in (review.client_id, review.freelancer_id) and not user.is_admin:
        raise AccessDeniedError()
