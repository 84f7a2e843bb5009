# Role-Based Access Control for the Gig Marketplace
# This module defines user roles and permissions for the marketplace

from enum import Enum
from typing import List, Set


class UserType(str, Enum):
    """User types in the marketplace."""
    CLIENT = "client"
    FREELANCER = "freelancer"
    ADMIN = "admin"


class Permission(str, Enum):
    """Fine-grained permissions for the platform."""

    # Client permissions
    PLACE_ORDERS = "place_orders"
    MAKE_PAYMENTS = "make_payments"
    LEAVE_REVIEWS = "leave_reviews"

    # Freelancer permissions
    MANAGE_GIGS = "manage_gigs"
    DELIVER_ORDERS = "deliver_orders"
    REPLY_TO_REVIEWS = "reply_to_reviews"
    WITHDRAW_FUNDS = "withdraw_funds"

    # Common permissions
    VIEW_OWN_ORDERS = "view_own_orders"
    VIEW_OWN_PAYMENTS = "view_own_payments"
    MESSAGE_ORDERS = "message_orders"
    CANCEL_ORDERS = "cancel_orders"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserType, Set[Permission]] = {
    UserType.CLIENT: {
        Permission.PLACE_ORDERS,
        Permission.MAKE_PAYMENTS,
        Permission.LEAVE_REVIEWS,
        # Common
        Permission.VIEW_OWN_ORDERS,
        Permission.VIEW_OWN_PAYMENTS,
        Permission.MESSAGE_ORDERS,
        Permission.CANCEL_ORDERS,
    },

    UserType.FREELANCER: {
        Permission.MANAGE_GIGS,
        Permission.DELIVER_ORDERS,
        Permission.REPLY_TO_REVIEWS,
        Permission.WITHDRAW_FUNDS,
        # Common
        Permission.VIEW_OWN_ORDERS,
        Permission.VIEW_OWN_PAYMENTS,
        Permission.MESSAGE_ORDERS,
        Permission.CANCEL_ORDERS,
    },

    UserType.ADMIN: {
        # Admin has ALL permissions
        *Permission.__members__.values()
    },
}


def get_permissions_for_role(user_type: UserType) -> Set[Permission]:
    """Get all permissions for a given user type."""
    return ROLE_PERMISSIONS.get(user_type, set())


def has_permission(user_type: UserType, permission: Permission) -> bool:
    """Check if a user type has a specific permission."""
    return permission in get_permissions_for_role(user_type)


def has_any_permission(user_type: UserType, permissions: List[Permission]) -> bool:
    """Check if a user type has any of the given permissions."""
    user_permissions = get_permissions_for_role(user_type)
    return any(p in user_permissions for p in permissions)
