# Auth module for the Gig Marketplace
# Provides role-based access control, record ownership guards and auth dependencies

from auth.roles import (
    UserType,
    Permission,
    ROLE_PERMISSIONS,
    get_permissions_for_role,
    has_permission,
    has_any_permission,
)

from auth.decorators import (
    AuthError,
    require_user_type,
    require_permission,
)

from auth.ownership import (
    party_role,
    ensure_gig_owner,
    ensure_order_participant,
    ensure_order_freelancer,
    ensure_order_client,
    ensure_payment_client,
    ensure_payment_participant,
    ensure_review_freelancer,
    ensure_review_participant,
)

__all__ = [
    # Roles
    "UserType",
    "Permission",
    "ROLE_PERMISSIONS",
    "get_permissions_for_role",
    "has_permission",
    "has_any_permission",

    # Decorators
    "AuthError",
    "require_user_type",
    "require_permission",

    # Ownership
    "party_role",
    "ensure_gig_owner",
    "ensure_order_participant",
    "ensure_order_freelancer",
    "ensure_order_client",
    "ensure_payment_client",
    "ensure_payment_participant",
    "ensure_review_freelancer",
    "ensure_review_participant",
]
