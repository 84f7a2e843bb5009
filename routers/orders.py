# Orders Router for the Gig Marketplace
# Handles order placement, status transitions, cancellation and order messages

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from database.config import get_db
from database.models import User
from database.marketplace_models import Order, PartyRoleDB
from schemas.marketplace import (
    OrderCreate,
    OrderStatusUpdate,
    OrderCancel,
    OrderMessageCreate,
    OrderResponse,
)
from auth.roles import UserType, Permission
from auth.decorators import require_user_type, require_permission
from services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["Orders"])


def _order_to_response(order: Order) -> dict:
    return OrderResponse.model_validate(order).model_dump(mode="json")


def _list_response(orders, pagination) -> dict:
    return {
        "success": True,
        "orders": [_order_to_response(o) for o in orders],
        "pagination": pagination,
    }


# ============================================================================
# LISTINGS
# ============================================================================

@router.get("/freelancer")
async def get_freelancer_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort: Optional[str] = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.FREELANCER)),
):
    """Orders received by the current freelancer."""
    orders, pagination = OrderService(db).list_orders(
        current_user, PartyRoleDB.FREELANCER,
        status_filter=status_filter, search=search, sort=sort, page=page, limit=limit,
    )
    return _list_response(orders, pagination)


@router.get("/client")
async def get_client_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort: Optional[str] = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.CLIENT)),
):
    """Orders placed by the current client."""
    orders, pagination = OrderService(db).list_orders(
        current_user, PartyRoleDB.CLIENT,
        status_filter=status_filter, search=search, sort=sort, page=page, limit=limit,
    )
    return _list_response(orders, pagination)


@router.get("/stats")
async def get_order_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_OWN_ORDERS)),
):
    return {"success": True, "stats": OrderService(db).order_stats(current_user)}


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.VIEW_OWN_ORDERS)),
):
    order = OrderService(db).get_order(current_user, order_id)
    return {"success": True, "order": _order_to_response(order)}


# ============================================================================
# LIFECYCLE
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.PLACE_ORDERS)),
):
    order = OrderService(db).create_order(
        current_user,
        gig_id=order_data.gig_id,
        title=order_data.title,
        description=order_data.description,
        requirements=order_data.requirements,
        amount=order_data.amount,
        delivery_date=order_data.delivery_date,
    )
    return {
        "success": True,
        "message": "Order created successfully",
        "order": _order_to_response(order),
    }


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.DELIVER_ORDERS)),
):
    """Advance an order along its lifecycle (freelancer side)."""
    deliverables = None
    if status_data.deliverables is not None:
        deliverables = [d.model_dump() for d in status_data.deliverables]

    order = OrderService(db).update_status(
        current_user,
        order_id,
        status_data.status,
        deliverables=deliverables,
        reason=status_data.reason,
    )
    return {
        "success": True,
        "message": "Order status updated successfully",
        "order": _order_to_response(order),
    }


@router.post("/{order_id}/message")
async def add_order_message(
    order_id: str,
    message_data: OrderMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MESSAGE_ORDERS)),
):
    order = OrderService(db).add_message(
        current_user,
        order_id,
        message_data.message,
        attachments=[a.model_dump() for a in message_data.attachments],
    )
    return {
        "success": True,
        "message": "Message added successfully",
        "order": _order_to_response(order),
    }


@router.patch("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    cancel_data: Optional[OrderCancel] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.CANCEL_ORDERS)),
):
    reason = cancel_data.reason if cancel_data else None
    order = OrderService(db).cancel_order(current_user, order_id, reason)
    return {
        "success": True,
        "message": "Order cancelled successfully",
        "order": _order_to_response(order),
    }
