# Gigs Router for the Gig Marketplace
# Handles the public gig catalogue and freelancer gig management

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from database.config import get_db
from database.models import User
from database.marketplace_models import Gig
from schemas.marketplace import GigCreate, GigUpdate, GigStatusUpdate, GigResponse
from auth.roles import UserType, Permission
from auth.decorators import require_user_type, require_permission
from auth.dependencies import get_optional_current_user
from services.gig_service import GigService

router = APIRouter(prefix="/gigs", tags=["Gigs"])


def _gig_to_response(gig: Gig) -> dict:
    return GigResponse.model_validate(gig).model_dump(mode="json")


# ============================================================================
# CATALOGUE
# ============================================================================

@router.get("")
async def list_gigs(
    mine: bool = Query(False, description="Only the caller's own gigs, any status"),
    freelancer_id: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user),
):
    """List active gigs, or with `mine=true` the caller's gigs in every status."""
    gigs, pagination = GigService(db).list_gigs(
        viewer=current_user,
        mine=mine,
        freelancer_id=freelancer_id,
        status_filter=status_filter,
        category=category,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return {
        "success": True,
        "gigs": [_gig_to_response(g) for g in gigs],
        "pagination": pagination,
    }


@router.get("/stats")
async def get_gig_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.FREELANCER)),
):
    return {"success": True, "stats": GigService(db).gig_stats(current_user)}


@router.get("/{gig_id}")
async def get_gig(
    gig_id: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_current_user),
):
    gig = GigService(db).get_gig(gig_id, viewer=current_user)
    return {"success": True, "gig": _gig_to_response(gig)}


# ============================================================================
# OWNER MANAGEMENT
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_gig(
    gig_data: GigCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_GIGS)),
):
    """Create a gig. New gigs start as drafts until activated."""
    gig = GigService(db).create_gig(current_user, gig_data.model_dump())
    return {
        "success": True,
        "message": "Gig created successfully",
        "gig": _gig_to_response(gig),
    }


@router.put("/{gig_id}")
async def update_gig(
    gig_id: str,
    gig_data: GigUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_GIGS)),
):
    gig = GigService(db).update_gig(current_user, gig_id, gig_data.model_dump(exclude_unset=True))
    return {
        "success": True,
        "message": "Gig updated successfully",
        "gig": _gig_to_response(gig),
    }


@router.delete("/{gig_id}")
async def delete_gig(
    gig_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_GIGS)),
):
    GigService(db).delete_gig(current_user, gig_id)
    return {"success": True, "message": "Gig deleted successfully"}


@router.patch("/{gig_id}/status")
async def update_gig_status(
    gig_id: str,
    status_data: GigStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.MANAGE_GIGS)),
):
    gig = GigService(db).set_status(current_user, gig_id, status_data.status)
    return {
        "success": True,
        "message": "Gig status updated successfully",
        "gig": _gig_to_response(gig),
    }
