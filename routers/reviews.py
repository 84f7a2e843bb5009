# Reviews Router for the Gig Marketplace
# Handles client reviews of completed orders and freelancer replies

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from database.config import get_db
from database.models import User
from database.marketplace_models import Review
from schemas.marketplace import ReviewCreate, ReplyRequest, ReviewResponse
from auth.roles import UserType, Permission
from auth.decorators import require_user_type, require_permission
from auth.dependencies import get_current_user
from services.review_service import ReviewService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def _review_to_response(review: Review) -> dict:
    return ReviewResponse.model_validate(review).model_dump(mode="json")


# ============================================================================
# FREELANCER VIEWS
# ============================================================================

@router.get("/freelancer")
async def get_freelancer_reviews(
    rating: Optional[str] = None,
    gig: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.FREELANCER)),
):
    """Active reviews received by the current freelancer."""
    reviews, pagination = ReviewService(db).list_freelancer_reviews(
        current_user, rating=rating, gig_id=gig, search=search, sort=sort, page=page, limit=limit,
    )
    return {
        "success": True,
        "reviews": [_review_to_response(r) for r in reviews],
        "pagination": pagination,
    }


@router.get("/stats")
async def get_review_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_user_type(UserType.FREELANCER)),
):
    stats, recent = ReviewService(db).review_stats(current_user)
    return {
        "success": True,
        "stats": stats,
        "recent_reviews": [_review_to_response(r) for r in recent],
    }


@router.get("/{review_id}")
async def get_review(
    review_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = ReviewService(db).get_review(current_user, review_id)
    return {"success": True, "review": _review_to_response(review)}


# ============================================================================
# REVIEW ENDPOINTS
# ============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.LEAVE_REVIEWS)),
):
    """
    Review a completed order.
    One review per order; the gig and freelancer ratings are recomputed.
    """
    review = ReviewService(db).create_review(
        current_user,
        review_data.order_number,
        review_data.rating,
        review_data.review_text,
        categories=[c.model_dump() for c in review_data.categories],
        attachments=[a.model_dump() for a in review_data.attachments],
    )
    return {
        "success": True,
        "message": "Review created successfully",
        "review": _review_to_response(review),
    }


@router.post("/{review_id}/reply")
async def add_freelancer_reply(
    review_id: str,
    reply_data: ReplyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.REPLY_TO_REVIEWS)),
):
    review = ReviewService(db).add_reply(current_user, review_id, reply_data.reply_text)
    return {
        "success": True,
        "message": "Reply added successfully",
        "review": _review_to_response(review),
    }


@router.put("/{review_id}/reply")
async def update_freelancer_reply(
    review_id: str,
    reply_data: ReplyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.REPLY_TO_REVIEWS)),
):
    review = ReviewService(db).update_reply(current_user, review_id, reply_data.reply_text)
    return {
        "success": True,
        "message": "Reply updated successfully",
        "review": _review_to_response(review),
    }
