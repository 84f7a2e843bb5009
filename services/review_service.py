# Review Service for the Gig Marketplace
# Client reviews of completed orders, freelancer replies and rating aggregates

from decimal import Decimal, ROUND_HALF_UP
from datetime import datetime
from typing import List, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.ownership import ensure_review_freelancer, ensure_review_participant
from core.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    AlreadyExistsError,
    BusinessNotFoundError,
)
from database.models import User
from database.marketplace_models import Gig, Order, Review, OrderStatusDB, ReviewStatusDB
from services.query_builder import apply_filter, apply_sort, text_search, paginate, aggregate_stats

logger = logging.getLogger(__name__)

MAX_REVIEW_LENGTH = 1000
MAX_REPLY_LENGTH = 500

REVIEW_SORT_OPTIONS = {
    "newest": (Review.created_at.desc(),),
    "oldest": (Review.created_at.asc(),),
    "rating_high": (Review.rating.desc(), Review.created_at.desc()),
    "rating_low": (Review.rating.asc(), Review.created_at.desc()),
}


def average_rating(ratings: List[int]) -> Tuple[Decimal, int]:
    """Arithmetic mean rounded to one decimal, plus count. Empty -> (0.0, 0)."""
    if not ratings:
        return Decimal("0.0"), 0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP), len(ratings)


def _validate_reply(text: Optional[str]) -> str:
    if not text or not text.strip():
        raise ValidationError("Reply text is required")
    if len(text) > MAX_REPLY_LENGTH:
        raise ValidationError(f"Reply must be less than {MAX_REPLY_LENGTH} characters")
    return text.strip()


class ReviewService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, review_id: str) -> Review:
        review = self.db.query(Review).filter(Review.id == review_id).first()
        if not review:
            raise NotFoundError("Review not found")
        return review

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    def _active_ratings(self, column, value) -> List[int]:
        rows = self.db.query(Review.rating).filter(
            column == value,
            Review.status == ReviewStatusDB.ACTIVE,
        ).all()
        return [row[0] for row in rows]

    def recompute_gig_rating(self, gig_id: str) -> None:
        rating, count = average_rating(self._active_ratings(Review.gig_id, gig_id))
        self.db.query(Gig).filter(Gig.id == gig_id).update(
            {Gig.rating: rating, Gig.reviews_count: count},
            synchronize_session=False,
        )

    def recompute_freelancer_rating(self, freelancer_id: str) -> None:
        rating, count = average_rating(self._active_ratings(Review.freelancer_id, freelancer_id))
        self.db.query(User).filter(User.id == freelancer_id).update(
            {User.average_rating: rating, User.total_reviews: count},
            synchronize_session=False,
        )

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_review(
        self,
        client: User,
        order_number: str,
        rating,
        review_text: Optional[str],
        categories: Optional[List[dict]] = None,
        attachments: Optional[List[dict]] = None,
    ) -> Review:
        if not order_number or rating is None or not review_text:
            raise ValidationError("Missing required fields")
        if not isinstance(rating, int) or isinstance(rating, bool) or rating < 1 or rating > 5:
            raise ValidationError("Rating must be between 1 and 5")
        if not review_text.strip():
            raise ValidationError("Review text is required")
        if len(review_text) > MAX_REVIEW_LENGTH:
            raise ValidationError(f"Review must be less than {MAX_REVIEW_LENGTH} characters")

        order = self.db.query(Order).filter(
            Order.order_number == order_number,
            Order.client_id == client.id,
        ).first()
        if not order:
            raise NotFoundError("Order not found")

        if order.status != OrderStatusDB.COMPLETED:
            raise ValidationError("Can only review completed orders")

        if order.has_review or self.db.query(Review.id).filter(Review.order_id == order.id).first():
            raise ConflictError("Review already exists for this order")

        review = Review(
            order_id=order.id,
            gig_id=order.gig_id,
            client_id=client.id,
            freelancer_id=order.freelancer_id,
            rating=rating,
            review_text=review_text.strip(),
            categories=categories or [],
            attachments=attachments or [],
            status=ReviewStatusDB.ACTIVE,
            is_verified=True,
        )

        try:
            self.db.add(review)
            self.db.flush()

            order.has_review = True
            order.review_id = review.id

            self.recompute_gig_rating(order.gig_id)
            self.recompute_freelancer_rating(order.freelancer_id)
            self.db.commit()
        except IntegrityError:
            # Lost the race against a concurrent review for the same order
            self.db.rollback()
            raise ConflictError("Review already exists for this order")
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(review)
        logger.info(f"Review {review.id} ({rating}*) created for order {order.order_number}")
        return review

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------

    def add_reply(self, freelancer: User, review_id: str, reply_text: Optional[str]) -> Review:
        text = _validate_reply(reply_text)
        review = self._load(review_id)
        ensure_review_freelancer(review, freelancer)

        if review.freelancer_reply:
            raise AlreadyExistsError("Reply already exists for this review")

        return self._save_reply(review, text)

    def update_reply(self, freelancer: User, review_id: str, reply_text: Optional[str]) -> Review:
        text = _validate_reply(reply_text)
        review = self._load(review_id)
        ensure_review_freelancer(review, freelancer)

        if not review.freelancer_reply:
            raise BusinessNotFoundError("No reply exists to update")

        return self._save_reply(review, text)

    def _save_reply(self, review: Review, text: str) -> Review:
        try:
            review.freelancer_reply = text
            review.reply_date = datetime.utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(review)
        return review

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_review(self, user: User, review_id: str) -> Review:
        review = self._load(review_id)
        ensure_review_participant(review, user)
        return review

    def list_freelancer_reviews(
        self,
        freelancer: User,
        rating=None,
        gig_id: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ):
        query = self.db.query(Review).filter(
            Review.freelancer_id == freelancer.id,
            Review.status == ReviewStatusDB.ACTIVE,
        )
        if rating is not None and rating != "all":
            try:
                rating = int(rating)
            except (TypeError, ValueError):
                raise ValidationError("Rating must be between 1 and 5")
            query = query.filter(Review.rating == rating)
        query = apply_filter(query, Review.gig_id, gig_id)
        query = text_search(query, [Review.review_text, Review.freelancer_reply], search)
        query = apply_sort(query, sort, REVIEW_SORT_OPTIONS, "newest")
        return paginate(query, page, limit, "reviews")

    def review_stats(self, freelancer: User) -> Tuple[dict, List[Review]]:
        criteria = [
            Review.freelancer_id == freelancer.id,
            Review.status == ReviewStatusDB.ACTIVE,
        ]
        stats = aggregate_stats(
            self.db,
            Review.id,
            criteria,
            total_label="total_reviews",
            counts={
                "five_star_reviews": Review.rating == 5,
                "four_star_reviews": Review.rating == 4,
                "three_star_reviews": Review.rating == 3,
                "two_star_reviews": Review.rating == 2,
                "one_star_reviews": Review.rating == 1,
                "reviews_with_replies": Review.freelancer_reply.isnot(None),
            },
            averages={"average_rating": Review.rating},
        )
        stats["average_rating"] = round(stats["average_rating"], 1)

        recent = (
            self.db.query(Review)
            .filter(*criteria)
            .order_by(Review.created_at.desc())
            .limit(5)
            .all()
        )
        return stats, recent
