# Gig Service for the Gig Marketplace
# Freelancer-owned service catalogue: CRUD, status changes and stats

from typing import Optional
import logging

from sqlalchemy.orm import Session

from auth.ownership import ensure_gig_owner
from core.exceptions import ValidationError, NotFoundError, ConflictError
from config.app_config import DEFAULT_CURRENCY
from database.models import User
from database.marketplace_models import Gig, Order, GigStatusDB
from services.ledger import to_money
from services.query_builder import apply_filter, apply_sort, text_search, paginate, aggregate_stats

logger = logging.getLogger(__name__)

GIG_SORT_OPTIONS = {
    "newest": (Gig.created_at.desc(),),
    "oldest": (Gig.created_at.asc(),),
    "price_high": (Gig.price.desc(),),
    "price_low": (Gig.price.asc(),),
    "orders": (Gig.orders.desc(),),
    "rating": (Gig.rating.desc(), Gig.reviews_count.desc()),
}

# Fields an owner may change through update_gig
EDITABLE_FIELDS = (
    "title", "description", "category", "subcategory", "tags",
    "price", "price_type", "min_price", "max_price",
    "delivery_time", "revisions", "images", "video",
)
MONEY_FIELDS = ("price", "min_price", "max_price")


def parse_gig_status(value) -> GigStatusDB:
    if isinstance(value, GigStatusDB):
        return value
    try:
        return GigStatusDB(value)
    except ValueError:
        raise ValidationError("Invalid status")


class GigService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, gig_id: str) -> Gig:
        gig = self.db.query(Gig).filter(Gig.id == gig_id).first()
        if not gig:
            raise NotFoundError("Gig not found")
        return gig

    def create_gig(self, freelancer: User, data: dict) -> Gig:
        """New gigs always start as drafts."""
        for field in ("title", "description", "category", "price", "delivery_time"):
            if data.get(field) in (None, ""):
                raise ValidationError("Missing required fields")

        gig = Gig(
            freelancer_id=freelancer.id,
            title=data["title"].strip(),
            description=data["description"].strip(),
            category=data["category"],
            subcategory=data.get("subcategory"),
            tags=data.get("tags") or [],
            price=to_money(data["price"]),
            price_type=data.get("price_type") or "fixed",
            min_price=to_money(data["min_price"]) if data.get("min_price") is not None else None,
            max_price=to_money(data["max_price"]) if data.get("max_price") is not None else None,
            currency=DEFAULT_CURRENCY,
            delivery_time=data["delivery_time"],
            revisions=data.get("revisions") or 0,
            images=data.get("images") or [],
            video=data.get("video"),
            status=GigStatusDB.DRAFT,
        )

        try:
            self.db.add(gig)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(gig)
        logger.info(f"Gig {gig.id} created by {freelancer.id}")
        return gig

    def get_gig(self, gig_id: str, viewer: Optional[User] = None) -> Gig:
        """
        Public read. Views from anyone but the owner bump the view counter.
        Non-active gigs are only visible to their owner and admins.
        """
        gig = self._load(gig_id)
        is_owner = viewer is not None and (viewer.id == gig.freelancer_id or viewer.is_admin)

        if gig.status != GigStatusDB.ACTIVE and not is_owner:
            raise NotFoundError("Gig not found")

        if not is_owner:
            try:
                self.db.query(Gig).filter(Gig.id == gig.id).update(
                    {Gig.views: Gig.views + 1}, synchronize_session=False
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
            self.db.refresh(gig)
        return gig

    def list_gigs(
        self,
        viewer: Optional[User] = None,
        mine: bool = False,
        freelancer_id: Optional[str] = None,
        status_filter=None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ):
        query = self.db.query(Gig)
        if mine and viewer is not None:
            query = query.filter(Gig.freelancer_id == viewer.id)
            query = apply_filter(query, Gig.status, status_filter)
        else:
            # Public catalogue shows active gigs only
            query = query.filter(Gig.status == GigStatusDB.ACTIVE)
            query = apply_filter(query, Gig.freelancer_id, freelancer_id)
        query = apply_filter(query, Gig.category, category)
        query = text_search(query, [Gig.title, Gig.description], search)
        query = apply_sort(query, sort, GIG_SORT_OPTIONS, "newest")
        return paginate(query, page, limit, "gigs")

    def update_gig(self, user: User, gig_id: str, changes: dict) -> Gig:
        gig = self._load(gig_id)
        ensure_gig_owner(gig, user)

        try:
            for field, value in changes.items():
                if field not in EDITABLE_FIELDS or value is None:
                    continue
                if field in MONEY_FIELDS:
                    value = to_money(value)
                setattr(gig, field, value)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(gig)
        return gig

    def delete_gig(self, user: User, gig_id: str) -> None:
        gig = self._load(gig_id)
        ensure_gig_owner(gig, user)

        if self.db.query(Order.id).filter(Order.gig_id == gig.id).first():
            raise ConflictError("Gig has orders and cannot be deleted, pause it instead")

        try:
            self.db.delete(gig)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Gig {gig_id} deleted by {user.id}")

    def set_status(self, user: User, gig_id: str, new_status) -> Gig:
        new_status = parse_gig_status(new_status)
        gig = self._load(gig_id)
        ensure_gig_owner(gig, user)

        try:
            gig.status = new_status
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(gig)
        logger.info(f"Gig {gig.id} status set to {new_status.value}")
        return gig

    def gig_stats(self, freelancer: User) -> dict:
        stats = aggregate_stats(
            self.db,
            Gig.id,
            [Gig.freelancer_id == freelancer.id],
            total_label="total_gigs",
            counts={
                "active_gigs": Gig.status == GigStatusDB.ACTIVE,
                "paused_gigs": Gig.status == GigStatusDB.PAUSED,
                "draft_gigs": Gig.status == GigStatusDB.DRAFT,
            },
            sums={
                "total_views": Gig.views,
                "total_clicks": Gig.clicks,
                "total_orders": Gig.orders,
            },
            averages={"average_rating": Gig.rating},
        )
        for key in ("total_views", "total_clicks", "total_orders"):
            stats[key] = int(stats[key])
        stats["average_rating"] = round(stats["average_rating"], 1)
        return stats
