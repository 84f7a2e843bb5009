# Query Builder for Listing and Stats Endpoints
# Filter, sort, paginate and aggregate helpers shared by every service

from decimal import Decimal
from math import ceil
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from config.app_config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from core.exceptions import ValidationError


def normalize_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp paging input to page >= 1 and 1 <= limit <= MAX_PAGE_LIMIT."""
    page = max(int(page or 1), 1)
    limit = int(limit or DEFAULT_PAGE_LIMIT)
    limit = min(max(limit, 1), MAX_PAGE_LIMIT)
    return page, limit


def apply_filter(query: Query, column, value):
    """Equality filter that treats None and "all" as no filter."""
    if value is None:
        return query
    raw = value.value if hasattr(value, "value") else value
    if raw == "all" or raw == "":
        return query
    # Enum columns only accept their declared values
    allowed = getattr(column.type, "enums", None)
    if allowed is not None and raw not in allowed:
        raise ValidationError(f"Invalid filter value: {raw}")
    return query.filter(column == raw)


def text_search(query: Query, columns: Iterable, term: Optional[str]) -> Query:
    """Case-insensitive substring match across the given columns."""
    if not term or not term.strip():
        return query
    escaped = term.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return query.filter(or_(*[column.ilike(pattern, escape="\\") for column in columns]))


def apply_sort(query: Query, sort: Optional[str], options: Dict[str, tuple], default: str) -> Query:
    """Order by the named option; unknown names fall back to `default`."""
    order_by = options.get(sort or default) or options[default]
    return query.order_by(*order_by)


def paginate(query: Query, page: int, limit: int, total_key: str) -> Tuple[List, dict]:
    """
    Slice a query and describe the slice.

    Returns the items and a pagination block:
        {current_page, total_pages, total_<total_key>, has_next_page, has_prev_page}
    """
    page, limit = normalize_page(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()

    return items, {
        "current_page": page,
        "total_pages": ceil(total / limit) if total else 0,
        f"total_{total_key}": total,
        "has_next_page": page * limit < total,
        "has_prev_page": page > 1,
    }


def aggregate_stats(
    db: Session,
    id_column,
    criteria: list,
    total_label: str,
    counts: Optional[Dict[str, object]] = None,
    sums: Optional[Dict[str, object]] = None,
    averages: Optional[Dict[str, object]] = None,
) -> dict:
    """
    Single-query group-by-nothing aggregate.

    `counts` maps a label to a boolean condition (SUM(CASE WHEN ...)),
    `sums` and `averages` map a label to a numeric column. Empty result
    sets come back as zeros.
    """
    columns = [func.count(id_column).label(total_label)]
    for label, condition in (counts or {}).items():
        columns.append(func.coalesce(func.sum(case((condition, 1), else_=0)), 0).label(label))
    for label, column in (sums or {}).items():
        columns.append(func.coalesce(func.sum(column), 0).label(label))
    for label, column in (averages or {}).items():
        columns.append(func.coalesce(func.avg(column), 0).label(label))

    row = db.query(*columns).filter(*criteria).one()
    result = {}
    for label, value in row._asdict().items():
        if label == total_label or label in (counts or {}):
            result[label] = int(value or 0)
        else:
            result[label] = _money(value)
    return result


def _money(value) -> float:
    if value is None:
        return 0.0
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(value.quantize(Decimal("0.01")))
