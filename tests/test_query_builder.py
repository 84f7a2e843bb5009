"""
Paging and filter helpers shared by the listing endpoints.
"""

import pytest

from core.exceptions import ValidationError
from database.marketplace_models import Order
from services.query_builder import apply_filter, normalize_page


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 10)),
        (0, 5, (1, 5)),
        (3, 500, (3, 100)),
        (2, -1, (2, 1)),
    ],
)
def test_normalize_page(page, limit, expected):
    assert normalize_page(page, limit) == expected


def test_all_means_no_filter(db):
    query = db.query(Order)
    assert apply_filter(query, Order.status, "all") is query
    assert apply_filter(query, Order.status, None) is query


def test_unknown_enum_value_rejected(db):
    with pytest.raises(ValidationError):
        apply_filter(db.query(Order), Order.status, "archived")
