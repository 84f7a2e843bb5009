"""
Reviews of completed orders, freelancer replies and rating aggregates.
"""

from decimal import Decimal

import pytest

from database.models import User, UserRole
from database.marketplace_models import Gig
from services.review_service import average_rating


@pytest.fixture
def completed_order(client_user, freelancer, place_order, advance_order):
    def _complete(amount=1000):
        order = place_order(client_user, amount=amount)
        return advance_order(order["id"], freelancer, "in_progress", "delivered", "completed")
    return _complete


def _review(api, auth, client, order, rating=5, text="Great work, fast delivery"):
    return api.post(
        "/api/reviews",
        json={"order_number": order["order_number"], "rating": rating, "review_text": text},
        headers=auth(client),
    )


def test_average_rating():
    assert average_rating([5, 4, 3]) == (Decimal("4.0"), 3)
    assert average_rating([5, 4]) == (Decimal("4.5"), 2)
    assert average_rating([5, 5, 4]) == (Decimal("4.7"), 3)
    assert average_rating([]) == (Decimal("0.0"), 0)


def test_review_updates_order_and_ratings(api, db, auth, client_user, freelancer, active_gig, completed_order):
    order = completed_order()

    response = _review(api, auth, client_user, order, rating=4)
    assert response.status_code == 201
    review = response.json()["review"]
    assert review["rating"] == 4
    assert review["status"] == "active"
    assert review["freelancer_id"] == freelancer.id

    fetched = api.get(f"/api/orders/{order['id']}", headers=auth(client_user)).json()["order"]
    assert fetched["has_review"] is True
    assert fetched["review_id"] == review["id"]

    db.expire_all()
    gig = db.get(Gig, active_gig.id)
    assert gig.rating == Decimal("4.0")
    assert gig.reviews_count == 1
    assert db.get(User, freelancer.id).total_reviews == 1


def test_ratings_average_across_orders(api, db, auth, client_user, freelancer, active_gig, completed_order):
    for rating in (5, 4, 3):
        assert _review(api, auth, client_user, completed_order(), rating=rating).status_code == 201

    db.expire_all()
    gig = db.get(Gig, active_gig.id)
    assert (gig.rating, gig.reviews_count) == (Decimal("4.0"), 3)
    user = db.get(User, freelancer.id)
    assert (user.average_rating, user.total_reviews) == (Decimal("4.0"), 3)


def test_review_requires_completed_order(api, auth, client_user, place_order):
    order = place_order(client_user)
    response = _review(api, auth, client_user, order)
    assert response.status_code == 400
    assert response.json() == {"message": "Can only review completed orders"}


def test_second_review_rejected(api, auth, client_user, completed_order):
    order = completed_order()
    assert _review(api, auth, client_user, order).status_code == 201

    response = _review(api, auth, client_user, order, rating=1, text="Changed my mind")
    assert response.status_code == 400
    assert response.json() == {"message": "Review already exists for this order"}


@pytest.mark.parametrize("rating", [0, 6])
def test_rating_out_of_range(api, auth, client_user, completed_order, rating):
    response = _review(api, auth, client_user, completed_order(), rating=rating)
    assert response.status_code == 400
    assert response.json() == {"message": "Rating must be between 1 and 5"}


def test_review_text_too_long(api, auth, client_user, completed_order):
    response = _review(api, auth, client_user, completed_order(), text="x" * 1001)
    assert response.status_code == 400
    assert response.json() == {"message": "Review must be less than 1000 characters"}


def test_only_the_ordering_client_can_review(api, auth, make_user, completed_order):
    order = completed_order()
    other = make_user(UserRole.CLIENT)
    response = _review(api, auth, other, order)
    assert response.status_code == 404


# ============================================================================
# REPLIES
# ============================================================================

def test_reply_then_update(api, auth, client_user, freelancer, completed_order):
    review = _review(api, auth, client_user, completed_order()).json()["review"]

    update_first = api.put(f"/api/reviews/{review['id']}/reply", json={"reply_text": "Thanks"}, headers=auth(freelancer))
    assert update_first.status_code == 400
    assert update_first.json() == {"message": "No reply exists to update"}

    added = api.post(f"/api/reviews/{review['id']}/reply", json={"reply_text": "Thank you!"}, headers=auth(freelancer))
    assert added.status_code == 200
    assert added.json()["review"]["freelancer_reply"] == "Thank you!"
    assert added.json()["review"]["reply_date"] is not None

    again = api.post(f"/api/reviews/{review['id']}/reply", json={"reply_text": "Once more"}, headers=auth(freelancer))
    assert again.status_code == 400
    assert again.json() == {"message": "Reply already exists for this review"}

    updated = api.put(f"/api/reviews/{review['id']}/reply", json={"reply_text": "Thanks again"}, headers=auth(freelancer))
    assert updated.json()["review"]["freelancer_reply"] == "Thanks again"


def test_reply_validation(api, auth, client_user, freelancer, completed_order):
    review = _review(api, auth, client_user, completed_order()).json()["review"]

    empty = api.post(f"/api/reviews/{review['id']}/reply", json={"reply_text": "  "}, headers=auth(freelancer))
    assert empty.json() == {"message": "Reply text is required"}

    long = api.post(f"/api/reviews/{review['id']}/reply", json={"reply_text": "x" * 501}, headers=auth(freelancer))
    assert long.json() == {"message": "Reply must be less than 500 characters"}


def test_other_freelancer_cannot_reply(api, auth, make_user, client_user, completed_order):
    review = _review(api, auth, client_user, completed_order()).json()["review"]
    stranger = make_user(UserRole.FREELANCER)

    response = api.post(f"/api/reviews/{review['id']}/reply", json={"reply_text": "Hi"}, headers=auth(stranger))
    assert response.status_code == 403


# ============================================================================
# READS
# ============================================================================

def test_freelancer_reviews_and_stats(api, auth, client_user, freelancer, completed_order):
    first = _review(api, auth, client_user, completed_order(), rating=5).json()["review"]
    _review(api, auth, client_user, completed_order(), rating=3, text="Okay, a bit slow")
    api.post(f"/api/reviews/{first['id']}/reply", json={"reply_text": "Cheers"}, headers=auth(freelancer))

    five_star = api.get("/api/reviews/freelancer", params={"rating": 5}, headers=auth(freelancer)).json()
    assert [r["id"] for r in five_star["reviews"]] == [first["id"]]

    lowest_first = api.get("/api/reviews/freelancer", params={"sort": "rating_low"}, headers=auth(freelancer)).json()
    assert [r["rating"] for r in lowest_first["reviews"]] == [3, 5]

    searched = api.get("/api/reviews/freelancer", params={"search": "slow"}, headers=auth(freelancer)).json()
    assert searched["pagination"]["total_reviews"] == 1

    body = api.get("/api/reviews/stats", headers=auth(freelancer)).json()
    stats = body["stats"]
    assert stats["total_reviews"] == 2
    assert stats["five_star_reviews"] == 1
    assert stats["three_star_reviews"] == 1
    assert stats["reviews_with_replies"] == 1
    assert stats["average_rating"] == 4.0
    assert len(body["recent_reviews"]) == 2


def test_review_visible_to_parties(api, auth, make_user, client_user, freelancer, completed_order):
    review = _review(api, auth, client_user, completed_order()).json()["review"]
    outsider = make_user(UserRole.CLIENT)

    assert api.get(f"/api/reviews/{review['id']}", headers=auth(freelancer)).status_code == 200
    assert api.get(f"/api/reviews/{review['id']}", headers=auth(outsider)).status_code == 403
