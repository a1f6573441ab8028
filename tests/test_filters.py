import math
from datetime import datetime

from pipelines.filters import apply_filters, filter_reviews, resolve_window, sort_reviews
from pipelines.model import ReviewFilters


def test_property_filter_is_case_insensitive_substring(make_review):
    reviews = [
        make_review(property_name="City Loft"),
        make_review(property_name="Wandsworth Flat"),
    ]

    result = filter_reviews(reviews, ReviewFilters(property="loft"))

    assert [r.property_name for r in result] == ["City Loft"]


def test_channel_filter_is_case_insensitive_exact(make_review):
    reviews = [make_review(channel="hostaway"), make_review(channel="airbnb")]

    assert len(filter_reviews(reviews, ReviewFilters(channel="HOSTAWAY"))) == 1
    assert filter_reviews(reviews, ReviewFilters(channel="host")) == []


def test_rating_filter_treats_nan_as_zero(make_review):
    reviews = [make_review(rating=5), make_review(rating=3), make_review(rating=float("nan"))]

    assert [r.rating for r in filter_reviews(reviews, ReviewFilters(rating="4"))] == [5]
    assert len(filter_reviews(reviews, ReviewFilters(rating="0"))) == 3
    assert len(filter_reviews(reviews, ReviewFilters(rating="abc"))) == 3


def test_date_bounds_are_inclusive_and_ignore_garbage(make_review):
    reviews = [
        make_review(date=datetime(2024, 1, 1)),
        make_review(date=datetime(2024, 2, 1)),
        make_review(date=datetime(2024, 3, 1)),
    ]

    bounded = filter_reviews(reviews, ReviewFilters(start_date="2024-02-01", end_date="2024-03-01"))
    assert [r.date.month for r in bounded] == [2, 3]

    open_ended = filter_reviews(reviews, ReviewFilters(start_date="yesterday", end_date="2024-01-15"))
    assert [r.date.month for r in open_ended] == [1]


def test_status_filter_respects_all_sentinel(make_review):
    reviews = [make_review(status="approved"), make_review(status="pending")]

    assert len(filter_reviews(reviews, ReviewFilters(status="all"))) == 2
    assert [r.status for r in filter_reviews(reviews, ReviewFilters(status="approved"))] == [
        "approved"
    ]


def test_category_filter_excludes_missing_subratings(make_review):
    rated = make_review(categories={"cleanliness": 5})
    unrated = make_review()

    result = filter_reviews([rated, unrated], ReviewFilters(category="cleanliness", min_category="4"))

    assert result == [rated]


def test_category_filter_defaults_minimum_to_one(make_review):
    low = make_review(categories={"value": 1})
    unrated = make_review()

    for raw in ("", "not-a-number"):
        result = filter_reviews([low, unrated], ReviewFilters(category="value", min_category=raw))
        assert result == [low]


def test_rating_desc_sorts_nan_last_as_zero(make_review):
    reviews = [make_review(rating=3), make_review(rating=float("nan")), make_review(rating=5)]

    ordered = sort_reviews(reviews, "rating_desc")

    assert ordered[0].rating == 5
    assert ordered[1].rating == 3
    assert math.isnan(ordered[2].rating)


def test_rating_sorts_keep_input_order_for_ties(make_review):
    reviews = [make_review(rating=4, review_id=name) for name in ("a", "b", "c")]
    reviews.insert(1, make_review(rating=5, review_id="top"))

    assert [r.id for r in sort_reviews(reviews, "rating_desc")] == ["top", "a", "b", "c"]
    assert [r.id for r in sort_reviews(reviews, "rating_asc")] == ["a", "b", "c", "top"]


def test_date_sorts_and_unknown_key_default(make_review):
    old = make_review(date=datetime(2023, 5, 1))
    new = make_review(date=datetime(2024, 5, 1))

    assert sort_reviews([old, new], "date_asc") == [old, new]
    assert sort_reviews([old, new], "date_desc") == [new, old]
    assert sort_reviews([old, new], "bogus") == [new, old]


def test_pagination_reports_total_before_slicing(make_review):
    reviews = [make_review() for _ in range(10)]

    page = apply_filters(reviews, ReviewFilters(), limit="3", offset="9")

    assert page.total == 10
    assert len(page.data) == 1


def test_offset_past_end_returns_empty_page(make_review):
    page = apply_filters([make_review()], ReviewFilters(), limit=10, offset=5)

    assert page.total == 1
    assert page.data == []


def test_window_clamps_and_falls_back():
    assert resolve_window() == (50, 0)
    assert resolve_window("0", "-4") == (1, 0)
    assert resolve_window("1000", "3") == (200, 3)
    assert resolve_window("ten", "x") == (50, 0)
