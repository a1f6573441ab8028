from datetime import datetime, timedelta

import pytest

from pipelines.aggregate import (
    aggregate_properties,
    category_averages,
    recent_trend,
    slugify,
    summarize_reviews,
)

_START = datetime(2024, 1, 1)


def _approved_series(make_review, ratings):
    """Approved reviews, newest first in the given order."""
    return [
        make_review(rating=rating, status="approved", date=_START - timedelta(days=index))
        for index, rating in enumerate(ratings)
    ]


def test_slugify():
    assert slugify("2B N1 A - 29 Shoreditch Heights") == "2b-n1-a-29-shoreditch-heights"
    assert slugify("  City Loft!! ") == "city-loft"


def test_groups_in_first_seen_order(make_review):
    reviews = [
        make_review(property_name="Wandsworth Flat"),
        make_review(property_name="City Loft"),
        make_review(property_name="Wandsworth Flat"),
        make_review(property_name="city loft"),
    ]

    stats = aggregate_properties(reviews)

    assert [s.name for s in stats] == ["Wandsworth Flat", "City Loft", "city loft"]
    assert stats[0].total_reviews == 2


def test_average_counts_only_approved_and_nan_as_zero(make_review):
    reviews = [
        make_review(rating=5, status="approved"),
        make_review(rating=float("nan"), status="approved"),
        make_review(rating=1, status="pending"),
    ]

    (stats,) = aggregate_properties(reviews)

    assert stats.id == "city-loft"
    assert stats.total_reviews == 3
    assert stats.approved_reviews == 2
    assert stats.average_rating == pytest.approx(2.5)


def test_no_approved_reviews_means_zero_average(make_review):
    (stats,) = aggregate_properties([make_review(rating=5)])

    assert stats.average_rating == 0
    assert stats.recent_trend == "stable"


def test_trend_up(make_review):
    approved = _approved_series(make_review, [5, 4.5, 4, 4, 4, 4])

    assert recent_trend(approved) == "up"


def test_trend_down(make_review):
    approved = _approved_series(make_review, [3, 3, 3, 4, 4, 4])

    assert recent_trend(approved) == "down"


def test_trend_sorts_by_date_not_input_order(make_review):
    approved = _approved_series(make_review, [5, 5, 5, 1, 1, 1])
    approved.reverse()

    assert recent_trend(approved) == "up"


def test_trend_boundary_is_exclusive(make_review):
    exact = _approved_series(make_review, [4.05, 4.05, 4.05, 4, 4, 4])
    just_over = _approved_series(make_review, [4.0500001, 4.0500001, 4.0500001, 4, 4, 4])

    assert recent_trend(exact) == "stable"
    assert recent_trend(just_over) == "up"


def test_trend_needs_six_approved(make_review):
    approved = _approved_series(make_review, [5, 5, 5, 1, 1])
    reviews = approved + [make_review(rating=1, status="pending")]

    (stats,) = aggregate_properties(reviews)

    assert stats.approved_reviews == 5
    assert stats.recent_trend == "stable"


def test_category_averages_skip_missing(make_review):
    reviews = [
        make_review(categories={"cleanliness": 5, "value": 4}),
        make_review(categories={"cleanliness": 4}),
    ]

    averages = category_averages(reviews)

    assert averages["cleanliness"] == pytest.approx(4.5)
    assert averages["value"] == pytest.approx(4.0)
    assert averages["location"] is None


def test_summary_counts_statuses(make_review):
    reviews = [
        make_review(rating=5, status="approved"),
        make_review(rating=4, status="approved"),
        make_review(rating=2, status="pending"),
        make_review(rating=2, status="published"),
    ]

    summary = summarize_reviews(reviews)

    assert summary.total_reviews == 4
    assert summary.pending_reviews == 1
    assert summary.approved_reviews == 2
    assert summary.average_rating == pytest.approx(4.5)
