from datetime import datetime
from itertools import count

import pytest

from pipelines.model import CATEGORY_KEYS, NormalizedReview

_ids = count(1)


@pytest.fixture()
def make_review():
    def _make(
        *,
        rating=4.0,
        date=datetime(2024, 1, 1, 12, 0),
        property_name="City Loft",
        status="pending",
        channel="hostaway",
        categories=None,
        review_id=None,
    ):
        cats = {key: None for key in CATEGORY_KEYS}
        cats.update(categories or {})
        return NormalizedReview(
            id=review_id or str(next(_ids)),
            property_name=property_name,
            guest_name="Guest",
            rating=rating,
            comment="",
            date=date,
            channel=channel,
            categories=cats,
            status=status,
        )

    return _make
