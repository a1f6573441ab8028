import json

import pytest

from jobs.__main__ import main

RECORDS = [
    {
        "id": index,
        "rating": rating,
        "publicReview": "",
        "reviewCategory": [],
        "submittedAt": f"2024-05-0{index} 12:00:00",
        "guestName": "Guest",
        "listingName": "City Loft",
    }
    for index, rating in ((1, 5), (2, 3))
]


@pytest.fixture()
def env(monkeypatch, tmp_path):
    export = tmp_path / "hostaway.json"
    export.write_text(json.dumps(RECORDS), encoding="utf-8")
    monkeypatch.setenv("REVIEWS_SOURCE", "file")
    monkeypatch.setenv("HOSTAWAY_REVIEWS_PATH", str(export))
    monkeypatch.setenv("REVIEWS_DB_PATH", str(tmp_path / "approvals.duckdb"))


def test_approve_updates_property_stats(env, capsys):
    assert main(["approve", "1"]) == 0
    assert main(["properties"]) == 0

    out = capsys.readouterr().out
    assert "city-loft: name='City Loft' reviews=2 approved=1 avg=5.00 trend=stable" in out


def test_timeseries_respects_status(env, capsys):
    main(["approve", "2"])
    main(["timeseries", "--status", "approved"])

    assert capsys.readouterr().out.strip() == "2024-05-02 count=1 avg=3.00"


def test_blank_review_id_is_rejected(env):
    with pytest.raises(SystemExit):
        main(["reset", "  "])
