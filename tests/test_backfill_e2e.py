import csv
from collections import Counter
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import main
from placematch.models import ExternalCandidate, MichelinRestaurant

PLACES = """id,name,lat,lng,city_id
10,Di Fara Pizza,40.6251,-73.9615,1
11,Gramersy Tavern,40.73853,-73.98849,1
"""

CITIES = """id,name,lat,lng,michelin_city_slug
1,New York,40.7128,-74.0060,new-york
"""


def pair(object_id, name, lat, lng, **kwargs):
    r = MichelinRestaurant(object_id=object_id, name=name, slug=object_id, lat=lat, lng=lng,
                           url=f"/en/restaurant/{object_id}", **kwargs)
    return ExternalCandidate(name=name, lat=lat, lng=lng, source_id=object_id, provider_types=("restaurant",)), r


def fetched(pairs):
    return pairs, Counter({"Selected": len(pairs)})


@pytest.fixture
def inputs(tmp_path):
    places = tmp_path / "places.csv"
    places.write_text(PLACES)
    cities = tmp_path / "cities.csv"
    cities.write_text(CITIES)
    return places, cities, tmp_path / "out.csv"


@pytest.mark.asyncio
async def test_backfill_writes_decisions(inputs):
    """
    Runs the backfill with a mocked Michelin fetch: one match, one new place
    flagged for review, and one listing too far from any city.
    """
    places, cities, out = inputs
    pairs = [
        pair("m1", "Di Fara Pizza", 40.625, -73.9614, stars=1),
        pair("m2", "Gramercy Tavern", 40.73862, -73.98852, distinction="BIB_GOURMAND"),
        pair("m3", "Alinea", 41.9134, -87.6482, stars=3),
    ]

    with patch("main.fetch_michelin_candidates", AsyncMock(return_value=fetched(pairs))), \
         patch("main.MichelinClient") as mock_client:
        instance = MagicMock()
        instance.close = AsyncMock()
        mock_client.return_value = instance

        code = await main.main([
            "--city-slug", "new-york",
            "--places", str(places),
            "--cities", str(cities),
            "--output", str(out),
        ])

    assert code == 0
    assert instance.close.await_count == 1

    with open(out, newline="") as f:
        rows = list(csv.DictReader(f))

    assert [r["decision"] for r in rows] == ["matched_existing", "new", "too_far"]
    assert rows[0]["matched_place_id"] == "10"
    assert rows[0]["notes"] == "1 Michelin Star"
    assert rows[0]["rating_url"] == "https://guide.michelin.com/en/restaurant/m1"
    assert rows[1]["city_id"] == "1"
    assert rows[1]["needs_review"] == "True"
    assert rows[1]["review_name"] == "Gramersy Tavern"
    assert rows[1]["place_type"] == "restaurant"
    assert rows[0]["place_type"] == ""
    assert rows[0]["already_rated"] == "False"
    assert rows[2]["city_id"] == ""


@pytest.mark.asyncio
async def test_dry_run_writes_nothing(inputs):
    places, cities, out = inputs

    with patch("main.fetch_michelin_candidates", AsyncMock(return_value=fetched([pair("m1", "Lucali", 40.6801, -74.0004)]))), \
         patch("main.MichelinClient") as mock_client:
        mock_client.return_value.close = AsyncMock()

        code = await main.main([
            "--places", str(places), "--cities", str(cities), "--output", str(out), "--dry-run",
        ])

    assert code == 0
    assert not out.exists()


@pytest.mark.asyncio
async def test_unknown_city_slug_fails(inputs):
    places, cities, out = inputs

    code = await main.main(["--city-slug", "atlantis", "--places", str(places), "--cities", str(cities)])

    assert code == 1


@pytest.mark.asyncio
async def test_fetch_failure_returns_error_and_closes_client(inputs):
    places, cities, out = inputs

    with patch("main.fetch_michelin_candidates", AsyncMock(side_effect=RuntimeError("Michelin down"))), \
         patch("main.MichelinClient") as mock_client:
        mock_client.return_value.close = AsyncMock()

        code = await main.main(["--places", str(places), "--cities", str(cities), "--output", str(out)])

    assert code == 1
    assert mock_client.return_value.close.await_count == 1


@pytest.mark.asyncio
async def test_matches_on_already_rated_places_are_marked(inputs, tmp_path):
    places, cities, out = inputs
    ratings = tmp_path / "ratings.csv"
    ratings.write_text("place_id,source\n10,michelin\n11,google\n")
    pairs = [
        pair("m1", "Di Fara Pizza", 40.625, -73.9614, stars=1),
        pair("m2", "Gramersy Tavern", 40.73862, -73.98852),
    ]

    with patch("main.fetch_michelin_candidates", AsyncMock(return_value=fetched(pairs))), \
         patch("main.MichelinClient") as mock_client, \
         patch("main.logger") as mock_logger:
        mock_client.return_value.close = AsyncMock()

        code = await main.main([
            "--places", str(places), "--cities", str(cities),
            "--ratings", str(ratings), "--output", str(out),
        ])

    assert code == 0
    with open(out, newline="") as f:
        rows = list(csv.DictReader(f))

    assert [r["decision"] for r in rows] == ["matched_existing", "matched_existing"]
    assert [r["already_rated"] for r in rows] == ["True", "False"]

    summary = [c.args[0] for c in mock_logger.info.call_args_list if c.args[0].startswith("Done:")]
    assert "already_rated=1" in summary[0]
    assert "matched_existing=2" in summary[0]


@pytest.mark.asyncio
async def test_summary_uses_fetcher_distinction_counts(inputs):
    """Listings the fetcher could not turn into candidates still appear in the distinction summary."""
    places, cities, out = inputs
    distinctions = Counter({"3 Stars": 1, "Selected": 1})

    with patch("main.fetch_michelin_candidates",
               AsyncMock(return_value=([pair("m1", "Lucali", 40.6801, -74.0004)], distinctions))), \
         patch("main.MichelinClient") as mock_client, \
         patch("main.logger") as mock_logger:
        mock_client.return_value.close = AsyncMock()

        code = await main.main(["--places", str(places), "--cities", str(cities), "--output", str(out)])

    assert code == 0
    lines = [c.args[0] for c in mock_logger.info.call_args_list]
    assert "Distinctions: 3 Stars=1, Selected=1" in lines
