import os
import asyncio
import argparse
import csv
from collections import Counter
from typing import List, Set, Tuple
import sys
from loguru import logger

from placematch.models import City, ExternalCandidate, KnownPlace, MichelinRestaurant, ReconciliationResult
from placematch.candidate_fetcher import fetch_michelin_candidates, build_notes
from placematch.loaders import load_known_places, load_cities, find_city_by_slug, load_rated_place_ids
from placematch.matchers.matching_orchestrator import reconcile_candidate
from placematch.config import PLACES_CSV, CITIES_CSV, OUTPUT_CSV, BATCH_SIZE, LOG_LEVEL, MICHELIN_BASE_URL
from placematch.clients import MichelinClient

OUTPUT_HEADER = [
    "source_id", "name", "decision", "matched_place_id", "matched_name", "distance_m",
    "city_id", "city_distance_km", "needs_review", "review_name", "review_score",
    "place_type", "already_rated", "notes", "rating_url",
]


def batch_iter(items: List, batch_size: int):
    """
    Yield index and slices of size `batch_size` for batched processing.
    """
    n = len(items)
    for i in range(0, n, batch_size):
        yield i, items[i:i+batch_size]


async def process_candidate(
    candidate: ExternalCandidate,
    known_places: List[KnownPlace],
    cities: List[City],
) -> ReconciliationResult:
    """Reconcile one candidate off the event loop; matching is CPU-only."""
    return await asyncio.to_thread(reconcile_candidate, candidate, known_places, cities)


def is_already_rated(result: ReconciliationResult, rated_place_ids: Set[int]) -> bool:
    """True if the candidate matched a place that already carries a Michelin rating."""
    return result.match.matched is not None and result.match.matched.id in rated_place_ids


def to_row(result: ReconciliationResult, restaurant: MichelinRestaurant, already_rated: bool = False) -> list:
    match = result.match
    assignment = result.city_assignment
    return [
        result.candidate.source_id,
        result.candidate.name,
        result.decision.value,
        match.matched.id if match.matched else "",
        match.matched.name if match.matched else "",
        round(match.distance_meters) if match.distance_meters is not None else "",
        assignment.city.id if assignment.city else "",
        assignment.distance_km if assignment.distance_km is not None else "",
        result.needs_review,
        result.review_name or "",
        f"{result.review_score:.0f}" if result.review_score is not None else "",
        result.place_type or "",
        already_rated,
        build_notes(restaurant),
        f"{MICHELIN_BASE_URL}{restaurant.url}",
    ]


def parse_args(argv=None):
    p = argparse.ArgumentParser("Backfill Michelin listings against known places")
    p.add_argument("--city-slug", default="new-york")
    p.add_argument("--places", default=PLACES_CSV, help="CSV export of places (id, name, lat, lng, city_id)")
    p.add_argument("--cities", default=CITIES_CSV, help="CSV export of cities (id, name, lat, lng)")
    p.add_argument("--ratings", default=None, help="Optional CSV export of place ratings (place_id, source)")
    p.add_argument("--output", default=OUTPUT_CSV)
    p.add_argument("--dry-run", action="store_true", help="Log decisions without writing the output CSV")
    return p.parse_args(argv)


async def main(argv=None) -> int:
    """
    Orchestrate the Michelin backfill.

    - Loads known places for the city, all cities, and optionally existing ratings.
    - Fetches every Michelin listing for the city.
    - Reconciles candidates in batches and writes decisions to the output CSV.
    """
    args = parse_args(argv)

    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    city_id = find_city_by_slug(args.cities, args.city_slug)
    if city_id is None:
        logger.error(f"No city found for slug '{args.city_slug}' in {args.cities}")
        return 1

    known_places = load_known_places(args.places, city_id=city_id)
    cities = load_cities(args.cities)
    rated_place_ids: Set[int] = load_rated_place_ids(args.ratings) if args.ratings else set()
    if args.dry_run:
        logger.info("DRY RUN - no output written")

    # Initialize output file
    output_path = args.output
    if not args.dry_run:
        if os.path.exists(output_path):
            os.remove(output_path)
        with open(output_path, "w", newline="") as f:
            csv.writer(f).writerow(OUTPUT_HEADER)

    decisions: Counter = Counter()
    needs_review = 0
    already_rated = 0

    try:
        pairs: List[Tuple[ExternalCandidate, MichelinRestaurant]]
        pairs, distinctions = await fetch_michelin_candidates(args.city_slug)

        for start_idx, batch in batch_iter(pairs, BATCH_SIZE):
            logger.debug(f"Processing candidates {start_idx}..{start_idx + len(batch) - 1}")

            results = await asyncio.gather(
                *[process_candidate(candidate, known_places, cities) for candidate, _ in batch]
            )

            rows = []
            for result, (_, restaurant) in zip(results, batch):
                rated = is_already_rated(result, rated_place_ids)
                decisions[result.decision.value] += 1
                needs_review += int(result.needs_review)
                already_rated += int(rated)
                rows.append(to_row(result, restaurant, already_rated=rated))

            if not args.dry_run:
                with open(output_path, "a", newline="") as f:
                    writer = csv.writer(f)
                    writer.writerows(rows)
    except Exception as e:
        logger.error(f"Backfill failed for '{args.city_slug}': {e}")
        return 1
    finally:
        # Cleanup: close MichelinClient session to prevent unclosed connector warnings
        await MichelinClient().close()

    logger.info(
        "Done: "
        + ", ".join(f"{k}={v}" for k, v in sorted(decisions.items()))
        + f", already_rated={already_rated}, needs_review={needs_review}"
    )
    logger.info("Distinctions: " + ", ".join(f"{k}={v}" for k, v in sorted(distinctions.items())))
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
