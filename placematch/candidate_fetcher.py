import time
from collections import Counter
from typing import List, Tuple
from loguru import logger
from placematch.config import HITS_PER_PAGE
from placematch.models import ExternalCandidate, MichelinRestaurant
from placematch.clients import MichelinClient

# Every Michelin Guide listing is a restaurant
MICHELIN_PROVIDER_TYPES = ("restaurant",)


def build_notes(restaurant: MichelinRestaurant) -> str:
    """
    Summarize a Michelin distinction for a rating entry.

    e.g. "2 Michelin Stars, Green Star", "Bib Gourmand", "Michelin Selected"
    """
    parts = []
    if restaurant.stars > 0:
        parts.append(f"{restaurant.stars} Michelin Star{'s' if restaurant.stars > 1 else ''}")
    elif restaurant.distinction.upper() == "BIB_GOURMAND":
        parts.append("Bib Gourmand")
    else:
        parts.append("Michelin Selected")
    if restaurant.green_star:
        parts.append("Green Star")
    return ", ".join(parts)


def distinction_label(restaurant: MichelinRestaurant) -> str:
    """Bucket used for backfill summary counts."""
    if restaurant.stars == 3:
        return "3 Stars"
    if restaurant.stars == 2:
        return "2 Stars"
    if restaurant.stars == 1:
        return "1 Star"
    if restaurant.distinction.upper() == "BIB_GOURMAND":
        return "Bib Gourmand"
    return "Selected"


def to_candidate(restaurant: MichelinRestaurant) -> ExternalCandidate:
    return ExternalCandidate(
        name=restaurant.name,
        lat=float(restaurant.lat),
        lng=float(restaurant.lng),
        source_id=restaurant.object_id,
        provider_types=MICHELIN_PROVIDER_TYPES,
    )


async def fetch_michelin_candidates(
    city_slug: str,
    hits_per_page: int = HITS_PER_PAGE,
) -> Tuple[List[Tuple[ExternalCandidate, MichelinRestaurant]], Counter]:
    """
    Fetch every Michelin listing for a city and turn it into match candidates.

    Listings without coordinates cannot be matched and are skipped, but still
    count towards the distinction tally.

    Args:
        city_slug (str): Michelin city slug.
        hits_per_page (int): Page size for pagination.

    Returns:
        Tuple: (candidate paired with its source listing, Counter of distinction labels over all listings)
    """
    michelin_client = MichelinClient()

    start = time.perf_counter()
    restaurants: List[MichelinRestaurant] = []
    page = 0
    total_pages = 1
    while page < total_pages:
        result = await michelin_client.list_restaurants(city_slug, page=page, hits_per_page=hits_per_page)
        restaurants.extend(result.restaurants)
        total_pages = result.total_pages
        page += 1
        logger.debug(f"Page {page}/{total_pages} ({len(restaurants)} so far)")

    pairs = []
    distinctions: Counter = Counter()
    skipped = 0
    for r in restaurants:
        distinctions[distinction_label(r)] += 1
        if r.lat is None or r.lng is None:
            skipped += 1
            continue
        pairs.append((to_candidate(r), r))

    duration = time.perf_counter() - start
    logger.info(
        f"Fetched {len(restaurants)} Michelin restaurants for '{city_slug}' in {duration:.2f}s "
        f"({skipped} without coordinates)"
    )
    return pairs, distinctions
