# placematch/matchers/matching_orchestrator.py

from typing import List, Optional
from loguru import logger

from placematch.models import (
    City,
    CityAssignment,
    Decision,
    ExternalCandidate,
    KnownPlace,
    ReconciliationResult,
)
from placematch.matchers.geo import METERS_PER_MILE
from placematch.matchers.name_matcher import name_similarity
from placematch.matchers.proximity_matcher import ProximityMatcher
from placematch.matchers.type_mapper import map_place_type
from placematch.config import (
    PLACE_DEDUP_THRESHOLD_M,
    CITY_ASSIGNMENT_THRESHOLD_KM,
    CITY_TOO_FAR_MILES,
    REVIEW_SIMILARITY_THRESHOLD,
)

_matcher = ProximityMatcher()


def assign_city(
    lat: float,
    lng: float,
    cities: List[City],
    matcher: Optional[ProximityMatcher] = None,
    threshold_km: float = CITY_ASSIGNMENT_THRESHOLD_KM,
) -> CityAssignment:
    """Assign a place to the closest known city within `threshold_km`."""
    matcher = matcher or _matcher
    city, dist = matcher.closest_within(lat, lng, cities, threshold_km * 1000.0)
    if city is None:
        return CityAssignment()
    return CityAssignment(city=city, distance_km=round(dist / 1000.0, 1))


def check_city_distance(
    place_lat: Optional[float],
    place_lng: Optional[float],
    city: City,
    threshold_miles: float = CITY_TOO_FAR_MILES,
    matcher: Optional[ProximityMatcher] = None,
) -> Optional[str]:
    """
    Sanity check before attaching a place to a city.

    Returns:
        Optional[str]: An error message if the city is too far from the place, otherwise None.
                       Places without coordinates always pass.
    """
    if place_lat is None or place_lng is None:
        return None
    matcher = matcher or _matcher
    if not matcher.is_too_far(place_lat, place_lng, city.lat, city.lng, threshold_miles * METERS_PER_MILE):
        return None
    dist_miles = matcher.distance_fn(place_lat, place_lng, city.lat, city.lng) / METERS_PER_MILE
    return f'"{city.name}" is ~{round(dist_miles)} miles from the selected place'


def reconcile_candidate(
    candidate: ExternalCandidate,
    known_places: List[KnownPlace],
    cities: List[City],
    matcher: Optional[ProximityMatcher] = None,
) -> ReconciliationResult:
    """
    Decide what to do with a single external candidate.

    - Matched an existing place within PLACE_DEDUP_THRESHOLD_M -> MATCHED_EXISTING
    - Otherwise, a city within CITY_ASSIGNMENT_THRESHOLD_KM -> NEW
    - Otherwise -> TOO_FAR

    Args:
        candidate (ExternalCandidate): Provider record to reconcile.
        known_places (List[KnownPlace]): Places already persisted.
        cities (List[City]): Cities a new place may be assigned to.
        matcher (Optional[ProximityMatcher]): Matcher to use; defaults to haversine.

    Returns:
        ReconciliationResult: Decision for this candidate.
    """
    matcher = matcher or _matcher

    match = matcher.find_match(candidate, known_places, PLACE_DEDUP_THRESHOLD_M)
    if match.matched is not None:
        logger.debug(
            f"MATCH: '{candidate.name}' -> '{match.matched.name}' ({round(match.distance_meters)}m)"
        )
        return ReconciliationResult(
            candidate=candidate,
            decision=Decision.MATCHED_EXISTING,
            match=match,
            city_assignment=CityAssignment(),
        )

    city_assignment = assign_city(candidate.lat, candidate.lng, cities, matcher=matcher)
    decision = Decision.NEW if city_assignment.city is not None else Decision.TOO_FAR

    result = ReconciliationResult(
        candidate=candidate,
        decision=decision,
        match=match,
        city_assignment=city_assignment,
        place_type=map_place_type(candidate.provider_types) if decision == Decision.NEW else None,
    )

    # Flag the closest similarly-named place in range; the decision stands either way
    for known, dist in matcher.near_misses(candidate, known_places, PLACE_DEDUP_THRESHOLD_M):
        score = name_similarity(candidate.name, known.name)
        if score >= REVIEW_SIMILARITY_THRESHOLD:
            result.needs_review = True
            result.review_name = known.name
            result.review_score = score
            logger.debug(
                f"REVIEW: '{candidate.name}' ~ '{known.name}' ({round(dist)}m, similarity {score:.0f})"
            )
            break

    return result
