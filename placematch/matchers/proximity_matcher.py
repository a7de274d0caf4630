from typing import Callable, Iterable, List, Optional, Tuple, TypeVar

from placematch.models import ExternalCandidate, KnownPlace, MatchResult
from placematch.matchers.geo import DistanceFn, haversine_distance
from placematch.matchers.name_matcher import names_match

T = TypeVar("T")
NamePredicate = Callable[[str, str], bool]


class ProximityMatcher:
    """
    Decide whether an external place is the same physical place as a known one.

    Distance ranks candidates, the name predicate filters them. The matcher is
    stateless and never mutates its inputs, so one instance can be shared across
    concurrent callers.
    """

    def __init__(
        self,
        distance_fn: DistanceFn = haversine_distance,
        name_predicate: NamePredicate = names_match,
    ):
        self.distance_fn = distance_fn
        self.name_predicate = name_predicate

    def find_match(
        self,
        candidate: ExternalCandidate,
        known_places: Iterable[KnownPlace],
        threshold_meters: float,
    ) -> MatchResult:
        """
        Find the closest known place within `threshold_meters` whose name matches.

        Args:
            candidate (ExternalCandidate): Provider record to reconcile.
            known_places (Iterable[KnownPlace]): Places to compare against. May be empty.
            threshold_meters (float): Maximum distance for a match, inclusive.

        Returns:
            MatchResult: The matched place and its distance, or an empty result.
        """
        best: Optional[KnownPlace] = None
        best_dist: Optional[float] = None

        for known in known_places:
            dist = self.distance_fn(candidate.lat, candidate.lng, known.lat, known.lng)
            if dist > threshold_meters:
                continue
            if not self.name_predicate(candidate.name, known.name):
                continue
            # Strict comparison keeps the first of equally distant places
            if best_dist is None or dist < best_dist:
                best, best_dist = known, dist

        return MatchResult(matched=best, distance_meters=best_dist)

    def is_too_far(
        self,
        lat: float,
        lng: float,
        reference_lat: float,
        reference_lng: float,
        threshold_meters: float,
    ) -> bool:
        """True if the point lies strictly farther than `threshold_meters` from the reference point."""
        return self.distance_fn(lat, lng, reference_lat, reference_lng) > threshold_meters

    def closest_within(
        self,
        lat: float,
        lng: float,
        references: Iterable[T],
        threshold_meters: float,
    ) -> Tuple[Optional[T], Optional[float]]:
        """
        Closest reference point (anything with `lat`/`lng`) within range, without a name check.

        Returns:
            Tuple: (reference, distance_meters), or (None, None) if nothing is in range.
        """
        best = None
        best_dist = None
        for ref in references:
            dist = self.distance_fn(lat, lng, ref.lat, ref.lng)
            if best_dist is None or dist < best_dist:
                best, best_dist = ref, dist

        if best_dist is None or best_dist > threshold_meters:
            return None, None
        return best, best_dist

    def near_misses(
        self,
        candidate: ExternalCandidate,
        known_places: Iterable[KnownPlace],
        threshold_meters: float,
    ) -> List[Tuple[KnownPlace, float]]:
        """Known places in range whose names failed the name check, closest first."""
        misses = []
        for known in known_places:
            dist = self.distance_fn(candidate.lat, candidate.lng, known.lat, known.lng)
            if dist <= threshold_meters and not self.name_predicate(candidate.name, known.name):
                misses.append((known, dist))
        misses.sort(key=lambda pair: pair[1])
        return misses


_default_matcher = ProximityMatcher()


def find_match(
    candidate: ExternalCandidate,
    known_places: Iterable[KnownPlace],
    threshold_meters: float,
) -> MatchResult:
    """Match with true haversine distance and the default name predicate."""
    return _default_matcher.find_match(candidate, known_places, threshold_meters)
