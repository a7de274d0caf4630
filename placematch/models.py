"""
Typed data models for the place reconciliation pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ExternalCandidate:
    """Place record from a third-party provider, awaiting reconciliation."""
    name: str
    lat: float
    lng: float
    source_id: str
    provider_types: Tuple[str, ...] = ()  # Provider place types, most specific first


@dataclass(frozen=True)
class KnownPlace:
    """Place already persisted in the local database."""
    id: int
    name: str
    lat: float
    lng: float


@dataclass(frozen=True)
class City:
    """City reference point used for city assignment."""
    id: int
    name: str
    lat: float
    lng: float


@dataclass
class MatchResult:
    """Outcome of a single proximity match attempt."""
    matched: Optional[KnownPlace] = None
    distance_meters: Optional[float] = None


@dataclass
class CityAssignment:
    """Closest city within range of a place, if any."""
    city: Optional[City] = None
    distance_km: Optional[float] = None


class Decision(str, Enum):
    MATCHED_EXISTING = "matched_existing"
    NEW = "new"
    TOO_FAR = "too_far"


@dataclass
class ReconciliationResult:
    """Final reconciliation result for one external candidate."""
    candidate: ExternalCandidate
    decision: Decision
    match: MatchResult
    city_assignment: CityAssignment
    needs_review: bool = False  # A nearby place with a similar (but not matching) name exists
    review_name: Optional[str] = None
    review_score: Optional[float] = None
    place_type: Optional[str] = None  # Canonical type for NEW places


@dataclass
class MichelinRestaurant:
    """Michelin Guide listing, reduced to the fields the backfill uses."""
    object_id: str
    name: str
    slug: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    city: Optional[str] = None
    distinction: str = "selected"
    stars: int = 0
    green_star: bool = False
    cuisines: List[str] = field(default_factory=list)
    price_level: Optional[int] = None
    url: str = ""


@dataclass
class MichelinListResult:
    """One page of Michelin listings for a city."""
    restaurants: List[MichelinRestaurant]
    total_hits: int = 0
    page: int = 0
    total_pages: int = 0
