from typing import Iterable, Optional

PLACE_TYPES = [
    "restaurant",
    "bar",
    "cafe",
    "tourist_site",
    "retail",
    "night_club",
    "bakery",
    "other",
]

# Google Places type -> canonical place type
GOOGLE_TYPE_MAP = {
    # Direct matches
    "restaurant": "restaurant",
    "bar": "bar",
    "cafe": "cafe",
    "bakery": "bakery",
    "night_club": "night_club",
    # Tourist / attractions
    "tourist_attraction": "tourist_site",
    "museum": "tourist_site",
    "art_gallery": "tourist_site",
    "amusement_park": "tourist_site",
    "aquarium": "tourist_site",
    "zoo": "tourist_site",
    "landmark": "tourist_site",
    "historical_landmark": "tourist_site",
    "national_park": "tourist_site",
    "performing_arts_theater": "tourist_site",
    # Retail
    "store": "retail",
    "shopping_mall": "retail",
    "book_store": "retail",
    "clothing_store": "retail",
    "grocery_store": "retail",
    "supermarket": "retail",
    # Aliases
    "coffee_shop": "cafe",
    "pub": "bar",
    "wine_bar": "bar",
    "brewery": "bar",
    "cocktail_bar": "bar",
    # Food variants
    "ice_cream_shop": "restaurant",
    "sandwich_shop": "restaurant",
    "pizza_restaurant": "restaurant",
    "steak_house": "restaurant",
    "seafood_restaurant": "restaurant",
    "meal_takeaway": "restaurant",
    "meal_delivery": "restaurant",
}


def map_place_type(provider_types: Iterable[str]) -> Optional[str]:
    """
    Map provider place types to a canonical place type.

    Provider types are checked in order; the first one with a mapping wins.

    Args:
        provider_types (Iterable[str]): Types as reported by Google Places, most specific first.

    Returns:
        Optional[str]: Canonical place type, or None if no type maps.
    """
    for t in provider_types or []:
        mapped = GOOGLE_TYPE_MAP.get(t)
        if mapped:
            return mapped
    return None
