"""
CSV loaders for known places and cities exported from the database.
"""
from typing import List, Optional, Set
import numpy as np
import pandas as pd
from loguru import logger

from placematch.models import City, KnownPlace


def _coord(value) -> Optional[float]:
    """Parse a coordinate, returning None for missing or non-finite values."""
    if value is None:
        return None
    try:
        f = float(value)
    except (ValueError, TypeError):
        return None
    if not np.isfinite(f):
        return None
    return f


def _row_id(value) -> Optional[int]:
    """Parse an integer id; None for blanks, NaN and fractional values."""
    f = _coord(value)
    if f is None or not f.is_integer():
        return None
    return int(f)


def _valid_lat_lng(lat: Optional[float], lng: Optional[float]) -> bool:
    return lat is not None and lng is not None and -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def _load_points(file_path: str, city_id: Optional[int] = None) -> List[tuple]:
    df = pd.read_csv(file_path)
    if city_id is not None and "city_id" in df.columns:
        df = df[df["city_id"] == city_id]

    rows = []
    for _, row in df.iterrows():
        row_id = _row_id(row.get("id"))
        lat = _coord(row.get("lat"))
        lng = _coord(row.get("lng"))
        name = str(row["name"]) if pd.notna(row.get("name")) else ""
        if row_id is None or not name or not _valid_lat_lng(lat, lng):
            logger.debug(f"Skipping row id={row.get('id')} name='{name}': missing id, name or bad coordinates")
            continue
        rows.append((row_id, name, lat, lng))
    return rows


def load_known_places(file_path: str, city_id: Optional[int] = None) -> List[KnownPlace]:
    """
    Load known places from a CSV with columns id, name, lat, lng (and optionally city_id).

    Args:
        file_path (str): Path to the CSV export.
        city_id (Optional[int]): Only keep places in this city, if the column exists.

    Returns:
        List[KnownPlace]: Places with a name and valid coordinates.
    """
    places = [KnownPlace(id=i, name=n, lat=lat, lng=lng) for i, n, lat, lng in _load_points(file_path, city_id)]
    logger.info(f"Loaded {len(places)} known places from {file_path}")
    return places


def load_cities(file_path: str) -> List[City]:
    """Load cities from a CSV with columns id, name, lat, lng."""
    cities = [City(id=i, name=n, lat=lat, lng=lng) for i, n, lat, lng in _load_points(file_path)]
    logger.info(f"Loaded {len(cities)} cities from {file_path}")
    return cities


def find_city_by_slug(cities_file: str, city_slug: str) -> Optional[int]:
    """
    Resolve a Michelin city slug to a city id.

    Matches a `michelin_city_slug` column if present, otherwise the slugified city name.
    """
    df = pd.read_csv(cities_file)
    for _, row in df.iterrows():
        slug = row.get("michelin_city_slug")
        if pd.notna(slug) and slug == city_slug:
            return int(row["id"])
        if pd.notna(row.get("name")) and "-".join(str(row["name"]).lower().split()) == city_slug:
            return int(row["id"])
    return None


def load_rated_place_ids(file_path: str, source: str = "michelin") -> Set[int]:
    """
    Load ids of places that already carry a rating from `source`.

    Args:
        file_path (str): CSV export of place ratings with columns place_id, source.
        source (str): Rating source to keep.

    Returns:
        Set[int]: Place ids with an existing rating from that source.
    """
    df = pd.read_csv(file_path)
    df = df[df["source"] == source]
    rated = {pid for pid in (_row_id(v) for v in df["place_id"]) if pid is not None}
    logger.info(f"Loaded {len(rated)} places with an existing {source} rating from {file_path}")
    return rated
