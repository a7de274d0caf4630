"""
Singleton Michelin Guide client with rate limiting using aiolimiter.
"""
from typing import Any, Dict, Optional
from urllib.parse import quote
from aiohttp import ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from loguru import logger

from placematch.config import (
    CONCURRENCY,
    MICHELIN_ALGOLIA_API_KEY,
    MICHELIN_ALGOLIA_APP_ID,
    MICHELIN_ALGOLIA_INDEX,
    MICHELIN_ALGOLIA_URL,
    MICHELIN_BASE_URL,
    MICHELIN_PROXY_URL,
)
from placematch.models import MichelinListResult, MichelinRestaurant

AWARD_TO_STARS = {
    "THREE_STARS": 3,
    "TWO_STARS": 2,
    "ONE_STAR": 1,
}

PRICE_MAP = {
    "affordable": 1,
    "mid-range": 2,
    "premium": 3,
    "luxury": 4,
}


class MichelinAPIError(Exception):
    """Raised when the Michelin search backend returns a non-200 response."""


def _derive_stars(award: Optional[str], numeric_stars: Optional[int]) -> int:
    if award and award in AWARD_TO_STARS:
        return AWARD_TO_STARS[award]
    if numeric_stars and numeric_stars > 0:
        return int(numeric_stars)
    return 0


def map_hit(hit: Dict[str, Any]) -> MichelinRestaurant:
    """
    Convert a raw search hit into a MichelinRestaurant.

    Args:
        hit: One entry of `results[0].hits` from the search response.

    Returns:
        MichelinRestaurant: Listing with stars, price level and coordinates resolved.
    """
    award = hit.get("michelin_award") or "selected"
    geoloc = hit.get("_geoloc") or {}
    price_slug = (hit.get("price_category") or {}).get("slug")
    slug = hit.get("slug") or ""

    return MichelinRestaurant(
        object_id=str(hit.get("objectID", "")),
        name=hit.get("name") or "",
        slug=slug,
        lat=geoloc.get("lat"),
        lng=geoloc.get("lng"),
        city=(hit.get("city") or {}).get("name"),
        distinction=award,
        stars=_derive_stars(award, hit.get("stars")),
        green_star=(hit.get("green_star") or 0) > 0,
        cuisines=[c["label"] for c in hit.get("cuisines") or [] if c.get("label")],
        price_level=PRICE_MAP.get(price_slug.lower()) if price_slug else None,
        url=hit.get("url") or f"/en/restaurant/{slug}",
    )


class MichelinClient:
    """
    Singleton client for the Michelin Guide restaurant search.
    Uses AsyncRateLimiter for rate limiting and an optional HTTP proxy.
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not MichelinClient._initialized:
            self.base_url = MICHELIN_ALGOLIA_URL
            self.proxy_url = MICHELIN_PROXY_URL
            self.rate_limiter = AsyncLimiter(max_rate=CONCURRENCY, time_period=1.0)
            self._session: Optional[ClientSession] = None
            MichelinClient._initialized = True

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=60))
        return self._session

    async def _query(self, params: str, hits_per_page: int, page: int) -> Dict[str, Any]:
        """Run a single search query and return the first result block."""
        async with self.rate_limiter:
            session = await self._get_session()
            payload = {
                "requests": [
                    {
                        "indexName": MICHELIN_ALGOLIA_INDEX,
                        "params": f"{params}&hitsPerPage={hits_per_page}&page={page}",
                    }
                ]
            }
            headers = {
                "Content-Type": "application/json",
                "X-Algolia-Application-Id": MICHELIN_ALGOLIA_APP_ID,
                "X-Algolia-API-Key": MICHELIN_ALGOLIA_API_KEY,
                "Referer": f"{MICHELIN_BASE_URL}/",
                "Origin": MICHELIN_BASE_URL,
            }

            try:
                async with session.post(
                    self.base_url,
                    json=payload,
                    headers=headers,
                    proxy=self.proxy_url,
                ) as resp:
                    if resp.status != 200:
                        text = await resp.text()
                        raise MichelinAPIError(f"Michelin query error ({resp.status}): {text}")
                    data = await resp.json()
                    results = data.get("results") or [{}]
                    return results[0]
            except Exception as e:
                logger.debug(f"⚠️ Michelin request failed: {e}")
                raise

    async def list_restaurants(
        self,
        city_slug: str,
        page: int = 0,
        hits_per_page: int = 20,
        distinction: Optional[str] = None,
    ) -> MichelinListResult:
        """
        List published restaurants for a city.

        Args:
            city_slug: Michelin city slug, e.g. "new-york".
            page: Zero-based page index.
            hits_per_page: Page size.
            distinction: Optional award filter, e.g. "BIB_GOURMAND".

        Returns:
            MichelinListResult: One page of listings plus paging info.
        """
        filters = f'status:Published AND city.slug:"{city_slug}"'
        if distinction:
            filters += f' AND michelin_award:"{distinction}"'

        result = await self._query(f"filters={quote(filters)}", hits_per_page, page)
        return MichelinListResult(
            restaurants=[map_hit(h) for h in result.get("hits") or []],
            total_hits=result.get("nbHits") or 0,
            page=result.get("page") or 0,
            total_pages=result.get("nbPages") or 0,
        )

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
