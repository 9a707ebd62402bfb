"""PlantTracker Zone Service — USDA hardiness zone lookup with caching."""

import logging
import re
from datetime import timedelta
from urllib.parse import quote

import httpx

from planttracker.core.config import Settings

logger = logging.getLogger("planttracker.zone")

# "6b", "10a", "13" -> leading number
_ZONE_PATTERN = re.compile(r"^\s*(\d{1,2})\s*[abAB]?\s*$")


def parse_zone(raw: str | None) -> int | None:
    """Extract the numeric zone (1-13) from strings like '6b' or '10a'."""
    if not raw:
        return None
    match = _ZONE_PATTERN.match(raw)
    if not match:
        return None
    zone = int(match.group(1))
    return zone if 1 <= zone <= 13 else None


class ZoneService:
    """Looks up the hardiness zone for a US zip code (phzmapi.org, no API key).

    Caches results in the database to minimize API calls.
    Returns None if the API is unreachable or has no zone for the zip.
    """

    def __init__(self, settings: Settings, store, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self.store = store
        self.base_url = settings.zone_api_base.rstrip("/")
        self.max_age = timedelta(days=settings.zone_cache_days)
        self._transport = transport

    async def get_zone(self, zip_code: str) -> int | None:
        """Get the zone for a zip code. Check cache first."""
        zip_code = (zip_code or "").strip()
        if not zip_code:
            return None

        cached = self.store.get_cached_zone(zip_code, self.max_age)
        if cached:
            logger.debug(f"Zone cache hit for {zip_code}")
            return cached.zone

        try:
            data = await self.fetch_from_api(zip_code)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Zone API failed for {zip_code}: {e}")
            return None

        raw_zone = data.get("zone") if isinstance(data, dict) else None
        zone = parse_zone(raw_zone)
        self.store.cache_zone(zip_code, zone, raw_zone)
        return zone

    async def fetch_from_api(self, zip_code: str) -> dict:
        """Call the zone API and return the raw response."""
        url = f"{self.base_url}/{quote(zip_code, safe='')}.json"
        async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds, transport=self._transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            return response.json()
