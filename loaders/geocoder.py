"""
Geocoder - Convert addresses to coordinates using Nominatim.

Features:
- Rate limiting (1 request/second per Nominatim policy)
- Optional SQLite cache of address lookups
- Retry with exponential backoff
"""

import time
import sqlite3
import hashlib
from typing import Optional, Dict, Any
import logging
import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from core.errors import AddressNotFound
from core.models import Coordinates

log = logging.getLogger(__name__)

# Rate limiter - tracks last request time
_last_request_time = 0.0
_MIN_REQUEST_INTERVAL = 1.1  # 1.1 seconds between requests (slightly over 1/sec)


class GeocodingCache:
    """SQLite cache for address -> coordinates lookups."""

    def __init__(self, db_path: str = "geocode_cache.db"):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        conn = sqlite3.connect(self.db_path)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS geocode_cache (
                query_hash TEXT PRIMARY KEY,
                query_text TEXT,
                latitude REAL,
                longitude REAL,
                created_at REAL
            )
        """)
        conn.commit()
        conn.close()

    def _hash_query(self, query: str) -> str:
        return hashlib.md5(query.lower().strip().encode()).hexdigest()

    def get(self, query: str) -> Optional[Coordinates]:
        conn = sqlite3.connect(self.db_path)
        try:
            row = conn.execute(
                "SELECT latitude, longitude FROM geocode_cache WHERE query_hash = ?",
                (self._hash_query(query),)
            ).fetchone()
        finally:
            conn.close()
        if row:
            return Coordinates(latitude=row[0], longitude=row[1])
        return None

    def set(self, query: str, coordinates: Coordinates):
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                """INSERT OR REPLACE INTO geocode_cache
                   (query_hash, query_text, latitude, longitude, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (self._hash_query(query), query, coordinates.latitude,
                 coordinates.longitude, time.time())
            )
            conn.commit()
        finally:
            conn.close()


class Geocoder:
    """
    Geocoder using OpenStreetMap Nominatim API.

    Respects rate limits: max 1 request per second.
    Raises AddressNotFound instead of returning partial results.
    """

    NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
    USER_AGENT = "ADUFeasibilityEngine/1.0"

    def __init__(self, cache_path: Optional[str] = "geocode_cache.db",
                 country_codes: Optional[str] = "ca"):
        self.cache = None
        if cache_path:
            try:
                self.cache = GeocodingCache(cache_path)
            except sqlite3.Error as e:
                log.warning(f"Geocoding cache disabled ({cache_path}): {e}")
        self.country_codes = country_codes
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.USER_AGENT})

    def _rate_limit(self):
        """Ensure we don't exceed 1 request per second."""
        global _last_request_time
        elapsed = time.time() - _last_request_time
        if elapsed < _MIN_REQUEST_INTERVAL:
            time.sleep(_MIN_REQUEST_INTERVAL - elapsed)
        _last_request_time = time.time()

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=2, min=2, max=10),
           reraise=True)
    def _make_request(self, params: Dict[str, Any]) -> Any:
        """Make a rate-limited request with retry."""
        self._rate_limit()
        response = self.session.get(self.NOMINATIM_URL, params=params, timeout=10)
        response.raise_for_status()
        return response.json()

    def geocode(self, address: str) -> Coordinates:
        """
        Convert an address to coordinates.

        Args:
            address: Free-form address string, e.g. "123 Main St, Hamilton, ON"

        Returns:
            Coordinates of the best match

        Raises:
            AddressNotFound: no result, or the lookup itself failed
        """
        cached = self._cache_get(address)
        if cached:
            log.debug(f"Cache hit for: {address}")
            return cached

        params = {"q": address, "format": "jsonv2", "limit": 1}
        if self.country_codes:
            params["countrycodes"] = self.country_codes

        try:
            results = self._make_request(params)
        except Exception as e:
            log.error(f"Geocoding failed for '{address}': {e}")
            raise AddressNotFound(address, f"lookup failed: {e}") from e

        if not results:
            log.warning(f"No results for: {address}")
            raise AddressNotFound(address)

        try:
            coordinates = Coordinates(
                latitude=float(results[0]["lat"]),
                longitude=float(results[0]["lon"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise AddressNotFound(address, f"unusable result: {e}") from e

        self._cache_set(address, coordinates)
        log.info(f"Geocoded: {address} -> ({coordinates.latitude}, {coordinates.longitude})")
        return coordinates

    # Cache failures are logged, never raised
    def _cache_get(self, address: str) -> Optional[Coordinates]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(address)
        except (sqlite3.Error, ValueError) as e:
            log.warning(f"Geocoding cache read failed for '{address}': {e}")
            return None

    def _cache_set(self, address: str, coordinates: Coordinates):
        if self.cache is None:
            return
        try:
            self.cache.set(address, coordinates)
        except sqlite3.Error as e:
            log.warning(f"Geocoding cache write failed for '{address}': {e}")


# Singleton instance
_geocoder: Optional[Geocoder] = None

def get_geocoder() -> Geocoder:
    """Get the singleton geocoder instance."""
    global _geocoder
    if _geocoder is None:
        _geocoder = Geocoder()
    return _geocoder
