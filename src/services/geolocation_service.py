"""
Geolocation Service.

Resolves a visitor's remote address to region/city/country. Outside
production the public IP of the Lambda is looked up instead, since local
addresses carry no location.
"""

from __future__ import annotations

from typing import Dict, Optional

import requests

from utils.cache_service import LRUCache
from utils.config import Mode, Settings
from utils.logging_config import get_logger

logger = get_logger(__name__)

JSONIP_URL = "https://jsonip.com"
IPINFO_URL = "http://ipinfo.io/{ip}/json"

FIXTURE_LOCATION = {
    "region": "Ulaanbaatar",
    "city": "Ulaanbaatar",
    "country": "Mongolia",
}


class GeolocationService:
    """IP and geolocation lookups with per-address caching."""

    def __init__(
        self,
        mode: Mode = Mode.LIVE,
        production: bool = False,
        session: Optional[requests.Session] = None,
        cache: Optional[LRUCache] = None,
        timeout_seconds: float = 3.0,
    ):
        self.mode = mode
        self.production = production
        self.session = session or requests.Session()
        self.cache = cache or LRUCache()
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeolocationService":
        return cls(
            mode=settings.collaborator_mode,
            production=settings.is_production,
            cache=LRUCache(
                max_size=settings.geo_cache_max_size,
                ttl_seconds=settings.geo_cache_ttl_seconds,
            ),
        )

    def get_ip(self, remote_address: Optional[str]) -> str:
        """Return the address to geolocate."""
        if self.production and remote_address:
            return remote_address

        resp = self.session.get(JSONIP_URL, timeout=self.timeout_seconds)
        resp.raise_for_status()
        return resp.json()["ip"]

    def get_location_info(self, remote_address: Optional[str]) -> Optional[Dict[str, Optional[str]]]:
        """Return {region, city, country}, or None when the lookup fails."""
        if self.mode is Mode.FIXTURE:
            return dict(FIXTURE_LOCATION)

        cache_key = f"geo:{remote_address or ''}"
        cached = self.cache.get(cache_key)
        if cached:
            return dict(cached)

        try:
            ip = self.get_ip(remote_address)
            resp = self.session.get(IPINFO_URL.format(ip=ip), timeout=self.timeout_seconds)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError, KeyError) as exc:
            logger.warning(
                "Geolocation lookup failed",
                extra={"remote_address": remote_address, "error": str(exc)},
            )
            return None

        location = {
            "region": data.get("region"),
            "city": data.get("city"),
            "country": data.get("country"),
        }
        self.cache.set(cache_key, location)
        return dict(location)
