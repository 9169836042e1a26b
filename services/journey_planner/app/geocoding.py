"""Free-text location search with tiered fallback.

Tiers are tried in order and a tier is only skipped when it *fails*:

1. the route backend's own search endpoint (authoritative, even when empty);
2. the public Nominatim geocoder, scoped to the service area;
3. the bundled catalogue of known places.
"""

from __future__ import annotations

import time
from typing import Any, Protocol

import httpx
from opentelemetry import trace

from src.common.logging import get_logger
from src.common.metrics import GEOCODE_TIER, UPSTREAM_LATENCY

from . import catalogue
from .normalizer import normalize_locations
from .schemas import Location

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)

MIN_QUERY_LENGTH = 2


class GeocodingError(Exception):
    """A geocoding tier could not produce an answer."""


class LocationSearch(Protocol):
    async def search_locations(self, query: str) -> Any:
        """Return the raw search payload or raise."""


class Geocoder(Protocol):
    async def geocode(self, query: str) -> list[Location]:
        """Return candidate locations or raise :class:`GeocodingError`."""


class NominatimGeocoder:
    """Client for an OpenStreetMap Nominatim ``/search`` endpoint."""

    def __init__(
        self,
        url: str = "https://nominatim.openstreetmap.org/search",
        *,
        locality_suffix: str = ", Delhi, India",
        limit: int = 8,
        language: str = "en",
        user_agent: str = "routemaster-journey-planner",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not 1 <= limit <= 10:
            raise ValueError("limit must be between 1 and 10")
        self._url = url
        self._suffix = locality_suffix
        self._limit = limit
        self._language = language
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _params(self, query: str) -> dict[str, str | int]:
        return {
            "q": f"{query}{self._suffix}",
            "format": "json",
            "limit": self._limit,
            "addressdetails": 1,
            "accept-language": self._language,
        }

    async def geocode(self, query: str) -> list[Location]:
        start = time.perf_counter()
        with tracer.start_as_current_span("nominatim search"):
            try:
                response = await self._client.get(self._url, params=self._params(query))
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                raise GeocodingError(f"Nominatim search failed: {exc}") from exc
            finally:
                UPSTREAM_LATENCY.labels("journey_planner", "nominatim").observe(
                    time.perf_counter() - start
                )
        if not isinstance(payload, list):
            raise GeocodingError("Nominatim returned an unexpected payload")
        locations: list[Location] = []
        for item in payload:
            try:
                locations.append(
                    Location(
                        lat=float(item["lat"]),
                        lng=float(item["lon"]),
                        name=item.get("display_name"),
                    )
                )
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping unparseable nominatim result", item=item)
        return locations


class GeocodingResolver:
    """Resolve a query to candidate locations, degrading instead of failing."""

    def __init__(
        self,
        backend: LocationSearch,
        provider: Geocoder | None = None,
        *,
        catalogue_limit: int = 8,
        min_query_length: int = MIN_QUERY_LENGTH,
    ) -> None:
        self._backend = backend
        self._provider = provider
        self._catalogue_limit = catalogue_limit
        self._min_query_length = min_query_length

    def _record(self, tier: str) -> None:
        GEOCODE_TIER.labels("journey_planner", tier).inc()

    async def resolve(self, query: str) -> list[Location]:
        if len(query.strip()) < self._min_query_length:
            return []

        try:
            payload = await self._backend.search_locations(query)
        except Exception as exc:  # any failure falls through to the next tier
            logger.info("backend search failed, trying geocoder", query=query, error=str(exc))
        else:
            self._record("backend")
            return normalize_locations(payload)

        if self._provider is not None:
            try:
                locations = await self._provider.geocode(query)
            except Exception as exc:
                logger.warning("geocoder failed, using catalogue", query=query, error=str(exc))
            else:
                self._record("geocoder")
                return locations

        self._record("catalogue")
        return catalogue.search_catalogue(query, limit=self._catalogue_limit)
