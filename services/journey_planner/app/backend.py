"""HTTP client for the route-computation backend."""

from __future__ import annotations

import time
from typing import Any

import httpx
from opentelemetry import trace

from src.common.logging import get_logger
from src.common.metrics import UPSTREAM_LATENCY

from . import catalogue
from .normalizer import Unrecognized, decode_payload, normalize_locations
from .schemas import Location, TransportMode

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class BackendUnavailable(Exception):
    """The backend did not answer its health endpoint."""


class BackendClient:
    """Thin async wrapper around the route backend's REST API.

    One instance owns one ``httpx.AsyncClient``; construct it once per process
    (see ``deps.get_backend_client``) and close it with :meth:`aclose`.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        start = time.perf_counter()
        with tracer.start_as_current_span(f"backend {method} {path}"):
            try:
                response = await self._client.request(method, path, **kwargs)
                response.raise_for_status()
                return response
            finally:
                UPSTREAM_LATENCY.labels("journey_planner", "backend").observe(
                    time.perf_counter() - start
                )

    async def check_health(self) -> bool:
        """Liveness probe: ``True`` only when the backend reports ``healthy``."""

        try:
            payload = (await self._request("GET", "/health")).json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("backend health check failed", error=str(exc))
            return False
        logger.info("backend status", payload=payload)
        return isinstance(payload, dict) and payload.get("status") == "healthy"

    async def backend_info(self) -> dict[str, Any]:
        try:
            payload = (await self._request("GET", "/health")).json()
        except (httpx.HTTPError, ValueError) as exc:
            raise BackendUnavailable(
                f"Cannot connect to backend at {self.base_url}"
            ) from exc
        return payload if isinstance(payload, dict) else {"status": payload}

    async def calculate_route(self, body: dict[str, Any]) -> httpx.Response:
        """POST the route request; non-2xx answers raise ``HTTPStatusError``."""

        return await self._request("POST", "/api/calculate-route", json=body)

    async def search_locations(self, query: str) -> Any:
        """Raw search payload; raises on any transport or status failure."""

        return (
            await self._request("GET", "/api/search-locations", params={"q": query})
        ).json()

    async def transport_modes(self) -> list[TransportMode]:
        try:
            payload = (await self._request("GET", "/api/transport-modes")).json()
            return [TransportMode.model_validate(item) for item in payload]
        except (httpx.HTTPError, ValueError, TypeError) as exc:
            logger.warning("transport modes unavailable, using defaults", error=str(exc))
            return list(catalogue.DEFAULT_TRANSPORT_MODES)

    async def sample_locations(self) -> list[Location]:
        try:
            payload = (await self._request("GET", "/api/sample-locations")).json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("sample locations unavailable", error=str(exc))
            return list(catalogue.DEFAULT_SAMPLE_LOCATIONS)
        if isinstance(decode_payload(payload), Unrecognized):
            logger.warning("unexpected sample locations format, using defaults")
            return list(catalogue.DEFAULT_SAMPLE_LOCATIONS)
        return normalize_locations(payload)
