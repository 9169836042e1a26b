"""Route acquisition: call the backend and make its answer safe to render."""

from __future__ import annotations

import json
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter, ValidationError

from src.common.logging import get_logger
from src.common.metrics import ROUTE_REQUESTS

from .schemas import Location, Preference, Route, RouteStep

logger = get_logger(__name__)

TOTAL_FIELDS = ("total_duration", "total_distance", "total_cost")

_GEOMETRY = TypeAdapter(list[tuple[float, float]])


class RouteErrorKind(str, Enum):
    EMPTY_RESPONSE = "empty_response"
    BACKEND_REJECTED = "backend_rejected"
    UNREACHABLE = "unreachable"


class RouteError(Exception):
    """A route could not be computed; ``message`` is meant for the user."""

    def __init__(
        self,
        kind: RouteErrorKind,
        message: str,
        *,
        detail: Any = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code


class RouteBackend(Protocol):
    base_url: str

    async def calculate_route(self, body: dict[str, Any]) -> httpx.Response:
        ...


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def _steps(raw: Any) -> list[RouteStep]:
    if not isinstance(raw, list):
        return []
    steps: list[RouteStep] = []
    for item in raw:
        if not isinstance(item, Mapping):
            continue
        try:
            steps.append(RouteStep.model_validate(dict(item)))
        except ValidationError:
            logger.warning("dropping malformed route step", step=item)
    return steps


def _geometry(raw: Any) -> list[tuple[float, float]] | None:
    if not isinstance(raw, list):
        return None
    try:
        return _GEOMETRY.validate_python(raw)
    except ValidationError:
        return None


def repair_route(payload: Any) -> Route:
    """Build a Route from a present but incomplete payload.

    Non-numeric totals become 0, a non-list ``steps`` becomes ``[]`` and
    unusable geometry is dropped. Unknown keys are kept.
    """

    data = dict(payload) if isinstance(payload, Mapping) else {}
    for key in TOTAL_FIELDS:
        if not _is_number(data.get(key)):
            data[key] = 0
    data["steps"] = _steps(data.get("steps"))
    data["geometry"] = _geometry(data.get("geometry"))
    return Route.model_validate(data)


def build_route(payload: Any) -> tuple[Route, bool]:
    """Return the route and whether it had to be repaired."""

    if isinstance(payload, Mapping) and all(
        _is_number(payload.get(key)) for key in TOTAL_FIELDS
    ):
        try:
            return Route.model_validate(dict(payload)), False
        except ValidationError as exc:
            logger.warning("route payload failed validation", errors=exc.error_count())
    return repair_route(payload), True


def _decode_body(response: httpx.Response) -> Any:
    if not response.content.strip():
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _rejection_detail(response: httpx.Response) -> Any:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, Mapping) and payload.get("detail"):
        return payload["detail"]
    return payload


def _as_text(detail: Any) -> str:
    return detail if isinstance(detail, str) else json.dumps(detail)


class RouteAcquirer:
    def __init__(self, backend: RouteBackend) -> None:
        self._backend = backend

    @staticmethod
    def request_body(
        start: Location, end: Location, preference: Preference | str
    ) -> dict[str, Any]:
        return {
            "start_lat": start.lat,
            "start_lng": start.lng,
            "end_lat": end.lat,
            "end_lng": end.lng,
            "preference": Preference(preference).value,
        }

    def _fail(self, error: RouteError) -> RouteError:
        ROUTE_REQUESTS.labels("journey_planner", error.kind.value).inc()
        logger.error(
            "route calculation failed",
            kind=error.kind.value,
            status_code=error.status_code,
            error=error.message,
        )
        return error

    async def compute_route(
        self, start: Location, end: Location, preference: Preference | str
    ) -> Route:
        body = self.request_body(start, end, preference)
        logger.info("calculating route", **body)
        try:
            response = await self._backend.calculate_route(body)
        except httpx.HTTPStatusError as exc:
            detail = _rejection_detail(exc.response)
            raise self._fail(
                RouteError(
                    RouteErrorKind.BACKEND_REJECTED,
                    f"Backend error: {_as_text(detail)}",
                    detail=detail,
                    status_code=exc.response.status_code,
                )
            ) from exc
        except httpx.RequestError as exc:
            raise self._fail(
                RouteError(
                    RouteErrorKind.UNREACHABLE,
                    "Cannot connect to backend server. Please make sure it is "
                    f"running on {self._backend.base_url}",
                    detail=str(exc),
                )
            ) from exc

        payload = _decode_body(response)
        if payload in (None, "", 0, False):
            raise self._fail(
                RouteError(RouteErrorKind.EMPTY_RESPONSE, "Empty response from server")
            )

        route, repaired = build_route(payload)
        if repaired:
            logger.warning("route data missing required fields, repaired", payload=payload)
        ROUTE_REQUESTS.labels("journey_planner", "repaired" if repaired else "ok").inc()
        return route
