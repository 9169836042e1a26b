import asyncio
import json
from typing import Any, Callable

import httpx
import pytest

from services.journey_planner.app.backend import BackendClient
from services.journey_planner.app.routing import (
    RouteAcquirer,
    RouteError,
    RouteErrorKind,
    build_route,
)
from services.journey_planner.app.schemas import Location, Preference, Route, TravelMode

START = Location(lat=28.6139, lng=77.2090, name="Rajiv Chowk")
END = Location(lat=28.6328, lng=77.2197, name="Connaught Place, New Delhi")


def _acquirer(handler: Callable[[httpx.Request], httpx.Response]) -> RouteAcquirer:
    backend = BackendClient(
        "http://backend.test", transport=httpx.MockTransport(handler)
    )
    return RouteAcquirer(backend)


def _compute(acquirer: RouteAcquirer, preference: Any = "fastest") -> Route:
    return asyncio.run(acquirer.compute_route(START, END, preference))


def test_request_body_is_forwarded() -> None:
    bodies: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/calculate-route"
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200, json={"total_duration": 10, "total_distance": 900, "total_cost": 20, "steps": []}
        )

    _compute(_acquirer(handler), Preference.MINIMAL_TRANSFERS)
    assert bodies == [
        {
            "start_lat": 28.6139,
            "start_lng": 77.2090,
            "end_lat": 28.6328,
            "end_lng": 77.2197,
            "preference": "minimal_transfers",
        }
    ]


def test_well_formed_route_is_returned_verbatim() -> None:
    payload = {
        "total_duration": 34,
        "total_distance": 5200,
        "total_cost": 30,
        "steps": [
            {"instruction": "Walk to Rajiv Chowk", "duration": 4, "distance": 300, "mode": "walking"},
            {"instruction": "Blue line to Mandi House", "duration": 20, "distance": 4500, "mode": "metro", "cost": 30},
            {"instructions": "Auto to destination", "duration": "10 min", "distance": 400, "transport_mode": "taxi"},
        ],
        "geometry": [[28.6139, 77.2090], [28.6328, 77.2197]],
        "route_id": "r-1",
    }
    route = _compute(_acquirer(lambda request: httpx.Response(200, json=payload)))

    assert route.total_duration == 34
    assert route.total_cost == 30
    assert len(route.steps) == 3
    assert route.steps[1].cost == 30
    assert route.steps[2].instruction == "Auto to destination"
    assert route.steps[2].duration == "10 min"
    assert route.steps[2].travel_mode is TravelMode.CAR
    assert route.geometry == [(28.6139, 77.2090), (28.6328, 77.2197)]
    assert route.model_extra == {"route_id": "r-1"}


def test_partial_payload_is_repaired() -> None:
    route = _compute(_acquirer(lambda request: httpx.Response(200, json={"total_duration": "x"})))

    assert route == Route(total_duration=0, total_distance=0, total_cost=0, steps=[])


def test_repair_keeps_valid_totals_and_drops_bad_steps() -> None:
    route, repaired = build_route(
        {"total_duration": 12, "total_distance": None, "steps": [{"mode": "bus"}, "junk"]}
    )
    assert repaired
    assert route.total_duration == 12
    assert route.total_distance == 0
    assert [step.mode for step in route.steps] == ["bus"]


def test_boolean_totals_are_not_numbers() -> None:
    route, repaired = build_route({"total_duration": True, "total_distance": 1, "total_cost": 1})
    assert repaired
    assert route.total_duration == 0


@pytest.mark.parametrize("content", [b"", b"null", b"  "])
def test_empty_body_is_an_error(content: bytes) -> None:
    acquirer = _acquirer(lambda request: httpx.Response(200, content=content))
    with pytest.raises(RouteError) as info:
        _compute(acquirer)
    assert info.value.kind is RouteErrorKind.EMPTY_RESPONSE


def test_rejection_carries_backend_detail() -> None:
    acquirer = _acquirer(
        lambda request: httpx.Response(400, json={"detail": "No metro service after 23:00"})
    )
    with pytest.raises(RouteError) as info:
        _compute(acquirer)
    assert info.value.kind is RouteErrorKind.BACKEND_REJECTED
    assert info.value.status_code == 400
    assert info.value.message == "Backend error: No metro service after 23:00"


def test_rejection_without_detail_uses_body() -> None:
    acquirer = _acquirer(lambda request: httpx.Response(500, json={"error": "boom"}))
    with pytest.raises(RouteError) as info:
        _compute(acquirer)
    assert info.value.message == 'Backend error: {"error": "boom"}'


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
    ],
)
def test_unreachable_backend(error: Exception) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise error

    with pytest.raises(RouteError) as info:
        _compute(_acquirer(handler))
    assert info.value.kind is RouteErrorKind.UNREACHABLE
    assert "Cannot connect to backend server" in info.value.message
    assert "http://backend.test" in info.value.message


def test_odd_step_fields_keep_the_route_verbatim() -> None:
    route, repaired = build_route(
        {
            "total_duration": 25,
            "total_distance": 3100,
            "total_cost": 10,
            "steps": [
                {"instruction": "Walk", "duration": 5, "distance": 400, "mode": "walking"},
                {"instruction": 42, "duration": 20, "distance": 2700, "transport_mode": "bus", "cost": 10},
            ],
        }
    )
    assert not repaired
    assert [step.instruction for step in route.steps] == ["Walk", "42"]
    assert route.steps[1].travel_mode is TravelMode.BUS


@pytest.mark.parametrize("total", [10**400, float("nan"), float("inf")])
def test_non_finite_totals_are_repaired(total: object) -> None:
    route, repaired = build_route({"total_duration": total, "total_distance": 1, "total_cost": 1})
    assert repaired
    assert route.total_duration == 0
    assert route.total_distance == 1


def test_huge_total_from_backend_is_repaired() -> None:
    body = b'{"total_duration": 1' + b"0" * 400 + b', "total_distance": 500, "total_cost": 0, "steps": []}'
    route = _compute(_acquirer(lambda request: httpx.Response(200, content=body)))
    assert route.total_duration == 0
    assert route.total_distance == 500
