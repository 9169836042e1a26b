import asyncio

import httpx
import pytest

from services.journey_planner.app import catalogue
from services.journey_planner.app.backend import BackendClient, BackendUnavailable
from services.journey_planner.app.schemas import Location


def _client(handler) -> BackendClient:
    return BackendClient("http://backend.test/", transport=httpx.MockTransport(handler))


def _down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.mark.parametrize(
    "payload, healthy",
    [({"status": "healthy"}, True), ({"status": "degraded"}, False), ([], False)],
)
def test_check_health(payload: object, healthy: bool) -> None:
    client = _client(lambda request: httpx.Response(200, json=payload))
    assert asyncio.run(client.check_health()) is healthy


def test_check_health_when_down() -> None:
    assert asyncio.run(_client(_down).check_health()) is False


def test_backend_info() -> None:
    client = _client(lambda request: httpx.Response(200, json={"status": "healthy", "version": "1.2"}))
    assert asyncio.run(client.backend_info()) == {"status": "healthy", "version": "1.2"}

    with pytest.raises(BackendUnavailable, match="http://backend.test"):
        asyncio.run(_client(_down).backend_info())


def test_search_sends_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": []})

    assert asyncio.run(_client(handler).search_locations("hauz khas")) == {"data": []}
    assert seen[0].url.path == "/api/search-locations"
    assert seen[0].url.params["q"] == "hauz khas"


def test_search_raises_on_rejection() -> None:
    client = _client(lambda request: httpx.Response(500, json={"detail": "down"}))
    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.search_locations("hauz khas"))


def test_transport_modes() -> None:
    modes = [{"id": "auto", "name": "Auto", "icon": "🛺", "description": "Auto rickshaw"}]
    client = _client(lambda request: httpx.Response(200, json=modes))
    assert [mode.id for mode in asyncio.run(client.transport_modes())] == ["auto"]


def test_transport_modes_fallback() -> None:
    fallback = asyncio.run(_client(_down).transport_modes())
    assert [mode.id for mode in fallback] == ["metro", "bus", "walking"]

    garbled = _client(lambda request: httpx.Response(200, json={"modes": "soon"}))
    assert asyncio.run(garbled.transport_modes()) == list(catalogue.DEFAULT_TRANSPORT_MODES)


def test_sample_locations_are_normalized() -> None:
    client = _client(
        lambda request: httpx.Response(
            200, json={"locations": [{"lat": 28.5450, "lng": 77.1925, "name": "IIT Delhi"}]}
        )
    )
    assert asyncio.run(client.sample_locations()) == [
        Location(lat=28.5450, lng=77.1925, name="IIT Delhi")
    ]


def test_sample_locations_fallback() -> None:
    defaults = list(catalogue.DEFAULT_SAMPLE_LOCATIONS)
    assert asyncio.run(_client(_down).sample_locations()) == defaults

    odd = _client(lambda request: httpx.Response(200, json={"unexpected": True}))
    assert asyncio.run(odd.sample_locations()) == defaults
