import pytest

from services.journey_planner.app import normalizer
from services.journey_planner.app.schemas import Location


@pytest.mark.parametrize(
    "raw",
    [None, "", "Connaught Place", 42, True, {}, {"status": "ok"}, {"lat": "28.6", "lng": "77.2"}],
)
def test_unrecognized_payloads_give_empty_list(raw: object) -> None:
    assert normalizer.normalize_locations(raw) == []
    assert isinstance(normalizer.decode_payload(raw), normalizer.Unrecognized)


def test_bare_list_is_passed_through() -> None:
    raw = [
        {"lat": 28.6129, "lng": 77.2295, "name": "India Gate, New Delhi"},
        Location(lat=28.5450, lng=77.1925, name="IIT Delhi"),
    ]
    result = normalizer.normalize_locations(raw)
    assert [loc.name for loc in result] == ["India Gate, New Delhi", "IIT Delhi"]
    assert result[1] is raw[1]


def test_wrapper_keys_checked_in_priority_order() -> None:
    raw = {
        "results": [{"lat": 1.0, "lng": 1.0, "name": "results"}],
        "data": [{"lat": 2.0, "lng": 2.0, "name": "data"}],
        "locations": [{"lat": 3.0, "lng": 3.0, "name": "locations"}],
    }
    decoded = normalizer.decode_payload(raw)
    assert isinstance(decoded, normalizer.WrappedLocations)
    assert decoded.key == "locations"
    assert [loc.name for loc in normalizer.normalize_locations(raw)] == ["locations"]

    del raw["locations"]
    assert [loc.name for loc in normalizer.normalize_locations(raw)] == ["data"]


def test_non_list_wrapper_falls_through() -> None:
    raw = {"data": {"lat": 1.0}, "results": [{"lat": 5.0, "lng": 6.0}]}
    assert normalizer.normalize_locations(raw) == [Location(lat=5.0, lng=6.0)]


def test_single_location_is_wrapped() -> None:
    raw = {"lat": 28.6328, "lng": 77.2197, "name": "Connaught Place"}
    decoded = normalizer.decode_payload(raw)
    assert isinstance(decoded, normalizer.SingleLocation)
    assert normalizer.normalize_locations(raw) == [
        Location(lat=28.6328, lng=77.2197, name="Connaught Place")
    ]


def test_zero_coordinates_still_count_as_a_location() -> None:
    assert normalizer.normalize_locations({"lat": 0, "lng": 0}) == [
        Location(lat=0.0, lng=0.0)
    ]


def test_malformed_elements_are_dropped() -> None:
    raw = [
        {"lat": 28.6, "lng": 77.2, "name": "ok"},
        "not a location",
        {"lat": 123.0, "lng": 77.2},
        {"name": "no coordinates"},
    ]
    assert normalizer.normalize_locations(raw) == [
        Location(lat=28.6, lng=77.2, name="ok")
    ]


def test_single_location_is_revalidated() -> None:
    assert normalizer.normalize_locations({"lat": 95.0, "lng": 77.2}) == []
    [location] = normalizer.normalize_locations(
        {"lat": 28.6, "lng": 77.2, "name": "Karol Bagh", "address": "Delhi"}
    )
    assert location == Location(lat=28.6, lng=77.2, name="Karol Bagh")
