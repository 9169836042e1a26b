"""Decode loosely shaped location payloads into a list of :class:`Location`.

The route backend and the public geocoders do not agree on a response shape.
Every payload goes through :func:`decode_payload`, which tries the known shapes
in priority order and falls through to :class:`Unrecognized`:

1. a bare list of locations;
2. an object wrapping the list under ``locations``, ``data`` or ``results``;
3. a single object carrying numeric ``lat`` and ``lng``.

:func:`normalize_locations` never raises, so callers always get a list.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from pydantic import BaseModel, ValidationError

from src.common.logging import get_logger

from .schemas import Location

logger = get_logger(__name__)

WRAPPER_KEYS = ("locations", "data", "results")


@dataclass(frozen=True)
class LocationList:
    items: list[Any]


@dataclass(frozen=True)
class WrappedLocations:
    key: str
    items: list[Any]


@dataclass(frozen=True)
class SingleLocation:
    value: Mapping[str, Any]


@dataclass(frozen=True)
class Unrecognized:
    raw: Any


Payload = Union[LocationList, WrappedLocations, SingleLocation, Unrecognized]


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_mapping(raw: Any) -> Mapping[str, Any] | None:
    if isinstance(raw, BaseModel):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return raw
    return None


def decode_payload(raw: Any) -> Payload:
    """Classify ``raw`` into one of the known payload shapes."""

    if isinstance(raw, (list, tuple)):
        return LocationList(list(raw))
    mapping = _as_mapping(raw)
    if mapping is None:
        return Unrecognized(raw)
    for key in WRAPPER_KEYS:
        value = mapping.get(key)
        if isinstance(value, list):
            return WrappedLocations(key, value)
    if _is_number(mapping.get("lat")) and _is_number(mapping.get("lng")):
        return SingleLocation(mapping)
    return Unrecognized(raw)


def _coerce(item: Any) -> Location | None:
    if isinstance(item, Location):
        return item
    mapping = _as_mapping(item)
    if mapping is None:
        return None
    try:
        return Location.model_validate(dict(mapping))
    except ValidationError:
        return None


def payload_items(payload: Payload) -> list[Any]:
    if isinstance(payload, (LocationList, WrappedLocations)):
        return payload.items
    if isinstance(payload, SingleLocation):
        return [payload.value]
    return []


def normalize_locations(raw: Any) -> list[Location]:
    """Turn any provider response into a list of valid locations.

    A single location is returned re-validated, not as the raw mapping: unknown
    keys are stripped and out-of-range coordinates yield ``[]``.
    """

    payload = decode_payload(raw)
    if isinstance(payload, Unrecognized) and raw is not None:
        logger.debug("unrecognized location payload", type=type(raw).__name__)
    locations: list[Location] = []
    dropped = 0
    for item in payload_items(payload):
        location = _coerce(item)
        if location is None:
            dropped += 1
            continue
        locations.append(location)
    if dropped:
        logger.warning("dropped malformed locations", dropped=dropped)
    return locations
