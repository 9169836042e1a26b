"""Device position lookup."""

from __future__ import annotations

import asyncio
from typing import Protocol

from src.common.logging import get_logger

from .schemas import Location, Position

logger = get_logger(__name__)

CURRENT_LOCATION_NAME = "Current Location"


class PositionUnavailable(Exception):
    """The device could not report a position."""


class PositionProvider(Protocol):
    async def get_current_position(self) -> Position:
        ...


class FixedPositionProvider:
    """Reports a position known up front (configured or sent by the view)."""

    def __init__(self, position: Position) -> None:
        self._position = position

    async def get_current_position(self) -> Position:
        return self._position


async def locate_current(
    provider: PositionProvider | None, timeout: float = 10.0
) -> Location | None:
    """One-shot lookup of the device position as a ``Current Location``.

    A missing provider is a normal outcome and yields ``None``, as do provider
    errors and timeouts.
    """

    if provider is None:
        logger.warning("geolocation is not supported")
        return None
    try:
        position = await asyncio.wait_for(provider.get_current_position(), timeout)
    except Exception as exc:
        logger.error("geolocation error", error=repr(exc))
        return None
    location = Location(
        lat=position.latitude,
        lng=position.longitude,
        name=CURRENT_LOCATION_NAME,
    )
    logger.info("current location", lat=location.lat, lng=location.lng)
    return location
