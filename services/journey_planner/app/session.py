"""Journey session state observed by the view layer.

The session is changed only by explicit intents (select a location, calculate
or clear a route). Every change replaces whole values, so a reader never sees
a half-updated route.
"""

from __future__ import annotations

from src.common.logging import get_logger

from .debounce import DebouncedQueryController, Resolver, SearchSession
from .geolocation import PositionProvider, locate_current
from .routing import RouteAcquirer, RouteError
from .schemas import FieldName, Location, Preference, Route, SessionStateView

logger = get_logger(__name__)


class IncompleteJourney(Exception):
    """A route was requested before both endpoints were chosen."""


class JourneySession:
    def __init__(
        self,
        resolver: Resolver,
        acquirer: RouteAcquirer,
        *,
        position_provider: PositionProvider | None = None,
        debounce_delay: float = 0.6,
        min_query_length: int = 2,
        geolocation_timeout: float = 10.0,
    ) -> None:
        self.fields = {
            field: DebouncedQueryController(
                field, resolver, delay=debounce_delay, min_length=min_query_length
            )
            for field in FieldName
        }
        self._acquirer = acquirer
        self._position_provider = position_provider
        self._geolocation_timeout = geolocation_timeout
        self._calculation = 0

        self.start: Location | None = None
        self.end: Location | None = None
        self.preference = Preference.FASTEST
        self.route: Route | None = None
        self.is_calculating = False
        self.notice: str | None = None

    def text_changed(self, field: FieldName, text: str) -> SearchSession:
        return self.fields[field].text_changed(text)

    def focus(self, field: FieldName) -> None:
        self.fields[field].focus()

    def dismiss(self) -> None:
        """Pointer went down outside the suggestion panels."""

        for controller in self.fields.values():
            controller.dismiss()

    def select_location(self, field: FieldName, location: Location) -> None:
        if field is FieldName.START:
            self.start = location
        else:
            self.end = location
        self.fields[field].select(location)

    def set_preference(self, preference: Preference | str) -> None:
        self.preference = Preference(preference)

    async def use_current_location(
        self, provider: PositionProvider | None = None
    ) -> Location | None:
        location = await locate_current(
            provider or self._position_provider, self._geolocation_timeout
        )
        if location is None:
            self.notice = (
                "Unable to get your current location. Please enable location services."
            )
            return None
        self.select_location(FieldName.START, location)
        return location

    async def calculate_route(
        self,
        start: Location | None = None,
        end: Location | None = None,
        preference: Preference | str | None = None,
    ) -> Route:
        """Compute a route and make it the current one.

        Raises :class:`IncompleteJourney` without both endpoints and re-raises
        :class:`RouteError` after recording its message in ``notice``. Only the
        most recently started calculation may publish its outcome.
        """

        start = start or self.start
        end = end or self.end
        if start is None or end is None:
            raise IncompleteJourney("Please select both start and end locations")
        if preference is not None:
            self.preference = Preference(preference)

        self._calculation += 1
        ticket = self._calculation
        self.start, self.end = start, end
        self.route = None
        self.notice = None
        self.is_calculating = True
        try:
            route = await self._acquirer.compute_route(start, end, self.preference)
        except RouteError as exc:
            if ticket == self._calculation:
                self.notice = exc.message
            raise
        finally:
            if ticket == self._calculation:
                self.is_calculating = False
        if ticket == self._calculation:
            self.route = route
        else:
            logger.info("dropping superseded route", ticket=ticket)
        return route

    def clear_route(self) -> None:
        self.route = None

    def view(self) -> SessionStateView:
        return SessionStateView(
            start=self.start,
            end=self.end,
            preference=self.preference,
            route=self.route,
            is_calculating=self.is_calculating,
            notice=self.notice,
            fields=[controller.view() for controller in self.fields.values()],
        )

    async def drain(self) -> None:
        for controller in self.fields.values():
            await controller.drain()

    def close(self) -> None:
        for controller in self.fields.values():
            controller.close()
