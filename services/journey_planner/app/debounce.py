"""Per-field debounced search.

:class:`QueryStateMachine` holds the rules and knows nothing about time or
I/O, so it can be driven directly from tests. :class:`DebouncedQueryController`
runs one machine on the asyncio loop: it owns the debounce timer and the
background resolve tasks.

Phases::

    IDLE -> PENDING -> FETCHING -> SETTLED
      ^        |          |
      +--------+----------+   (text shorter than the minimum)

A keystroke supersedes the pending timer. A resolve that completes after the
text has changed is dropped; the request itself is not cancelled.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
from typing import Protocol, Sequence

from src.common.logging import get_logger

from .schemas import FieldName, Location, SearchSessionView

logger = get_logger(__name__)


class SearchPhase(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    FETCHING = "fetching"
    SETTLED = "settled"


@dataclass(frozen=True)
class SearchSession:
    query: str = ""
    suggestions: tuple[Location, ...] = ()
    phase: SearchPhase = SearchPhase.IDLE
    is_visible: bool = False

    @property
    def is_searching(self) -> bool:
        return self.phase is SearchPhase.FETCHING


class Resolver(Protocol):
    async def resolve(self, query: str) -> list[Location]:
        ...


class QueryStateMachine:
    def __init__(self, min_length: int = 2) -> None:
        self.min_length = min_length
        self.state = SearchSession()
        self._token = 0

    def text_changed(self, text: str) -> int | None:
        """Record a keystroke.

        Returns the token for a new debounce timer, or ``None`` when the text
        is too short to search and the field went back to ``IDLE``.
        """

        self._token += 1
        if len(text.strip()) < self.min_length:
            self.state = SearchSession(query=text)
            return None
        self.state = replace(self.state, query=text, phase=SearchPhase.PENDING)
        return self._token

    def timer_fired(self, token: int) -> str | None:
        """Return the query to resolve, or ``None`` if the timer was superseded."""

        if token != self._token:
            return None
        self.state = replace(self.state, phase=SearchPhase.FETCHING)
        return self.state.query

    def resolver_settled(self, for_text: str, results: Sequence[Location]) -> bool:
        if for_text != self.state.query or self.state.phase is SearchPhase.IDLE:
            return False
        self.state = SearchSession(
            query=for_text,
            suggestions=tuple(results),
            phase=SearchPhase.SETTLED,
            is_visible=True,
        )
        return True

    def resolver_failed(self, for_text: str) -> bool:
        if for_text != self.state.query or self.state.phase is SearchPhase.IDLE:
            return False
        self.state = SearchSession(query=for_text, phase=SearchPhase.SETTLED)
        return True

    def dismiss(self) -> None:
        self.state = replace(self.state, is_visible=False)

    def focus(self) -> None:
        if self.state.suggestions:
            self.state = replace(self.state, is_visible=True)

    def select(self, location: Location) -> None:
        self._token += 1
        self.state = SearchSession(
            query=location.name or "Selected Location",
            suggestions=self.state.suggestions,
        )


class DebouncedQueryController:
    def __init__(
        self,
        field: FieldName,
        resolver: Resolver,
        *,
        delay: float = 0.6,
        min_length: int = 2,
    ) -> None:
        self.field = field
        self.machine = QueryStateMachine(min_length)
        self._resolver = resolver
        self._delay = delay
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SearchSession:
        return self.machine.state

    def view(self) -> SearchSessionView:
        state = self.state
        return SearchSessionView(
            field=self.field,
            query=state.query,
            phase=state.phase.value,
            suggestions=list(state.suggestions),
            is_searching=state.is_searching,
            is_visible=state.is_visible,
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def text_changed(self, text: str) -> SearchSession:
        self._cancel_timer()
        token = self.machine.text_changed(text)
        if token is not None:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self._delay, self._fire, token)
        return self.state

    def _fire(self, token: int) -> None:
        self._timer = None
        query = self.machine.timer_fired(token)
        if query is None:
            return
        task = asyncio.get_running_loop().create_task(self._fetch(query))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, query: str) -> None:
        try:
            results = await self._resolver.resolve(query)
        except Exception:
            logger.exception("location search failed", field=self.field.value, query=query)
            self.machine.resolver_failed(query)
            return
        if not self.machine.resolver_settled(query, results):
            logger.debug(
                "discarding stale suggestions",
                field=self.field.value,
                query=query,
                current=self.state.query,
            )

    def dismiss(self) -> None:
        self.machine.dismiss()

    def focus(self) -> None:
        self.machine.focus()

    def select(self, location: Location) -> None:
        self._cancel_timer()
        self.machine.select(location)

    async def drain(self) -> None:
        """Wait for resolves that are already in flight."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        self._cancel_timer()
        for task in list(self._tasks):
            task.cancel()
