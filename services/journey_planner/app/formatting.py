"""Display formatting for route values.

Durations are minutes and distances are metres. Both may arrive as numbers or
as strings with an embedded number (``"25 mins"``); a string without any
number counts as 0.
"""

from __future__ import annotations

import math
import re

from .schemas import Location, Route, RouteStep, RouteStepView, RouteSummary, RouteView

_INTEGER = re.compile(r"(\d+)")
_DECIMAL = re.compile(r"(\d+(?:\.\d+)?)")

CURRENCY = "₹"


def _extract(value: object, pattern: re.Pattern[str]) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        match = pattern.search(value)
        return float(match.group(1)) if match else 0.0
    return 0.0


def parse_minutes(value: object) -> int:
    return int(round(_extract(value, _INTEGER)))


def parse_meters(value: object) -> float:
    return _extract(value, _DECIMAL)


def format_duration(value: object) -> str:
    minutes = parse_minutes(value)
    if minutes >= 60:
        hours, rest = divmod(minutes, 60)
        return f"{hours} hr {rest} min" if rest else f"{hours} hr"
    return f"{minutes} min"


def format_distance(value: object) -> str:
    meters = parse_meters(value)
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{meters:.1f} m"


def format_cost(value: float | None) -> str:
    amount = float(value or 0)
    if amount.is_integer():
        return f"{CURRENCY}{int(amount)}"
    return f"{CURRENCY}{amount:.2f}"


def split_label(location: Location) -> tuple[str, str]:
    """Primary and secondary display text for a suggestion row."""

    return location.primary_name, location.secondary_name


def steps_distance(route: Route) -> float:
    """Distance summed over the steps, ignoring unparseable values."""

    return sum(parse_meters(step.distance) for step in route.steps)


def describe_step(step: RouteStep) -> RouteStepView:
    return RouteStepView(
        instruction=step.instruction or "No instruction",
        mode=step.travel_mode,
        duration=format_duration(step.duration),
        distance=format_distance(step.distance),
        cost=format_cost(step.cost) if step.cost else None,
    )


def describe_route(route: Route) -> RouteView:
    # Summed from the steps when there are any.
    distance = steps_distance(route) if route.steps else route.total_distance
    return RouteView(
        route=route,
        summary=RouteSummary(
            duration=format_duration(route.total_duration),
            distance=format_distance(distance),
            cost=format_cost(route.total_cost),
            step_count=len(route.steps),
        ),
        steps=[describe_step(step) for step in route.steps],
    )
