from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Preference(str, Enum):
    FASTEST = "fastest"
    CHEAPEST = "cheapest"
    MINIMAL_TRANSFERS = "minimal_transfers"


class TravelMode(str, Enum):
    WALKING = "walking"
    METRO = "metro"
    BUS = "bus"
    CAR = "car"
    AUTO = "auto"
    OTHER = "other"

    @classmethod
    def classify(cls, raw: object) -> "TravelMode":
        """Map a backend mode label onto the modes the view knows how to draw."""

        key = str(raw or "").strip().lower()
        if key in ("cab", "taxi"):
            return cls.CAR
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


class FieldName(str, Enum):
    START = "start"
    END = "end"


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    name: str | None = None

    @property
    def primary_name(self) -> str:
        if not self.name:
            return ""
        return self.name.split(",")[0].strip()

    @property
    def secondary_name(self) -> str:
        if not self.name:
            return ""
        return ",".join(self.name.split(",")[1:3]).strip()


class RouteStep(BaseModel):
    """One leg of a journey as the backend describes it.

    The backend has shipped both ``instruction``/``instructions`` and
    ``mode``/``transport_mode``; either spelling is accepted. Durations and
    distances may arrive as numbers or as strings such as ``"12 min"``.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    instruction: str = ""
    duration: float | str = 0
    distance: float | str = 0
    mode: str = TravelMode.OTHER.value
    cost: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "instruction" not in data and "instructions" in data:
            data["instruction"] = data.pop("instructions")
        if "mode" not in data and "transport_mode" in data:
            data["mode"] = data.pop("transport_mode")
        for key, default in (("instruction", ""), ("mode", TravelMode.OTHER.value)):
            value = data.get(key)
            if value is None:
                data[key] = default
            elif not isinstance(value, str):
                data[key] = str(value)
        if isinstance(data.get("cost"), bool) or not isinstance(
            data.get("cost"), (int, float, type(None))
        ):
            data["cost"] = None
        for key in ("duration", "distance"):
            value = data.get(key)
            if value is None or isinstance(value, bool) or not isinstance(
                value, (int, float, str)
            ):
                data[key] = 0
        return data

    @property
    def travel_mode(self) -> TravelMode:
        return TravelMode.classify(self.mode)


class Route(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    total_duration: float = 0
    total_distance: float = 0
    total_cost: float = 0
    steps: list[RouteStep] = Field(default_factory=list)
    geometry: list[tuple[float, float]] | None = None


class TransportMode(BaseModel):
    id: str
    name: str
    icon: str = ""
    description: str = ""


class Position(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class SessionCreated(BaseModel):
    session_id: str


class TextChangedRequest(BaseModel):
    text: str


class RouteRequest(BaseModel):
    preference: Preference = Preference.FASTEST


class SearchSessionView(BaseModel):
    field: FieldName
    query: str
    phase: str
    suggestions: list[Location]
    is_searching: bool
    is_visible: bool


class RouteSummary(BaseModel):
    duration: str
    distance: str
    cost: str
    step_count: int


class RouteStepView(BaseModel):
    instruction: str
    mode: TravelMode
    duration: str
    distance: str
    cost: str | None = None


class RouteView(BaseModel):
    route: Route
    summary: RouteSummary
    steps: list[RouteStepView]


class SessionStateView(BaseModel):
    start: Location | None
    end: Location | None
    preference: Preference
    route: Route | None
    is_calculating: bool
    notice: str | None
    fields: list[SearchSessionView]


class BackendHealth(BaseModel):
    healthy: bool
