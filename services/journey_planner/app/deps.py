from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings

from src.common.settings import SettingsMeta

from .backend import BackendClient
from .geocoding import GeocodingResolver, NominatimGeocoder
from .geolocation import FixedPositionProvider, PositionProvider
from .routing import RouteAcquirer
from .schemas import Position
from .session import JourneySession


class Settings(BaseSettings, metaclass=SettingsMeta):
    backend_base_url: str = "http://localhost:8000"
    backend_timeout: float = 15.0
    geocoder_url: str = "https://nominatim.openstreetmap.org/search"
    geocoder_timeout: float = 5.0
    geocoder_limit: int = Field(8, ge=1, le=10)
    geocoder_locality_suffix: str = ", Delhi, India"
    geocoder_language: str = "en"
    geocoder_user_agent: str = "routemaster-journey-planner/0.1"
    catalogue_limit: int = 8
    min_query_length: int = 2
    search_debounce_seconds: float = 0.6
    geolocation_timeout: float = 10.0
    device_latitude: float | None = None
    device_longitude: float | None = None


@lru_cache
def get_settings() -> Settings:
    return Settings()


_backend: BackendClient | None = None
_geocoder: NominatimGeocoder | None = None


def get_backend_client() -> BackendClient:
    global _backend
    if _backend is None:
        settings = get_settings()
        _backend = BackendClient(
            settings.backend_base_url, timeout=settings.backend_timeout
        )
    return _backend


def get_geocoder() -> NominatimGeocoder:
    global _geocoder
    if _geocoder is None:
        settings = get_settings()
        _geocoder = NominatimGeocoder(
            settings.geocoder_url,
            locality_suffix=settings.geocoder_locality_suffix,
            limit=settings.geocoder_limit,
            language=settings.geocoder_language,
            user_agent=settings.geocoder_user_agent,
            timeout=settings.geocoder_timeout,
        )
    return _geocoder


def get_resolver() -> GeocodingResolver:
    settings = get_settings()
    return GeocodingResolver(
        get_backend_client(),
        get_geocoder(),
        catalogue_limit=settings.catalogue_limit,
        min_query_length=settings.min_query_length,
    )


def get_acquirer() -> RouteAcquirer:
    return RouteAcquirer(get_backend_client())


def get_position_provider() -> PositionProvider | None:
    settings = get_settings()
    if settings.device_latitude is None or settings.device_longitude is None:
        return None
    return FixedPositionProvider(
        Position(
            latitude=settings.device_latitude, longitude=settings.device_longitude
        )
    )


def new_session() -> JourneySession:
    settings = get_settings()
    return JourneySession(
        get_resolver(),
        get_acquirer(),
        position_provider=get_position_provider(),
        debounce_delay=settings.search_debounce_seconds,
        min_query_length=settings.min_query_length,
        geolocation_timeout=settings.geolocation_timeout,
    )


async def close_clients() -> None:
    global _backend, _geocoder
    if _backend is not None:
        await _backend.aclose()
        _backend = None
    if _geocoder is not None:
        await _geocoder.aclose()
        _geocoder = None
