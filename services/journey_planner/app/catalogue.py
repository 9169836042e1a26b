"""Bundled data used when the network sources are unavailable."""

from __future__ import annotations

from .schemas import Location, TransportMode

# Known points of interest (lat, lng, label)
KNOWN_PLACES: tuple[Location, ...] = (
    Location(lat=28.6129, lng=77.2295, name="India Gate, New Delhi"),
    Location(lat=28.6328, lng=77.2197, name="Connaught Place, New Delhi"),
    Location(lat=28.6514, lng=77.1909, name="Karol Bagh, New Delhi"),
    Location(lat=28.5450, lng=77.1925, name="IIT Delhi, New Delhi"),
    Location(lat=28.7041, lng=77.1025, name="Delhi University, North Campus"),
    Location(lat=28.5545, lng=77.2567, name="Hauz Khas, New Delhi"),
    Location(lat=28.6692, lng=77.2311, name="Red Fort, Old Delhi"),
    Location(lat=28.5246, lng=77.2065, name="Qutub Minar, Mehrauli"),
)

DEFAULT_SAMPLE_LOCATIONS: tuple[Location, ...] = (
    Location(lat=28.6328, lng=77.2197, name="Connaught Place"),
    Location(lat=28.5450, lng=77.1925, name="IIT Delhi"),
    Location(lat=28.6514, lng=77.1909, name="Karol Bagh"),
    Location(lat=28.6129, lng=77.2295, name="India Gate"),
    Location(lat=28.7041, lng=77.1025, name="Delhi University"),
    Location(lat=28.5545, lng=77.2567, name="Hauz Khas"),
    Location(lat=28.5246, lng=77.2065, name="Qutub Minar"),
    Location(lat=28.6692, lng=77.2311, name="Red Fort"),
)

DEFAULT_TRANSPORT_MODES: tuple[TransportMode, ...] = (
    TransportMode(id="metro", name="Metro", icon="🚇", description="Delhi Metro"),
    TransportMode(id="bus", name="Bus", icon="🚌", description="DTC Bus"),
    TransportMode(id="walking", name="Walking", icon="🚶", description="Walk"),
)


def search_catalogue(
    query: str,
    limit: int = 8,
    places: tuple[Location, ...] = KNOWN_PLACES,
) -> list[Location]:
    """Case-insensitive substring match over the bundled places."""

    needle = query.strip().casefold()
    if not needle:
        return []
    matches = [p for p in places if p.name and needle in p.name.casefold()]
    return matches[:limit]
