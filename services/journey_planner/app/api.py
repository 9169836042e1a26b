from typing import Dict
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status

from . import deps, schemas
from .backend import BackendClient
from .formatting import describe_route
from .geocoding import GeocodingResolver
from .geolocation import FixedPositionProvider
from .routing import RouteError, RouteErrorKind
from .session import IncompleteJourney, JourneySession

router = APIRouter()

_sessions: Dict[str, JourneySession] = {}

_ROUTE_ERROR_STATUS = {
    RouteErrorKind.EMPTY_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    RouteErrorKind.BACKEND_REJECTED: status.HTTP_502_BAD_GATEWAY,
    RouteErrorKind.UNREACHABLE: status.HTTP_504_GATEWAY_TIMEOUT,
}


def get_session(session_id: str) -> JourneySession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Session not found"
        )
    return session


@router.post(
    "/sessions",
    response_model=schemas.SessionCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_session() -> schemas.SessionCreated:
    session_id = str(uuid4())
    _sessions[session_id] = deps.new_session()
    return schemas.SessionCreated(session_id=session_id)


@router.get("/sessions/{session_id}", response_model=schemas.SessionStateView)
async def read_session(
    session: JourneySession = Depends(get_session),
) -> schemas.SessionStateView:
    return session.view()


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str) -> None:
    session = _sessions.pop(session_id, None)
    if session is not None:
        session.close()


@router.post(
    "/sessions/{session_id}/fields/{field}/text",
    response_model=schemas.SearchSessionView,
)
async def change_text(
    field: schemas.FieldName,
    data: schemas.TextChangedRequest,
    session: JourneySession = Depends(get_session),
) -> schemas.SearchSessionView:
    session.text_changed(field, data.text)
    return session.fields[field].view()


@router.post(
    "/sessions/{session_id}/fields/{field}/focus",
    response_model=schemas.SearchSessionView,
)
async def focus_field(
    field: schemas.FieldName,
    session: JourneySession = Depends(get_session),
) -> schemas.SearchSessionView:
    session.focus(field)
    return session.fields[field].view()


@router.post(
    "/sessions/{session_id}/fields/{field}/select",
    response_model=schemas.SessionStateView,
)
async def select_location(
    field: schemas.FieldName,
    location: schemas.Location,
    session: JourneySession = Depends(get_session),
) -> schemas.SessionStateView:
    session.select_location(field, location)
    return session.view()


@router.post("/sessions/{session_id}/dismiss", response_model=schemas.SessionStateView)
async def dismiss_suggestions(
    session: JourneySession = Depends(get_session),
) -> schemas.SessionStateView:
    session.dismiss()
    return session.view()


@router.post(
    "/sessions/{session_id}/current-location",
    response_model=schemas.Location | None,
)
async def use_current_location(
    position: schemas.Position | None = None,
    session: JourneySession = Depends(get_session),
) -> schemas.Location | None:
    provider = FixedPositionProvider(position) if position is not None else None
    return await session.use_current_location(provider)


@router.post("/sessions/{session_id}/route", response_model=schemas.RouteView)
async def calculate_route(
    data: schemas.RouteRequest,
    session: JourneySession = Depends(get_session),
) -> schemas.RouteView:
    try:
        route = await session.calculate_route(preference=data.preference)
    except IncompleteJourney as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except RouteError as exc:
        raise HTTPException(
            status_code=_ROUTE_ERROR_STATUS[exc.kind],
            detail={"kind": exc.kind.value, "message": exc.message},
        ) from exc
    return describe_route(route)


@router.delete(
    "/sessions/{session_id}/route", response_model=schemas.SessionStateView
)
async def clear_route(
    session: JourneySession = Depends(get_session),
) -> schemas.SessionStateView:
    session.clear_route()
    return session.view()


@router.get("/locations/search", response_model=list[schemas.Location])
async def search_locations(
    q: str = Query(""),
    resolver: GeocodingResolver = Depends(deps.get_resolver),
) -> list[schemas.Location]:
    return await resolver.resolve(q)


@router.get("/locations/samples", response_model=list[schemas.Location])
async def sample_locations(
    backend: BackendClient = Depends(deps.get_backend_client),
) -> list[schemas.Location]:
    return await backend.sample_locations()


@router.get("/transport-modes", response_model=list[schemas.TransportMode])
async def transport_modes(
    backend: BackendClient = Depends(deps.get_backend_client),
) -> list[schemas.TransportMode]:
    return await backend.transport_modes()


@router.get("/backend/health", response_model=schemas.BackendHealth)
async def backend_health(
    backend: BackendClient = Depends(deps.get_backend_client),
) -> schemas.BackendHealth:
    return schemas.BackendHealth(healthy=await backend.check_health())
