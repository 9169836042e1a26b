from fastapi import FastAPI

from src.common import settings as common_settings
from src.common.logging import get_logger, setup_logging
from src.common.metrics import setup_metrics
from src.common.telemetry import setup_otel

from . import deps
from .api import _sessions, router

logger = get_logger(__name__)

app = FastAPI(title="journey_planner")
setup_metrics(app, "journey_planner")
setup_otel(app, "journey_planner")


@app.on_event("startup")
async def on_startup() -> None:
    setup_logging(common_settings.settings.log_level)
    settings = deps.get_settings()
    logger.info(
        "journey planner starting",
        backend=settings.backend_base_url,
        geocoder=settings.geocoder_url,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    for session in _sessions.values():
        session.close()
    _sessions.clear()
    await deps.close_clients()


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/readyz")
async def readyz() -> dict[str, str]:
    return {"status": "ready"}


app.include_router(router)
