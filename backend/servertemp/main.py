# backend/servertemp/main.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Sequence
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
import uvicorn

from .cache import TemperatureCache
from .config import Settings, get_settings
from .coordinator import TemperatureCoordinator
from .probes import Probe, default_probes
from .routers import server_temp
from .scheduler import RefreshScheduler

# ---- logging ---------------------------------------------------------------
logger = logging.getLogger("servertemp")
logger.setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Server Temperature Monitor started")
    logger.info("API endpoint registered at /server_temp")
    app.state.scheduler.start()
    try:
        yield
    finally:
        await app.state.scheduler.stop()


def create_app(settings: Optional[Settings] = None,
               probes: Optional[Sequence[Probe]] = None) -> FastAPI:
    """
    Build the app and its shared state (cache, coordinator, scheduler).
    The scheduler only starts ticking when the app's lifespan runs.
    """
    settings = settings or get_settings()
    logger.setLevel(settings.log_level)

    if probes is None:
        probes = default_probes(settings.thermal_zone_path, settings.probe_timeout_s)

    app = FastAPI(title="Server Temperature Monitor", version="1.0.1", lifespan=lifespan)

    cache = TemperatureCache()
    coordinator = TemperatureCoordinator(probes)
    app.state.settings = settings
    app.state.cache = cache
    app.state.coordinator = coordinator
    app.state.scheduler = RefreshScheduler(
        coordinator, cache,
        interval_s=settings.update_interval_s,
        initial_delay_s=settings.initial_delay_s,
    )
    app.state.started_at = datetime.now(timezone.utc)

    # Widget is served by the host page; allow it to call us from there
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["X-Plugin-Name"],
    )

    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    app.include_router(server_temp.router)
    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
