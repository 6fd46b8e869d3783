# backend/servertemp/routers/server_temp.py
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Header, Request, Response, status
from fastapi.responses import JSONResponse

from ..schemas import ServerTempOut, SystemStatus, UnauthorisedOut

router = APIRouter(tags=["server_temp"])

NO_STORE = {"Cache-Control": "no-store"}


def _unauthorised() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=UnauthorisedOut().model_dump(),
        headers=NO_STORE,
    )


def _header_ok(request: Request, plugin_name: Optional[str]) -> bool:
    return plugin_name == request.app.state.settings.plugin_header


@router.get(
    "/server_temp",
    response_model=ServerTempOut,
    responses={status.HTTP_403_FORBIDDEN: {"model": UnauthorisedOut}},
)
def get_server_temp(
    request: Request,
    response: Response,
    x_plugin_name: Optional[str] = Header(default=None, alias="X-Plugin-Name"),
):
    """
    Last cached reading. Any query string (`?t=<cache-buster>`) is ignored.
    Requires `X-Plugin-Name` to match the configured plugin name exactly.
    """
    if not _header_ok(request, x_plugin_name):
        return _unauthorised()
    response.headers["Cache-Control"] = "no-store"
    return ServerTempOut(**request.app.state.cache.snapshot().as_payload())


@router.get(
    "/api/status",
    response_model=SystemStatus,
    responses={status.HTTP_403_FORBIDDEN: {"model": UnauthorisedOut}},
)
def get_status(
    request: Request,
    x_plugin_name: Optional[str] = Header(default=None, alias="X-Plugin-Name"),
):
    if not _header_ok(request, x_plugin_name):
        return _unauthorised()

    state = request.app.state
    coordinator = state.coordinator
    reading = state.cache.snapshot()
    uptime = int((datetime.now(timezone.utc) - state.started_at).total_seconds())
    last = reading.timestamp.isoformat().replace("+00:00", "Z") if reading.timestamp else None
    return SystemStatus(
        service_uptime_s=uptime,
        scheduler_state=state.scheduler.state.value,
        probes=[p.name for p in coordinator.probes],
        working_method=coordinator.working_method,
        failed_methods=sorted(coordinator.failed_methods),
        update_interval_s=state.scheduler.interval_s,
        last_reading_iso=last,
    )
