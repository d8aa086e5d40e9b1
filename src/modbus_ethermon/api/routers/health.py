"""Health check endpoints."""

from fastapi import APIRouter, Depends

from modbus_ethermon import __version__
from modbus_ethermon.api.dependencies import Services, get_services
from modbus_ethermon.helpers.date_time import utc_now_iso
from modbus_ethermon.schemas.api_models import HealthResponse, StatusResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint that verifies API is running.

    Returns basic health status without performing Modbus operations.
    """
    return HealthResponse(ok=True, timestamp=utc_now_iso(), detail=f"API is healthy (v{__version__})")


@router.get("/status", response_model=StatusResponse, response_model_by_alias=True)
async def status(services: Services = Depends(get_services)):
    """Overview of the session, the configured devices and the active poll jobs."""
    session = services.manager.session
    return StatusResponse(
        ok=True,
        timestamp=utc_now_iso(),
        connected=session.connected,
        connected_device=session.device.id if session.device else None,
        devices=len(services.registry.load()),
        polling=services.manager.active_polls(),
        scheduler_running=services.engine.running
    )
