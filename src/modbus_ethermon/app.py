"""
FastAPI application factory.

Creates and configures the FastAPI app instance with routers, error handling and lifecycle hooks.
"""

from typing import Any, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from modbus_ethermon import __version__
from modbus_ethermon.api.dependencies import Services
from modbus_ethermon.api.routers import archives, config, health, modbus
from modbus_ethermon.archive import ArchiveStore
from modbus_ethermon.config import Settings, settings as default_settings
from modbus_ethermon.helpers.devices import DeviceRegistry
from modbus_ethermon.helpers.schedule import load_schedule_config
from modbus_ethermon.logging import get_logger, setup_logging
from modbus_ethermon.modbus import ModbusSession
from modbus_ethermon.polling import PollingManager
from modbus_ethermon.scheduler import SchedulerEngine, register_maintenance_jobs
from modbus_ethermon.stats import create_stats_collector
from modbus_ethermon.schemas.api_models import ErrorResponse
from modbus_ethermon.utils.exceptions import AppError

logger = get_logger(__name__)


def build_services(settings: Settings, client_factory: Optional[Callable[..., Any]] = None) -> Services:
    """Wire up the long-lived components. Performs no I/O."""
    registry = DeviceRegistry(settings.devices_config_path)
    stats = create_stats_collector(
        settings.stats_enabled,
        settings.stats_path,
        settings.hourly_stats_path,
        retention_days=settings.hourly_stats_retention_days
    )
    archive = ArchiveStore(settings.archives_dir)
    engine = SchedulerEngine()

    session_kwargs = {"timeout": settings.modbus_timeout_s, "retries": settings.modbus_retries}
    if client_factory is not None:
        session_kwargs["client_factory"] = client_factory
    session = ModbusSession(**session_kwargs)

    manager = PollingManager(
        registry, session, stats, archive, engine,
        default_interval_ms=settings.poll_interval_ms
    )
    return Services(
        settings=settings,
        registry=registry,
        stats=stats,
        archive=archive,
        engine=engine,
        manager=manager
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.http_status_code,
        content=ErrorResponse(error=exc.message, detail=jsonable_encoder(exc.payload)).model_dump()
    )


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Optional[Callable[..., Any]] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to the environment-driven global)
        client_factory: Modbus client factory override, used by tests

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or default_settings
    setup_logging(
        log_level=settings.log_level,
        log_dir=settings.log_dir if settings.log_to_file else None
    )

    app = FastAPI(
        title="ModBus EtherMon",
        description="Modbus TCP service for polling devices and archiving their readings",
        version=__version__
    )
    app.state.services = build_services(settings, client_factory)

    app.add_exception_handler(AppError, app_error_handler)

    # Mount routers with /api prefix
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(modbus.router, prefix="/api/modbus", tags=["modbus"])
    app.include_router(archives.router, prefix="/api/archives", tags=["archives"])
    app.include_router(config.router, prefix="/api/config", tags=["config"])

    # Lifecycle hooks
    @app.on_event("startup")
    async def startup():
        """Initialize services on application startup."""
        logger.info("Starting ModBus EtherMon")
        services: Services = app.state.services

        devices = services.registry.load()
        logger.info(f"{len(devices)} device(s) configured")

        services.stats.load()
        services.stats.roll_hourly_window()

        if settings.scheduler_enabled:
            schedule = load_schedule_config(settings.schedule_config_path)
            register_maintenance_jobs(services.engine, schedule, services.archive, services.stats, settings)
        else:
            logger.info("Scheduler is disabled, archive maintenance jobs not registered")

        services.engine.start()

        if settings.poll_autostart:
            services.manager.start_enabled_devices(settings.poll_interval_ms)

    @app.on_event("shutdown")
    async def shutdown():
        """Cleanup resources on application shutdown."""
        logger.info("Shutting down ModBus EtherMon")
        services: Services = app.state.services
        await services.engine.shutdown()
        await services.manager.shutdown()
        services.stats.save()

    logger.info("FastAPI application created")
    return app
