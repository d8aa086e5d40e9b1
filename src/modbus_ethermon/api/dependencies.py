"""FastAPI dependencies resolving the services built at startup."""

from dataclasses import dataclass

from fastapi import Depends, Request

from modbus_ethermon.archive import ArchiveStore
from modbus_ethermon.config import Settings
from modbus_ethermon.helpers.devices import DeviceRegistry
from modbus_ethermon.polling import PollingManager
from modbus_ethermon.scheduler import SchedulerEngine
from modbus_ethermon.stats import StatsBackend


@dataclass
class Services:
    """Long-lived components shared by all requests."""
    settings: Settings
    registry: DeviceRegistry
    stats: StatsBackend
    archive: ArchiveStore
    engine: SchedulerEngine
    manager: PollingManager


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_manager(services: Services = Depends(get_services)) -> PollingManager:
    return services.manager


def get_registry(services: Services = Depends(get_services)) -> DeviceRegistry:
    return services.registry


def get_stats_backend(services: Services = Depends(get_services)) -> StatsBackend:
    return services.stats


def get_archive(services: Services = Depends(get_services)) -> ArchiveStore:
    return services.archive
