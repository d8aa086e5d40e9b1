"""
Application entrypoint.

Uvicorn ASGI server with lifecycle hooks.
"""

import uvicorn

from modbus_ethermon.config import settings
from modbus_ethermon.logging import get_logger

logger = get_logger(__name__)


def run() -> None:
    logger.info(f"Starting ModBus EtherMon on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "modbus_ethermon.app:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
