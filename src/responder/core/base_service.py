"""
Base Service Class for responder subsystems

Provides common start/stop lifecycle handling.
"""

import asyncio
from abc import ABC, abstractmethod

from src.responder.utils.logging import get_logger

logger = get_logger(__name__)


class BaseService(ABC):
    """Base class for subsystems with an async start/stop lifecycle."""

    def __init__(self, service_name: str = "base_service"):
        self.service_name = service_name
        self._is_running = False
        self._startup_time: float | None = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    @abstractmethod
    async def start_service(self) -> None:
        """Start the service. Must be implemented by subclasses."""
        pass

    @abstractmethod
    async def stop_service(self) -> None:
        """Stop the service. Must be implemented by subclasses."""
        pass

    async def start(self) -> None:
        """Start service; a second call while running is a no-op."""
        if self._is_running:
            logger.debug(f"Service {self.service_name} is already running")
            return

        try:
            logger.info(f"Starting service: {self.service_name}")
            await self.start_service()
        except Exception as e:
            logger.error(f"Failed to start service {self.service_name}: {e}")
            self._is_running = False
            raise

        self._is_running = True
        self._startup_time = asyncio.get_running_loop().time()
        logger.info(f"Service {self.service_name} started successfully")

    async def stop(self) -> None:
        """Stop service; a call while stopped is a no-op."""
        if not self._is_running:
            logger.debug(f"Service {self.service_name} is not running")
            return

        try:
            logger.info(f"Stopping service: {self.service_name}")
            await self.stop_service()
        finally:
            self._is_running = False
            self._startup_time = None

        logger.info(f"Service {self.service_name} stopped")

    def get_status(self) -> dict:
        """Get service status information."""
        return {
            "service_name": self.service_name,
            "is_running": self._is_running,
            "startup_time": self._startup_time,
            "uptime_seconds": (
                asyncio.get_running_loop().time() - self._startup_time
                if self._startup_time
                else 0.0
            ),
        }
