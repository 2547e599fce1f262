"""
Base worker class for the scheduling engine worker architecture.

Provides the lifecycle every worker shares:

start()/stop() - Worker lifecycle management
   - Called by main_worker.py to initialize/cleanup workers
   - Sets self.running flag and calls initialize()/cleanup()
   - DOES NOT start autonomous processing loops
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..enums import LogEmoji, LoggerName, LogSource
from ..services.logger import get_service_logger

worker_logger = get_service_logger(LoggerName.SCHEDULER_WORKER, LogSource.WORKER)


class BaseWorker(ABC):
    """
    Abstract base class for all workers.

    Each worker is responsible for a specific domain of functionality.
    """

    def __init__(self, name: str):
        """
        Initialize base worker.

        Args:
            name: Worker name for logging and identification
        """
        self.name = name
        self.running = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """Get the running event loop."""
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    async def start(self) -> None:
        """Start the worker."""
        worker_logger.info(f"Starting {self.name} worker", emoji=LogEmoji.STARTUP)
        self.running = True
        await self.initialize()

    async def stop(self) -> None:
        """Stop the worker."""
        worker_logger.info(f"Stopping {self.name} worker", emoji=LogEmoji.SHUTDOWN)
        self.running = False
        await self.cleanup()

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize worker-specific resources."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Cleanup worker-specific resources."""
        pass

    async def run_in_executor(self, func, *args) -> Any:
        """Run a sync function in executor to maintain async compatibility."""
        return await self.loop.run_in_executor(None, func, *args)

    def get_status(self) -> Dict[str, Any]:
        """
        Get current worker status.

        Returns:
            Dictionary with worker status information
        """
        return {
            "name": self.name,
            "running": self.running,
            "worker_type": self.__class__.__name__,
        }

    def is_healthy(self) -> bool:
        return self.running
