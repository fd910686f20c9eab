import asyncio
import time
from typing import Dict, Any

from src.core.operations import OperationMode, OperationType
from src.core.options import ExporterOptions
from src.services.pool_metadata import PoolMetadataUpdater
from src.services.status_reporter import StatusReporter
from src.utils.logger import logger
from src.utils.shutdown import wait_for_stop


class PoolRefreshOperation(OperationMode):
    """Refreshes the pool metadata snapshot on a fixed interval."""

    operation_type = OperationType.POOL_REFRESH
    SERVICE_NAME = "poolInfoUpdater"

    def __init__(
        self,
        options: ExporterOptions,
        updater: PoolMetadataUpdater,
        reporter: StatusReporter,
        stop_event: asyncio.Event,
        refresh_interval: float = 600
    ):
        super().__init__(options)
        self.updater = updater
        self.reporter = reporter
        self.stop_event = stop_event
        self.refresh_interval = refresh_interval

    def validate_config(self) -> None:
        if self.refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")

    async def execute(self) -> Dict[str, Any]:
        self.validate_config()
        start_time = time.time()
        refreshes = 0
        errors = 0

        logger.info("Starting pool metadata loop", refresh_interval=self.refresh_interval)

        while not self.stop_event.is_set():
            if await self.run_cycle():
                refreshes += 1
            else:
                errors += 1

            if await wait_for_stop(self.stop_event, self.refresh_interval):
                break

        return {
            "operation": self.operation_type.value,
            "duration": time.time() - start_time,
            "refreshes": refreshes,
            "errors": errors
        }

    async def run_cycle(self) -> bool:
        """Refresh once and report liveness whatever the outcome."""
        succeeded = True
        try:
            await self.updater.update()
        except Exception as e:
            logger.error("Error updating pool metadata", error=str(e))
            succeeded = False

        await self.reporter.report(self.SERVICE_NAME, "Running")
        return succeeded
