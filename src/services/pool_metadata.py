import time
from typing import List

from src.core.errors import ExporterError
from src.services.clickhouse import ClickHouse
from src.utils.logger import logger


class PoolMetadataUpdater:
    """Overwrites the staking pool metadata snapshot."""

    def __init__(self, db: ClickHouse, statements: List[str]):
        self.db = db
        self.statements = list(statements)

    async def update(self) -> None:
        """Run the refresh statements in order. Raises ExporterError on failure."""
        start_time = time.time()
        for index, statement in enumerate(self.statements):
            try:
                await self.db.command_async(statement)
            except Exception as e:
                raise ExporterError(f"pool metadata statement {index} failed: {e}") from e

        logger.info("Updated pool metadata",
                   statements=len(self.statements),
                   duration=round(time.time() - start_time, 2))
