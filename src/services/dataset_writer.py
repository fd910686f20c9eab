"""
Dataset writers compute and persist one day of a derived dataset.

The statistic and chart algorithms live in SQL owned by the deployment; a
writer runs the configured statements for a day and, only if all of them
succeed, marks the day complete in the status ledger.
"""
import time
from abc import ABC, abstractmethod
from typing import Dict, List

from src.core.datasets import Dataset
from src.core.days import DayClock
from src.core.errors import DatasetWriterError
from src.services.clickhouse import ClickHouse
from src.services.status_ledger import StatusLedger
from src.utils.logger import logger


class DatasetWriter(ABC):
    """Computes one day of a dataset and records its completion."""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    @abstractmethod
    async def write_day(self, day: int) -> None:
        """Compute and persist ``day``. Raises DatasetWriterError on failure."""
        pass


class StatementDatasetWriter(DatasetWriter):
    """Runs a list of SQL statements for a day, then marks the day complete."""

    def __init__(self, dataset: Dataset, db: ClickHouse, ledger: StatusLedger, day_clock: DayClock, statements: List[str]):
        super().__init__(dataset)
        self.db = db
        self.ledger = ledger
        self.day_clock = day_clock
        self.statements = list(statements)

    def query_params(self, day: int) -> Dict[str, int]:
        first_epoch, last_epoch = self.day_clock.epoch_window(day)
        return {"day": day, "first_epoch": first_epoch, "last_epoch": last_epoch}

    async def write_day(self, day: int) -> None:
        start_time = time.time()
        params = self.query_params(day)

        for index, statement in enumerate(self.statements):
            try:
                await self.db.command_async(statement, params)
            except Exception as e:
                raise DatasetWriterError(self.dataset.kind, day, f"statement {index} failed: {e}") from e

        try:
            await self.ledger.mark_complete(self.dataset, day)
        except Exception as e:
            raise DatasetWriterError(self.dataset.kind, day, f"could not mark day complete: {e}") from e

        logger.info("Exported day",
                   kind=self.dataset.kind.value,
                   day=day,
                   statements=len(self.statements),
                   duration=round(time.time() - start_time, 2))
