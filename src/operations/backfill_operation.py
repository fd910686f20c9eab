"""Forced recomputation of explicit days, independent of the ledger."""
import time
from typing import Dict, Any, List

from src.core.datasets import Dataset, DatasetKind
from src.core.operations import OperationMode, OperationType
from src.core.options import ExporterOptions
from src.services.dataset_writer import DatasetWriter
from src.services.status_ledger import StatusLedger
from src.utils.logger import logger


class BackfillOperation(OperationMode):
    """
    Recomputes the given days for each selected dataset.

    Every (day, dataset) ledger entry is deleted before its writer runs. A
    failed delete raises LedgerResetError and aborts the whole backfill; a
    failed writer is logged and the next day is processed.
    """

    operation_type = OperationType.BACKFILL

    def __init__(
        self,
        options: ExporterOptions,
        days: range,
        datasets: List[Dataset],
        ledger: StatusLedger,
        writers: Dict[DatasetKind, DatasetWriter]
    ):
        super().__init__(options)
        self.days = days
        self.datasets = list(datasets)
        self.ledger = ledger
        self.writers = writers

    def validate_config(self) -> None:
        """Validate configuration."""
        if len(self.days) == 0:
            raise ValueError("no days to backfill")
        if self.days.step != 1:
            raise ValueError("days must be consecutive")
        if self.days.start < 0:
            raise ValueError("days must be non-negative")
        for dataset in self.datasets:
            if dataset.kind not in self.writers:
                raise ValueError(f"no writer configured for {dataset.kind.value}")

    async def execute(self) -> Dict[str, Any]:
        """Execute the backfill and return a per-dataset summary."""
        self.validate_config()
        start_time = time.time()
        results = {}

        if not self.datasets:
            logger.warning("No dataset enabled for backfill, use --validators.enabled or --charts.enabled")

        for dataset in self.datasets:
            logger.info("Backfilling dataset",
                       kind=dataset.kind.value,
                       first_day=self.days[0],
                       last_day=self.days[-1])
            results[dataset.kind.value] = await self._backfill_dataset(dataset)

        return {
            "operation": self.operation_type.value,
            "duration": time.time() - start_time,
            "days": len(self.days),
            "details": results
        }

    async def _backfill_dataset(self, dataset: Dataset) -> Dict[str, Any]:
        writer = self.writers[dataset.kind]
        succeeded = []
        failed = []

        for day in self.days:
            # LedgerResetError propagates and stops the backfill
            await self.ledger.delete_day(dataset, day)

            try:
                await writer.write_day(day)
                succeeded.append(day)
            except Exception as e:
                logger.error("Error exporting day",
                            kind=dataset.kind.value,
                            day=day,
                            error=str(e))
                failed.append(day)

        return {"succeeded": succeeded, "failed": failed}
