"""Continuous catch-up of a day-indexed dataset."""
import asyncio
import time
from typing import Dict, Any, Iterable, List, Optional

from src.core.datasets import Dataset
from src.core.days import DayClock
from src.core.errors import LedgerReadError
from src.core.operations import OperationMode, OperationType
from src.core.options import ExporterOptions
from src.core.state import DayResult
from src.services.dataset_writer import DatasetWriter
from src.services.epoch_source import LatestEpochSource
from src.services.status_ledger import StatusLedger
from src.services.status_reporter import StatusReporter
from src.utils.logger import logger
from src.utils.shutdown import wait_for_stop


def pending_days(
    last_completed_day: Optional[int],
    previous_day: int,
    missing: Iterable[int] = ()
) -> List[int]:
    """
    Days to attempt this cycle, strictly increasing.

    The frontier starts at day 0 on an empty ledger, otherwise right after
    the last completed day, and ends at ``previous_day`` inclusive. Days
    behind the frontier that are still absent from the ledger (``missing``)
    come first.
    """
    start_day = 0 if last_completed_day is None else last_completed_day + 1
    days = set(range(start_day, previous_day + 1))
    days.update(day for day in missing if day <= previous_day)
    return sorted(days)


class CatchUpOperation(OperationMode):
    """Keeps one dataset's ledger caught up to the last complete day."""

    operation_type = OperationType.CATCH_UP

    def __init__(
        self,
        options: ExporterOptions,
        dataset: Dataset,
        day_clock: DayClock,
        epoch_source: LatestEpochSource,
        ledger: StatusLedger,
        writer: DatasetWriter,
        reporter: StatusReporter,
        stop_event: asyncio.Event,
        poll_interval: float = 60
    ):
        super().__init__(options)
        self.dataset = dataset
        self.day_clock = day_clock
        self.epoch_source = epoch_source
        self.ledger = ledger
        self.writer = writer
        self.reporter = reporter
        self.stop_event = stop_event
        self.poll_interval = poll_interval

    @property
    def name(self) -> str:
        return f"{self.operation_type.value}.{self.dataset.kind.value}"

    def validate_config(self) -> None:
        """Validate catch-up configuration."""
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if self.writer.dataset.kind != self.dataset.kind:
            raise ValueError(
                f"writer for {self.writer.dataset.kind.value} cannot catch up {self.dataset.kind.value}"
            )

    async def execute(self) -> Dict[str, Any]:
        """Run poll cycles until the stop event is set."""
        self.validate_config()
        start_time = time.time()
        cycles = 0
        succeeded = 0
        failed = 0

        logger.info("Starting catch-up loop",
                   kind=self.dataset.kind.value,
                   poll_interval=self.poll_interval)

        while not self.stop_event.is_set():
            try:
                results = await self.run_cycle()
                succeeded += sum(1 for r in results if r.succeeded)
                failed += sum(1 for r in results if not r.succeeded)
            except Exception as e:
                logger.error("Error in catch-up cycle", kind=self.dataset.kind.value, error=str(e))

            cycles += 1
            if await wait_for_stop(self.stop_event, self.poll_interval):
                break

        logger.info("Catch-up loop stopped", kind=self.dataset.kind.value, cycles=cycles)
        return {
            "operation": self.operation_type.value,
            "kind": self.dataset.kind.value,
            "duration": time.time() - start_time,
            "cycles": cycles,
            "days_succeeded": succeeded,
            "days_failed": failed
        }

    async def run_cycle(self) -> List[DayResult]:
        """One poll cycle: catch up if the chain allows it, then report liveness."""
        results: List[DayResult] = []
        try:
            previous_day = await self._previous_day()
            if previous_day is not None:
                results = await self.catch_up(previous_day)
        finally:
            await self.reporter.report(self.dataset.service_name, "Running", {
                "attempted": len(results),
                "failed": sum(1 for r in results if not r.succeeded)
            })
        return results

    async def _previous_day(self) -> Optional[int]:
        """Last complete day, or None when no day work is possible this cycle."""
        try:
            latest_epoch = await self.epoch_source.get_latest_epoch()
        except Exception as e:
            logger.error("Error retrieving latest epoch", kind=self.dataset.kind.value, error=str(e))
            return None

        current_day = self.day_clock.current_day(latest_epoch)
        if current_day is None:
            logger.info("Skipping export, first day has not been indexed yet",
                       kind=self.dataset.kind.value,
                       latest_epoch=latest_epoch,
                       epochs_per_day=self.day_clock.epochs_per_day)
            return None

        return self.day_clock.previous_day(current_day)

    async def catch_up(self, previous_day: int) -> List[DayResult]:
        """Attempt every pending day up to ``previous_day``, isolating failures per day."""
        kind = self.dataset.kind.value
        try:
            progress = await self.ledger.progress(self.dataset)
            missing: List[int] = []
            if progress.has_gaps:
                missing = await self.ledger.missing_days_between(
                    self.dataset, 0, progress.last_completed_day
                )
        except LedgerReadError as e:
            logger.error("Error retrieving last exported day", kind=kind, error=str(e))
            return []

        if missing:
            logger.warning("Retrying days missing from the ledger", kind=kind, missing=len(missing),
                          first_missing_day=missing[0])

        days = pending_days(progress.last_completed_day, previous_day, missing)
        if not days:
            logger.debug("No pending days", kind=kind, previous_day=previous_day,
                        last_completed_day=progress.last_completed_day)
            return []

        logger.info("Exporting pending days",
                   kind=kind,
                   start_day=days[0],
                   previous_day=previous_day,
                   last_completed_day=progress.last_completed_day,
                   pending=len(days))

        results = []
        for day in days:
            if self.stop_event.is_set():
                logger.info("Stop requested, leaving remaining days for the next run", kind=kind, day=day)
                break
            results.append(await self._write_day(day))
        return results

    async def _write_day(self, day: int) -> DayResult:
        try:
            await self.writer.write_day(day)
        except Exception as e:
            logger.error("Error exporting day",
                        kind=self.dataset.kind.value,
                        day=day,
                        error=str(e))
            return DayResult(kind=self.dataset.kind, day=day, succeeded=False, error=str(e))

        return DayResult(kind=self.dataset.kind, day=day, succeeded=True)
