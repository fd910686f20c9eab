import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.datasets import Dataset, DatasetKind, DatasetRegistry  # noqa: E402
from src.core.days import DayClock  # noqa: E402
from src.core.errors import DatasetWriterError, LedgerReadError, LedgerResetError  # noqa: E402
from src.core.state import LedgerProgress, LedgerState  # noqa: E402
from src.services.dataset_writer import DatasetWriter  # noqa: E402


class FakeClickHouse:
    """Records every call; canned rows and errors are matched by query substring."""

    MUTATION_SETTINGS = {"mutations_sync": 2}

    def __init__(self, responses: Optional[Dict[str, List[Dict]]] = None, errors: Optional[Dict[str, Exception]] = None):
        self.responses = responses or {}
        self.errors = errors or {}
        self.queries = []
        self.commands = []
        self.inserts = []
        self.closed = False

    def _raise_for(self, text: str):
        for fragment, error in self.errors.items():
            if fragment in text:
                raise error

    def execute(self, query, params=None):
        self.queries.append((query, params))
        self._raise_for(query)
        for fragment, rows in self.responses.items():
            if fragment in query:
                return rows
        return []

    def command(self, query, params=None, settings=None):
        self.commands.append((query, params, settings))
        self._raise_for(query)

    def insert_rows(self, table, rows, column_names):
        self.inserts.append((table, rows, column_names))
        self._raise_for(table)

    async def execute_async(self, query, params=None):
        return self.execute(query, params)

    async def command_async(self, query, params=None, settings=None):
        return self.command(query, params, settings)

    async def insert_rows_async(self, table, rows, column_names):
        return self.insert_rows(table, rows, column_names)

    def close(self):
        self.closed = True


class InMemoryLedger:
    """Status ledger keeping (kind, day) completions in a set."""

    def __init__(self, events: Optional[list] = None):
        self.completed = set()
        self.events = events if events is not None else []
        self.fail_reads = False
        self.fail_deletes = set()

    def complete_days(self, kind: DatasetKind) -> List[int]:
        return sorted(day for k, day in self.completed if k == kind)

    async def progress(self, dataset: Dataset) -> LedgerProgress:
        if self.fail_reads:
            raise LedgerReadError("ledger unavailable")
        days = self.complete_days(dataset.kind)
        if not days:
            return LedgerProgress()
        return LedgerProgress(first_completed_day=days[0], last_completed_day=days[-1], completed_count=len(days))

    async def last_completed_day(self, dataset: Dataset) -> Optional[int]:
        return (await self.progress(dataset)).last_completed_day

    async def missing_days_between(self, dataset: Dataset, first_day: int, last_day: int) -> List[int]:
        if self.fail_reads:
            raise LedgerReadError("ledger unavailable")
        return [d for d in range(first_day, last_day + 1) if (dataset.kind, d) not in self.completed]

    async def mark_complete(self, dataset: Dataset, day: int) -> None:
        self.completed.add((dataset.kind, day))

    async def delete_day(self, dataset: Dataset, day: int) -> None:
        self.events.append(("delete", dataset.kind, day))
        if day in self.fail_deletes:
            raise LedgerResetError(dataset.kind, day, "mutation failed")
        self.completed.discard((dataset.kind, day))

    async def get_state(self, dataset: Dataset, day: int) -> LedgerState:
        if (dataset.kind, day) in self.completed:
            return LedgerState.COMPLETE
        return LedgerState.ABSENT


class RecordingWriter(DatasetWriter):
    """Marks days complete in the ledger unless the day is in ``fail_days``."""

    def __init__(self, dataset: Dataset, ledger: InMemoryLedger, fail_days=(), events: Optional[list] = None):
        super().__init__(dataset)
        self.ledger = ledger
        self.fail_days = set(fail_days)
        self.events = events if events is not None else ledger.events
        self.days = []

    async def write_day(self, day: int) -> None:
        self.days.append(day)
        self.events.append(("write", self.dataset.kind, day))
        if day in self.fail_days:
            raise DatasetWriterError(self.dataset.kind, day, "statement 0 failed")
        await self.ledger.mark_complete(self.dataset, day)


class RecordingReporter:
    def __init__(self):
        self.reports = []

    async def report(self, name, status, metadata=None):
        self.reports.append((name, status, metadata))


class FakeEpochSource:
    def __init__(self, epoch: Optional[int] = None, error: Optional[Exception] = None):
        self.epoch = epoch
        self.error = error

    async def get_latest_epoch(self) -> Optional[int]:
        if self.error is not None:
            raise self.error
        return self.epoch


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def registry():
    return DatasetRegistry()


@pytest.fixture
def validator_dataset(registry):
    return registry.get_dataset(DatasetKind.VALIDATOR_STATISTICS)


@pytest.fixture
def chart_dataset(registry):
    return registry.get_dataset(DatasetKind.CHART_SERIES)


@pytest.fixture
def day_clock():
    # 5s slots, 16 slots per epoch: 1080 epochs per day
    return DayClock(5, 16)


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def reporter():
    return RecordingReporter()
