"""Factory wiring operations to their collaborators."""
import asyncio
from typing import Callable, List, Optional

from src.config import ExporterConfig
from src.core.datasets import Dataset, DatasetRegistry
from src.core.days import DayClock
from src.core.operations import OperationMode
from src.core.options import ExporterOptions
from src.services.chain_spec import ChainSpecResolver
from src.services.clickhouse import ClickHouse
from src.services.dataset_writer import DatasetWriter, StatementDatasetWriter
from src.services.epoch_source import LatestEpochSource
from src.services.pool_metadata import PoolMetadataUpdater
from src.services.status_ledger import StatusLedger
from src.services.status_reporter import StatusReporter
from src.utils.logger import logger

from .backfill_operation import BackfillOperation
from .catch_up_operation import CatchUpOperation
from .pool_refresh_operation import PoolRefreshOperation


class OperationFactory:
    """
    Creates operation instances. Every background loop gets its own
    ClickHouse connection; all connections are closed by close().
    """

    def __init__(
        self,
        options: ExporterOptions,
        exporter_config: ExporterConfig,
        store_factory: Optional[Callable[[], ClickHouse]] = None
    ):
        self.options = options
        self.config = exporter_config
        self.registry = DatasetRegistry(exporter_config.statistics.status_tables())
        self._store_factory = store_factory or (lambda: ClickHouse(exporter_config.clickhouse).connect())
        self._stores: List[ClickHouse] = []

    def open_store(self) -> ClickHouse:
        """Open a new connection. Raises StoreConnectionError when ClickHouse is unreachable."""
        store = self._store_factory()
        self._stores.append(store)
        return store

    def close(self):
        """Close every connection opened by this factory."""
        while self._stores:
            self._stores.pop().close()

    def enabled_datasets(self) -> List[Dataset]:
        return self.registry.get_enabled_datasets(
            validators_enabled=self.options.validators_enabled,
            charts_enabled=self.options.charts_enabled
        )

    async def resolve_day_clock(self) -> DayClock:
        return await ChainSpecResolver(self.config.chain, self.open_store()).resolve()

    def create_writer(self, dataset: Dataset, store: ClickHouse, ledger: StatusLedger, day_clock: DayClock) -> DatasetWriter:
        statements = self.config.statistics.for_kind(dataset.kind).statements
        if not statements:
            logger.warning("No statements configured, days will only be marked complete",
                          kind=dataset.kind.value)
        return StatementDatasetWriter(dataset, store, ledger, day_clock, statements)

    def create_backfill(self, days: range, day_clock: DayClock) -> BackfillOperation:
        store = self.open_store()
        ledger = StatusLedger(store)
        datasets = self.enabled_datasets()
        writers = {d.kind: self.create_writer(d, store, ledger, day_clock) for d in datasets}
        logger.info("Creating operation mode: backfill", kinds=[d.kind.value for d in datasets])
        return BackfillOperation(self.options, days, datasets, ledger, writers)

    def create_catch_up(self, dataset: Dataset, day_clock: DayClock, stop_event: asyncio.Event) -> CatchUpOperation:
        store = self.open_store()
        ledger = StatusLedger(store)
        logger.info("Creating operation mode: catch_up", kind=dataset.kind.value)
        return CatchUpOperation(
            options=self.options,
            dataset=dataset,
            day_clock=day_clock,
            epoch_source=LatestEpochSource(store, self.config.chain.latest_epoch_query),
            ledger=ledger,
            writer=self.create_writer(dataset, store, ledger, day_clock),
            reporter=StatusReporter(store, self.config.status.table),
            stop_event=stop_event,
            poll_interval=self.config.statistics.poll_interval
        )

    def create_pool_refresh(self, stop_event: asyncio.Event) -> PoolRefreshOperation:
        store = self.open_store()
        logger.info("Creating operation mode: pool_refresh")
        return PoolRefreshOperation(
            options=self.options,
            updater=PoolMetadataUpdater(store, self.config.pools.statements),
            reporter=StatusReporter(store, self.config.status.table),
            stop_event=stop_event,
            refresh_interval=self.config.pools.refresh_interval
        )

    def create_background(self, day_clock: DayClock, stop_event: asyncio.Event) -> List[OperationMode]:
        """One catch-up loop per enabled dataset, plus the pool loop unless disabled."""
        operations: List[OperationMode] = [
            self.create_catch_up(dataset, day_clock, stop_event) for dataset in self.enabled_datasets()
        ]
        if not self.options.pools_disabled:
            operations.append(self.create_pool_refresh(stop_event))
        return operations
