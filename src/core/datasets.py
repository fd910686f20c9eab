"""Dataset definitions and registry for the day-indexed derived data."""
from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum


class DatasetKind(Enum):
    """Kinds of day-indexed datasets. Each has its own ledger and writer."""
    VALIDATOR_STATISTICS = "validator_statistics"
    CHART_SERIES = "chart_series"


@dataclass(frozen=True)
class Dataset:
    """Definition of a day-indexed dataset."""
    kind: DatasetKind
    status_table: str
    label: str

    @property
    def service_name(self) -> str:
        """Name used when reporting liveness for this dataset's loop."""
        return f"statistics.{self.kind.value}"

    def __hash__(self):
        return hash(self.kind)


class DatasetRegistry:
    """Registry of the day-indexed datasets, in processing order."""

    def __init__(self, status_tables: Optional[Dict[DatasetKind, str]] = None):
        self._datasets: Dict[DatasetKind, Dataset] = {}
        self._initialize_datasets(status_tables or {})

    def _initialize_datasets(self, status_tables: Dict[DatasetKind, str]):
        """Initialize the dataset definitions."""
        self.register(Dataset(
            kind=DatasetKind.VALIDATOR_STATISTICS,
            status_table=status_tables.get(DatasetKind.VALIDATOR_STATISTICS, "validator_stats_status"),
            label="Validator statistics"
        ))

        self.register(Dataset(
            kind=DatasetKind.CHART_SERIES,
            status_table=status_tables.get(DatasetKind.CHART_SERIES, "chart_series_status"),
            label="Chart series"
        ))

    def register(self, dataset: Dataset) -> None:
        """Register a dataset."""
        self._datasets[dataset.kind] = dataset

    def get_dataset(self, kind: DatasetKind) -> Dataset:
        """Get a dataset by kind."""
        return self._datasets[kind]

    def get_all_datasets(self) -> List[Dataset]:
        """Get all registered datasets."""
        return list(self._datasets.values())

    def get_enabled_datasets(self, validators_enabled: bool, charts_enabled: bool) -> List[Dataset]:
        """Datasets selected by the two independent toggles."""
        enabled = {
            DatasetKind.VALIDATOR_STATISTICS: validators_enabled,
            DatasetKind.CHART_SERIES: charts_enabled,
        }
        return [d for d in self._datasets.values() if enabled[d.kind]]
