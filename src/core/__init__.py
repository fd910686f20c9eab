"""Core domain logic for the statistics exporter."""
from .datasets import DatasetRegistry, Dataset, DatasetKind
from .days import DayClock, parse_day_range
from .options import ExporterOptions
from .state import LedgerState, LedgerProgress, StatusEntry, DayResult


__all__ = [
    'DatasetRegistry',
    'Dataset',
    'DatasetKind',
    'DayClock',
    'parse_day_range',
    'ExporterOptions',
    'LedgerState',
    'LedgerProgress',
    'StatusEntry',
    'DayResult'
]
