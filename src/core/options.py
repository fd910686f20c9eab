"""Scheduler options captured from the command line."""
from dataclasses import dataclass
from typing import Optional

from src.core.days import parse_day_range


@dataclass(frozen=True)
class ExporterOptions:
    """Command line options, passed explicitly to every operation."""
    config_path: str = ""
    statistics_day: int = -1
    statistics_days: str = ""
    pools_disabled: bool = False
    validators_enabled: bool = False
    charts_enabled: bool = False

    def backfill_days(self) -> Optional[range]:
        """
        Days selected for backfill, or None when no backfill was requested.

        A range takes precedence over a single day. Raises
        InvalidDayRangeError when the range is malformed.
        """
        if self.statistics_days:
            return parse_day_range(self.statistics_days)
        if self.statistics_day >= 0:
            return range(self.statistics_day, self.statistics_day + 1)
        return None
