"""Status ledger state types."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from src.core.datasets import DatasetKind


class LedgerState(Enum):
    """State of a (day, dataset kind) pair. A failed day is simply ABSENT."""
    ABSENT = "absent"
    COMPLETE = "complete"


@dataclass
class StatusEntry:
    """A row of a dataset's status ledger."""
    kind: DatasetKind
    day: int
    complete: bool
    updated_at: Optional[datetime] = None

    @property
    def state(self) -> LedgerState:
        return LedgerState.COMPLETE if self.complete else LedgerState.ABSENT

    def __repr__(self):
        return f"StatusEntry({self.kind.value} day={self.day} {self.state.value})"


@dataclass
class DayResult:
    """Outcome of one writer invocation."""
    kind: DatasetKind
    day: int
    succeeded: bool
    error: Optional[str] = None


@dataclass
class LedgerProgress:
    """Summary of a dataset's completed days."""
    first_completed_day: Optional[int] = None
    last_completed_day: Optional[int] = None
    completed_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.last_completed_day is None

    @property
    def has_gaps(self) -> bool:
        """True when some day from day 0 to the last completed day is absent."""
        if self.is_empty:
            return False
        return self.completed_count < self.last_completed_day + 1
