"""
Per-dataset status ledger.

Each dataset kind has its own table of (day, status) rows. A row with
status=1 asserts that the derived data for that day is fully persisted.
Rows are written only after a successful computation and deleted only
before a forced recomputation, so a day is either absent or complete.
"""
from datetime import datetime, timezone
from typing import List, Optional

from src.core.datasets import Dataset
from src.core.errors import LedgerReadError, LedgerResetError
from src.core.state import LedgerProgress, LedgerState, StatusEntry
from src.services.clickhouse import ClickHouse
from src.utils.logger import logger


class StatusLedger:
    """Reads and updates the status ledger tables."""

    def __init__(self, db: ClickHouse):
        self.db = db

    async def progress(self, dataset: Dataset) -> LedgerProgress:
        """First and last completed day and the number of completed days."""
        query = f"""
        SELECT minOrNull(day) AS first_day, maxOrNull(day) AS last_day, count() AS completed
        FROM {dataset.status_table} FINAL
        WHERE status = 1
        """
        try:
            rows = await self.db.execute_async(query)
        except Exception as e:
            raise LedgerReadError(f"error reading last exported day from {dataset.status_table}: {e}") from e

        if not rows or rows[0].get("last_day") is None:
            return LedgerProgress()
        row = rows[0]
        return LedgerProgress(
            first_completed_day=int(row["first_day"]),
            last_completed_day=int(row["last_day"]),
            completed_count=int(row["completed"])
        )

    async def last_completed_day(self, dataset: Dataset) -> Optional[int]:
        """Highest completed day, or None when nothing has been completed yet."""
        return (await self.progress(dataset)).last_completed_day

    async def missing_days_between(self, dataset: Dataset, first_day: int, last_day: int) -> List[int]:
        """Absent days in ``first_day..last_day``. Raises LedgerReadError."""
        try:
            entries = await self.get_entries(dataset, first_day, last_day)
        except Exception as e:
            raise LedgerReadError(f"error reading completed days from {dataset.status_table}: {e}") from e
        completed = {entry.day for entry in entries}
        return [day for day in range(first_day, last_day + 1) if day not in completed]

    async def mark_complete(self, dataset: Dataset, day: int) -> None:
        """Record that ``day`` has been fully computed."""
        await self.db.insert_rows_async(
            dataset.status_table,
            [[day, 1, datetime.now(timezone.utc).replace(tzinfo=None)]],
            column_names=["day", "status", "updated_at"]
        )
        logger.debug("Marked day complete", kind=dataset.kind.value, day=day)

    async def delete_day(self, dataset: Dataset, day: int) -> None:
        """Remove the entry for ``day``. Raises LedgerResetError on failure."""
        query = f"ALTER TABLE {dataset.status_table} DELETE WHERE day = {{day:UInt64}}"
        try:
            await self.db.command_async(query, {"day": day}, ClickHouse.MUTATION_SETTINGS)
        except Exception as e:
            raise LedgerResetError(dataset.kind, day, str(e)) from e
        logger.debug("Reset status", kind=dataset.kind.value, day=day)

    async def get_state(self, dataset: Dataset, day: int) -> LedgerState:
        query = f"""
        SELECT count() AS count
        FROM {dataset.status_table} FINAL
        WHERE day = {{day:UInt64}} AND status = 1
        """
        rows = await self.db.execute_async(query, {"day": day})
        if rows and rows[0]["count"] > 0:
            return LedgerState.COMPLETE
        return LedgerState.ABSENT

    async def get_entries(self, dataset: Dataset, min_day: int = 0, max_day: Optional[int] = None) -> List[StatusEntry]:
        """Completed entries in a day range, ascending."""
        where = "day >= {min_day:UInt64}"
        params = {"min_day": min_day}
        if max_day is not None:
            where += " AND day <= {max_day:UInt64}"
            params["max_day"] = max_day

        query = f"""
        SELECT day, status, updated_at
        FROM {dataset.status_table} FINAL
        WHERE {where} AND status = 1
        ORDER BY day
        """
        rows = await self.db.execute_async(query, params)
        return [
            StatusEntry(kind=dataset.kind, day=int(row["day"]), complete=bool(row["status"]), updated_at=row.get("updated_at"))
            for row in rows
        ]

    async def missing_days(self, dataset: Dataset, up_to_day: int) -> List[int]:
        """Days in ``0..up_to_day`` with no completed entry."""
        return await self.missing_days_between(dataset, 0, up_to_day)
