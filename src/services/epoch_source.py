from typing import Optional

from src.services.clickhouse import ClickHouse


class LatestEpochSource:
    """Reads the latest fully indexed epoch from the chain indexer's tables."""

    def __init__(self, db: ClickHouse, query: str):
        self.db = db
        self.query = query

    async def get_latest_epoch(self) -> Optional[int]:
        """Latest indexed epoch, or None while nothing has been indexed."""
        rows = await self.db.execute_async(self.query)
        if not rows or rows[0].get("epoch") is None:
            return None
        return int(rows[0]["epoch"])
