import json
import os
import socket
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from src import __version__
from src.services.clickhouse import ClickHouse
from src.utils.logger import logger


class StatusReporter:
    """Writes liveness rows to the service status table."""

    COLUMNS = ["name", "status", "version", "pid", "hostname", "metadata", "last_update"]

    def __init__(self, db: ClickHouse, table: str = "service_status"):
        self.db = db
        self.table = table
        self.pid = os.getpid()
        self.hostname = socket.gethostname()

    async def report(self, name: str, status: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Record that ``name`` is alive. Failures are logged, never raised."""
        row = [
            name,
            status,
            __version__,
            self.pid,
            self.hostname,
            json.dumps(metadata or {}, default=str),
            datetime.now(timezone.utc).replace(tzinfo=None),
        ]
        try:
            await self.db.insert_rows_async(self.table, [row], column_names=self.COLUMNS)
        except Exception as e:
            logger.warning("Failed to report service status", service=name, status=status, error=str(e))
