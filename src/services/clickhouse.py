import asyncio
import clickhouse_connect
from clickhouse_connect.driver.client import Client
from typing import List, Dict, Any, Optional, Sequence
from src.config import ClickHouseSettings
from src.core.errors import StoreConnectionError
from src.utils.logger import logger
from src.utils.retry import connect_retry

@connect_retry()
def open_client(settings: ClickHouseSettings) -> Client:
    """get_client queries the server version, so an unreachable server fails here."""
    return clickhouse_connect.get_client(
        host=settings.host,
        port=settings.port,
        username=settings.user,
        password=settings.password,
        database=settings.database,
        secure=settings.secure,
        verify=settings.verify
    )

class ClickHouse:
    """ClickHouse client owned by a single loop or command."""

    # Wait for ALTER ... DELETE mutations so a reset is visible before recomputation
    MUTATION_SETTINGS = {"mutations_sync": 2}

    def __init__(self, settings: ClickHouseSettings, client: Optional[Client] = None):
        self.settings = settings
        self.client = client

    def connect(self) -> "ClickHouse":
        """Open the connection. Raises StoreConnectionError when ClickHouse is unreachable."""
        if self.client is not None:
            return self

        target = f"{self.settings.host}:{self.settings.port}/{self.settings.database}"
        try:
            self.client = open_client(self.settings)
        except Exception as e:
            logger.error("ClickHouse unreachable", target=target, error=str(e))
            raise StoreConnectionError(f"could not connect to ClickHouse at {target}: {e}") from e

        logger.info("Connected to ClickHouse", target=target, secure=self.settings.secure)
        return self

    def close(self):
        """Close the underlying client."""
        if self.client is not None:
            self.client.close()
            self.client = None

    def execute(self, query: str, params: Optional[Dict] = None) -> List[Dict]:
        """Execute a query and return results as list of dictionaries."""
        try:
            result = self.client.query(query, parameters=params)

            if result.result_rows:
                columns = result.column_names
                return [dict(zip(columns, row)) for row in result.result_rows]
            return []

        except Exception as e:
            logger.error("ClickHouse query failed", query=query, error=str(e))
            raise

    def command(self, query: str, params: Optional[Dict] = None, settings: Optional[Dict] = None):
        """Run a statement that returns no rows (DDL, INSERT ... SELECT, mutations)."""
        try:
            return self.client.command(query, parameters=params, settings=settings)
        except Exception as e:
            logger.error("ClickHouse command failed", query=query, error=str(e))
            raise

    def insert_rows(self, table: str, rows: Sequence[Sequence[Any]], column_names: List[str]):
        """Insert row-oriented data."""
        if not rows:
            return
        try:
            self.client.insert(table, rows, column_names=column_names)
        except Exception as e:
            logger.error("ClickHouse insert failed", table=table, rows=len(rows), error=str(e))
            raise

    async def execute_async(self, query: str, params: Optional[Dict] = None) -> List[Dict]:
        """Run execute() in the default executor so other loops keep running."""
        return await asyncio.get_running_loop().run_in_executor(None, self.execute, query, params)

    async def command_async(self, query: str, params: Optional[Dict] = None, settings: Optional[Dict] = None):
        return await asyncio.get_running_loop().run_in_executor(None, self.command, query, params, settings)

    async def insert_rows_async(self, table: str, rows: Sequence[Sequence[Any]], column_names: List[str]):
        return await asyncio.get_running_loop().run_in_executor(None, self.insert_rows, table, rows, column_names)
