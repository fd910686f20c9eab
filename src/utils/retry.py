"""tenacity policies for the exporter's two network dependencies."""
import asyncio

from aiohttp import ClientError
from clickhouse_connect.driver.exceptions import OperationalError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

ATTEMPTS = 5


def _backoff(exceptions, max_wait: int):
    return retry(
        retry=retry_if_exception_type(exceptions),
        stop=stop_after_attempt(ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=1, max=max_wait),
        reraise=True
    )


def api_retry():
    """Beacon node requests: connection errors and timeouts, up to 10s between tries."""
    return _backoff((ClientError, asyncio.TimeoutError), max_wait=10)


def connect_retry():
    """Opening a ClickHouse client at startup, up to 30s between tries."""
    return _backoff(OperationalError, max_wait=30)
