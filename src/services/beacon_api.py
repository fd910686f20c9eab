import aiohttp
from typing import Optional, Dict, Any
from src.utils.logger import logger
from src.utils.retry import api_retry

class BeaconAPI:
    """Minimal beacon node client, used to read chain timing constants."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Initialize the HTTP session."""
        if not self.session:
            timeout = aiohttp.ClientTimeout(total=30)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self):
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    @api_retry()
    async def get(self, endpoint: str) -> Dict[str, Any]:
        """GET an endpoint, retrying connection errors and timeouts."""
        if not self.session:
            await self.start()

        url = f"{self.base_url}{endpoint}"
        logger.debug("Beacon API request", url=url)
        async with self.session.get(url) as response:
            response.raise_for_status()
            return await response.json()

    async def get_spec(self) -> Dict[str, str]:
        """Get chain specification parameters."""
        response = await self.get("/eth/v1/config/spec")
        return response.get("data", {})
