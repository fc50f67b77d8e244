"""Startup lookups against the Vega data node REST API"""

import asyncio
import aiohttp
from typing import Any, Dict, List, Optional

from ....utils.errors import DataNodeConnectionError, NotFoundError
from ....utils.logger import setup_logger

logger = setup_logger(__name__)


class MarketDataHandler:
    """Handles market, market data and asset lookups"""

    def __init__(self, api_url: str, timeout: float = 10):
        self.api_url = api_url.rstrip('/')
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        endpoint = f"{self.api_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(endpoint, params=params) as response:
                    if response.status == 404:
                        raise NotFoundError(f"{endpoint} not found")
                    if response.status >= 400:
                        text = await response.text()
                        raise DataNodeConnectionError(f"HTTP {response.status} from {endpoint}: {text}")
                    return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DataNodeConnectionError(f"could not reach data node at {endpoint}: {e}") from e

    async def get_market(self, market_id: str) -> Dict[str, Any]:
        """Get market metadata"""
        data = await self._get(f"/api/v2/market/{market_id}")
        market = data.get('market')
        if not market:
            raise NotFoundError(f"market {market_id} not found")
        return market

    async def get_latest_market_data(self, market_id: str) -> Dict[str, Any]:
        """Get the latest book snapshot for a market"""
        data = await self._get(f"/api/v2/market/data/{market_id}/latest")
        market_data = data.get('marketData')
        if not market_data:
            raise NotFoundError(f"market data for {market_id} not found")
        return market_data

    async def list_assets(self) -> List[Dict[str, Any]]:
        """Get the full asset directory, following pagination"""
        assets = []
        params: Dict[str, str] = {}

        while True:
            data = await self._get("/api/v2/assets", params=params)
            connection = data.get('assets') or {}
            assets.extend(edge['node'] for edge in connection.get('edges', []) if edge.get('node'))

            page_info = connection.get('pageInfo') or {}
            if not page_info.get('hasNextPage'):
                break
            params = {'pagination.after': page_info['endCursor']}

        logger.info(f"Loaded {len(assets)} assets")
        return assets
