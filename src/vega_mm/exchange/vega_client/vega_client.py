"""Vega client implementation - Main coordinator"""

from typing import Any, AsyncIterator, Dict, List, Optional

from .modules.market_data import MarketDataHandler
from .modules.wallet_manager import WalletManager
from .modules.websocket_manager import WebSocketManager, ws_url_from_http

from ...utils.errors import SubmissionError
from ...utils.logger import setup_logger

logger = setup_logger(__name__)


class VegaClient:
    """Vega data node and wallet client - Main coordinator"""

    def __init__(self, data_node_url: str, wallet_url: str, wallet_token: Optional[str],
                 public_key: Optional[str], ws_url: Optional[str] = None, timeout: float = 10):
        self.public_key = public_key

        # Initialize managers
        self.market_data = MarketDataHandler(data_node_url, timeout)
        self.websocket_manager = WebSocketManager(ws_url or ws_url_from_http(data_node_url))
        self.wallet_manager = None
        if wallet_token and public_key:
            self.wallet_manager = WalletManager(wallet_url, wallet_token, public_key, timeout)

        logger.info(f"VegaClient initialized for data node {data_node_url}")

    # Startup lookups (delegated to MarketDataHandler)
    async def get_market(self, market_id: str) -> Dict[str, Any]:
        return await self.market_data.get_market(market_id)

    async def get_latest_market_data(self, market_id: str) -> Dict[str, Any]:
        return await self.market_data.get_latest_market_data(market_id)

    async def list_assets(self) -> List[Dict[str, Any]]:
        return await self.market_data.list_assets()

    # Streams (delegated to WebSocketManager)
    def observe_market_data(self, market_id: str) -> AsyncIterator[Dict[str, Any]]:
        return self.websocket_manager.subscribe_market_data(market_id)

    def observe_positions(self, market_id: str, party_id: str) -> AsyncIterator[Dict[str, Any]]:
        return self.websocket_manager.subscribe_positions(market_id, party_id)

    def observe_trades(self, market_id: str) -> AsyncIterator[Dict[str, Any]]:
        return self.websocket_manager.subscribe_trades(market_id)

    # Transactions (delegated to WalletManager)
    async def send_batch(self, batch: Dict[str, Any]) -> Dict[str, Any]:
        if self.wallet_manager is None:
            raise SubmissionError("no wallet configured, cannot submit transactions")
        return await self.wallet_manager.send_batch(batch)
