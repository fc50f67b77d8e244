"""Vega client modules initialization"""

from .market_data import MarketDataHandler
from .wallet_manager import WalletManager
from .websocket_manager import WebSocketManager

__all__ = [
    'MarketDataHandler',
    'WalletManager',
    'WebSocketManager'
]
