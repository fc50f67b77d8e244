"""
Market Store Package - shared market state
Exports the thread-safe market state store, its data model and the stream
ingestion entry point.

File: __init__.py
"""

from .market_store import MarketStateStore
from .modules import (
    Market,
    Asset,
    Decimals,
    BookSnapshot,
    TradeRecord,
    PositionRecord,
    update_forever,
)

__all__ = [
    'MarketStateStore',
    'Market',
    'Asset',
    'Decimals',
    'BookSnapshot',
    'TradeRecord',
    'PositionRecord',
    'update_forever',
]
