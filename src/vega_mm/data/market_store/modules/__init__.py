"""
Market Store Modules

Modules:
- models: market, asset, decimals, book snapshot, trade and position records
- book_history: bounded LRU history of book snapshots
- stream_updater: long-lived stream ingestion tasks
"""

from .models import (
    Market,
    Asset,
    Decimals,
    BookSnapshot,
    TradeRecord,
    PositionRecord,
    BOOK_HISTORY_CAPACITY,
    TRADES_CAPACITY,
)
from .book_history import BookHistory
from .stream_updater import update_forever

__all__ = [
    'Market',
    'Asset',
    'Decimals',
    'BookSnapshot',
    'TradeRecord',
    'PositionRecord',
    'BOOK_HISTORY_CAPACITY',
    'TRADES_CAPACITY',
    'BookHistory',
    'update_forever',
]
