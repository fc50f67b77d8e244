"""
Data Package - market state ingestion and storage
Exports the market state store fed by the data node streams.

File: __init__.py
"""

from .market_store import MarketStateStore, update_forever

__all__ = ['MarketStateStore', 'update_forever']
