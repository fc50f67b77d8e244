"""
Market Making Strategy Package - Liquidity provision trading
Implements inventory-aware market making with optimal offsets and
trade-driven parameter estimation.

File: __init__.py
"""

from .market_making import MarketMakingStrategy

__all__ = ['MarketMakingStrategy']
