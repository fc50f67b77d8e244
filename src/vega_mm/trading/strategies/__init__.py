"""
Strategies Package - trading strategies

File: __init__.py
"""

from .market_making import MarketMakingStrategy

__all__ = ['MarketMakingStrategy']
