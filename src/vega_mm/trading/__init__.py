"""
Trading Package - Core trading system components
Exports the market making strategy loop.

File: __init__.py
"""

from .strategies import MarketMakingStrategy

__all__ = ['MarketMakingStrategy']
