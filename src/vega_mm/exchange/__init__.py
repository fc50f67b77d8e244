"""
Exchange Package - Exchange connectivity modules
Provides the Vega client (data node and wallet service) and the external
reference venue pollers.

File: __init__.py
"""

from .vega_client import VegaClient
from .reference_feeds import ReferencePrice, BinancePoller, BybitPoller

__all__ = ['VegaClient', 'ReferencePrice', 'BinancePoller', 'BybitPoller']
