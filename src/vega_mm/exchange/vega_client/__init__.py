"""
Vega Client Package - Exchange interface modules
Provides the client interface for a Vega data node (REST lookups and
websocket streams) and the wallet service used to submit transactions.

File: __init__.py
"""

from .vega_client import VegaClient

__all__ = ['VegaClient']
