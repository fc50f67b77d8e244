"""
Reference Feeds Package - external venue price sources
Pollers for external venues, each writing the latest top of book into a
last-write-wins ReferencePrice slot.

File: __init__.py
"""

from .ref_price import ReferencePrice
from .pollers import VenuePoller, BinancePoller, BybitPoller, POLLERS

__all__ = ['ReferencePrice', 'VenuePoller', 'BinancePoller', 'BybitPoller', 'POLLERS']
