"""
Vega market maker - inventory-aware quoting on a single Vega market.
"""

__version__ = "0.1.0"
