"""
Utils Package - Utility modules for the market maker
Provides configuration management, logging setup, the error taxonomy and
fallible parsing helpers for wire-sourced values.

File: __init__.py
"""

from .config import Config
from .logger import setup_logger, configure_logging, log_order, log_batch
from .errors import (
    MarketMakerError,
    ConfigurationError,
    TransientDataError,
    StaleDataError,
    SubmissionError,
    NotFoundError,
    DataNodeConnectionError,
)

__all__ = [
    'Config',
    'setup_logger',
    'configure_logging',
    'log_order',
    'log_batch',
    'MarketMakerError',
    'ConfigurationError',
    'TransientDataError',
    'StaleDataError',
    'SubmissionError',
    'NotFoundError',
    'DataNodeConnectionError',
]
