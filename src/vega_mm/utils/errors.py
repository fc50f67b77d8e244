"""
Error taxonomy for the market maker.

Startup failures (configuration, unreachable data node, unknown market) are
fatal. Everything else is contained: malformed stream data is skipped, stale
prices skip a single tick and rejected submissions are logged.
"""


class MarketMakerError(Exception):
    """Base class for all market maker errors"""
    pass


class ConfigurationError(MarketMakerError):
    """Invalid configuration, fatal at startup"""
    pass


class TransientDataError(MarketMakerError):
    """Malformed field in a streamed event; the event is skipped"""
    pass


class StaleDataError(MarketMakerError):
    """Reference price or book not usable yet; the current tick is skipped"""
    pass


class SubmissionError(MarketMakerError):
    """Transaction rejected by the wallet or transport failure"""
    pass


class NotFoundError(MarketMakerError):
    """Requested market or asset does not exist on the data node"""
    pass


class DataNodeConnectionError(MarketMakerError, ConnectionError):
    """Data node could not be reached during startup"""
    pass
