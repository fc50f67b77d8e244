"""Conservative combination of reference prices from several venues"""

from typing import Dict, Tuple

from .....utils.errors import ConfigurationError, StaleDataError
from .....utils.logger import setup_logger

logger = setup_logger(__name__)


def combine_reference_prices(quotes: Dict[str, Tuple[float, float]]) -> Tuple[float, float]:
    """
    Combine (bid, ask) quotes keyed by venue name.

    With several venues the widest quote wins: the smallest bid and the
    largest ask, so we never quote tighter than the most aggressive venue.
    Any non-positive price means that venue has not warmed up yet.
    """
    if not quotes:
        raise ConfigurationError("at least one reference venue must be enabled")

    for venue, (bid, ask) in quotes.items():
        if bid <= 0 or ask <= 0:
            raise StaleDataError(f"{venue} prices not positive yet: bid {bid}, ask {ask}")

    bid = min(bid for bid, _ in quotes.values())
    ask = max(ask for _, ask in quotes.values())
    logger.info(f"Reference prices to use from {', '.join(quotes)}: bid: {bid}, ask: {ask}")
    return bid, ask
