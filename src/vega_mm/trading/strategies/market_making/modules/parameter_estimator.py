"""
Market parameter estimation from the recent trade log.

Aggressive orders (and so trades) are assumed to arrive as a Poisson process
with rate lambda trades per minute, and the distance between a trade and the
mid price at trade time is assumed exponential with rate kappa.
"""

from enum import Enum
from typing import Sequence

import numpy as np

from .....data.market_store.modules.models import TradeRecord
from .....utils.logger import setup_logger
from .....utils.parsing import ONE_MINUTE_NS

logger = setup_logger(__name__)


def estimate_lambda(initial_lambd: float, trades: Sequence[TradeRecord]) -> float:
    """
    Mean number of trades per completed one-minute bucket.

    Walks the log backwards from the most recent trade and closes a bucket each
    time the gap back to the bucket start reaches one minute.
    """
    if len(trades) <= 1:
        return initial_lambd

    trades_per_minute = []
    bucket_start = trades[-1].timestamp
    in_bucket = 0
    for trade in reversed(trades[:-1]):
        in_bucket += 1
        if bucket_start - trade.timestamp >= ONE_MINUTE_NS:
            trades_per_minute.append(in_bucket)
            bucket_start = trade.timestamp
            in_bucket = 0

    if not trades_per_minute:
        return initial_lambd

    return float(np.mean(trades_per_minute))


def _qualifying(current_t: int, estimation_interval: int, trades: Sequence[TradeRecord]):
    """Most recent trades no older than the interval, newest first"""
    for trade in reversed(trades):
        if current_t - trade.timestamp > estimation_interval:
            break
        yield trade


def estimate_lambda2(initial_lambd: float, current_t: int, estimation_interval: int,
                     trades: Sequence[TradeRecord]) -> float:
    """
    Trades per minute over the span covered by the qualifying trades.

    The span is the age of the oldest qualifying trade rather than the whole
    interval, so a sparsely populated window leans on the prior.
    """
    count = 0
    span = 0
    for trade in _qualifying(current_t, estimation_interval, trades):
        count += 1
        span = current_t - trade.timestamp

    if count == 0 or span <= 0:
        return initial_lambd

    minutes = span / ONE_MINUTE_NS
    return count / minutes


def estimate_kappa(initial_kappa: float, weight: float, current_t: int, estimation_interval: int,
                   trades: Sequence[TradeRecord], price_factor: float, blend: bool = True) -> float:
    """
    Maximum likelihood estimate of kappa: trade count over the summed distance
    of trade prices from the mid at trade time, in real price units.

    With blend the estimate is mixed with the prior as
    weight * estimate + (1 - weight) * prior.
    """
    window = list(_qualifying(current_t, estimation_interval, trades))
    if not window:
        return initial_kappa

    prices = np.array([t.price for t in window])
    mids = np.array([t.mid for t in window])
    total_distance = float(np.sum(np.abs(prices - mids)) / price_factor)
    if total_distance <= 0:
        return initial_kappa

    kappa_mle = len(window) / total_distance
    if not blend:
        return kappa_mle
    return weight * kappa_mle + (1.0 - weight) * initial_kappa


class TradeSide(Enum):
    BUY = "buy"
    SELL = "sell"
    UNSURE = "unsure"


def classify_trade(trade: TradeRecord) -> TradeSide:
    """Guess the aggressor side from where the trade printed against the book"""
    if trade.best_bid <= 0 or trade.best_ask <= 0:
        return TradeSide.UNSURE
    if trade.price >= trade.best_ask and trade.price >= trade.best_bid:
        return TradeSide.BUY
    if trade.price <= trade.best_ask and trade.price <= trade.best_bid:
        return TradeSide.SELL
    return TradeSide.UNSURE
