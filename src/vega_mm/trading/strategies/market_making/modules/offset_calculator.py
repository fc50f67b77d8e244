"""
Optimal quote offsets.

Closed-form offsets of the inventory-constrained market making problem in its
ergodic (infinite horizon) form:

    buy(i)  = 1/kappa + (2i + 1) * sqrt(phi * e / (lambda * kappa)) / 2,  i in [q_lower, q_upper - 1]
    sell(i) = 1/kappa - (2i - 1) * sqrt(phi * e / (lambda * kappa)) / 2,  i in [q_lower + 1, q_upper]

q_lower/q_upper bound the inventory, kappa is the fill intensity, lambda the
arrival rate of market orders and phi the running inventory penalty.
"""

import math
from typing import NamedTuple, Tuple

import numpy as np

from .....utils.errors import ConfigurationError

UNBOUNDED = math.inf


class Offsets(NamedTuple):
    ask_offset: float
    can_ask: bool
    bid_offset: float
    can_bid: bool


def _check_bounds(q_lower: int, q_upper: int):
    if q_lower >= q_upper:
        raise ConfigurationError(f"we need q_lower < q_upper, got {q_lower} >= {q_upper}")


def calculate_offsets(q_lower: int, q_upper: int, kappa: float, lambd: float,
                      phi: float) -> Tuple[np.ndarray, np.ndarray]:
    """Buy and sell offset tables, each of length q_upper - q_lower"""
    _check_bounds(q_lower, q_upper)
    if kappa <= 0 or lambd <= 0:
        raise ConfigurationError(f"kappa and lambda must be positive, got {kappa}, {lambd}")

    half_width = math.sqrt(phi * math.e / lambd / kappa) / 2.0

    buy_levels = np.arange(q_lower, q_upper, dtype=float)
    sell_levels = np.arange(q_lower + 1, q_upper + 1, dtype=float)

    buy_deltas = 1.0 / kappa + (2.0 * buy_levels + 1.0) * half_width
    sell_deltas = 1.0 / kappa - (2.0 * sell_levels - 1.0) * half_width
    return buy_deltas, sell_deltas


def offsets_from_position(buy_deltas: np.ndarray, sell_deltas: np.ndarray,
                          q_lower: int, q_upper: int, position: int) -> Offsets:
    """Pick the ask and bid offsets for the current inventory, clamped to the bounds"""
    _check_bounds(q_lower, q_upper)

    position = max(q_lower, min(q_upper, position))
    idx = position - q_lower

    ask_offset = bid_offset = UNBOUNDED

    # at or below the lower bound we must not sell any more
    can_ask = idx > 0
    if can_ask:
        ask_offset = float(sell_deltas[idx - 1])

    # at or above the upper bound we must not buy any more
    can_bid = idx < q_upper - q_lower
    if can_bid:
        bid_offset = float(buy_deltas[idx])

    return Offsets(ask_offset, can_ask, bid_offset, can_bid)
