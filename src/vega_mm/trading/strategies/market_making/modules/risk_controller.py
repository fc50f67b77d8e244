"""
Risk control module for market making strategy.
Resolves the per-side quoting situation from the position and the configured
limits, and draws the stochastic inventory disposal decision. Nothing here is
persisted between ticks.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .....utils.logger import setup_logger

logger = setup_logger(__name__)


class PositionSituation(Enum):
    NORMAL = "normal"            # quote the full ladder at the computed offset
    ON_THE_EDGE = "on_the_edge"  # a single order at the worst allowed offset
    HARD_STOP = "hard_stop"      # nothing on this side


class Side(Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class DisposalDecision:
    reduce_short: bool = False  # add a buy to work a short position back
    reduce_long: bool = False   # add a sell to work a long position back


def max_offset(mid_price: float, price_range_factor: float, safety_margin: float) -> float:
    """Largest offset from mid that stays inside the allowed price range"""
    return mid_price * (price_range_factor - safety_margin)


def resolve_situation(can_quote: bool, position: int, bound: int, scaling: float,
                      side: Side) -> PositionSituation:
    """
    Situation for one side.

    bound is q_lower for the sell side and q_upper for the buy side; the hard
    limit is bound scaled by scaling.
    """
    if can_quote:
        return PositionSituation.NORMAL

    hard_limit = bound * scaling
    if side is Side.SELL and position < hard_limit:
        return PositionSituation.HARD_STOP
    if side is Side.BUY and position > hard_limit:
        return PositionSituation.HARD_STOP
    return PositionSituation.ON_THE_EDGE


def draw_disposal(position: int, dispose_q_lower: int, dispose_q_upper: int,
                  probability: float, rng: Optional[Callable[[], float]] = None) -> DisposalDecision:
    """With the given probability, decide to nudge a stretched inventory towards neutral"""
    rng = rng or random.random

    reduce_short = False
    if position <= dispose_q_lower:
        reduce_short = rng() <= probability
        logger.info(f"Position too short, will try to buy: {reduce_short}")

    reduce_long = False
    if position >= dispose_q_upper:
        reduce_long = rng() <= probability
        logger.info(f"Position too long, will try to sell: {reduce_long}")

    return DisposalDecision(reduce_short, reduce_long)


class RiskController:
    """Per-tick risk gate built from the strategy limits"""

    def __init__(self, q_lower: int, q_upper: int, pos_lim_scaling: float,
                 price_range_factor: float, price_range_safety: float,
                 dispose_q_lower: int, dispose_q_upper: int, dispose_prob: float,
                 rng: Optional[Callable[[], float]] = None):
        self.q_lower = q_lower
        self.q_upper = q_upper
        self.pos_lim_scaling = pos_lim_scaling
        self.price_range_factor = price_range_factor
        self.price_range_safety = price_range_safety
        self.dispose_q_lower = dispose_q_lower
        self.dispose_q_upper = dispose_q_upper
        self.dispose_prob = dispose_prob
        self.rng = rng

    def worst_offset(self, mid_price: float) -> float:
        return max_offset(mid_price, self.price_range_factor, self.price_range_safety)

    def ask_situation(self, can_ask: bool, position: int) -> PositionSituation:
        situation = resolve_situation(can_ask, position, self.q_lower, self.pos_lim_scaling, Side.SELL)
        if situation is PositionSituation.HARD_STOP:
            logger.info(f"Position: {position} too negative, not submitting anything on ask side")
        return situation

    def bid_situation(self, can_bid: bool, position: int) -> PositionSituation:
        situation = resolve_situation(can_bid, position, self.q_upper, self.pos_lim_scaling, Side.BUY)
        if situation is PositionSituation.HARD_STOP:
            logger.info(f"Position: {position} too positive, not submitting anything on bid side")
        return situation

    def disposal(self, position: int) -> DisposalDecision:
        return draw_disposal(position, self.dispose_q_lower, self.dispose_q_upper,
                             self.dispose_prob, self.rng)
