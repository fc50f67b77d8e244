"""
Order batch construction for market making strategy.
Turns offsets, side situations and market decimals into one batch of market
instructions: cancel everything resting on the market, then post the new
ladder (plus an optional disposal order).
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .risk_controller import DisposalDecision, PositionSituation, Side
from .....data.market_store.modules.models import Decimals
from .....utils.errors import ConfigurationError
from .....utils.logger import setup_logger, log_order

logger = setup_logger(__name__)

SINGLE_ORDER_BUFFER = 0.1
LINEAR_RAMP_BUFFER = 0.1
QUADRATIC_RAMP_BUFFER = 0.05

SIZE_RAMPS = ('quadratic', 'linear')

_WIRE_SIDE = {Side.BUY: "SIDE_BUY", Side.SELL: "SIDE_SELL"}


@dataclass
class OrderSubmission:
    side: Side
    price: int  # market price units
    size: int   # market position units
    expires_at: int
    post_only: bool = True
    reduce_only: bool = False
    reference: str = ""

    def to_wire(self, market_id: str) -> Dict[str, Any]:
        return {
            "marketId": market_id,
            "price": str(self.price),
            "size": str(self.size),
            "side": _WIRE_SIDE[self.side],
            "timeInForce": "TIME_IN_FORCE_GTT",
            "type": "TYPE_LIMIT",
            "expiresAt": str(self.expires_at),
            "postOnly": self.post_only,
            "reduceOnly": self.reduce_only,
            "reference": self.reference,
        }


@dataclass
class OrderBatch:
    market_id: str
    cancel_all: bool = True
    submissions: List[OrderSubmission] = field(default_factory=list)

    def buys(self) -> List[OrderSubmission]:
        return [o for o in self.submissions if o.side is Side.BUY]

    def sells(self) -> List[OrderSubmission]:
        return [o for o in self.submissions if o.side is Side.SELL]

    def to_wire(self) -> Dict[str, Any]:
        cancellations = []
        if self.cancel_all:
            # an empty order id cancels every order we have on the market
            cancellations.append({"marketId": self.market_id, "orderId": ""})
        return {
            "cancellations": cancellations,
            "amendments": [],
            "submissions": [o.to_wire(self.market_id) for o in self.submissions],
        }


@dataclass
class QuoteContext:
    """Everything the builder needs from one tick, prices in real units"""
    mid_price: float
    best_bid: float           # combined reference bid
    best_ask: float           # combined reference ask
    bid_offset: float
    ask_offset: float
    worst_bid_offset: float
    worst_ask_offset: float
    live_best_bid: int = 0    # venue book, market price units
    live_best_ask: int = 0


def order_size_single(volume_of_notional: float, num_levels: int, price: float) -> float:
    """Size so that num_levels orders at price carry the target notional"""
    size = volume_of_notional / price / num_levels
    return size * (1.0 + SINGLE_ORDER_BUFFER)


def order_size_linear(i: int, volume_of_notional: float, num_levels: int, price: float) -> float:
    """Size of level i on a linear ramp; the triangle needs twice the rectangle height"""
    height = (1.0 + LINEAR_RAMP_BUFFER) * volume_of_notional / price / num_levels * 2.0
    frac = (i + 1) / num_levels
    return frac * height


def order_size_quadratic(i: int, volume_of_notional: float, num_levels: int, step: float,
                         offset: float, ref_price: float) -> float:
    """Size of level i on a ramp quadratic in its distance from the reference price"""
    delta = step * num_levels
    slope = step * 3.0 * volume_of_notional / ref_price / delta ** 3
    return (1.0 + QUADRATIC_RAMP_BUFFER) * slope * offset * offset


def tick_units(tick: float, d: Decimals) -> int:
    return max(1, int(round(tick * d.price_factor)))


def floor_to_tick(units: int, tick: int) -> int:
    return units - units % tick


def ceil_to_tick(units: int, tick: int) -> int:
    return -(-units // tick) * tick


def to_price_units(price: float, d: Decimals, tick: float) -> int:
    """Convert to market price units, truncated to the tick"""
    units = int(math.floor(d.to_market_price_precision(price) + 1e-9))
    return floor_to_tick(units, tick_units(tick, d))


def to_size_units(size: float, d: Decimals) -> int:
    return int(math.ceil(d.to_market_position_precision(size) - 1e-9))


class OrderManager:
    """Builds the per-tick batch of market instructions"""

    def __init__(self, market_id: str, decimals: Decimals, levels: int, step: float,
                 tick_size: float, volume_of_notional: float, gtt_length: float,
                 use_mid: bool = False, allow_negative_offset: bool = False,
                 size_ramp: str = 'quadratic'):
        if levels <= 0:
            raise ConfigurationError(f"levels must be positive, got {levels}")
        if step <= 0 or tick_size <= 0:
            raise ConfigurationError(f"step and tick size must be positive, got {step}, {tick_size}")
        if size_ramp not in SIZE_RAMPS:
            raise ConfigurationError(f"unknown size ramp {size_ramp!r}")

        self.market_id = market_id
        self.d = decimals
        self.levels = levels
        self.step = step
        self.tick = tick_size
        self.volume_of_notional = volume_of_notional
        self.gtt_length = gtt_length
        self.use_mid = use_mid
        self.allow_negative_offset = allow_negative_offset
        self.size_ramp = size_ramp

    def close_batch(self) -> OrderBatch:
        """Cancel everything, post nothing"""
        return OrderBatch(self.market_id)

    def build_batch(self, q: QuoteContext, bid_situation: PositionSituation,
                    ask_situation: PositionSituation, disposal: DisposalDecision,
                    current_t: int) -> OrderBatch:
        expires_at = current_t + int(self.gtt_length * 1_000_000_000)

        buy_ref = q.mid_price if self.use_mid else q.best_bid
        sell_ref = q.mid_price if self.use_mid else q.best_ask

        batch = OrderBatch(self.market_id)
        batch.submissions.extend(
            self._side_orders(Side.BUY, bid_situation, buy_ref, q.bid_offset,
                              q.worst_bid_offset, q, expires_at)
        )
        batch.submissions.extend(
            self._side_orders(Side.SELL, ask_situation, sell_ref, q.ask_offset,
                              q.worst_ask_offset, q, expires_at)
        )

        disposal_order = self._disposal_order(disposal, q, expires_at)
        if disposal_order is not None:
            batch.submissions.append(disposal_order)
        return batch

    def _side_orders(self, side: Side, situation: PositionSituation, ref_price: float,
                     offset: float, worst_offset: float, q: QuoteContext,
                     expires_at: int) -> List[OrderSubmission]:
        if situation is PositionSituation.HARD_STOP:
            return []

        # buys sit below the reference, sells above
        direction = -1.0 if side is Side.BUY else 1.0
        orders = []

        if situation is PositionSituation.ON_THE_EDGE:
            price = ref_price + direction * worst_offset
            size = order_size_single(self.volume_of_notional, 1, price)
            logger.info(f"Submitting worst {side.value} at offset: {worst_offset:.3f}, "
                        f"i.e. price level: {price:.3f}")
            orders.append(self._order(side, price, size, ref_price, q, expires_at))
            return orders

        if not self.allow_negative_offset and offset < 0:
            offset = 0.0
        pct = 100.0 * offset / q.mid_price if q.mid_price else 0.0
        logger.info(f"Submitting {side.value}s at offset: {offset:.3f} in % at offset: {pct:.3f}%")

        for i in range(self.levels):
            price = ref_price + direction * (offset + i * self.step)
            distance = (i + 1) * self.step
            if self.size_ramp == 'linear':
                size = order_size_linear(i, self.volume_of_notional, self.levels, price)
            else:
                size = order_size_quadratic(i, self.volume_of_notional, self.levels,
                                            self.step, distance, ref_price)
            orders.append(self._order(side, price, size, ref_price, q, expires_at))
        return orders

    def _order(self, side: Side, price: float, size: float, ref_price: float,
               q: QuoteContext, expires_at: int) -> OrderSubmission:
        price_units = self._cross_book_safe(side, to_price_units(price, self.d, self.tick), q)
        size_units = to_size_units(size, self.d)
        submitted = self.d.from_market_price_precision(price_units)

        logger.info(f"ref: {ref_price}, order: {side.value} {size:.4f} @ {submitted:.3f} "
                    f"(target {price:.3f}), at position and price decimals: {size_units} @ {price_units}")
        log_order(side.value, size, submitted, size_units, price_units, reference=ref_price)

        return OrderSubmission(side=side, price=price_units, size=size_units,
                               expires_at=expires_at)

    def _cross_book_safe(self, side: Side, price_units: int, q: QuoteContext) -> int:
        """Keep a passive order from crossing the live book, staying on the tick"""
        tick = tick_units(self.tick, self.d)
        if side is Side.BUY and q.live_best_ask > 0:
            limit = q.live_best_ask - tick
            if price_units > limit:
                return floor_to_tick(limit, tick)
        if side is Side.SELL and q.live_best_bid > 0:
            limit = q.live_best_bid + tick
            if price_units < limit:
                return ceil_to_tick(limit, tick)
        return price_units

    def _disposal_order(self, disposal: DisposalDecision, q: QuoteContext,
                        expires_at: int) -> Optional[OrderSubmission]:
        """One unit priced just inside the opposing best quote"""
        tick = tick_units(self.tick, self.d)

        if disposal.reduce_short:
            best_ask = q.live_best_ask or to_price_units(q.best_ask, self.d, self.tick)
            side, price_units = Side.BUY, best_ask - tick
            reason = "reduce short position"
        elif disposal.reduce_long:
            best_bid = q.live_best_bid or to_price_units(q.best_bid, self.d, self.tick)
            side, price_units = Side.SELL, best_bid + tick
            reason = "reduce long position"
        else:
            return None

        if side is Side.BUY:
            price_units = floor_to_tick(price_units, tick)
        else:
            price_units = ceil_to_tick(price_units, tick)
        size_units = 1
        price = price_units / self.d.price_factor
        size = size_units / self.d.position_factor
        logger.info(f"To {reason}: {side.value} {size:.4f} @ {price:.3f}, "
                    f"at position and price decimals: {size_units} @ {price_units}")
        log_order(side.value, size, price, size_units, price_units, reason=reason)

        return OrderSubmission(side=side, price=price_units, size=size_units,
                               expires_at=expires_at, post_only=False)
