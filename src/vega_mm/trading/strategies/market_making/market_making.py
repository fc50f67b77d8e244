"""
Market Making Strategy - inventory-aware quoting loop
Every tick reads the market state, combines reference prices, re-estimates
lambda and kappa from recent trades, computes the optimal offsets for the
current inventory, resolves the per-side situation and submits one batch of
market instructions (or only logs it in dry run).

File: market_making.py
"""

import asyncio
import time
import traceback
from collections import Counter
from typing import Callable, Dict, Optional

from .modules.offset_calculator import calculate_offsets, offsets_from_position
from .modules.order_manager import OrderBatch, OrderManager, QuoteContext
from .modules.parameter_estimator import classify_trade, estimate_kappa, estimate_lambda2
from .modules.reference_combiner import combine_reference_prices
from .modules.risk_controller import RiskController
from ....data.market_store.modules.models import Decimals
from ....utils.errors import ConfigurationError, StaleDataError, SubmissionError
from ....utils.logger import setup_logger, log_batch
from ....utils.parsing import NANOS_PER_SECOND, now_ns

logger = setup_logger(__name__)

VEGA_VENUE = 'vega'


class MarketMakingStrategy:
    """Fixed-interval market making loop for a single market"""

    def __init__(self, params: Dict, store, client, market_id: str, party_id: str,
                 ref_prices: Optional[Dict] = None, use_vega_bidask: bool = True,
                 clock: Callable[[], int] = now_ns, rng: Optional[Callable[[], float]] = None):
        self.params = dict(params)
        self.store = store
        self.client = client
        self.market_id = market_id
        self.party_id = party_id
        self.ref_prices = dict(ref_prices or {})
        self.use_vega_bidask = use_vega_bidask
        self.clock = clock
        self.running = False

        if self.params['q_lower'] >= self.params['q_upper']:
            raise ConfigurationError("we need q_lower < q_upper")
        if not self.use_vega_bidask and not self.ref_prices:
            raise ConfigurationError("at least one reference venue must be enabled")

        self.risk_controller = RiskController(
            q_lower=self.params['q_lower'],
            q_upper=self.params['q_upper'],
            pos_lim_scaling=self.params['pos_lim_scaling'],
            price_range_factor=self.params['price_range_factor'],
            price_range_safety=self.params['price_range_safety'],
            dispose_q_lower=self.params['dispose_q_lower'],
            dispose_q_upper=self.params['dispose_q_upper'],
            dispose_prob=self.params['dispose_prob'],
            rng=rng,
        )

    @property
    def dryrun(self) -> bool:
        return bool(self.params.get('dryrun', True))

    def decimals(self) -> Decimals:
        market = self.store.get_market()
        return Decimals(market, self.store.get_asset(market.settlement_asset))

    def order_manager(self, d: Decimals) -> OrderManager:
        p = self.params
        return OrderManager(
            market_id=self.market_id,
            decimals=d,
            levels=p['levels'],
            step=p['step'],
            tick_size=p['tick_size'],
            volume_of_notional=p['volume_of_notional'],
            gtt_length=p['gtt_length'],
            use_mid=p['use_mid'],
            allow_negative_offset=p['allow_negative_offset'],
            size_ramp=p.get('size_ramp', 'quadratic'),
        )

    async def start(self):
        """Cancel anything resting, then tick forever at the submission rate"""
        rate = float(self.params['submission_rate'])
        logger.info(f"Starting with submission rate of {rate} seconds")

        d = self.decimals()
        logger.info(f"Market decimals: {d}")

        logger.info("Closing all orders")
        await self.submit(self.order_manager(d).close_batch())

        self.running = True
        while self.running:
            started = time.monotonic()
            await self.run_tick()
            # ticks never overlap; a slow tick delays the next one
            await asyncio.sleep(max(0.0, rate - (time.monotonic() - started)))

    def stop(self):
        self.running = False

    async def run_tick(self) -> Optional[OrderBatch]:
        """Run one decision; returns the batch built, None when the tick was skipped"""
        try:
            return await self._run_tick()
        except StaleDataError as e:
            logger.info(f"Skipping tick: {e}")
        except Exception as e:
            logger.error(f"Error in strategy tick: {e}")
            logger.error(traceback.format_exc())
        return None

    def reference_quotes(self, d: Decimals) -> Dict:
        quotes = {}
        if self.use_vega_bidask:
            book = self.store.get_book()
            bid, ask = book.bid() or 0.0, book.ask() or 0.0
            if bid <= 0 or ask <= 0:
                raise StaleDataError("at least one vega price is not positive, prices not updated yet")
            logger.info(f"New Vega reference prices: bestBid({bid}), bestAsk({ask}), markPrice({book.mark_price})")
            quotes[VEGA_VENUE] = (d.from_market_price_precision(bid), d.from_market_price_precision(ask))

        for venue, ref_price in self.ref_prices.items():
            bid, ask = ref_price.get()
            logger.info(f"New {venue} reference prices: bestBid({bid}), bestAsk({ask})")
            quotes[venue] = (bid, ask)
        return quotes

    def estimate_parameters(self, d: Decimals):
        """Prune the trade log and re-estimate lambda and kappa from it"""
        p = self.params
        lambd, kappa = p['lambd'], p['kappa']
        if not self.store.get_trades():
            return lambd, kappa

        current_t = self.clock()
        window = int(p['estimation_window'] * NANOS_PER_SECOND)
        self.store.prune_trades_older_than(current_t - window)
        trades = self.store.get_trades()

        sides = Counter(classify_trade(t).value for t in trades)
        logger.info(f"Trades in estimation window: {len(trades)} {dict(sides)}")

        lambd = estimate_lambda2(lambd, current_t, window, trades)
        kappa = estimate_kappa(kappa, p['kappa_weight'], current_t, window, trades,
                               d.price_factor, blend=p.get('kappa_blend', True))
        logger.info(f"Lambda estimate: {lambd}, Kappa estimate: {kappa}")
        return lambd, kappa

    async def _run_tick(self) -> OrderBatch:
        p = self.params
        market = self.store.get_market()
        logger.info(f"Updating quotes for {market.name}")
        d = self.decimals()

        used_bid, used_ask = combine_reference_prices(self.reference_quotes(d))
        book = self.store.get_book()
        live_bid = int(book.bid() or 0)
        live_ask = int(book.ask() or 0)

        position = self.store.get_open_volume(self.party_id)
        logger.info(f"Position size: {position}")

        lambd, kappa = self.estimate_parameters(d)

        buy_deltas, sell_deltas = calculate_offsets(p['q_lower'], p['q_upper'], kappa, lambd, p['phi'])
        offsets = offsets_from_position(buy_deltas, sell_deltas, p['q_lower'], p['q_upper'], position)

        mid_price = (used_bid + used_ask) / 2.0
        worst_offset = self.risk_controller.worst_offset(mid_price)
        bid_offset = min(offsets.bid_offset, worst_offset)
        ask_offset = min(offsets.ask_offset, worst_offset)
        logger.info(f"Offsets: bid {bid_offset:.4f} (allowed {offsets.can_bid}), "
                    f"ask {ask_offset:.4f} (allowed {offsets.can_ask}), worst {worst_offset:.4f}")

        bid_situation = self.risk_controller.bid_situation(offsets.can_bid, position)
        ask_situation = self.risk_controller.ask_situation(offsets.can_ask, position)
        logger.info(f"Side situations: bid {bid_situation.value}, ask {ask_situation.value}")
        disposal = self.risk_controller.disposal(position)

        quote = QuoteContext(
            mid_price=mid_price,
            best_bid=used_bid,
            best_ask=used_ask,
            bid_offset=bid_offset,
            ask_offset=ask_offset,
            worst_bid_offset=worst_offset,
            worst_ask_offset=worst_offset,
            live_best_bid=live_bid,
            live_best_ask=live_ask,
        )
        batch = self.order_manager(d).build_batch(quote, bid_situation, ask_situation,
                                                  disposal, self.clock())
        await self.submit(batch)
        return batch

    async def submit(self, batch: OrderBatch):
        """Send a batch unless in dry run; failures are logged and not retried"""
        log_batch(batch.market_id, 1 if batch.cancel_all else 0, len(batch.submissions), self.dryrun)

        if self.dryrun:
            logger.info(f"Dryrun mode, no transaction submitted: {batch.to_wire()}")
            return

        try:
            result = await self.client.send_batch(batch.to_wire())
            logger.info(f"Batch result: {result}")
        except SubmissionError as e:
            logger.error(f"Batch transaction error: {e}")
