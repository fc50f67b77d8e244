"""
Market State Store - single consistent view of one Vega market
Holds the market and asset metadata, the current book snapshot with a bounded
history of past snapshots, the recent trade log and positions per party.
Three streaming tasks write into it and the strategy loop reads from it; all
access is serialized through one coarse lock.

File: market_store.py
"""

import bisect
import dataclasses
import threading
from typing import Any, Dict, Iterable, List, Optional

from .modules.book_history import BookHistory
from .modules.models import (
    Asset,
    BookSnapshot,
    Market,
    PositionRecord,
    TradeRecord,
    BOOK_HISTORY_CAPACITY,
    TRADES_CAPACITY,
)
from ...utils.errors import NotFoundError, TransientDataError
from ...utils.logger import setup_logger
from ...utils.parsing import nanos_to_datetime, parse_float, parse_int, require_int

logger = setup_logger(__name__)


class MarketStateStore:
    """Thread-safe store of market state for a single market"""

    def __init__(self, market: Market, book: BookSnapshot, assets: Dict[str, Asset],
                 history_capacity: int = BOOK_HISTORY_CAPACITY,
                 trades_capacity: int = TRADES_CAPACITY):
        self._lock = threading.Lock()
        self._market = market
        self._book = book
        self._history = BookHistory(history_capacity)
        self._history.put(book)
        self._assets = dict(assets)
        self._positions: Dict[str, PositionRecord] = {}
        self._trades: List[TradeRecord] = []
        self._trades_capacity = trades_capacity

    @classmethod
    async def initialize(cls, client, market_id: str) -> 'MarketStateStore':
        """
        Fetch the market, its latest book snapshot and the asset directory.

        Raises DataNodeConnectionError or NotFoundError; these are the only
        failures allowed to abort startup.
        """
        market = Market.from_json(await client.get_market(market_id))
        logger.info(f"Market found: {market.name} ({market.id}), "
                    f"price dp {market.decimal_places}, position dp {market.position_decimal_places}")

        book = BookSnapshot.from_json(await client.get_latest_market_data(market_id))
        logger.info(f"Market data found: best bid {book.best_bid}, best ask {book.best_ask}")

        assets = {}
        for raw in await client.list_assets():
            try:
                asset = Asset.from_json(raw)
            except (KeyError, TransientDataError) as e:
                logger.warning(f"Skipping malformed asset {raw.get('id')}: {e}")
                continue
            assets[asset.id] = asset

        if market.settlement_asset not in assets:
            raise NotFoundError(f"settlement asset {market.settlement_asset} not found")

        return cls(market, book, assets)

    # Writers

    def apply_book_update(self, data: Dict[str, Any]):
        """Replace the current snapshot and patch trades recorded at the same timestamp"""
        try:
            snapshot = BookSnapshot.from_json(data)
        except TransientDataError as e:
            logger.warning(f"Dropping market data update: {e}")
            return

        with self._lock:
            self._patch_trades(snapshot)
            self._history.put(snapshot)
            self._book = snapshot

    def _patch_trades(self, snapshot: BookSnapshot):
        # the book and trade streams race; a trade may arrive before its book
        bid = snapshot.bid()
        ask = snapshot.ask()
        for trade in reversed(self._trades):
            if trade.timestamp < snapshot.timestamp:
                break
            if trade.timestamp != snapshot.timestamp:
                continue
            if ask is not None:
                trade.best_ask = ask
            if bid is not None:
                trade.best_bid = bid

    def apply_position_update(self, positions: Iterable[Dict[str, Any]]):
        """Upsert positions by party"""
        for raw in positions:
            try:
                record = PositionRecord.from_json(raw)
            except (KeyError, TransientDataError) as e:
                logger.warning(f"Dropping position update: {e}")
                continue
            with self._lock:
                self._positions[record.party_id] = record

    def apply_trade(self, data: Dict[str, Any]):
        """Record a trade along with the book state active when it happened"""
        if not isinstance(data, dict):
            logger.warning(f"Dropping trade: unexpected entry {data!r}")
            return
        try:
            timestamp = require_int(data.get('timestamp'), 'timestamp')
        except TransientDataError as e:
            logger.warning(f"Dropping trade: {e}")
            return

        price = parse_float(data.get('price'))
        if price is None:
            logger.warning(f"Dropping trade at {timestamp}: non-numeric price {data.get('price')!r}")
            return
        size = parse_int(data.get('size')) or 0

        with self._lock:
            snapshot = self._history.get(timestamp)
            best_bid = best_ask = 0.0
            if snapshot is not None:
                best_bid = snapshot.bid() or 0.0
                best_ask = snapshot.ask() or 0.0

            record = TradeRecord(timestamp=timestamp, price=price, size=size,
                                 best_bid=best_bid, best_ask=best_ask)
            if self._trades and timestamp < self._trades[-1].timestamp:
                bisect.insort(self._trades, record, key=lambda t: t.timestamp)
            else:
                self._trades.append(record)

            overflow = len(self._trades) - self._trades_capacity
            if overflow > 0:
                del self._trades[:overflow]

        logger.debug(f"TRADE at {nanos_to_datetime(timestamp)}, price: {price}, size: {size}, "
                     f"aggressor: {data.get('aggressor')}, best_bid: {best_bid}, best_ask: {best_ask}")

    def prune_trades_older_than(self, threshold: int):
        """Drop every trade with a timestamp below threshold"""
        with self._lock:
            before = len(self._trades)
            self._trades = [t for t in self._trades if t.timestamp >= threshold]
            after = len(self._trades)
        logger.info(f"Pruned trades older than {nanos_to_datetime(threshold)}; "
                    f"stored before pruning {before}, after {after}")

    # Readers

    def get_market(self) -> Market:
        with self._lock:
            return self._market

    def get_book(self) -> BookSnapshot:
        with self._lock:
            return self._book

    def get_asset(self, asset_id: str) -> Asset:
        with self._lock:
            if asset_id not in self._assets:
                raise NotFoundError(f"asset {asset_id} not found")
            return self._assets[asset_id]

    def get_assets(self) -> List[Asset]:
        with self._lock:
            return list(self._assets.values())

    def get_position(self, party_id: str) -> Optional[PositionRecord]:
        with self._lock:
            return self._positions.get(party_id)

    def get_open_volume(self, party_id: str) -> int:
        record = self.get_position(party_id)
        return record.open_volume if record is not None else 0

    def get_trades(self) -> List[TradeRecord]:
        with self._lock:
            return [dataclasses.replace(t) for t in self._trades]

    def book_history_size(self) -> int:
        with self._lock:
            return len(self._history)
