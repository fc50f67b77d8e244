import random
import unittest

from vega_mm.data.market_store import MarketStateStore, Market, Asset, BookSnapshot
from vega_mm.data.market_store.modules.book_history import BookHistory
from vega_mm.utils.errors import ConfigurationError, NotFoundError


def make_store(history_capacity=1000, trades_capacity=10000):
    market = Market(id='m1', name='BTC/USDT', decimal_places=2,
                    position_decimal_places=0, settlement_asset='usdt')
    asset = Asset(id='usdt', symbol='USDT', decimals=6)
    book = BookSnapshot(timestamp=1, best_bid='10000', best_ask='10100', mark_price='10050')
    return MarketStateStore(market, book, {'usdt': asset},
                            history_capacity=history_capacity,
                            trades_capacity=trades_capacity)


def market_data(ts, bid='10000', ask='10100'):
    return {'marketId': 'm1', 'timestamp': str(ts), 'bestBidPrice': bid,
            'bestOfferPrice': ask, 'markPrice': '10050'}


def trade(ts, price='10050', size='3'):
    return {'id': f't{ts}', 'marketId': 'm1', 'timestamp': str(ts), 'price': price,
            'size': size, 'aggressor': 'SIDE_BUY'}


class FakeClient:
    """Data node lookups served from canned payloads"""

    def __init__(self, market=None, data=None, assets=None):
        self.market = market if market is not None else {
            'id': 'm1',
            'decimalPlaces': '2',
            'positionDecimalPlaces': '0',
            'tradableInstrument': {'instrument': {
                'name': 'BTC/USDT Perp',
                'perpetual': {'settlementAsset': 'usdt'},
            }},
        }
        self.data = data if data is not None else market_data(5)
        self.assets = assets if assets is not None else [
            {'id': 'usdt', 'details': {'symbol': 'USDT', 'decimals': '6'}},
            {'id': 'broken', 'details': {'symbol': 'BRK', 'decimals': 'x'}},
        ]

    async def get_market(self, market_id):
        return self.market

    async def get_latest_market_data(self, market_id):
        return self.data

    async def list_assets(self):
        return self.assets


class TestMarketStateStoreInitialize(unittest.IsolatedAsyncioTestCase):
    """Test startup fetch of market state"""

    async def test_initialize(self):
        store = await MarketStateStore.initialize(FakeClient(), 'm1')

        market = store.get_market()
        self.assertEqual(market.name, 'BTC/USDT Perp')
        self.assertEqual(market.decimal_places, 2)
        self.assertEqual(market.settlement_asset, 'usdt')
        self.assertEqual(store.get_book().timestamp, 5)
        self.assertEqual(store.get_asset('usdt').decimals, 6)

        # malformed asset entries are skipped
        self.assertEqual(len(store.get_assets()), 1)

    async def test_missing_settlement_asset(self):
        client = FakeClient(assets=[{'id': 'eth', 'details': {'symbol': 'ETH', 'decimals': '18'}}])
        with self.assertRaises(NotFoundError):
            await MarketStateStore.initialize(client, 'm1')

    async def test_spot_market_rejected(self):
        client = FakeClient(market={
            'id': 'm1',
            'decimalPlaces': '2',
            'positionDecimalPlaces': '0',
            'tradableInstrument': {'instrument': {'name': 'BTC/USDT', 'spot': {'baseAsset': 'btc'}}},
        })
        with self.assertRaises(ConfigurationError):
            await MarketStateStore.initialize(client, 'm1')


class TestMarketStateStore(unittest.TestCase):
    """Test store updates and reads"""

    def setUp(self):
        self.store = make_store()

    def test_book_update(self):
        self.store.apply_book_update(market_data(10, bid='9900', ask='10200'))

        book = self.store.get_book()
        self.assertEqual(book.timestamp, 10)
        self.assertEqual(book.bid(), 9900.0)
        self.assertEqual(book.ask(), 10200.0)
        self.assertEqual(self.store.book_history_size(), 2)

    def test_malformed_book_update_dropped(self):
        self.store.apply_book_update({'timestamp': 'soon', 'bestBidPrice': '1'})
        self.assertEqual(self.store.get_book().timestamp, 1)

    def test_trade_takes_book_at_its_timestamp(self):
        self.store.apply_book_update(market_data(20, bid='9950', ask='10050'))
        self.store.apply_trade(trade(20))

        trades = self.store.get_trades()
        self.assertEqual(len(trades), 1)
        self.assertEqual(trades[0].best_bid, 9950.0)
        self.assertEqual(trades[0].best_ask, 10050.0)
        self.assertEqual(trades[0].size, 3)

    def test_trade_before_its_book_is_patched(self):
        self.store.apply_trade(trade(30))
        self.assertEqual(self.store.get_trades()[0].best_bid, 0.0)

        self.store.apply_book_update(market_data(30, bid='9800', ask='9900'))

        patched = self.store.get_trades()[0]
        self.assertEqual(patched.best_bid, 9800.0)
        self.assertEqual(patched.best_ask, 9900.0)

    def test_non_numeric_trade_price_dropped(self):
        self.store.apply_trade(trade(40, price='abc'))
        self.store.apply_trade(trade(41))

        trades = self.store.get_trades()
        self.assertEqual(len(trades), 1)
        self.assertEqual(trades[0].timestamp, 41)

    def test_trades_kept_in_timestamp_order(self):
        for ts in (10, 30, 20, 5):
            self.store.apply_trade(trade(ts))

        timestamps = [t.timestamp for t in self.store.get_trades()]
        self.assertEqual(timestamps, [5, 10, 20, 30])

    def test_trade_log_capacity(self):
        store = make_store(trades_capacity=5)
        for ts in range(1, 11):
            store.apply_trade(trade(ts))

        timestamps = [t.timestamp for t in store.get_trades()]
        self.assertEqual(timestamps, [6, 7, 8, 9, 10])

    def test_get_trades_returns_copies(self):
        self.store.apply_trade(trade(50))
        self.store.get_trades()[0].best_bid = 123.0
        self.assertEqual(self.store.get_trades()[0].best_bid, 0.0)

    def test_prune_trades(self):
        rng = random.Random(7)
        for _ in range(200):
            self.store.apply_trade(trade(rng.randint(0, 1000)))

        for threshold in (-5, 0, 1, 250, 500, 999, 1000, 2000):
            self.store.prune_trades_older_than(threshold)
            for t in self.store.get_trades():
                self.assertGreaterEqual(t.timestamp, threshold)

        self.assertEqual(self.store.get_trades(), [])

    def test_positions(self):
        self.assertEqual(self.store.get_open_volume('party'), 0)
        self.assertIsNone(self.store.get_position('party'))

        self.store.apply_position_update([
            {'partyId': 'party', 'marketId': 'm1', 'openVolume': '2'},
            {'partyId': 'other', 'marketId': 'm1', 'openVolume': '-4'},
        ])
        self.assertEqual(self.store.get_open_volume('party'), 2)
        self.assertEqual(self.store.get_open_volume('other'), -4)

        self.store.apply_position_update([{'partyId': 'party', 'marketId': 'm1', 'openVolume': '-1'}])
        self.assertEqual(self.store.get_open_volume('party'), -1)

    def test_malformed_position_dropped(self):
        self.store.apply_position_update([
            {'partyId': 'party', 'openVolume': 'lots'},
            {'openVolume': '1'},
        ])
        self.assertIsNone(self.store.get_position('party'))

    def test_non_object_entries_dropped(self):
        self.store.apply_book_update(None)
        self.store.apply_trade(None)
        self.store.apply_trade(['60', '10050'])
        self.store.apply_trade(trade(61))
        self.store.apply_position_update([None, 'party',
                                          {'partyId': 'party', 'marketId': 'm1', 'openVolume': '5'}])

        self.assertEqual(self.store.get_book().timestamp, 1)
        self.assertEqual([t.timestamp for t in self.store.get_trades()], [61])
        self.assertEqual(self.store.get_open_volume('party'), 5)

    def test_unknown_asset(self):
        with self.assertRaises(NotFoundError):
            self.store.get_asset('nope')


class TestBookHistory(unittest.TestCase):
    """Test bounded snapshot history"""

    def test_evicts_least_recently_used(self):
        history = BookHistory(capacity=3)
        for ts in (1, 2, 3):
            history.put(BookSnapshot(timestamp=ts))

        # touching 1 makes 2 the least recently used
        self.assertIsNotNone(history.get(1))
        evicted = history.put(BookSnapshot(timestamp=4))

        self.assertEqual(evicted.timestamp, 2)
        self.assertEqual(len(history), 3)
        self.assertNotIn(2, history)
        self.assertIn(1, history)

    def test_store_history_bounded(self):
        store = make_store(history_capacity=10)
        for ts in range(2, 50):
            store.apply_book_update(market_data(ts))

        self.assertEqual(store.book_history_size(), 10)
        store.apply_trade(trade(2))
        store.apply_trade(trade(49))

        trades = store.get_trades()
        self.assertEqual(trades[0].best_bid, 0.0)     # evicted snapshot
        self.assertEqual(trades[1].best_bid, 10000.0)


if __name__ == '__main__':
    unittest.main()
