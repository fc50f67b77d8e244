import unittest
from unittest.mock import AsyncMock

from vega_mm.exchange.reference_feeds import BinancePoller, BybitPoller, ReferencePrice
from vega_mm.exchange.vega_client import VegaClient
from vega_mm.exchange.vega_client.modules.market_data import MarketDataHandler
from vega_mm.exchange.vega_client.modules.wallet_manager import WalletManager
from vega_mm.utils.errors import NotFoundError, SubmissionError


class TestVegaClient(unittest.IsolatedAsyncioTestCase):
    """Test data node lookups and wallet requests"""

    async def test_list_assets_follows_pagination(self):
        handler = MarketDataHandler('https://node.example.com')
        handler._get = AsyncMock(side_effect=[
            {'assets': {'edges': [{'node': {'id': 'a'}}],
                        'pageInfo': {'hasNextPage': True, 'endCursor': 'c1'}}},
            {'assets': {'edges': [{'node': {'id': 'b'}}],
                        'pageInfo': {'hasNextPage': False}}},
        ])

        assets = await handler.list_assets()

        self.assertEqual([a['id'] for a in assets], ['a', 'b'])
        self.assertEqual(handler._get.await_args_list[1].kwargs['params'], {'pagination.after': 'c1'})

    async def test_missing_market(self):
        handler = MarketDataHandler('https://node.example.com')
        handler._get = AsyncMock(return_value={})
        with self.assertRaises(NotFoundError):
            await handler.get_market('m1')

    def test_wallet_request(self):
        wallet = WalletManager('http://127.0.0.1:1789/', 'token', 'pubkey')
        request = wallet._build_request('batchMarketInstructions', {'cancellations': []})

        self.assertEqual(wallet.endpoint, 'http://127.0.0.1:1789/api/v2/requests')
        self.assertEqual(request['method'], 'client.send_transaction')
        self.assertEqual(request['params']['publicKey'], 'pubkey')
        self.assertEqual(request['params']['transaction'], {'batchMarketInstructions': {'cancellations': []}})

    async def test_wallet_error_raises(self):
        wallet = WalletManager('http://127.0.0.1:1789', 'token', 'pubkey')
        wallet.send = AsyncMock(side_effect=SubmissionError("rejected"))
        with self.assertRaises(SubmissionError):
            await wallet.send_batch({})

    async def test_no_wallet_configured(self):
        client = VegaClient('https://node.example.com', 'http://127.0.0.1:1789', None, None)
        self.assertEqual(client.websocket_manager.ws_url, 'wss://node.example.com')
        with self.assertRaises(SubmissionError):
            await client.send_batch({})


class TestPollers(unittest.IsolatedAsyncioTestCase):
    """Test external venue pollers"""

    async def test_binance(self):
        slot = ReferencePrice('binance')
        poller = BinancePoller('https://api.binance.com', 'BTCUSDT', slot)
        poller.fetch = AsyncMock(return_value={'symbol': 'BTCUSDT', 'bidPrice': '100.5', 'askPrice': '100.7'})

        self.assertEqual(await poller.poll_once(), (100.5, 100.7))
        self.assertEqual(slot.get(), (100.5, 100.7))
        self.assertEqual(poller.endpoint(), ('https://api.binance.com/api/v3/ticker/bookTicker',
                                             {'symbol': 'BTCUSDT'}))

    async def test_bybit(self):
        slot = ReferencePrice('bybit')
        poller = BybitPoller('https://api.bybit.com', 'BTCUSDT', slot)
        poller.fetch = AsyncMock(return_value={
            'retCode': 0,
            'result': {'b': [['99.9', '1.2']], 'a': [['100.1', '0.4']]},
        })

        self.assertEqual(await poller.poll_once(), (99.9, 100.1))
        self.assertEqual(slot.get(), (99.9, 100.1))

    async def test_failed_poll_leaves_slot_untouched(self):
        slot = ReferencePrice('bybit')
        slot.set(1.0, 2.0)
        poller = BybitPoller('https://api.bybit.com', 'BTCUSDT', slot)

        poller.fetch = AsyncMock(return_value={'retCode': 10001, 'retMsg': 'params error'})
        self.assertIsNone(await poller.poll_once())

        poller.fetch = AsyncMock(return_value={'retCode': 0, 'result': {'b': [], 'a': []}})
        self.assertIsNone(await poller.poll_once())

        self.assertEqual(slot.get(), (1.0, 2.0))


if __name__ == '__main__':
    unittest.main()
