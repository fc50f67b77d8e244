"""
External venue pollers.

Each poller runs its own fixed-interval loop, fetching the top of book from one
venue over REST and writing it into a ReferencePrice slot. A failed or
malformed poll is logged and leaves the slot untouched.
"""

import asyncio
import traceback
from typing import Any, Dict, Optional, Tuple

import aiohttp

from .ref_price import ReferencePrice
from ...utils.errors import TransientDataError
from ...utils.logger import setup_logger
from ...utils.parsing import require_float

logger = setup_logger(__name__)


class VenuePoller:
    """Base class: subclasses provide the endpoint and the payload parser"""

    venue = 'venue'

    def __init__(self, url: str, symbol: str, ref_price: ReferencePrice,
                 poll_interval: float = 1.0, timeout: float = 5):
        self.url = url.rstrip('/')
        self.symbol = symbol
        self.ref_price = ref_price
        self.poll_interval = poll_interval
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.running = True

    def endpoint(self) -> Tuple[str, Dict[str, str]]:
        raise NotImplementedError

    def parse(self, data: Dict[str, Any]) -> Tuple[float, float]:
        raise NotImplementedError

    async def fetch(self) -> Dict[str, Any]:
        url, params = self.endpoint()
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            async with session.get(url, params=params) as response:
                response.raise_for_status()
                return await response.json()

    async def poll_once(self) -> Optional[Tuple[float, float]]:
        """Fetch and store one quote; returns it, or None when the poll failed"""
        try:
            data = await self.fetch()
            bid, ask = self.parse(data)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error fetching {self.venue} order book: {e}")
            return None
        except (TransientDataError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Error parsing {self.venue} order book: {e}")
            return None

        mid = 0.5 * (bid + ask)
        spread = ask - bid
        spread_bp = 10_000.0 * spread / mid if mid > 0 else 0.0
        logger.debug(f"{self.venue} best ask {ask:.4f}; best bid {bid:.4f}; "
                     f"spread {spread:.5f} which is {spread_bp:.1f} bp")

        self.ref_price.set(bid, ask)
        return bid, ask

    async def poll_forever(self):
        logger.info(f"Starting {self.venue} poller for {self.symbol} every {self.poll_interval}s")
        while self.running:
            try:
                await self.poll_once()
            except Exception as e:
                logger.error(f"Unexpected error in {self.venue} poller: {e}")
                logger.error(traceback.format_exc())
            await asyncio.sleep(self.poll_interval)

    def stop(self):
        self.running = False


class BinancePoller(VenuePoller):
    """Binance spot book ticker"""

    venue = 'binance'

    def endpoint(self) -> Tuple[str, Dict[str, str]]:
        return f"{self.url}/api/v3/ticker/bookTicker", {'symbol': self.symbol}

    def parse(self, data: Dict[str, Any]) -> Tuple[float, float]:
        return (require_float(data['bidPrice'], 'bidPrice'),
                require_float(data['askPrice'], 'askPrice'))


class BybitPoller(VenuePoller):
    """Bybit v5 spot order book"""

    venue = 'bybit'

    def endpoint(self) -> Tuple[str, Dict[str, str]]:
        return f"{self.url}/v5/market/orderbook", {'category': 'spot', 'symbol': self.symbol}

    def parse(self, data: Dict[str, Any]) -> Tuple[float, float]:
        if data.get('retCode', 0) != 0:
            raise TransientDataError(f"bybit error {data.get('retCode')}: {data.get('retMsg')}")
        result = data['result']
        return (require_float(result['b'][0][0], 'bid'),
                require_float(result['a'][0][0], 'ask'))


POLLERS = {
    BinancePoller.venue: BinancePoller,
    BybitPoller.venue: BybitPoller,
}
