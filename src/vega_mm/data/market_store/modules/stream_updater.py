"""
Streaming ingestion tasks.

Three long-lived tasks (market data, positions, trades) each consume one data
node stream and apply every event to the store. A dropped connection is logged
and re-established after a delay; the tasks only end when cancelled.
"""

import asyncio
import traceback
from typing import Any, AsyncIterator, Callable, Dict, List

from ....utils.logger import setup_logger

logger = setup_logger(__name__)

RECONNECT_DELAY = 5  # seconds


def handle_market_data(store, payload: Dict[str, Any]):
    for md in payload.get('marketData', []) or []:
        store.apply_book_update(md)


def handle_positions(store, payload: Dict[str, Any]):
    # initial message is a snapshot, the rest are updates; both are upserts
    for kind in ('snapshot', 'updates'):
        section = payload.get(kind)
        if isinstance(section, dict):
            store.apply_position_update(section.get('positions', []) or [])


def handle_trades(store, payload: Dict[str, Any]):
    for trade in payload.get('trades', []) or []:
        store.apply_trade(trade)


async def consume_forever(name: str, subscribe: Callable[[], AsyncIterator[Dict[str, Any]]],
                          handler: Callable[[Any, Dict[str, Any]], None], store,
                          reconnect_delay: float = RECONNECT_DELAY):
    """Apply every payload of a stream to the store, reconnecting when it drops"""
    logger.info(f"Starting {name} stream")
    while True:
        try:
            async for payload in subscribe():
                handler(store, payload)
            logger.warning(f"{name} stream closed, reconnecting in {reconnect_delay}s")
        except asyncio.CancelledError:
            logger.info(f"{name} stream cancelled")
            raise
        except Exception as e:
            logger.error(f"Could not load {name}: {e}")
            logger.debug(traceback.format_exc())
        await asyncio.sleep(reconnect_delay)


def update_forever(store, client, market_id: str, party_id: str,
                   reconnect_delay: float = RECONNECT_DELAY) -> List[asyncio.Task]:
    """Spawn the three ingestion tasks and return them"""
    streams = [
        ('market data', lambda: client.observe_market_data(market_id), handle_market_data),
        ('positions', lambda: client.observe_positions(market_id, party_id), handle_positions),
        ('trades', lambda: client.observe_trades(market_id), handle_trades),
    ]
    return [
        asyncio.create_task(
            consume_forever(name, subscribe, handler, store, reconnect_delay),
            name=f"stream-{name.replace(' ', '-')}"
        )
        for name, subscribe, handler in streams
    ]
