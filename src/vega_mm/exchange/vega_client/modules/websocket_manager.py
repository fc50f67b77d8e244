"""WebSocket stream subscriptions against the Vega data node"""

import json
from typing import Any, AsyncIterator, Dict, Optional
from urllib.parse import urlencode

import websockets

from ....utils.errors import TransientDataError
from ....utils.logger import setup_logger

logger = setup_logger(__name__)

MARKET_DATA_STREAM = "/api/v2/stream/markets/data"
POSITIONS_STREAM = "/api/v2/stream/positions"
TRADES_STREAM = "/api/v2/stream/trades"


def ws_url_from_http(url: str) -> str:
    """Derive the websocket endpoint from the REST url"""
    if url.startswith('https://'):
        return 'wss://' + url[len('https://'):]
    if url.startswith('http://'):
        return 'ws://' + url[len('http://'):]
    return url


def decode_message(message) -> Dict[str, Any]:
    """Decode a stream message into its result payload"""
    try:
        data = json.loads(message)
    except (TypeError, ValueError) as e:
        raise TransientDataError(f"undecodable stream message: {e}") from e

    if not isinstance(data, dict):
        raise TransientDataError(f"unexpected stream message: {data!r}")
    if 'error' in data:
        raise TransientDataError(f"stream error: {data['error']}")
    return data.get('result', data)


class WebSocketManager:
    """Opens one websocket per subscription and yields decoded payloads"""

    def __init__(self, ws_url: str):
        self.ws_url = ws_url.rstrip('/')

    def stream_url(self, path: str, params: Optional[Dict[str, str]] = None) -> str:
        query = urlencode({k: v for k, v in (params or {}).items() if v is not None})
        return f"{self.ws_url}{path}" + (f"?{query}" if query else "")

    async def subscribe(self, path: str, params: Optional[Dict[str, str]] = None) -> AsyncIterator[Dict[str, Any]]:
        """
        Subscribe to a stream and yield each payload.

        Undecodable messages are logged and skipped; a closed connection ends
        the iteration and reconnecting is left to the caller.
        """
        url = self.stream_url(path, params)
        async with websockets.connect(url) as ws:
            logger.info(f"Connected to stream {url}")
            async for message in ws:
                try:
                    yield decode_message(message)
                except TransientDataError as e:
                    logger.warning(f"Skipping message on {path}: {e}")

    def subscribe_market_data(self, market_id: str) -> AsyncIterator[Dict[str, Any]]:
        return self.subscribe(MARKET_DATA_STREAM, {'marketIds': market_id})

    def subscribe_positions(self, market_id: str, party_id: str) -> AsyncIterator[Dict[str, Any]]:
        return self.subscribe(POSITIONS_STREAM, {'partyId': party_id, 'marketId': market_id})

    def subscribe_trades(self, market_id: str) -> AsyncIterator[Dict[str, Any]]:
        return self.subscribe(TRADES_STREAM, {'marketIds': market_id})
