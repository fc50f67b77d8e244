"""Transaction submission through the Vega wallet service"""

import asyncio
import itertools
from typing import Any, Dict

import aiohttp

from ....utils.errors import SubmissionError
from ....utils.logger import setup_logger

logger = setup_logger(__name__)


class WalletManager:
    """Sends commands to the wallet service, which signs and forwards them"""

    def __init__(self, wallet_url: str, token: str, public_key: str, timeout: float = 10):
        self.endpoint = f"{wallet_url.rstrip('/')}/api/v2/requests"
        self.token = token
        self.public_key = public_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._ids = itertools.count(1)

    def _build_request(self, command: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "method": "client.send_transaction",
            "params": {
                "publicKey": self.public_key,
                "sendingMode": "TYPE_SYNC",
                "transaction": {command: payload},
            },
            "id": str(next(self._ids)),
        }

    async def send(self, command: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Send one command; raises SubmissionError on rejection or transport failure"""
        request = self._build_request(command, payload)
        headers = {"Authorization": f"VWT {self.token}"}

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(self.endpoint, json=request, headers=headers) as response:
                    if response.status >= 400:
                        text = await response.text()
                        raise SubmissionError(f"wallet returned HTTP {response.status}: {text}")
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmissionError(f"wallet transport error: {e}") from e

        if data.get('error'):
            error = data['error']
            raise SubmissionError(f"transaction rejected: {error.get('message')} {error.get('data', '')}".strip())

        return data.get('result', {})

    async def send_batch(self, batch: Dict[str, Any]) -> Dict[str, Any]:
        return await self.send("batchMarketInstructions", batch)
