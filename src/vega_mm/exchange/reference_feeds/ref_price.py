"""Last-write-wins reference price slot for one external venue"""

import threading
from typing import Tuple


class ReferencePrice:
    """Single (bid, ask) slot; starts at zero until the first poll lands"""

    def __init__(self, venue: str = ''):
        self.venue = venue
        self._lock = threading.Lock()
        self._bid = 0.0
        self._ask = 0.0

    def set(self, bid: float, ask: float):
        with self._lock:
            self._bid = bid
            self._ask = ask

    def get(self) -> Tuple[float, float]:
        with self._lock:
            return self._bid, self._ask
