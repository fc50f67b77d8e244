"""Bounded least-recently-used history of book snapshots keyed by timestamp"""

from collections import OrderedDict
from typing import Optional

from .models import BookSnapshot, BOOK_HISTORY_CAPACITY


class BookHistory:
    """LRU cache of past book snapshots; both put and get refresh recency"""

    def __init__(self, capacity: int = BOOK_HISTORY_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: 'OrderedDict[int, BookSnapshot]' = OrderedDict()

    def put(self, snapshot: BookSnapshot) -> Optional[BookSnapshot]:
        """Insert a snapshot, returning the evicted entry if capacity was exceeded"""
        key = snapshot.timestamp
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = snapshot

        if len(self._entries) > self.capacity:
            _, evicted = self._entries.popitem(last=False)
            return evicted
        return None

    def get(self, timestamp: int) -> Optional[BookSnapshot]:
        snapshot = self._entries.get(timestamp)
        if snapshot is not None:
            self._entries.move_to_end(timestamp)
        return snapshot

    def __contains__(self, timestamp: int) -> bool:
        return timestamp in self._entries

    def __len__(self) -> int:
        return len(self._entries)
