"""
meshflood Duplicate Suppression

Prevents processing of duplicate messages in the mesh network.

Features:
- Keyed by (source address, sequence number)
- Bounded size with FIFO eviction of the oldest insertion
- Time-based cleanup driven by the maintenance sweeper

Design:
- Insertion order is the eviction order (re-seeing a key does not refresh it)
- Timestamps are logical times supplied by the caller
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict

from .. import DEFAULT_CACHE_CAPACITY
from .message import MessageKey, ProtocolMessage


@dataclass
class CacheEntry:
    """Entry in the duplicate suppression cache."""
    source: str
    sequence_number: int
    inserted_at: float

    @property
    def key(self) -> MessageKey:
        return (self.source, self.sequence_number)


class DuplicateSuppressionCache:
    """
    Bounded, time-windowed set of seen (source, sequence) pairs.

    Usage:
        cache = DuplicateSuppressionCache(capacity=1000)

        if cache.is_duplicate(msg):
            # Already processed - drop it
            return
        cache.cache_message(msg, now)
        process(msg)
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_CAPACITY):
        """
        Initialize cache.

        Args:
            capacity: Maximum number of entries before FIFO eviction
        """
        if capacity < 1:
            raise ValueError(f"Invalid cache capacity: {capacity}")

        self._capacity = capacity

        # key -> CacheEntry, in insertion order
        self._entries: 'OrderedDict[MessageKey, CacheEntry]' = OrderedDict()

        # Statistics
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    def is_duplicate(self, msg: ProtocolMessage) -> bool:
        """
        Check if a message has been seen (without adding).

        Args:
            msg: Received message

        Returns:
            True if the (source, sequence) key is cached
        """
        if msg.key in self._entries:
            self._hits += 1
            return True

        self._misses += 1
        return False

    def cache_message(self, msg: ProtocolMessage, now: float) -> bool:
        """
        Record a message as seen.

        Args:
            msg: Message to record
            now: Current logical time

        Returns:
            True if the key was newly inserted
        """
        key = msg.key
        if key in self._entries:
            return False

        self._entries[key] = CacheEntry(
            source=msg.source_address,
            sequence_number=msg.sequence_number,
            inserted_at=now,
        )

        if len(self._entries) > self._capacity:
            self._evict_oldest()

        return True

    def cleanup(self, now: float, max_age: float) -> int:
        """
        Remove entries older than max_age.

        Args:
            now: Current logical time
            max_age: Maximum entry age

        Returns:
            Number of entries removed
        """
        expired = [
            key for key, entry in self._entries.items()
            if now - entry.inserted_at > max_age
        ]

        for key in expired:
            del self._entries[key]

        self._expirations += len(expired)
        return len(expired)

    def _evict_oldest(self) -> None:
        """Evict the single earliest-inserted entry."""
        self._entries.popitem(last=False)
        self._evictions += 1

    def get_entry(self, key: MessageKey) -> CacheEntry:
        """Get the entry for a key (KeyError if absent)."""
        return self._entries[key]

    def get_stats(self) -> Dict[str, int]:
        """
        Get cache statistics.

        Returns:
            dict: size, capacity, hits, misses, evictions, expirations
        """
        return {
            "size": len(self._entries),
            "capacity": self._capacity,
            "hits": self._hits,
            "misses": self._misses,
            "evictions": self._evictions,
            "expirations": self._expirations,
        }

    def __len__(self) -> int:
        """Get number of entries in cache."""
        return len(self._entries)

    def __contains__(self, key: MessageKey) -> bool:
        """Check if a (source, sequence) key is cached."""
        return key in self._entries
