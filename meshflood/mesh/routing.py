"""
meshflood Routing Table

Keeps the best-known route per destination, refreshed by overheard traffic.

Design:
- Any received message advertises a route to its source
- Single-path flooding: the next hop is approximated by the source itself
- Lower hop count wins; ties and worse candidates leave the entry untouched
- Entries are removed only by the maintenance sweeper
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..packet.message import ProtocolMessage


logger = logging.getLogger(__name__)


@dataclass
class RoutingEntry:
    """
    Entry in the routing table.
    """
    destination: str
    next_hop: str
    hop_count: int
    last_updated: float

    # Not used for route selection yet
    reliability: float = 1.0

    def age(self, now: float) -> float:
        """Time since the entry was last refreshed."""
        return now - self.last_updated


class RoutingTable:
    """
    Best-known route per destination.

    Usage:
        table = RoutingTable("B")

        # Learn from every new message
        table.update_from(msg, now)

        entry = table.get_entry("A")
        if entry:
            print(entry.next_hop, entry.hop_count)
    """

    def __init__(self, local_address: str):
        """
        Initialize routing table.

        Args:
            local_address: Our node address
        """
        self._local_address = local_address

        # destination -> RoutingEntry
        self._routes: Dict[str, RoutingEntry] = {}

        # Statistics
        self._updates = 0
        self._expired = 0

    def update_from(self, msg: ProtocolMessage, now: float) -> bool:
        """
        Learn a route to the message source.

        Args:
            msg: Received message
            now: Current logical time

        Returns:
            True if the table changed
        """
        source = msg.source_address
        if not source or source == self._local_address:
            return False

        existing = self._routes.get(source)
        if existing is not None and existing.hop_count <= msg.hop_count:
            return False

        self._routes[source] = RoutingEntry(
            destination=source,
            next_hop=source,
            hop_count=msg.hop_count,
            last_updated=now,
        )
        self._updates += 1

        logger.debug(
            f"{self._local_address}: route to {source} "
            f"({msg.hop_count} hops, was "
            f"{existing.hop_count if existing else 'unknown'})"
        )
        return True

    def cleanup_expired(self, now: float, timeout: float) -> int:
        """
        Remove routes not refreshed within timeout.

        Args:
            now: Current logical time
            timeout: Maximum route age

        Returns:
            Number of routes removed
        """
        expired = [
            dest for dest, entry in self._routes.items()
            if entry.age(now) > timeout
        ]

        for dest in expired:
            del self._routes[dest]

        self._expired += len(expired)
        return len(expired)

    def get_entry(self, destination: str) -> Optional[RoutingEntry]:
        """Get the route to a destination."""
        return self._routes.get(destination)

    def get_all_entries(self) -> List[RoutingEntry]:
        """Get all routes, ordered by destination."""
        return [self._routes[dest] for dest in sorted(self._routes)]

    def get_stats(self) -> dict:
        """Get routing table statistics."""
        return {
            "size": len(self._routes),
            "updates": self._updates,
            "expired": self._expired,
        }

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, destination: str) -> bool:
        return destination in self._routes
