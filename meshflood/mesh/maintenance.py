"""
meshflood Maintenance Sweeper

Evicts stale routing and duplicate-cache entries.
"""

import logging
from dataclasses import dataclass

from ..packet.dedup import DuplicateSuppressionCache
from .routing import RoutingTable


logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Entries removed by one sweep."""
    routes_removed: int = 0
    cache_removed: int = 0

    @property
    def total(self) -> int:
        return self.routes_removed + self.cache_removed


class MaintenanceSweeper:
    """
    Age-based eviction for one node's routing table and cache.

    Runs independently of the cache's FIFO size bound.
    """

    def __init__(
        self,
        routing_table: RoutingTable,
        cache: DuplicateSuppressionCache,
        route_timeout: float,
    ):
        if route_timeout <= 0:
            raise ValueError(f"Invalid route timeout: {route_timeout}")

        self._routing_table = routing_table
        self._cache = cache
        self._route_timeout = route_timeout
        self._sweeps = 0

    @property
    def sweeps(self) -> int:
        return self._sweeps

    def sweep(self, now: float) -> SweepResult:
        """
        Remove every entry older than the route timeout.

        Args:
            now: Current logical time

        Returns:
            Number of routes and cache entries removed
        """
        result = SweepResult(
            routes_removed=self._routing_table.cleanup_expired(now, self._route_timeout),
            cache_removed=self._cache.cleanup(now, self._route_timeout),
        )
        self._sweeps += 1

        if result.total:
            logger.debug(
                f"Sweep at {now:.3f}: removed {result.routes_removed} routes, "
                f"{result.cache_removed} cache entries"
            )

        return result
