"""
meshflood Mesh Module

Handles route learning, relay decisions and periodic eviction.

Components:
- routing.py: Best-known route per destination
- relay.py: TTL / loop / probability relay gate
- maintenance.py: Age-based eviction of routes and cache entries
"""

from .routing import (
    RoutingEntry,
    RoutingTable,
)

from .relay import (
    RelayDecision,
    RelayDecisionEngine,
)

from .maintenance import (
    MaintenanceSweeper,
    SweepResult,
)

__all__ = [
    # Routing
    'RoutingEntry',
    'RoutingTable',
    # Relay
    'RelayDecision',
    'RelayDecisionEngine',
    # Maintenance
    'MaintenanceSweeper',
    'SweepResult',
]
