"""
meshflood - Flooding Mesh Forwarding Engine

Forwarding logic for a flooding-based mesh protocol: message origination,
duplicate suppression, TTL-bounded probabilistic relay, loop prevention
and routing-table maintenance with time-based eviction.

This package contains:
- packet/    : Protocol message, factory, wire codec, duplicate cache
- mesh/      : Routing table, relay decisions, maintenance sweeper
- transport/ : Transport interface and in-process virtual medium
- sim/       : Discrete-event scheduler and network simulation
- node.py    : Per-node engine tying the components together
"""

__version__ = "0.1.0"
__author__ = "meshflood contributors"

# Core constants
PROTOCOL_VERSION = 1
DEFAULT_CACHE_CAPACITY = 1000
MAX_PATH_LENGTH = 255
