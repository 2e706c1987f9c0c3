"""
meshflood Topology Builders

Generate symmetric neighbour tables for simulated networks.
"""

import math
from typing import Dict, List


Topology = Dict[str, List[str]]


def node_names(count: int) -> List[str]:
    """Addresses N1..Ncount."""
    if count < 1:
        raise ValueError(f"Invalid node count: {count}")
    return [f"N{i}" for i in range(1, count + 1)]


def _link(topology: Topology, a: str, b: str) -> None:
    if b not in topology[a]:
        topology[a].append(b)
    if a not in topology[b]:
        topology[b].append(a)


def line(count: int) -> Topology:
    """N1 - N2 - ... - Ncount."""
    names = node_names(count)
    topology: Topology = {name: [] for name in names}
    for a, b in zip(names, names[1:]):
        _link(topology, a, b)
    return topology


def ring(count: int) -> Topology:
    """Line with the ends joined (needs at least 3 nodes to differ from a line)."""
    topology = line(count)
    names = node_names(count)
    if count >= 3:
        _link(topology, names[-1], names[0])
    return topology


def grid(count: int) -> Topology:
    """Nodes laid out row by row on the smallest square that holds them."""
    names = node_names(count)
    width = math.ceil(math.sqrt(count))
    topology: Topology = {name: [] for name in names}

    for index, name in enumerate(names):
        right = index + 1
        below = index + width
        if right < count and right % width != 0:
            _link(topology, name, names[right])
        if below < count:
            _link(topology, name, names[below])

    return topology


def full(count: int) -> Topology:
    """Every node hears every other node."""
    names = node_names(count)
    return {name: [other for other in names if other != name] for name in names}


BUILDERS = {
    "line": line,
    "ring": ring,
    "grid": grid,
    "full": full,
}


def build_topology(kind: str, count: int) -> Topology:
    """
    Build a named topology.

    Raises:
        ValueError: If the topology kind is unknown
    """
    try:
        builder = BUILDERS[kind]
    except KeyError:
        raise ValueError(f"Unknown topology: {kind}") from None
    return builder(count)
