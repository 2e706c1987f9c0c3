"""
meshflood Simulation Module

Discrete-event scheduling and topology generation for simulated meshes.
The Network class lives in meshflood.sim.network.
"""

from .scheduler import (
    Scheduler,
    TimerHandle,
)

from .topology import (
    Topology,
    build_topology,
    node_names,
)

__all__ = [
    'Scheduler',
    'TimerHandle',
    'Topology',
    'build_topology',
    'node_names',
]
