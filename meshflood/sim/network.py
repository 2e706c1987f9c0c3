"""
meshflood Network Simulation

Builds a set of nodes on a shared virtual medium and drives them with a
single discrete-event scheduler.
"""

import logging
import random
from collections import deque
from typing import Dict, List, Optional

from ..config import Config
from ..node import MeshNode
from ..packet.message import MessageKind, ProtocolMessage
from ..transport.medium import MediumTransport, VirtualMedium
from .scheduler import Scheduler
from .topology import Topology, build_topology


logger = logging.getLogger(__name__)


class Network:
    """
    Simulated flooding mesh.

    Usage:
        config = Config()
        config.simulation.node_count = 4

        with Network(config) as network:
            network.run(120.0)
            for address, stats in network.get_stats().items():
                print(address, stats["messages_relayed"])
    """

    def __init__(self, config: Config, scheduler: Optional[Scheduler] = None):
        """
        Build nodes, transports and medium from configuration.

        Args:
            config: Complete configuration
            scheduler: Scheduler to use (default: new one at t=0)

        Raises:
            ValueError: If configuration is invalid
        """
        config.validate()

        self._config = config
        self._scheduler = scheduler or Scheduler()
        self._started = False

        # Every random stream derives from the simulation seed
        master = random.Random(config.simulation.seed)

        self._topology: Topology = (
            {node: list(adjacent) for node, adjacent in config.simulation.neighbors.items()}
            or build_topology(config.simulation.topology, config.simulation.node_count)
        )

        self._medium = VirtualMedium(
            self._scheduler,
            self._topology,
            config.medium,
            rng=random.Random(master.getrandbits(64)),
        )

        self._transports: Dict[str, MediumTransport] = {}
        self._nodes: Dict[str, MeshNode] = {}

        for address in self._topology:
            transport = MediumTransport(address, self._medium)
            node = MeshNode(
                address,
                config.mesh,
                scheduler=self._scheduler,
                transport=transport,
                rng=random.Random(master.getrandbits(64)),
            )
            self._medium.register(address, node.on_frame)
            self._transports[address] = transport
            self._nodes[address] = node

        logger.info(
            f"Network built: {len(self._nodes)} nodes, "
            f"{sum(len(n) for n in self._topology.values()) // 2} links"
        )

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def medium(self) -> VirtualMedium:
        return self._medium

    @property
    def topology(self) -> Topology:
        return {node: list(adjacent) for node, adjacent in self._topology.items()}

    @property
    def nodes(self) -> List[MeshNode]:
        return list(self._nodes.values())

    def node(self, address: str) -> MeshNode:
        """Get a node by address (KeyError if unknown)."""
        return self._nodes[address]

    def start(self) -> None:
        """Start every node's periodic tasks."""
        if self._started:
            return
        for node in self._nodes.values():
            node.start()
        self._started = True

    def stop(self) -> None:
        """Stop every node and detach it from the medium."""
        for address, node in self._nodes.items():
            node.stop()
            self._transports[address].close()
        self._started = False

    def run(self, duration: Optional[float] = None) -> float:
        """
        Start (if needed) and advance the simulation.

        Args:
            duration: Logical time to run (default: configured duration)

        Returns:
            Logical time at the end of the run
        """
        self.start()

        if duration is None:
            duration = self._config.simulation.duration

        until = self._scheduler.now + duration
        fired = self._scheduler.run(until=until)
        logger.info(f"Ran until t={self._scheduler.now:.3f} ({fired} events)")
        return self._scheduler.now

    def settle(self, max_events: Optional[int] = None) -> int:
        """
        Fire events until the queue is empty.

        Only terminates if the nodes' periodic tasks are not running.
        """
        return self._scheduler.run(max_events=max_events)

    def originate(
        self,
        address: str,
        kind: MessageKind = MessageKind.DATA,
        payload: Optional[bytes] = None,
    ) -> ProtocolMessage:
        """Have a node originate a message at the current time."""
        return self._nodes[address].originate(kind, self._scheduler.now, payload=payload)

    def reachable_from(self, address: str) -> List[str]:
        """Nodes reachable from address over the topology (excluding itself)."""
        seen = {address}
        queue = deque([address])
        while queue:
            current = queue.popleft()
            for neighbor in self._topology.get(current, []):
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(neighbor)
        seen.discard(address)
        return [node for node in self._topology if node in seen]

    def missing_routes(self) -> Dict[str, List[str]]:
        """Reachable destinations each node has no route to."""
        missing: Dict[str, List[str]] = {}
        for address, node in self._nodes.items():
            absent = [
                dest for dest in self.reachable_from(address)
                if dest not in node.routing_table
            ]
            if absent:
                missing[address] = absent
        return missing

    def get_stats(self) -> Dict[str, dict]:
        """Per-node statistics keyed by address."""
        return {address: node.get_stats() for address, node in self._nodes.items()}

    def __enter__(self) -> 'Network':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
