"""
meshflood Virtual Medium

An in-process broadcast medium connecting simulated nodes.

Useful for:
- Unit and integration testing
- Running multi-node flooding scenarios without hardware

Features:
- Neighbour table defines who hears whom
- Configurable latency
- Configurable frame loss and corruption
- Frames are encoded once per transmission and decoded by each receiver,
  so nodes never share a message object
"""

import logging
import random
from functools import partial
from typing import Callable, Dict, List, Optional

from ..config import MediumConfig
from ..packet.format import FrameError, encode_message
from ..packet.message import ProtocolMessage
from ..sim.scheduler import Scheduler
from .base import BaseTransport, TransportError


logger = logging.getLogger(__name__)

# Receives (frame, logical arrival time)
FrameReceiver = Callable[[bytes, float], None]


class VirtualMedium:
    """
    Shared broadcast medium.

    A frame transmitted by a node is delivered to each of its neighbours
    that has a registered receiver, after the dispatch delay plus the
    medium latency.

    Usage:
        medium = VirtualMedium(scheduler, {"A": ["B"], "B": ["A"]})
        medium.register("B", node_b.on_frame)
        medium.transmit("A", frame, delay=0.005)
    """

    def __init__(
        self,
        scheduler: Scheduler,
        neighbors: Dict[str, List[str]],
        config: Optional[MediumConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize medium.

        Args:
            scheduler: Scheduler used to time deliveries
            neighbors: Adjacency list (address -> neighbour addresses)
            config: Latency / loss / corruption settings
            rng: Random source for loss and corruption
        """
        self._scheduler = scheduler
        self._neighbors = {node: list(adjacent) for node, adjacent in neighbors.items()}
        self._config = config or MediumConfig()
        self._rng = rng or random.Random()
        self._receivers: Dict[str, FrameReceiver] = {}

        # Statistics
        self._frames_transmitted = 0
        self._frames_delivered = 0
        self._frames_lost = 0
        self._frames_corrupted = 0

    def register(self, address: str, receiver: FrameReceiver) -> None:
        """Attach a node's frame receiver."""
        self._receivers[address] = receiver

    def unregister(self, address: str) -> None:
        """Detach a node; frames in flight to it are discarded."""
        self._receivers.pop(address, None)

    def transmit(self, sender: str, frame: bytes, delay: float) -> int:
        """
        Broadcast a frame to the sender's neighbours.

        Args:
            sender: Transmitting node
            frame: Encoded frame
            delay: Medium-access delay chosen by the sender

        Returns:
            Number of deliveries scheduled
        """
        self._frames_transmitted += 1
        scheduled = 0

        for neighbor in self._neighbors.get(sender, []):
            if neighbor not in self._receivers:
                continue

            # Simulate frame loss
            if self._rng.random() < self._config.loss_probability:
                self._frames_lost += 1
                continue

            data = frame
            if self._rng.random() < self._config.corruption_probability:
                data = self._corrupt(frame)
                self._frames_corrupted += 1

            self._scheduler.schedule_in(
                delay + self._config.latency,
                partial(self._deliver, neighbor, data),
                name=f"frame:{sender}->{neighbor}",
            )
            scheduled += 1

        return scheduled

    def _corrupt(self, frame: bytes) -> bytes:
        """Flip one random bit."""
        corrupted = bytearray(frame)
        index = self._rng.randrange(len(corrupted))
        corrupted[index] ^= 1 << self._rng.randrange(8)
        return bytes(corrupted)

    def _deliver(self, address: str, data: bytes) -> None:
        receiver = self._receivers.get(address)
        if receiver is None:
            return

        self._frames_delivered += 1
        receiver(data, self._scheduler.now)

    def get_statistics(self) -> dict:
        """Get medium statistics."""
        return {
            "nodes": len(self._receivers),
            "frames_transmitted": self._frames_transmitted,
            "frames_delivered": self._frames_delivered,
            "frames_lost": self._frames_lost,
            "frames_corrupted": self._frames_corrupted,
        }


class MediumTransport(BaseTransport):
    """
    Transport that encodes messages and broadcasts them on a VirtualMedium.
    """

    def __init__(self, address: str, medium: VirtualMedium):
        super().__init__(address)
        self._medium = medium

    def dispatch(self, msg: ProtocolMessage, delay: float) -> None:
        """Encode and broadcast a message to our neighbours."""
        self._check_dispatch(delay)

        try:
            frame = encode_message(msg)
        except FrameError as e:
            self._dispatch_errors += 1
            raise TransportError(f"Cannot encode {msg.short_id()}: {e}") from e

        self._medium.transmit(self.address, frame, delay)
        self._messages_dispatched += 1

    def close(self) -> None:
        """Stop accepting messages and leave the medium."""
        super().close()
        self._medium.unregister(self.address)
