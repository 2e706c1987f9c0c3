"""
meshflood Message Factory

Builds outgoing messages with correct defaults for each message kind.
"""

import random
from typing import Optional

from ..config import MeshConfig
from .message import MessageKind, ProtocolMessage, MAX_PRIORITY


# Discovery marker carried by beacons
BEACON_MARKER = b"MESH_BEACON"


class MessageFactory:
    """
    Creates locally originated messages.

    Owns the node's sequence counter: it is incremented only here, so
    sequence numbers issued by one factory strictly increase and are never
    reused.

    Usage:
        factory = MessageFactory("A", MeshConfig())
        msg = factory.create_message(MessageKind.DATA, now=12.5)
    """

    def __init__(
        self,
        address: str,
        config: MeshConfig,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize factory.

        Args:
            address: Local node address
            config: Protocol parameters
            rng: Random source (default: module-level generator)
        """
        self._address = address
        self._config = config
        self._rng = rng or random.Random()
        self._sequence = 0

    @property
    def last_sequence(self) -> int:
        """Last sequence number issued (0 if none)."""
        return self._sequence

    def next_sequence(self) -> int:
        """Issue the next sequence number."""
        self._sequence += 1
        return self._sequence

    def create_message(
        self,
        kind: MessageKind,
        now: float,
        payload: Optional[bytes] = None,
    ) -> ProtocolMessage:
        """
        Create a new message originated by this node.

        The path is left empty; the send path stamps it.

        Args:
            kind: Message kind
            now: Current logical time
            payload: Explicit payload, overrides the generated one

        Returns:
            New message
        """
        msg = ProtocolMessage(
            kind=kind,
            source_address=self._address,
            sequence_number=self.next_sequence(),
            ttl=self._config.max_ttl,
            hop_count=0,
            timestamp=now,
            reliability=1.0,
            priority=0,
        )

        if kind == MessageKind.BEACON:
            msg.payload = BEACON_MARKER
            msg.ttl = 1
        elif kind == MessageKind.HEARTBEAT:
            msg.payload = f"HEARTBEAT from {self._address} at {now}".encode()
        elif kind == MessageKind.DATA:
            size = self._rng.randint(self._config.data_size_min, self._config.data_size_max)
            msg.payload = bytes(size)
            msg.priority = self._rng.randint(0, MAX_PRIORITY)
            if msg.priority > 0:
                msg.deadline = now + self._config.data_deadline

        if payload is not None:
            msg.payload = payload

        return msg
