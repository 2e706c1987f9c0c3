"""
meshflood Protocol Message

The unit exchanged between nodes. A single message type carries a closed
``kind`` tag; kind-specific fields (priority, deadline) are optional.

Design:
- ``path`` lists every node that has transmitted the message and is used
  only for loop detection
- ``(source_address, sequence_number)`` identifies a message network-wide
- Relay copies never share a path list with the original
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import List, Optional, Tuple


# Valid priority levels
MIN_PRIORITY = 0
MAX_PRIORITY = 2


class MessageKind(IntEnum):
    """Message kind identifiers."""
    DATA = 100           # Application data
    CONTROL = 101        # Protocol control traffic
    BEACON = 102         # Single-hop neighbour discovery
    HEARTBEAT = 103      # Liveness announcement
    ADVERTISEMENT = 104  # Route advertisement


MessageKey = Tuple[str, int]


@dataclass
class ProtocolMessage:
    """
    Message flooded through the mesh.
    """
    kind: MessageKind
    source_address: str = ""
    sequence_number: int = 0

    # Hop budget and distance travelled
    ttl: int = 0
    hop_count: int = 0

    # Logical send time
    timestamp: float = 0.0

    # Nodes that already transmitted this message
    path: List[str] = field(default_factory=list)

    payload: bytes = b""

    # Scheduling hints (deadline only when priority > 0)
    priority: int = 0
    deadline: Optional[float] = None

    is_relay: bool = False
    reliability: float = 1.0

    @property
    def key(self) -> MessageKey:
        """Duplicate-suppression key."""
        return (self.source_address, self.sequence_number)

    @property
    def payload_size(self) -> int:
        """Payload size in bytes."""
        return len(self.payload)

    def is_in_path(self, address: str) -> bool:
        """Check whether a node already transmitted this message."""
        return address in self.path

    def add_to_path(self, address: str) -> bool:
        """
        Append a node to the path unless already present.

        Returns:
            True if the address was appended
        """
        if address in self.path:
            return False
        self.path.append(address)
        return True

    def is_valid(self) -> bool:
        """Check field ranges and invariants."""
        if not self.source_address or not isinstance(self.source_address, str):
            return False
        if not isinstance(self.kind, MessageKind):
            return False
        for value in (self.ttl, self.hop_count, self.sequence_number, self.priority):
            if not isinstance(value, int):
                return False
        if not isinstance(self.path, list) or not all(isinstance(a, str) for a in self.path):
            return False
        if not isinstance(self.payload, (bytes, bytearray)):
            return False
        if self.deadline is not None and not isinstance(self.deadline, (int, float)):
            return False
        if self.ttl < 0 or self.hop_count < 0 or self.sequence_number < 0:
            return False
        if not MIN_PRIORITY <= self.priority <= MAX_PRIORITY:
            return False
        if self.deadline is not None and self.priority == 0:
            return False
        if len(set(self.path)) != len(self.path):
            return False
        return True

    def relay_copy(self) -> 'ProtocolMessage':
        """Independent copy suitable for modification before relay."""
        return replace(self, path=list(self.path))

    def short_id(self) -> str:
        """Compact identifier for log lines."""
        kind = getattr(self.kind, "name", self.kind)
        return f"{kind}:{self.source_address}#{self.sequence_number}"
