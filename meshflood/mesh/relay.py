"""
meshflood Relay Decisions

Decides whether a new (non-duplicate) message is re-broadcast and builds
the relay copy.

Design:
- TTL, own-origin, beacon and loop checks run before the probabilistic gate
- Beacons are single-hop: neighbours learn from them but never relay them
- The relay copy is checked again for TTL, kind and path membership
  before it is modified
"""

import random
from enum import IntEnum
from typing import Optional

from ..packet.message import MessageKind, ProtocolMessage


class RelayDecision(IntEnum):
    """Outcome of a relay evaluation."""
    RELAY = 1          # Re-broadcast
    TTL_EXPIRED = 2    # Hop budget exhausted
    OWN_MESSAGE = 3    # Our own traffic echoed back
    LOOP = 4           # We already transmitted this message
    SUPPRESSED = 5     # Lost the Bernoulli trial
    SINGLE_HOP = 6     # Discovery beacons are never re-broadcast


class RelayDecisionEngine:
    """
    TTL / loop / probability gate for flooding.

    Usage:
        engine = RelayDecisionEngine("B", relay_probability=0.8)

        if engine.should_relay(msg):
            relay = engine.prepare_relay(msg)
            if relay:
                send(relay)
    """

    def __init__(
        self,
        local_address: str,
        relay_probability: float,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize relay engine.

        Args:
            local_address: Our node address
            relay_probability: Probability of relaying an eligible message
            rng: Random source (default: module-level generator)
        """
        if not 0.0 <= relay_probability <= 1.0:
            raise ValueError(f"Invalid relay probability: {relay_probability}")

        self._local_address = local_address
        self._relay_probability = relay_probability
        self._rng = rng or random.Random()

    def evaluate(self, msg: ProtocolMessage) -> RelayDecision:
        """
        Evaluate a message that passed duplicate suppression.

        Args:
            msg: Received message

        Returns:
            Relay decision with its reason
        """
        if msg.ttl <= 0:
            return RelayDecision.TTL_EXPIRED

        if msg.source_address == self._local_address:
            return RelayDecision.OWN_MESSAGE

        if msg.kind == MessageKind.BEACON:
            return RelayDecision.SINGLE_HOP

        if msg.is_in_path(self._local_address):
            return RelayDecision.LOOP

        # Independent Bernoulli trial per node per message
        if self._rng.random() < self._relay_probability:
            return RelayDecision.RELAY

        return RelayDecision.SUPPRESSED

    def should_relay(self, msg: ProtocolMessage) -> bool:
        """Check whether a message should be re-broadcast."""
        return self.evaluate(msg) == RelayDecision.RELAY

    def prepare_relay(self, msg: ProtocolMessage) -> Optional[ProtocolMessage]:
        """
        Build the relay copy of a message.

        The copy has one less TTL, one more hop and the relay flag set.
        The caller's send path stamps our address onto its path.

        Args:
            msg: Message to relay

        Returns:
            Relay copy, or None if the message must not be duplicated
        """
        if msg.ttl <= 0 or msg.kind == MessageKind.BEACON:
            return None
        if msg.is_in_path(self._local_address):
            return None

        relay = msg.relay_copy()
        relay.ttl -= 1
        relay.hop_count += 1
        relay.is_relay = True
        return relay
