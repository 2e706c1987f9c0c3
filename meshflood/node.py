"""
meshflood Mesh Node

Per-node flooding engine. A node:
- Originates beacons, heartbeats and data traffic on its own timers
- Suppresses duplicate deliveries
- Learns routes from every new message
- Relays eligible messages with a TTL / loop / probability gate
- Sweeps stale routes and cache entries

All state belongs to one node and is mutated only from scheduler
callbacks and inbound deliveries, one event at a time.
"""

import logging
import random
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from .config import MeshConfig
from .packet.dedup import DuplicateSuppressionCache
from .packet.factory import MessageFactory
from .packet.format import FrameError, decode_message
from .packet.message import MessageKind, ProtocolMessage
from .mesh.maintenance import MaintenanceSweeper, SweepResult
from .mesh.relay import RelayDecision, RelayDecisionEngine
from .mesh.routing import RoutingTable
from .sim.scheduler import Scheduler, TimerHandle
from .transport.base import BaseTransport, TransportError


logger = logging.getLogger(__name__)

# Timer names
BEACON_TIMER = "beacon"
HEARTBEAT_TIMER = "heartbeat"
CLEANUP_TIMER = "cleanup"


@dataclass
class NodeStatistics:
    """Counters exposed for telemetry."""
    messages_originated: int = 0
    messages_sent: int = 0
    messages_received: int = 0
    messages_relayed: int = 0
    duplicates: int = 0
    malformed: int = 0
    ttl_expired: int = 0
    own_echoes: int = 0
    loops: int = 0
    suppressed: int = 0
    single_hop: int = 0
    send_errors: int = 0


class MeshNode:
    """
    Flooding engine for one node.

    Usage:
        scheduler = Scheduler()
        node = MeshNode("A", MeshConfig(), scheduler, transport)

        with node:
            node.start()
            scheduler.run(until=300.0)

        print(node.get_stats())
    """

    def __init__(
        self,
        address: str,
        config: MeshConfig,
        scheduler: Optional[Scheduler] = None,
        transport: Optional[BaseTransport] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize node state.

        Args:
            address: Stable node address
            config: Protocol parameters
            scheduler: Scheduler that fires our timers (required by start())
            transport: Outbound transport
            rng: Random source for jitter, relay trials and payloads

        Raises:
            ValueError: If the address is empty or the configuration invalid
        """
        if not address:
            raise ValueError("Node address must not be empty")

        config.validate()

        self._address = address
        self._config = config
        self._scheduler = scheduler
        self._transport = transport
        self._rng = rng or random.Random()

        self._factory = MessageFactory(address, config, self._rng)
        self._cache = DuplicateSuppressionCache(config.cache_capacity)
        self._routing_table = RoutingTable(address)
        self._relay = RelayDecisionEngine(address, config.relay_probability, self._rng)
        self._sweeper = MaintenanceSweeper(self._routing_table, self._cache, config.route_timeout)

        self._timers: Dict[str, TimerHandle] = {}
        self._running = False
        self._stats = NodeStatistics()

    # === Properties ===

    @property
    def address(self) -> str:
        return self._address

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def routing_table(self) -> RoutingTable:
        return self._routing_table

    @property
    def cache(self) -> DuplicateSuppressionCache:
        return self._cache

    @property
    def statistics(self) -> NodeStatistics:
        return self._stats

    # === Lifecycle ===

    def start(self) -> None:
        """
        Schedule the first firing of every periodic task.

        Raises:
            RuntimeError: If no scheduler was supplied
        """
        if self._running:
            return

        if self._scheduler is None:
            raise RuntimeError(f"Node {self._address} has no scheduler")

        now = self._scheduler.now
        cfg = self._config

        self._schedule(
            BEACON_TIMER,
            now + self._rng.uniform(0, cfg.beacon_interval),
            self._on_beacon_timer,
        )
        self._schedule(
            HEARTBEAT_TIMER,
            now + self._rng.uniform(cfg.heartbeat_start_min, cfg.heartbeat_start_max),
            self._on_heartbeat_timer,
        )
        self._schedule(
            CLEANUP_TIMER,
            now + cfg.route_timeout,
            self._on_cleanup_timer,
        )

        self._running = True
        logger.info(f"Node {self._address} started at {now:.3f}")

    def stop(self) -> None:
        """Cancel all timers and log final counts."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

        if not self._running:
            return

        self._running = False
        logger.info(
            f"Node {self._address} finishing. "
            f"sent={self._stats.messages_sent} "
            f"received={self._stats.messages_received} "
            f"relayed={self._stats.messages_relayed} "
            f"routes={len(self._routing_table)}"
        )

    def __enter__(self) -> 'MeshNode':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure timers are released."""
        self.stop()
        return False

    # === Periodic Tasks ===

    def _schedule(self, name: str, time: float, callback) -> None:
        self._timers[name] = self._scheduler.schedule_at(
            time, callback, name=f"{self._address}:{name}"
        )

    def _on_beacon_timer(self) -> None:
        """Single-hop discovery beacon, every beacon_interval."""
        now = self._scheduler.now
        self.originate(MessageKind.BEACON, now)
        self._schedule(BEACON_TIMER, now + self._config.beacon_interval, self._on_beacon_timer)

    def _on_heartbeat_timer(self) -> None:
        """Heartbeat, optionally followed by a data message."""
        now = self._scheduler.now
        cfg = self._config

        self.originate(MessageKind.HEARTBEAT, now)
        if self._rng.random() < cfg.data_probability:
            self.originate(MessageKind.DATA, now)

        next_time = now + cfg.heartbeat_interval + self._rng.uniform(
            -cfg.heartbeat_jitter, cfg.heartbeat_jitter
        )
        self._schedule(HEARTBEAT_TIMER, next_time, self._on_heartbeat_timer)

    def _on_cleanup_timer(self) -> None:
        now = self._scheduler.now
        self.run_maintenance(now)
        self._schedule(CLEANUP_TIMER, now + self._config.route_timeout, self._on_cleanup_timer)

    def run_maintenance(self, now: float) -> SweepResult:
        """Evict stale routes and cache entries."""
        return self._sweeper.sweep(now)

    # === Sending ===

    def originate(
        self,
        kind: MessageKind,
        now: float,
        payload: Optional[bytes] = None,
    ) -> ProtocolMessage:
        """
        Create and send a new message.

        Args:
            kind: Message kind
            now: Current logical time
            payload: Explicit payload (optional)

        Returns:
            The originated message
        """
        msg = self._factory.create_message(kind, now, payload=payload)
        self._stats.messages_originated += 1

        logger.debug(f"{self._address}: originate {msg.short_id()} ttl={msg.ttl}")
        self.send_message(msg, now)
        return msg

    def send_message(self, msg: Optional[ProtocolMessage], now: float) -> bool:
        """
        Stamp our address onto a message and hand it to the transport.

        Args:
            msg: Message to send
            now: Current logical time

        Returns:
            True if the transport accepted the message
        """
        if not isinstance(msg, ProtocolMessage):
            logger.debug(f"{self._address}: refusing to send empty message")
            self._stats.malformed += 1
            return False

        if not msg.source_address:
            msg.source_address = self._address

        if not msg.is_valid():
            logger.debug(f"{self._address}: refusing to send malformed {msg.short_id()}")
            self._stats.malformed += 1
            return False

        msg.add_to_path(self._address)

        if self._transport is None:
            logger.warning(f"{self._address}: no transport, dropping {msg.short_id()}")
            self._stats.send_errors += 1
            return False

        delay = self._rng.uniform(self._config.tx_delay_min, self._config.tx_delay_max)

        try:
            self._transport.dispatch(msg, delay)
        except TransportError as e:
            logger.warning(f"{self._address}: send failed for {msg.short_id()}: {e}")
            self._stats.send_errors += 1
            return False

        self._stats.messages_sent += 1
        return True

    def relay_message(self, msg: ProtocolMessage, now: float) -> bool:
        """
        Re-broadcast a received message.

        Args:
            msg: Message as received
            now: Current logical time

        Returns:
            True if a relay copy was sent
        """
        relay = self._relay.prepare_relay(msg)
        if relay is None:
            return False

        if not self.send_message(relay, now):
            return False

        self._stats.messages_relayed += 1
        logger.debug(
            f"{self._address}: relay {relay.short_id()} "
            f"ttl={relay.ttl} hops={relay.hop_count}"
        )
        return True

    # === Receiving ===

    def on_frame(self, data: bytes, now: float) -> bool:
        """
        Handle raw bytes from the medium.

        Args:
            data: Encoded frame
            now: Arrival time

        Returns:
            True if the message was new and processed
        """
        try:
            msg = decode_message(data)
        except FrameError as e:
            logger.debug(f"{self._address}: dropping undecodable frame: {e}")
            self._stats.malformed += 1
            return False

        return self.on_message_arrival(msg, now)

    def on_message_arrival(self, msg: Optional[ProtocolMessage], now: float) -> bool:
        """
        Handle a message delivered by the transport.

        Each distinct (source, sequence) pair updates the routing table and
        is considered for relay at most once.

        Args:
            msg: Delivered message
            now: Arrival time

        Returns:
            True if the message was new and processed
        """
        if not isinstance(msg, ProtocolMessage) or not msg.is_valid():
            logger.debug(f"{self._address}: dropping malformed message")
            self._stats.malformed += 1
            return False

        self._stats.messages_received += 1

        if self._cache.is_duplicate(msg):
            self._stats.duplicates += 1
            return False

        self._cache.cache_message(msg, now)
        self._routing_table.update_from(msg, now)

        decision = self._relay.evaluate(msg)
        if decision == RelayDecision.RELAY:
            self.relay_message(msg, now)
        elif decision == RelayDecision.TTL_EXPIRED:
            self._stats.ttl_expired += 1
        elif decision == RelayDecision.OWN_MESSAGE:
            self._stats.own_echoes += 1
        elif decision == RelayDecision.LOOP:
            self._stats.loops += 1
        elif decision == RelayDecision.SINGLE_HOP:
            self._stats.single_hop += 1
        else:
            self._stats.suppressed += 1

        return True

    # === Telemetry ===

    def get_stats(self) -> dict:
        """
        Get node statistics.

        Returns:
            dict: Message counters plus routing table and cache sizes
        """
        stats = asdict(self._stats)
        stats["address"] = self._address
        stats["routing_table_size"] = len(self._routing_table)
        stats["cache_size"] = len(self._cache)
        return stats

    def __repr__(self) -> str:
        return f"<MeshNode address={self._address} running={self._running}>"
