import random

import pytest

from meshflood.config import MeshConfig
from meshflood.node import MeshNode
from meshflood.packet.message import MessageKind, ProtocolMessage
from meshflood.sim.scheduler import Scheduler
from meshflood.transport.base import BaseTransport


class RecordingTransport(BaseTransport):
    """Captures dispatched messages instead of delivering them."""

    def __init__(self, address="X"):
        super().__init__(address)
        self.sent = []

    def dispatch(self, msg, delay):
        self._check_dispatch(delay)
        self.sent.append((msg.relay_copy(), delay))
        self._messages_dispatched += 1

    @property
    def messages(self):
        return [msg for msg, _ in self.sent]


def make_message(source="A", sequence=1, ttl=5, hop_count=0, path=None, kind=MessageKind.DATA):
    return ProtocolMessage(
        kind=kind,
        source_address=source,
        sequence_number=sequence,
        ttl=ttl,
        hop_count=hop_count,
        timestamp=0.0,
        path=list(path) if path is not None else [source],
    )


def make_node(address="B", scheduler=None, seed=1, **overrides):
    params = {"relay_probability": 1.0}
    params.update(overrides)
    config = MeshConfig(**params)
    transport = RecordingTransport(address)
    node = MeshNode(
        address,
        config,
        scheduler=scheduler,
        transport=transport,
        rng=random.Random(seed),
    )
    return node, transport


@pytest.fixture
def scheduler():
    return Scheduler()
