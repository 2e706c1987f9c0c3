import random

from meshflood.config import MeshConfig
from meshflood.packet.factory import BEACON_MARKER, MessageFactory
from meshflood.packet.message import MessageKind


def make_factory(seed=3, **overrides):
    return MessageFactory("A", MeshConfig(**overrides), rng=random.Random(seed))


def test_sequence_numbers_strictly_increase():
    factory = make_factory()
    kinds = [MessageKind.BEACON, MessageKind.HEARTBEAT, MessageKind.DATA] * 20

    sequences = [factory.create_message(kind, now=float(i)).sequence_number for i, kind in enumerate(kinds)]

    assert sequences[0] == 1
    assert all(b > a for a, b in zip(sequences, sequences[1:]))
    assert len(set(sequences)) == len(sequences)
    assert factory.last_sequence == len(kinds)


def test_common_defaults():
    factory = make_factory(max_ttl=7)
    msg = factory.create_message(MessageKind.CONTROL, now=4.5)

    assert msg.source_address == "A"
    assert msg.ttl == 7
    assert msg.hop_count == 0
    assert msg.timestamp == 4.5
    assert msg.path == []
    assert msg.priority == 0
    assert msg.deadline is None
    assert msg.reliability == 1.0
    assert msg.is_relay is False
    assert msg.payload == b""


def test_beacon_is_single_hop():
    msg = make_factory(max_ttl=9).create_message(MessageKind.BEACON, now=1.0)

    assert msg.ttl == 1
    assert msg.payload == BEACON_MARKER


def test_heartbeat_carries_sender_and_time():
    msg = make_factory().create_message(MessageKind.HEARTBEAT, now=12.5)
    assert msg.payload == b"HEARTBEAT from A at 12.5"


def test_data_size_priority_and_deadline():
    factory = make_factory(seed=11)
    priorities = set()

    for i in range(300):
        msg = factory.create_message(MessageKind.DATA, now=100.0)
        assert 50 <= msg.payload_size <= 200
        assert msg.priority in (0, 1, 2)
        if msg.priority > 0:
            assert msg.deadline == 130.0
        else:
            assert msg.deadline is None
        priorities.add(msg.priority)

    assert priorities == {0, 1, 2}


def test_explicit_payload_overrides_generated():
    msg = make_factory().create_message(MessageKind.DATA, now=0.0, payload=b"hello")
    assert msg.payload == b"hello"
