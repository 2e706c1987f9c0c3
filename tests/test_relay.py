import random

import pytest

from meshflood.mesh.relay import RelayDecision, RelayDecisionEngine
from meshflood.packet.message import MessageKind

from conftest import make_message


def make_engine(probability=1.0, address="B"):
    return RelayDecisionEngine(address, probability, rng=random.Random(5))


def test_ttl_exhausted_is_never_relayed():
    engine = make_engine()
    assert engine.evaluate(make_message(ttl=0)) == RelayDecision.TTL_EXPIRED
    assert engine.should_relay(make_message(ttl=0)) is False


def test_own_message_is_not_relayed():
    engine = make_engine(address="A")
    assert engine.evaluate(make_message(source="A", path=["C"])) == RelayDecision.OWN_MESSAGE


def test_loop_detected_from_path():
    engine = make_engine(address="B")
    msg = make_message(source="A", path=["A", "B", "C"])
    assert engine.evaluate(msg) == RelayDecision.LOOP


def test_probability_gate():
    assert make_engine(probability=1.0).evaluate(make_message()) == RelayDecision.RELAY
    assert make_engine(probability=0.0).evaluate(make_message()) == RelayDecision.SUPPRESSED


def test_probability_gate_is_bernoulli():
    engine = make_engine(probability=0.5)
    relayed = sum(engine.should_relay(make_message(sequence=i)) for i in range(2000))
    assert 850 < relayed < 1150


def test_prepare_relay_builds_modified_copy():
    engine = make_engine(address="B")
    msg = make_message(source="A", ttl=3, hop_count=0, path=["A"])

    relay = engine.prepare_relay(msg)

    assert relay.ttl == 2
    assert relay.hop_count == 1
    assert relay.is_relay is True
    assert relay.path == ["A"]
    assert relay.key == msg.key

    # Original untouched
    assert msg.ttl == 3
    assert msg.hop_count == 0
    assert msg.is_relay is False


def test_prepare_relay_guard():
    engine = make_engine(address="B")
    assert engine.prepare_relay(make_message(ttl=0)) is None
    assert engine.prepare_relay(make_message(path=["A", "B"])) is None


def test_invalid_probability():
    with pytest.raises(ValueError):
        RelayDecisionEngine("B", 1.5)


def test_beacons_are_single_hop():
    engine = make_engine(address="B")
    beacon = make_message(source="A", ttl=1, kind=MessageKind.BEACON)

    assert engine.evaluate(beacon) == RelayDecision.SINGLE_HOP
    assert engine.prepare_relay(beacon) is None
