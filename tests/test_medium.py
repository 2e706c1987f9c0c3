import random

import pytest

from meshflood.config import MediumConfig
from meshflood.packet.format import decode_message
from meshflood.sim.scheduler import Scheduler
from meshflood.sim.topology import build_topology, grid, line, ring
from meshflood.transport.base import TransportError
from meshflood.transport.medium import MediumTransport, VirtualMedium

from conftest import make_message


def make_medium(topology, **settings):
    scheduler = Scheduler()
    medium = VirtualMedium(scheduler, topology, MediumConfig(**settings), rng=random.Random(3))
    inbox = {}
    for address in topology:
        inbox[address] = []
        medium.register(address, lambda data, now, a=address: inbox[a].append((data, now)))
    return scheduler, medium, inbox


# === Topologies ===

def test_line_and_ring():
    assert line(3) == {"N1": ["N2"], "N2": ["N1", "N3"], "N3": ["N2"]}
    assert "N1" in ring(4)["N4"]
    assert ring(2) == line(2)


def test_grid_links_are_symmetric():
    topology = grid(9)
    assert sorted(topology["N5"]) == ["N2", "N4", "N6", "N8"]
    assert sorted(topology["N1"]) == ["N2", "N4"]
    for node, adjacent in topology.items():
        for neighbor in adjacent:
            assert node in topology[neighbor]


def test_unknown_topology():
    with pytest.raises(ValueError):
        build_topology("star", 4)


# === Medium ===

def test_broadcast_reaches_neighbours_only():
    scheduler, medium, inbox = make_medium(line(3), latency=0.5)
    transport = MediumTransport("N2", medium)

    transport.dispatch(make_message(source="N2"), delay=0.25)
    scheduler.run()

    assert len(inbox["N1"]) == 1
    assert len(inbox["N3"]) == 1
    assert inbox["N2"] == []

    data, arrival = inbox["N1"][0]
    assert arrival == 0.75
    assert decode_message(data).key == ("N2", 1)


def test_each_receiver_decodes_its_own_copy():
    scheduler, medium, inbox = make_medium(line(3))
    MediumTransport("N2", medium).dispatch(make_message(source="N2"), delay=0.0)
    scheduler.run()

    first = decode_message(inbox["N1"][0][0])
    second = decode_message(inbox["N3"][0][0])
    first.path.append("N1")
    assert second.path == ["N2"]


def test_loss_and_corruption():
    scheduler, medium, inbox = make_medium(line(2), loss_probability=1.0)
    medium.transmit("N1", b"frame", delay=0.0)
    scheduler.run()
    assert inbox["N2"] == []
    assert medium.get_statistics()["frames_lost"] == 1

    scheduler, medium, inbox = make_medium(line(2), corruption_probability=1.0)
    medium.transmit("N1", b"frame", delay=0.0)
    scheduler.run()
    assert inbox["N2"][0][0] != b"frame"
    assert len(inbox["N2"][0][0]) == len(b"frame")


def test_unregistered_receiver_drops_in_flight_frames():
    scheduler, medium, inbox = make_medium(line(2))
    medium.transmit("N1", b"frame", delay=1.0)
    medium.unregister("N2")
    scheduler.run()
    assert inbox["N2"] == []
    assert medium.get_statistics()["frames_delivered"] == 0


def test_closed_transport_refuses_dispatch():
    _, medium, _ = make_medium(line(2))
    transport = MediumTransport("N1", medium)
    transport.close()

    with pytest.raises(TransportError):
        transport.dispatch(make_message(source="N1"), delay=0.0)
    assert transport.get_statistics()["dispatch_errors"] == 1


def test_negative_delay_refused():
    _, medium, _ = make_medium(line(2))
    with pytest.raises(TransportError):
        MediumTransport("N1", medium).dispatch(make_message(source="N1"), delay=-1.0)


def test_unencodable_message_raises_transport_error():
    _, medium, _ = make_medium(line(2))
    msg = make_message(source="N1")
    msg.ttl = 300
    with pytest.raises(TransportError, match="Cannot encode"):
        MediumTransport("N1", medium).dispatch(msg, delay=0.0)
