import pytest

from meshflood.packet.format import HEADER_SIZE, FrameError, decode_message, encode_message
from meshflood.packet.message import MessageKind, ProtocolMessage


def sample_message():
    return ProtocolMessage(
        kind=MessageKind.DATA,
        source_address="node-7",
        sequence_number=4242,
        ttl=6,
        hop_count=3,
        timestamp=12.75,
        path=["node-7", "relay-a", "relay-b"],
        payload=bytes(range(120)),
        priority=2,
        deadline=42.75,
        is_relay=True,
    )


def test_decoded_message_matches_original():
    msg = sample_message()
    decoded = decode_message(encode_message(msg))
    assert decoded == msg


def test_unset_deadline_survives():
    msg = ProtocolMessage(kind=MessageKind.BEACON, source_address="A", sequence_number=1, ttl=1, path=["A"])
    decoded = decode_message(encode_message(msg))
    assert decoded.deadline is None
    assert decoded.is_relay is False


def test_header_corruption_is_detected():
    frame = bytearray(encode_message(sample_message()))
    frame[4] ^= 0x01  # ttl byte
    with pytest.raises(FrameError, match="checksum"):
        decode_message(bytes(frame))


def test_body_corruption_is_detected():
    frame = bytearray(encode_message(sample_message()))
    frame[HEADER_SIZE + 2] ^= 0x80
    with pytest.raises(FrameError, match="digest"):
        decode_message(bytes(frame))


def test_truncated_frame():
    frame = encode_message(sample_message())
    with pytest.raises(FrameError):
        decode_message(frame[:HEADER_SIZE])
    with pytest.raises(FrameError):
        decode_message(frame[:-1])


def test_out_of_range_fields_rejected():
    msg = sample_message()
    msg.ttl = -1
    with pytest.raises(FrameError):
        encode_message(msg)

    msg = sample_message()
    msg.priority = 5
    with pytest.raises(FrameError, match="Invalid message"):
        decode_message(encode_message(msg))


def test_frame_error_is_value_error():
    with pytest.raises(ValueError):
        decode_message(b"\x00" * 4)
