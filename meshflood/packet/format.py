"""
meshflood Message Wire Format

Defines the byte layout of a protocol message on the medium.

Frame Structure:
    Header (fixed size) + Body (variable) + Digest (8 bytes)

Header Format (36 bytes, big-endian):
    version      (1 byte)  - Protocol version
    kind         (1 byte)  - Message kind
    flags        (1 byte)  - Relay / deadline flags
    priority     (1 byte)  - Priority level
    ttl          (1 byte)  - Remaining hop budget
    hop_count    (1 byte)  - Hops traversed
    sequence     (4 bytes) - Per-source sequence number
    timestamp    (8 bytes) - Logical send time (double)
    deadline     (8 bytes) - Logical deadline (double, 0 if unset)
    reliability  (4 bytes) - Reliability score (float)
    source_len   (1 byte)  - Source address length
    path_count   (1 byte)  - Number of path entries
    payload_len  (2 bytes) - Payload length
    checksum     (2 bytes) - CRC-16 of the preceding header fields

Body:
    source address (UTF-8), path entries (1-byte length + UTF-8 each), payload

Digest:
    First 8 bytes of BLAKE2b over the body. Detects corruption only; it is
    not an authentication tag.
"""

import struct
from typing import List, Tuple

from cryptography.hazmat.primitives import hashes

from .. import PROTOCOL_VERSION, MAX_PATH_LENGTH
from .message import MessageKind, ProtocolMessage


# Header layout without the trailing checksum
_HEADER_FIELDS = struct.Struct(">BBBBBBIddfBBH")
_CHECKSUM = struct.Struct(">H")

HEADER_SIZE = _HEADER_FIELDS.size + _CHECKSUM.size

# Truncated body digest size
DIGEST_SIZE = 8

# Maximum encoded address length
MAX_ADDRESS_LENGTH = 255

# Maximum payload size
MAX_PAYLOAD_SIZE = 0xFFFF

# Flag bits
FLAG_RELAY = 0x01
FLAG_DEADLINE = 0x02


class FrameError(ValueError):
    """Raised when a frame cannot be encoded or decoded."""
    pass


def _crc16(data: bytes) -> int:
    """
    Compute CRC-16-CCITT checksum.

    Uses polynomial 0x1021 (CRC-16-CCITT).
    """
    crc = 0xFFFF
    for byte in data:
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = (crc << 1) ^ 0x1021
            else:
                crc <<= 1
            crc &= 0xFFFF
    return crc


def _digest(body: bytes) -> bytes:
    """Truncated BLAKE2b digest of the frame body."""
    hasher = hashes.Hash(hashes.BLAKE2b(64))
    hasher.update(body)
    return hasher.finalize()[:DIGEST_SIZE]


def _encode_address(address: str) -> bytes:
    raw = address.encode("utf-8")
    if len(raw) > MAX_ADDRESS_LENGTH:
        raise FrameError(f"Address too long: {len(raw)} > {MAX_ADDRESS_LENGTH}")
    return raw


def encode_message(msg: ProtocolMessage) -> bytes:
    """
    Serialize a message to a frame.

    Args:
        msg: Message to encode

    Returns:
        Encoded frame

    Raises:
        FrameError: If a field does not fit the wire format
    """
    source = _encode_address(msg.source_address)

    if len(msg.path) > MAX_PATH_LENGTH:
        raise FrameError(f"Path too long: {len(msg.path)} > {MAX_PATH_LENGTH}")

    if len(msg.payload) > MAX_PAYLOAD_SIZE:
        raise FrameError(f"Payload too large: {len(msg.payload)} > {MAX_PAYLOAD_SIZE}")

    path_parts = []
    for address in msg.path:
        raw = _encode_address(address)
        path_parts.append(bytes([len(raw)]) + raw)

    flags = 0
    if msg.is_relay:
        flags |= FLAG_RELAY
    if msg.deadline is not None:
        flags |= FLAG_DEADLINE

    try:
        header = _HEADER_FIELDS.pack(
            PROTOCOL_VERSION,
            int(msg.kind),
            flags,
            msg.priority,
            msg.ttl,
            msg.hop_count,
            msg.sequence_number,
            msg.timestamp,
            msg.deadline if msg.deadline is not None else 0.0,
            msg.reliability,
            len(source),
            len(msg.path),
            len(msg.payload),
        )
    except struct.error as e:
        raise FrameError(f"Field out of range: {e}") from e

    body = source + b"".join(path_parts) + bytes(msg.payload)

    return header + _CHECKSUM.pack(_crc16(header)) + body + _digest(body)


def _read_address(data: bytes, offset: int, length: int) -> Tuple[str, int]:
    end = offset + length
    if end > len(data):
        raise FrameError("Frame truncated inside address")
    try:
        return data[offset:end].decode("utf-8"), end
    except UnicodeDecodeError as e:
        raise FrameError(f"Invalid address encoding: {e}") from e


def decode_message(data: bytes) -> ProtocolMessage:
    """
    Parse a frame into a message.

    Args:
        data: Raw frame bytes

    Returns:
        Decoded message

    Raises:
        FrameError: If the frame is truncated, corrupted or out of range
    """
    if len(data) < HEADER_SIZE + DIGEST_SIZE:
        raise FrameError(f"Frame too short: {len(data)} < {HEADER_SIZE + DIGEST_SIZE}")

    header = data[:_HEADER_FIELDS.size]
    (checksum,) = _CHECKSUM.unpack(data[_HEADER_FIELDS.size:HEADER_SIZE])

    expected_crc = _crc16(header)
    if checksum != expected_crc:
        raise FrameError(f"Header checksum mismatch: {checksum:#06x} != {expected_crc:#06x}")

    (version, kind, flags, priority, ttl, hop_count, sequence,
     timestamp, deadline, reliability, source_len, path_count,
     payload_len) = _HEADER_FIELDS.unpack(header)

    if version != PROTOCOL_VERSION:
        raise FrameError(f"Unsupported protocol version: {version}")

    try:
        kind = MessageKind(kind)
    except ValueError as e:
        raise FrameError(f"Unknown message kind: {kind}") from e

    body = data[HEADER_SIZE:-DIGEST_SIZE]
    if _digest(body) != data[-DIGEST_SIZE:]:
        raise FrameError("Body digest mismatch")

    source, offset = _read_address(body, 0, source_len)

    path: List[str] = []
    for _ in range(path_count):
        if offset >= len(body):
            raise FrameError("Frame truncated inside path")
        length = body[offset]
        address, offset = _read_address(body, offset + 1, length)
        path.append(address)

    if len(body) - offset != payload_len:
        raise FrameError(f"Payload length mismatch: {len(body) - offset} != {payload_len}")

    msg = ProtocolMessage(
        kind=kind,
        source_address=source,
        sequence_number=sequence,
        ttl=ttl,
        hop_count=hop_count,
        timestamp=timestamp,
        path=path,
        payload=body[offset:],
        priority=priority,
        deadline=deadline if flags & FLAG_DEADLINE else None,
        is_relay=bool(flags & FLAG_RELAY),
        reliability=reliability,
    )

    if not msg.is_valid():
        raise FrameError(f"Invalid message fields: {msg.short_id()}")

    return msg
