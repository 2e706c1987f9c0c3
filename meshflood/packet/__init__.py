"""
meshflood Packet Module

Handles the protocol message type, message construction, wire format
and duplicate suppression.
"""

from .message import (
    MessageKind,
    MessageKey,
    ProtocolMessage,
)

from .factory import (
    MessageFactory,
    BEACON_MARKER,
)

from .format import (
    FrameError,
    encode_message,
    decode_message,
    HEADER_SIZE,
)

from .dedup import (
    CacheEntry,
    DuplicateSuppressionCache,
)

__all__ = [
    # Message
    'MessageKind',
    'MessageKey',
    'ProtocolMessage',
    # Factory
    'MessageFactory',
    'BEACON_MARKER',
    # Format
    'FrameError',
    'encode_message',
    'decode_message',
    'HEADER_SIZE',
    # Dedup
    'CacheEntry',
    'DuplicateSuppressionCache',
]
