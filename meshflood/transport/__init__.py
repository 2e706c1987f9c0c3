"""
meshflood Transport Layer

Provides the interface the engine dispatches messages through:
- BaseTransport: abstract fire-and-forget transport
- MediumTransport / VirtualMedium: in-process broadcast medium for
  simulation and testing
"""

from .base import (
    BaseTransport,
    TransportError,
)

from .medium import (
    VirtualMedium,
    MediumTransport,
)

__all__ = [
    'BaseTransport',
    'TransportError',
    'VirtualMedium',
    'MediumTransport',
]
