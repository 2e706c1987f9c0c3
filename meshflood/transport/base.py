"""
meshflood Transport Base Class

Defines the interface between a node's engine and the medium that carries
its messages.

Design Principles:
- Fire-and-forget dispatch (no acknowledgement or delivery tracking)
- The engine supplies the transmission delay; the transport applies it
- Clear error handling via TransportError
"""

from abc import ABC, abstractmethod

from ..packet.message import ProtocolMessage


class TransportError(Exception):
    """Exception raised for transport-related errors."""
    pass


class BaseTransport(ABC):
    """
    Abstract base class for message transports.

    Usage:
        transport = ConcreteTransport("A")
        transport.dispatch(msg, delay=0.005)
    """

    def __init__(self, address: str):
        """
        Initialize transport base class.

        Args:
            address: Address of the node this transport belongs to
        """
        self.address = address
        self._closed = False

        # Statistics
        self._messages_dispatched = 0
        self._dispatch_errors = 0

    @abstractmethod
    def dispatch(self, msg: ProtocolMessage, delay: float) -> None:
        """
        Hand a message to the medium.

        Does not wait for delivery.

        Args:
            msg: Message to transmit
            delay: Medium-access delay before transmission

        Raises:
            TransportError: If the message cannot be dispatched
        """
        pass

    def close(self) -> None:
        """Stop accepting messages."""
        self._closed = True

    def get_statistics(self) -> dict:
        """
        Get transport statistics.

        Returns:
            dict: Statistics including messages dispatched and errors
        """
        return {
            "address": self.address,
            "closed": self._closed,
            "messages_dispatched": self._messages_dispatched,
            "dispatch_errors": self._dispatch_errors,
        }

    def _check_dispatch(self, delay: float) -> None:
        """
        Validate a dispatch request.

        Raises:
            TransportError: If the transport is closed or delay is negative
        """
        if self._closed:
            self._dispatch_errors += 1
            raise TransportError(f"Transport {self.address} is closed")

        if delay < 0:
            self._dispatch_errors += 1
            raise TransportError(f"Invalid transmission delay: {delay}")

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} address={self.address}>"
