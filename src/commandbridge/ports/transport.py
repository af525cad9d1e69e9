"""Port for fire-and-forget command dispatch."""

from __future__ import annotations

from abc import ABC, abstractmethod

from commandbridge.domain.results import RunCommandMessage, TransportAck


class TransportError(RuntimeError):
    """Raised when a transport refuses or cannot accept a message."""


class MessageTransport(ABC):
    name = "transport"

    @abstractmethod
    def send(self, message: RunCommandMessage) -> TransportAck:
        """Enqueue ``message`` and return as soon as it is accepted."""
