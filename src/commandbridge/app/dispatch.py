"""Hand-off of reconstructed command lines to an async transport."""

from __future__ import annotations

from commandbridge.domain.operations import BridgeError
from commandbridge.domain.results import RunCommandMessage, TransportAck
from commandbridge.ports.transport import MessageTransport, TransportError


class DispatchUnavailableError(BridgeError):
    """Raised when async dispatch is requested but no transport is configured."""


class DispatchFailedError(BridgeError):
    """Raised when the transport does not accept the message."""


class DispatchGateway:
    def __init__(self, transport: MessageTransport | None) -> None:
        self._transport = transport

    @property
    def available(self) -> bool:
        return self._transport is not None

    @property
    def transport_name(self) -> str | None:
        return self._transport.name if self._transport is not None else None

    def dispatch(self, cli: str) -> TransportAck:
        if self._transport is None:
            raise DispatchUnavailableError("Async dispatch is not available: no message transport configured.")
        message = RunCommandMessage(input=cli)
        try:
            ack = self._transport.send(message)
        except TransportError as exc:
            raise DispatchFailedError(str(exc)) from exc
        if not ack.accepted:
            raise DispatchFailedError(f"{self._transport.name} transport did not accept message {message.id}")
        return ack
