"""Ports for the host command framework."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, TextIO

from commandbridge.domain.operations import Operation


class OperationSource(ABC):
    """Read-only view of the commands a host application registers."""

    @abstractmethod
    def all(self) -> Iterable[Operation]:
        """Return every registered operation, hidden ones included."""

    @abstractmethod
    def find(self, name: str) -> Operation | None:
        """Return the operation registered under ``name`` exactly."""


class ExecutionSink(ABC):
    """Runs one operation in-process against a structured payload."""

    @abstractmethod
    def run(self, payload: Mapping[str, Any], output: TextIO) -> int:
        """Execute ``payload['command']`` writing everything it prints to ``output``.

        Must return the exit code and must never terminate the calling process.
        """
