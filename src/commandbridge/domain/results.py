"""Execution results and async dispatch messages."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Union

ASYNC_NOTICE = (
    "Dispatched to the message transport. Output is not shown here; "
    "check the host application's logs (commands should log their progress)."
)


@dataclass(frozen=True)
class SyncExecutionResult:
    cli: str
    exit_code: int
    duration_ms: int
    output: str
    mode: Literal["sync"] = "sync"

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "cli": self.cli,
            "exitCode": self.exit_code,
            "durationMs": self.duration_ms,
            "output": self.output,
        }


@dataclass(frozen=True)
class AsyncExecutionResult:
    cli: str
    acknowledged: bool
    message_id: str | None = None
    message: str = ASYNC_NOTICE
    mode: Literal["async"] = "async"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "cli": self.cli,
            "acknowledged": self.acknowledged,
            "messageId": self.message_id,
            "message": self.message,
        }


ExecutionResult = Union[SyncExecutionResult, AsyncExecutionResult]


@dataclass(frozen=True)
class RunCommandMessage:
    """Opaque payload handed to the async transport."""

    input: str
    id: str = field(default_factory=lambda: secrets.token_hex(8))
    created_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "input": self.input, "createdAt": self.created_at}


@dataclass(frozen=True)
class TransportAck:
    accepted: bool
    message_id: str
    transport: str
