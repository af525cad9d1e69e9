"""In-process execution of host operations with output capture."""

from __future__ import annotations

import time
from io import StringIO
from typing import Any, Dict, Mapping

from commandbridge.app.registry import OperationRegistry
from commandbridge.domain.cli_form import build_command_line
from commandbridge.domain.results import SyncExecutionResult
from commandbridge.ports.operations import ExecutionSink


def build_payload(name: str, arguments: Mapping[str, Any], options: Mapping[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"command": name}

    for arg_name, value in arguments.items():
        if value is not None:
            payload[arg_name] = value

    for opt_name, value in options.items():
        if value is None or value == "" or value is False:
            continue
        key = f"--{opt_name}"
        if value is True:
            payload[key] = True
        elif isinstance(value, (list, tuple)):
            payload[key] = list(value)
        else:
            payload[key] = value
    return payload


class CommandExecutor:
    def __init__(self, registry: OperationRegistry, sink: ExecutionSink) -> None:
        self._registry = registry
        self._sink = sink

    def execute(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
    ) -> SyncExecutionResult:
        arguments = arguments or {}
        options = options or {}
        operation = self._registry.find_operation(name)
        payload = build_payload(operation.name, arguments, options)

        output = StringIO()
        start = time.perf_counter()
        exit_code = self._sink.run(payload, output)
        duration_ms = int(round((time.perf_counter() - start) * 1000))

        return SyncExecutionResult(
            cli=build_command_line(operation.name, arguments, options),
            exit_code=int(exit_code),
            duration_ms=duration_ms,
            output=output.getvalue(),
        )
