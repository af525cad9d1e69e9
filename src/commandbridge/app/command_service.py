"""Command orchestration shared by the HTTP and CLI surfaces."""

from __future__ import annotations

from typing import Any, List, Mapping

from commandbridge.app.dispatch import DispatchFailedError, DispatchGateway, DispatchUnavailableError
from commandbridge.app.executor import CommandExecutor
from commandbridge.app.registry import OperationRegistry
from commandbridge.domain.cli_form import build_command_line
from commandbridge.domain.grouping import OperationGroup
from commandbridge.domain.normalizer import normalize_arguments, normalize_options
from commandbridge.domain.operations import Operation, OperationNotFoundError
from commandbridge.domain.results import AsyncExecutionResult, ExecutionResult
from commandbridge.settings import RuntimeSettings
from commandbridge.utils.telemetry import record_structured_event

_COMPONENT = "bridge"


class CommandService:
    def __init__(
        self,
        settings: RuntimeSettings,
        registry: OperationRegistry,
        executor: CommandExecutor,
        gateway: DispatchGateway,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._executor = executor
        self._gateway = gateway

    @property
    def async_available(self) -> bool:
        return self._gateway.available

    def list_groups(self) -> List[OperationGroup]:
        return self._registry.grouped()

    def list_operations(self) -> List[Operation]:
        return self._registry.list_operations()

    def describe(self, name: str) -> Operation:
        return self._find(name)

    def run(
        self,
        name: str,
        arguments: Mapping[str, Any] | None = None,
        options: Mapping[str, Any] | None = None,
        *,
        dispatch: bool = False,
    ) -> ExecutionResult:
        operation = self._find(name)
        args = normalize_arguments(arguments or {})
        opts = normalize_options(options or {}, operation.schema.options)

        if dispatch:
            return self._dispatch(operation, args, opts)

        result = self._executor.execute(operation.name, args, opts)
        record_structured_event(
            self._settings,
            "bridge.run",
            status="success" if result.succeeded else "error",
            component=_COMPONENT,
            duration_ms=result.duration_ms,
            payload={"command": operation.name, "cli": result.cli, "exit_code": result.exit_code},
        )
        return result

    def _dispatch(self, operation: Operation, args: Mapping[str, Any], opts: Mapping[str, Any]) -> AsyncExecutionResult:
        cli = build_command_line(operation.name, args, opts)
        try:
            ack = self._gateway.dispatch(cli)
        except DispatchUnavailableError:
            record_structured_event(
                self._settings,
                "bridge.dispatch_unavailable",
                level="warn",
                status="error",
                component=_COMPONENT,
                payload={"command": operation.name},
            )
            raise
        except DispatchFailedError as exc:
            record_structured_event(
                self._settings,
                "bridge.dispatch_failed",
                level="error",
                status="error",
                component=_COMPONENT,
                payload={"command": operation.name, "error": str(exc)},
            )
            raise
        record_structured_event(
            self._settings,
            "bridge.dispatch",
            status="success",
            component=_COMPONENT,
            correlation_id=ack.message_id,
            payload={"command": operation.name, "cli": cli, "transport": ack.transport},
        )
        return AsyncExecutionResult(cli=cli, acknowledged=ack.accepted, message_id=ack.message_id)

    def _find(self, name: str) -> Operation:
        try:
            return self._registry.find_operation(name)
        except OperationNotFoundError:
            record_structured_event(
                self._settings,
                "bridge.not_found",
                level="warn",
                status="error",
                component=_COMPONENT,
                payload={"command": name},
            )
            raise
