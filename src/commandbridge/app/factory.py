"""Wiring of the bridge services from settings and configuration."""

from __future__ import annotations

from commandbridge.adapters.argparse_source import ArgparseOperationSource
from commandbridge.adapters.transports import build_transport_from_config
from commandbridge.app.command_service import CommandService
from commandbridge.app.dispatch import DispatchGateway
from commandbridge.app.executor import CommandExecutor
from commandbridge.app.registry import OperationRegistry
from commandbridge.ports.transport import MessageTransport
from commandbridge.settings import BridgeConfig, RuntimeSettings


def build_command_service(
    settings: RuntimeSettings,
    config: BridgeConfig,
    *,
    source: ArgparseOperationSource | None = None,
    transport: MessageTransport | None = None,
) -> CommandService:
    source = source or ArgparseOperationSource.from_entry_points(settings)
    if transport is None:
        transport = build_transport_from_config(settings.home_dir, config.transport)
    registry = OperationRegistry(source, config.namespaces, pinned_group=config.pinned_group)
    return CommandService(
        settings,
        registry,
        CommandExecutor(registry, source),
        DispatchGateway(transport),
    )
