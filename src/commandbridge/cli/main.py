#!/usr/bin/env python3
"""Entry point for the cmdbridge CLI."""

from __future__ import annotations

import argparse
import json
import sys
from collections import deque
from pathlib import Path
from textwrap import dedent
from typing import Any, Dict, Iterable

from commandbridge import __version__
from commandbridge.app.catalog import build_catalog, write_catalog
from commandbridge.app.command_service import CommandService
from commandbridge.app.dispatch import DispatchFailedError, DispatchUnavailableError
from commandbridge.app.factory import build_command_service
from commandbridge.app.web import CommandWebApp, CommandWebConfig
from commandbridge.domain.operations import Operation, OperationNotFoundError
from commandbridge.domain.results import SyncExecutionResult
from commandbridge.ports.transport import TransportError
from commandbridge.settings import SETTINGS, BridgeConfig, ConfigError, load_bridge_config
from commandbridge.utils.telemetry import clear as telemetry_clear
from commandbridge.utils.telemetry import iter_events as telemetry_iter
from commandbridge.utils.telemetry import record_structured_event
from commandbridge.utils.telemetry import summarize as telemetry_summarize

HELP_OVERVIEW = dedent(
    """
    List, describe and run the commands registered by the host application.

    Commands come from the `commandbridge.commands` entry point group.
    Configure the allow-list and the async transport in bridge.yaml.
    """
)


def _load_config(args: argparse.Namespace) -> BridgeConfig:
    config_path = Path(args.config).expanduser() if getattr(args, "config", None) else SETTINGS.config_path
    return load_bridge_config(config_path)


def _build_service(args: argparse.Namespace) -> CommandService:
    return build_command_service(SETTINGS, _load_config(args))


def _parse_pairs(items: Iterable[str] | None, *, flag_value: Any = None) -> Dict[str, Any]:
    """Parse repeated ``NAME=VALUE`` items; repeated names collect into a list."""

    values: Dict[str, Any] = {}
    for item in items or []:
        if "=" in item:
            key, value = item.split("=", 1)
        elif flag_value is not None:
            key, value = item, flag_value
        else:
            raise ValueError(f"Expected NAME=VALUE, got '{item}'")
        key = key.strip()
        if not key:
            raise ValueError(f"Missing name in '{item}'")
        if key in values:
            existing = values[key]
            values[key] = [*existing, value] if isinstance(existing, list) else [existing, value]
        else:
            values[key] = value
    return values


def _print_operation(operation: Operation) -> None:
    print(operation.name)
    if operation.description:
        print(f"  {operation.description}")
    arguments = operation.schema.arguments
    options = operation.schema.options
    if arguments:
        print("Arguments:")
        for spec in arguments:
            marker = "" if spec.required else " (optional)"
            suffix = "..." if spec.is_array else ""
            print(f"  {spec.name}{suffix}{marker}  {spec.description}".rstrip())
    if options:
        print("Options:")
        for spec in options:
            flag = f"--{spec.name}" if spec.is_flag else f"--{spec.name}=VALUE"
            if spec.shortcut:
                flag = f"{spec.shortcut}, {flag}"
            if spec.is_array:
                flag += " (multiple)"
            print(f"  {flag}  {spec.description}".rstrip())


def _list_cmd(args: argparse.Namespace) -> int:
    service = _build_service(args)
    groups = service.list_groups()
    if args.json:
        payload = {"groups": [group.to_dict() for group in groups], "asyncAvailable": service.async_available}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    if not groups:
        print("No commands available")
        return 0
    for group in groups:
        print(f"{group.name}:")
        width = max(len(op.name) for op in group.operations)
        for op in group.operations:
            print(f"  {op.name.ljust(width)}  {op.description}".rstrip())
    return 0


def _describe_cmd(args: argparse.Namespace) -> int:
    service = _build_service(args)
    operation = service.describe(args.name)
    if args.json:
        payload = operation.to_dict()
        payload["asyncAvailable"] = service.async_available
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    _print_operation(operation)
    return 0


def _run_cmd(args: argparse.Namespace) -> int:
    try:
        arguments = _parse_pairs(args.arguments)
        options = _parse_pairs(args.options, flag_value=True)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    service = _build_service(args)
    result = service.run(args.name, arguments, options, dispatch=args.dispatch)
    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif isinstance(result, SyncExecutionResult):
        sys.stdout.write(result.output)
        print(f"[{result.cli}] exit={result.exit_code} duration={result.duration_ms}ms", file=sys.stderr)
    else:
        print(f"Dispatched: {result.cli}")
        print(result.message)
    if isinstance(result, SyncExecutionResult):
        return result.exit_code
    return 0


def _serve_cmd(args: argparse.Namespace) -> int:
    config = _load_config(args)
    service = build_command_service(SETTINGS, config)
    host = args.bind or config.web_host
    port = config.web_port if args.port is None else args.port
    app = CommandWebApp(service, CommandWebConfig(host=host, port=port))
    server = app.create_server()
    bound_host, bound_port = server.server_address[:2]
    print(f"Serving commands on http://{bound_host}:{bound_port}/ (Ctrl+C to stop)")
    record_structured_event(
        SETTINGS, "bridge.serve", component="cli", payload={"host": str(bound_host), "port": bound_port}
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("Stopping server")
    finally:
        server.server_close()
    return 0


def _catalog_cmd(args: argparse.Namespace) -> int:
    service = _build_service(args)
    payload = build_catalog(service, version=__version__)
    if args.output:
        path = write_catalog(payload, Path(args.output).expanduser())
        print(f"Catalog written to {path}")
    else:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    record_structured_event(
        SETTINGS, "bridge.catalog", status="success", component="cli", payload={"groups": len(payload["groups"])}
    )
    return 0


def _telemetry_cmd(args: argparse.Namespace) -> int:
    if args.telemetry_command == "report":
        recent = getattr(args, "recent", 0)
        if recent and recent > 0:
            events = list(deque(telemetry_iter(SETTINGS), maxlen=recent))
        else:
            events = list(telemetry_iter(SETTINGS))
        print(json.dumps(telemetry_summarize(events), indent=2, ensure_ascii=False))
        return 0
    if args.telemetry_command == "clear":
        telemetry_clear(SETTINGS)
        print("Telemetry log cleared")
        return 0
    if args.telemetry_command == "tail":
        for evt in deque(telemetry_iter(SETTINGS), maxlen=args.limit):
            print(json.dumps(evt, ensure_ascii=False))
        return 0
    print("Unsupported telemetry command", file=sys.stderr)
    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cmdbridge",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"cmdbridge {__version__}")
    parser.add_argument("--config", help="Path to bridge.yaml (default: ~/.commandbridge/bridge.yaml)")

    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="List available commands grouped by namespace")
    list_cmd.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    list_cmd.set_defaults(func=_list_cmd)

    describe_cmd = sub.add_parser("describe", help="Show the arguments and options of a command")
    describe_cmd.add_argument("name", help="Command name, e.g. app:hello")
    describe_cmd.add_argument("--json", action="store_true", help="Emit machine-readable JSON")
    describe_cmd.set_defaults(func=_describe_cmd)

    run_cmd = sub.add_parser("run", help="Run a command inline or dispatch it to the transport")
    run_cmd.add_argument("name", help="Command name")
    run_cmd.add_argument("--arg", dest="arguments", action="append", metavar="NAME=VALUE", help="Argument value")
    run_cmd.add_argument(
        "--opt",
        dest="options",
        action="append",
        metavar="NAME[=VALUE]",
        help="Option value; repeat for multi-valued options, omit VALUE for flags",
    )
    run_cmd.add_argument("--async", dest="dispatch", action="store_true", help="Dispatch to the async transport")
    run_cmd.add_argument("--json", action="store_true", help="Emit the result as JSON")
    run_cmd.set_defaults(func=_run_cmd)

    serve_cmd = sub.add_parser("serve", help="Start the HTTP API")
    serve_cmd.add_argument("--bind", help="Bind address (default: web.host from config)")
    serve_cmd.add_argument("--port", type=int, help="Bind port (default: web.port from config, 0 for random)")
    serve_cmd.set_defaults(func=_serve_cmd)

    catalog_cmd = sub.add_parser("catalog", help="Export visible commands and their definitions as JSON")
    catalog_cmd.add_argument("--output", help="Write to file instead of stdout")
    catalog_cmd.set_defaults(func=_catalog_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect local telemetry events")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    telemetry_report = telemetry_sub.add_parser("report", help="Summarise events")
    telemetry_report.add_argument("--recent", type=int, default=0, help="Only the last N events")
    telemetry_report.set_defaults(func=_telemetry_cmd)
    telemetry_clear_cmd = telemetry_sub.add_parser("clear", help="Delete the telemetry log")
    telemetry_clear_cmd.set_defaults(func=_telemetry_cmd)
    telemetry_tail = telemetry_sub.add_parser("tail", help="Print the last events")
    telemetry_tail.add_argument("--limit", type=int, default=20, help="Number of events (default: 20)")
    telemetry_tail.set_defaults(func=_telemetry_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except OperationNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except (DispatchUnavailableError, DispatchFailedError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except (ConfigError, TransportError) as exc:
        print(str(exc), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
