from __future__ import annotations

import argparse
import os
import sys
import threading
from pathlib import Path
from typing import Iterable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "bridge-home"
os.environ.setdefault("COMMANDBRIDGE_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from commandbridge.adapters.argparse_source import ArgparseOperationSource  # noqa: E402
from commandbridge.adapters.transports import MemoryTransport  # noqa: E402
from commandbridge.app.command_service import CommandService  # noqa: E402
from commandbridge.app.dispatch import DispatchGateway  # noqa: E402
from commandbridge.app.executor import CommandExecutor  # noqa: E402
from commandbridge.app.registry import OperationRegistry  # noqa: E402
from commandbridge.plugins import CommandContext  # noqa: E402
from commandbridge.plugins.builtin import register_builtin_commands  # noqa: E402
from commandbridge.plugins.loader import Registry  # noqa: E402
from commandbridge.ports.transport import MessageTransport  # noqa: E402
from commandbridge.settings import RuntimeSettings  # noqa: E402


def make_settings(base: Path) -> RuntimeSettings:
    home = base / "home"
    state_dir = home / "state"
    log_dir = home / "logs"
    for path in (home, state_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(
        home_dir=home,
        state_dir=state_dir,
        log_dir=log_dir,
        config_path=home / "bridge.yaml",
        cli_version="0.3.0",
    )


def _hello(parser: argparse.ArgumentParser, ctx: CommandContext):
    parser.add_argument("who", nargs="?", default="world", help="Who to greet")
    parser.add_argument("-s", "--shout", action="store_true", help="Upper-case the greeting")
    parser.add_argument("--tag", action="append", help="Tags to append")

    def handler(args: argparse.Namespace) -> int:
        message = f"Hello, {args.who}!"
        if args.tag:
            message += " [" + ",".join(args.tag) + "]"
        ctx.writeln(message.upper() if args.shout else message)
        return 0

    return handler


def _migrate(parser: argparse.ArgumentParser, ctx: CommandContext):
    parser.add_argument("env", help="Target environment")
    parser.add_argument("--force", action="store_true", help="Skip confirmation")
    parser.add_argument("--note", help="Free-form note")

    def handler(args: argparse.Namespace) -> int:
        ctx.writeln(f"env={args.env} force={args.force} note={args.note} interactive={ctx.interactive}")
        return 0

    return handler


def _fail(parser: argparse.ArgumentParser, ctx: CommandContext):
    def handler(args: argparse.Namespace) -> int:
        ctx.write("error: bad input\n")
        return 3

    return handler


def _boom(parser: argparse.ArgumentParser, ctx: CommandContext):
    def handler(args: argparse.Namespace) -> int:
        ctx.writeln("starting")
        raise RuntimeError("kaboom")

    return handler


def _exit(parser: argparse.ArgumentParser, ctx: CommandContext):
    parser.add_argument("--code", type=int, default=5)

    def handler(args: argparse.Namespace) -> int:
        ctx.writeln("leaving")
        sys.exit(args.code)

    return handler


def _prune(parser: argparse.ArgumentParser, ctx: CommandContext):
    parser.add_argument("pools", nargs="*", help="Pools to prune")
    parser.add_argument("--env", default="dev", help="Environment")

    def handler(args: argparse.Namespace) -> int:
        ctx.writeln(f"pruned {','.join(args.pools) or '-'} in {args.env}")
        return 0

    return handler


def _echo(parser: argparse.ArgumentParser, ctx: CommandContext):
    parser.add_argument("label")
    parser.add_argument("--lines", type=int, default=50)
    parser.add_argument("--wait", type=float, default=0.0)

    def handler(args: argparse.Namespace) -> int:
        for index in range(args.lines):
            ctx.writeln(f"{args.label}:{index}")
            if args.wait:
                threading.Event().wait(args.wait)
        return 0

    return handler


def _secret(parser: argparse.ArgumentParser, ctx: CommandContext):
    def handler(args: argparse.Namespace) -> int:
        ctx.writeln("secret")
        return 0

    return handler


def build_sample_registry(settings: RuntimeSettings) -> Registry:
    registry = Registry(settings)
    register_builtin_commands(registry, CommandContext(settings=settings))
    registry.add_command("app:hello", "Say hello", _hello)
    registry.add_command("app:fail", "Always fails with exit code 3", _fail)
    registry.add_command("app:boom", "Raises an exception", _boom)
    registry.add_command("app:exit", "Calls sys.exit", _exit)
    registry.add_command("app:echo", "Writes numbered lines", _echo)
    registry.add_command("app:secret", "Hidden command", _secret, hidden=True)
    registry.add_command("db:migrate", "Run migrations", _migrate)
    registry.add_command("cache:pool:prune", "Prune cache pools", _prune)
    return registry


def build_service(
    settings: RuntimeSettings,
    source: ArgparseOperationSource,
    *,
    namespaces: Iterable[str] = (),
    transport: MessageTransport | None = None,
) -> CommandService:
    registry = OperationRegistry(source, namespaces)
    return CommandService(settings, registry, CommandExecutor(registry, source), DispatchGateway(transport))


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    return make_settings(tmp_path / "runtime")


@pytest.fixture()
def sample_registry(runtime_settings: RuntimeSettings) -> Registry:
    return build_sample_registry(runtime_settings)


@pytest.fixture()
def sample_source(sample_registry: Registry) -> ArgparseOperationSource:
    return ArgparseOperationSource.from_registry(sample_registry)


@pytest.fixture()
def memory_transport() -> MemoryTransport:
    return MemoryTransport()


@pytest.fixture()
def service_factory(runtime_settings: RuntimeSettings, sample_source: ArgparseOperationSource):
    def _factory(
        *,
        namespaces: Iterable[str] = (),
        transport: MessageTransport | None = None,
    ) -> CommandService:
        return build_service(runtime_settings, sample_source, namespaces=namespaces, transport=transport)

    return _factory
