"""Plugin protocol for host commands exposed through the bridge."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from importlib import metadata
from io import StringIO
from typing import Callable, Iterable, Protocol, TextIO

from commandbridge.settings import RuntimeSettings

ENTRY_POINT_GROUP = "commandbridge.commands"

CommandHandler = Callable[[argparse.Namespace], "int | None"]


@dataclass(frozen=True)
class CommandContext:
    """What a command sees of the bridge while it is built and run.

    ``stdout`` is the capture handle for one execution; commands must write
    there instead of ``sys.stdout``.
    """

    settings: RuntimeSettings
    stdout: TextIO = field(default_factory=StringIO)
    interactive: bool = False

    def write(self, text: str) -> None:
        self.stdout.write(text)

    def writeln(self, text: str = "") -> None:
        self.stdout.write(text + "\n")


class CommandBuilder(Protocol):  # pragma: no cover
    def __call__(self, parser: argparse.ArgumentParser, context: CommandContext) -> CommandHandler:
        ...


class CommandRegistrar(Protocol):  # pragma: no cover
    def add_command(self, name: str, help_text: str, builder: CommandBuilder, *, hidden: bool = False) -> None:
        ...


class CommandPlugin(Protocol):  # pragma: no cover
    name: str

    def register(self, registrar: CommandRegistrar, context: CommandContext) -> None:
        ...


def iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=ENTRY_POINT_GROUP)
