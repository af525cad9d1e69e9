"""Runtime loading of host commands from entry points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, ItemsView

from commandbridge.plugins import CommandBuilder, CommandContext, CommandRegistrar, iter_entry_points
from commandbridge.plugins.builtin import register_builtin_commands
from commandbridge.settings import RuntimeSettings


@dataclass(frozen=True)
class RegisteredCommand:
    name: str
    help: str
    builder: CommandBuilder
    hidden: bool = False


class Registry(CommandRegistrar):
    def __init__(self, settings: RuntimeSettings) -> None:
        self._settings = settings
        self._commands: Dict[str, RegisteredCommand] = {}

    def add_command(self, name: str, help_text: str, builder: CommandBuilder, *, hidden: bool = False) -> None:
        if not name or name != name.strip():
            raise ValueError(f"Invalid command name {name!r}")
        if name in self._commands:
            raise ValueError(f"Command {name} already registered")
        self._commands[name] = RegisteredCommand(name=name, help=help_text, builder=builder, hidden=hidden)

    @property
    def settings(self) -> RuntimeSettings:
        return self._settings

    def get(self, name: str) -> RegisteredCommand | None:
        return self._commands.get(name)

    def items(self) -> ItemsView[str, RegisteredCommand]:
        return self._commands.items()

    def __len__(self) -> int:
        return len(self._commands)


def load_plugins(settings: RuntimeSettings, *, include_builtin: bool = True) -> Registry:
    registry = Registry(settings)
    context = CommandContext(settings=settings)
    if include_builtin:
        register_builtin_commands(registry, context)
    for entry_point in iter_entry_points():
        plugin = entry_point.load()
        register = getattr(plugin, "register", None)
        if callable(register):
            register(registry, context)
        elif callable(plugin):
            plugin(registry, context)
    return registry
