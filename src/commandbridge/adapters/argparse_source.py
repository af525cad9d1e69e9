"""Operation source and execution sink backed by argparse command plugins."""

from __future__ import annotations

import argparse
import functools
from io import StringIO
from typing import Any, Callable, Iterable, List, Mapping, NoReturn, TextIO, Tuple

from commandbridge.domain.operations import Operation, ParameterKind, ParameterSchema, ParameterSpec
from commandbridge.plugins import CommandContext, CommandHandler
from commandbridge.plugins.loader import RegisteredCommand, Registry, load_plugins
from commandbridge.ports.operations import ExecutionSink, OperationSource
from commandbridge.settings import RuntimeSettings

USAGE_EXIT_CODE = 2
FAILURE_EXIT_CODE = 1
_MULTI_NARGS = (argparse.ZERO_OR_MORE, argparse.ONE_OR_MORE, argparse.REMAINDER)


class _ParserExit(Exception):
    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


class _UnknownParameterError(Exception):
    pass


class CommandArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that prints into a capture handle and never exits the process."""

    def __init__(self, *args: Any, output: TextIO | None = None, **kwargs: Any) -> None:
        self._output = output if output is not None else StringIO()
        super().__init__(*args, **kwargs)

    def add_subparsers(self, **kwargs: Any):  # type: ignore[override]
        kwargs.setdefault("parser_class", functools.partial(CommandArgumentParser, output=self._output))
        return super().add_subparsers(**kwargs)

    def _print_message(self, message: str, file: Any = None) -> None:
        if message:
            self._output.write(message)

    def exit(self, status: int = 0, message: str | None = None) -> NoReturn:
        if message:
            self._print_message(message)
        raise _ParserExit(status)


def _plain_default(value: Any) -> Any:
    if value is None or value is argparse.SUPPRESS:
        return None
    if isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)) and all(isinstance(item, (str, int, float, bool)) for item in value):
        return list(value)
    return str(value)


def _is_multi(action: argparse.Action) -> bool:
    if isinstance(action, argparse._AppendAction):
        return True
    nargs = action.nargs
    return nargs in _MULTI_NARGS or (isinstance(nargs, int) and nargs > 1)


def _option_name(action: argparse.Action) -> Tuple[str, str, str | None]:
    """Return (name, flag, shortcut) for an optional action."""
    long_flags = [flag for flag in action.option_strings if flag.startswith("--")]
    short_flags = [flag for flag in action.option_strings if not flag.startswith("--")]
    flag = long_flags[0] if long_flags else action.option_strings[0]
    shortcut = short_flags[0] if short_flags and short_flags[0] != flag else None
    return flag.lstrip("-"), flag, shortcut


def _schema_actions(parser: argparse.ArgumentParser) -> Iterable[argparse.Action]:
    for action in parser._actions:
        if isinstance(action, (argparse._HelpAction, argparse._VersionAction)):
            continue
        if action.help is argparse.SUPPRESS:
            continue
        yield action


def schema_from_parser(parser: argparse.ArgumentParser) -> ParameterSchema:
    specs: List[ParameterSpec] = []
    for action in _schema_actions(parser):
        choices = tuple(str(choice) for choice in action.choices) if action.choices else ()
        if not action.option_strings:
            specs.append(
                ParameterSpec(
                    name=action.dest,
                    kind=ParameterKind.ARGUMENT,
                    required=bool(action.required),
                    is_array=_is_multi(action),
                    default=_plain_default(action.default),
                    description=action.help or "",
                    choices=choices,
                )
            )
            continue
        name, _, shortcut = _option_name(action)
        specs.append(
            ParameterSpec(
                name=name,
                kind=ParameterKind.OPTION,
                accepts_value=action.nargs != 0,
                required=bool(action.required),
                is_array=_is_multi(action),
                default=_plain_default(action.default),
                description=action.help or "",
                shortcut=shortcut,
                choices=choices,
            )
        )
    return ParameterSchema(tuple(specs))


def _consumes_following(action: argparse.Action, value: Any) -> bool:
    """True when ``value`` renders as ``--flag v1 v2 ...`` and the option keeps reading tokens."""
    if not isinstance(value, (list, tuple)) or not value:
        return False
    return not (isinstance(action, argparse._AppendAction) or action.nargs in (None, argparse.OPTIONAL))


def _option_tokens(action: argparse.Action, flag: str, value: Any) -> List[str]:
    if value is True:
        return [flag]
    if value is False or value is None:
        return []
    if isinstance(value, (list, tuple)):
        if _consumes_following(action, value):
            return [flag, *(str(item) for item in value)]
        return [f"{flag}={item}" for item in value]
    return [f"{flag}={value}"]


def argv_from_payload(parser: argparse.ArgumentParser, payload: Mapping[str, Any]) -> List[str]:
    """Translate an input payload into argv for ``parser``.

    Keys are ``command``, argument names, and ``--option`` names. Options
    taking a variable number of values go last, and positionals are then
    separated from them by ``--``.
    """

    positionals = [action for action in _schema_actions(parser) if not action.option_strings]
    options = {}
    for action in _schema_actions(parser):
        if action.option_strings:
            name, flag, _ = _option_name(action)
            options[name] = (action, flag)

    known_arguments = {action.dest for action in positionals}
    option_argv: List[str] = []
    trailing_argv: List[str] = []
    for key, value in payload.items():
        if key == "command":
            continue
        if key.startswith("--"):
            entry = options.get(key[2:])
            if entry is None:
                raise _UnknownParameterError(f'The "{key}" option does not exist.')
            action, flag = entry
            target = trailing_argv if _consumes_following(action, value) else option_argv
            target.extend(_option_tokens(action, flag, value))
        elif key not in known_arguments:
            raise _UnknownParameterError(f'The "{key}" argument does not exist.')

    positional_argv: List[str] = []
    for action in positionals:
        if action.dest not in payload or payload[action.dest] is None:
            continue
        value = payload[action.dest]
        if isinstance(value, (list, tuple)):
            positional_argv.extend(str(item) for item in value)
        else:
            positional_argv.append(str(value))
    option_argv.extend(trailing_argv)
    if positional_argv and (trailing_argv or any(token.startswith("-") for token in positional_argv)):
        return [*option_argv, "--", *positional_argv]
    return [*option_argv, *positional_argv]


def _coerce_exit_code(code: Any, output: TextIO) -> int:
    if code is None:
        return 0
    if isinstance(code, bool):
        return int(code)
    if isinstance(code, int):
        return code
    output.write(f"{code}\n")
    return FAILURE_EXIT_CODE


class ArgparseOperationSource(OperationSource, ExecutionSink):
    """Exposes registered command plugins as operations and runs them in-process.

    Parsers are rebuilt from the registry on every call so each listing and
    each execution sees a fresh command definition and its own context.
    """

    def __init__(self, settings: RuntimeSettings, registry_loader: Callable[[], Registry]) -> None:
        self._settings = settings
        self._registry_loader = registry_loader

    @classmethod
    def from_registry(cls, registry: Registry) -> "ArgparseOperationSource":
        return cls(registry.settings, lambda: registry)

    @classmethod
    def from_entry_points(cls, settings: RuntimeSettings) -> "ArgparseOperationSource":
        return cls(settings, lambda: load_plugins(settings))

    def all(self) -> Iterable[Operation]:
        context = CommandContext(settings=self._settings)
        return [self._describe(entry, context) for _, entry in self._registry_loader().items()]

    def find(self, name: str) -> Operation | None:
        entry = self._registry_loader().get(name)
        if entry is None:
            return None
        return self._describe(entry, CommandContext(settings=self._settings))

    def run(self, payload: Mapping[str, Any], output: TextIO) -> int:
        name = str(payload.get("command", ""))
        entry = self._registry_loader().get(name)
        if entry is None:
            output.write(f'Command "{name}" is not defined.\n')
            return FAILURE_EXIT_CODE
        context = CommandContext(settings=self._settings, stdout=output, interactive=False)
        parser, handler = self._build(entry, context)
        try:
            argv = argv_from_payload(parser, payload)
            args = parser.parse_args(argv)
            return _coerce_exit_code(handler(args), output)
        except _ParserExit as exc:
            return exc.status
        except _UnknownParameterError as exc:
            output.write(f"{exc}\n")
            output.write(parser.format_usage())
            return USAGE_EXIT_CODE
        except SystemExit as exc:
            return _coerce_exit_code(exc.code, output)
        except Exception as exc:  # noqa: BLE001 - command failures become exit codes
            output.write(f"In {name}: [{type(exc).__name__}] {exc}\n")
            return FAILURE_EXIT_CODE

    def _build(self, entry: RegisteredCommand, context: CommandContext) -> Tuple[CommandArgumentParser, CommandHandler]:
        parser = CommandArgumentParser(prog=entry.name, description=entry.help, output=context.stdout)
        handler = entry.builder(parser, context)
        return parser, handler

    def _describe(self, entry: RegisteredCommand, context: CommandContext) -> Operation:
        parser, _ = self._build(entry, context)
        return Operation(
            name=entry.name,
            description=entry.help,
            hidden=entry.hidden,
            schema=schema_from_parser(parser),
        )
