"""Reconstruct a display command line from structured arguments and options."""

from __future__ import annotations

import re
from typing import Any, Iterator, Mapping

_NEEDS_QUOTING = re.compile(r"\s|[\"'\\]")


def escape_token(value: str) -> str:
    if value == "" or _NEEDS_QUOTING.search(value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _values(value: Any) -> Iterator[Any]:
    items = value if isinstance(value, (list, tuple)) else [value]
    for item in items:
        if item is None or item == "":
            continue
        yield item


def build_command_line(name: str, arguments: Mapping[str, Any], options: Mapping[str, Any]) -> str:
    """Render ``name args... --flag --opt=value`` for display and async handoff.

    The result is advisory: it is never parsed back by the executor.
    """

    parts = [name]
    for value in arguments.values():
        parts.extend(escape_token(_stringify(item)) for item in _values(value))

    for option_name, value in options.items():
        flag = f"--{option_name}"
        if value is True:
            parts.append(flag)
            continue
        if value is False:
            continue
        parts.extend(f"{flag}={escape_token(_stringify(item))}" for item in _values(value))
    return " ".join(parts)
