"""Domain model for invocable operations and their parameter schemas."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, Tuple


class BridgeError(RuntimeError):
    """Base class for failures owned by the bridge itself."""


class OperationNotFoundError(BridgeError):
    """Raised for unknown, hidden, or disallowed operations alike."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Command \"{name}\" is not defined.")
        self.name = name


class ParameterKind(str, Enum):
    ARGUMENT = "argument"
    OPTION = "option"


@dataclass(frozen=True)
class ParameterSpec:
    """A single declared argument or option."""

    name: str
    kind: ParameterKind
    accepts_value: bool = True
    required: bool = False
    is_array: bool = False
    default: Any = None
    description: str = ""
    shortcut: str | None = None
    choices: Tuple[str, ...] = ()

    @property
    def is_flag(self) -> bool:
        return self.kind is ParameterKind.OPTION and not self.accepts_value

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
            "acceptsValue": self.accepts_value,
            "required": self.required,
            "isArray": self.is_array,
            "default": self.default,
            "description": self.description,
        }
        if self.shortcut:
            payload["shortcut"] = self.shortcut
        if self.choices:
            payload["choices"] = list(self.choices)
        return payload


@dataclass(frozen=True)
class ParameterSchema:
    """Ordered parameter declarations of one operation."""

    parameters: Tuple[ParameterSpec, ...] = ()

    def __iter__(self) -> Iterator[ParameterSpec]:
        return iter(self.parameters)

    @property
    def arguments(self) -> Tuple[ParameterSpec, ...]:
        return tuple(p for p in self.parameters if p.kind is ParameterKind.ARGUMENT)

    @property
    def options(self) -> Tuple[ParameterSpec, ...]:
        return tuple(p for p in self.parameters if p.kind is ParameterKind.OPTION)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "arguments": [spec.to_dict() for spec in self.arguments],
            "options": [spec.to_dict() for spec in self.options],
        }


@dataclass(frozen=True)
class Operation:
    """A named command exposed by the host application."""

    name: str
    description: str = ""
    hidden: bool = False
    schema: ParameterSchema = field(default_factory=ParameterSchema)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "definition": self.schema.to_dict(),
        }

    def summary(self) -> Dict[str, Any]:
        return {"name": self.name, "description": self.description}
