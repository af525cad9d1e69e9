"""Normalisation of submitted form values against a parameter schema."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from commandbridge.domain.operations import ParameterSpec


def is_blank(value: Any) -> bool:
    return value is None or value == ""


def _compact(value: Any) -> Any:
    """Drop blank items from list values; ``None`` means nothing is left."""
    if isinstance(value, (list, tuple)):
        items = [item for item in value if not is_blank(item)]
        return items or None
    if is_blank(value):
        return None
    return value


def normalize_options(raw_options: Mapping[str, Any], options: Iterable[ParameterSpec]) -> Dict[str, Any]:
    """Keep declared options only, in declaration order.

    Flags become ``True`` whatever was submitted; blank values count as
    "not provided"; unknown submitted keys are dropped.
    """

    normalized: Dict[str, Any] = {}
    for spec in options:
        if spec.name not in raw_options:
            continue
        if spec.is_flag:
            normalized[spec.name] = True
            continue
        value = _compact(raw_options[spec.name])
        if value is None:
            continue
        normalized[spec.name] = value
    return normalized


def normalize_arguments(raw_arguments: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for name, raw in raw_arguments.items():
        value = _compact(raw)
        if value is not None:
            normalized[name] = value
    return normalized
