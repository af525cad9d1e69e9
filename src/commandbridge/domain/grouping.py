"""Presentation grouping of operations by namespace prefix."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Tuple

from commandbridge.domain.operations import Operation

FALLBACK_GROUP = "other"
NAMESPACE_SEPARATOR = ":"


@dataclass(frozen=True)
class OperationGroup:
    name: str
    operations: Tuple[Operation, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "operations": [op.summary() for op in self.operations],
        }


def command_prefix(name: str) -> str:
    prefix, separator, _ = name.partition(NAMESPACE_SEPARATOR)
    if not separator or not prefix:
        return FALLBACK_GROUP
    return prefix


def group_operations(operations: Iterable[Operation], pinned_group: str | None = "app") -> List[OperationGroup]:
    """Partition by prefix, sort each partition by name and keep ``pinned_group`` first."""

    buckets: Dict[str, List[Operation]] = {}
    for operation in operations:
        buckets.setdefault(command_prefix(operation.name), []).append(operation)

    def _label_key(label: str) -> tuple[int, str]:
        return (0 if label == pinned_group else 1, label)

    return [
        OperationGroup(name=label, operations=tuple(sorted(buckets[label], key=lambda op: op.name)))
        for label in sorted(buckets, key=_label_key)
    ]
