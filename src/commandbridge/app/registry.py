"""Allow-list aware view over the host operation source."""

from __future__ import annotations

from typing import Iterable, List, Tuple

from commandbridge.domain.grouping import NAMESPACE_SEPARATOR, OperationGroup, group_operations
from commandbridge.domain.operations import Operation, OperationNotFoundError
from commandbridge.ports.operations import OperationSource


class OperationRegistry:
    def __init__(
        self,
        source: OperationSource,
        namespaces: Iterable[str] = (),
        *,
        pinned_group: str | None = "app",
    ) -> None:
        self._source = source
        self._namespaces: Tuple[str, ...] = tuple(str(ns) for ns in namespaces if str(ns))
        self._pinned_group = pinned_group

    @property
    def namespaces(self) -> Tuple[str, ...]:
        return self._namespaces

    def is_allowed(self, operation: Operation) -> bool:
        if operation.hidden:
            return False
        if not self._namespaces:
            return True
        return any(operation.name.startswith(ns + NAMESPACE_SEPARATOR) for ns in self._namespaces)

    def list_operations(self) -> List[Operation]:
        visible = [op for op in self._source.all() if self.is_allowed(op)]
        return sorted(visible, key=lambda op: op.name)

    def find_operation(self, name: str) -> Operation:
        operation = self._source.find(name)
        if operation is None or not self.is_allowed(operation):
            raise OperationNotFoundError(name)
        return operation

    def grouped(self) -> List[OperationGroup]:
        return group_operations(self.list_operations(), self._pinned_group)
