"""Domain primitives for the command bridge."""

from .cli_form import build_command_line, escape_token
from .grouping import FALLBACK_GROUP, OperationGroup, command_prefix, group_operations
from .normalizer import normalize_arguments, normalize_options
from .operations import (
    BridgeError,
    Operation,
    OperationNotFoundError,
    ParameterKind,
    ParameterSchema,
    ParameterSpec,
)
from .results import (
    ASYNC_NOTICE,
    AsyncExecutionResult,
    ExecutionResult,
    RunCommandMessage,
    SyncExecutionResult,
    TransportAck,
)

__all__ = [
    "ASYNC_NOTICE",
    "AsyncExecutionResult",
    "BridgeError",
    "ExecutionResult",
    "FALLBACK_GROUP",
    "Operation",
    "OperationGroup",
    "OperationNotFoundError",
    "ParameterKind",
    "ParameterSchema",
    "ParameterSpec",
    "RunCommandMessage",
    "SyncExecutionResult",
    "TransportAck",
    "build_command_line",
    "command_prefix",
    "escape_token",
    "group_operations",
    "normalize_arguments",
    "normalize_options",
]
