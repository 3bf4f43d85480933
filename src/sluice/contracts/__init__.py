"""Shared contracts for cross-boundary data types.

All dataclasses, enums and exceptions that cross subsystem boundaries are
defined here.

Import pattern:
    from sluice.contracts import NodeType, TransformResult, UnknownNodeError
"""

from sluice.contracts.enums import (
    Determinism,
    NodeType,
    RunStatus,
    SnapshotState,
)
from sluice.contracts.errors import (
    ExecutionError,
    InvalidTerminalError,
    ResultTooLargeError,
    SluiceError,
    SnapshotExecutionError,
    SnapshotInProgressError,
    SnapshotReadError,
    UnknownNodeError,
)
from sluice.contracts.results import (
    ArtifactDescriptor,
    RunResult,
    TransformResult,
)

__all__ = [
    # enums
    "Determinism",
    "NodeType",
    "RunStatus",
    "SnapshotState",
    # errors
    "ExecutionError",
    "InvalidTerminalError",
    "ResultTooLargeError",
    "SluiceError",
    "SnapshotExecutionError",
    "SnapshotInProgressError",
    "SnapshotReadError",
    "UnknownNodeError",
    # results
    "ArtifactDescriptor",
    "RunResult",
    "TransformResult",
]
