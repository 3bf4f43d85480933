"""Engine: executors, snapshot coordination and the interactive session."""

from sluice.engine.executor import (
    ExecutorProtocol,
    LocalExecutor,
    read_source,
)
from sluice.engine.session import Session, default_manager
from sluice.engine.snapshot import SnapshotCoordinator, SnapshotSource

__all__ = [
    "ExecutorProtocol",
    "LocalExecutor",
    "Session",
    "SnapshotCoordinator",
    "SnapshotSource",
    "default_manager",
    "read_source",
]
