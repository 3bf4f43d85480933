"""Status codes and kinds used across subsystem boundaries."""

from enum import Enum


class NodeType(str, Enum):
    """Kinds of operator nodes in a flow.

    Using str as base allows direct JSON serialization and comparison.

    SOURCE: Entry point bound to an external source in the registry
    LITERAL: In-memory rows, no external source
    TRANSFORM: Row-wise plugin applied to a single parent
    MERGE: Concatenation of two or more parents
    SINK: Output node (only appears in the structural DAG view)
    """

    SOURCE = "source"
    LITERAL = "literal"
    TRANSFORM = "transform"
    MERGE = "merge"
    SINK = "sink"


class RunStatus(str, Enum):
    """Status of an executor run."""

    COMPLETED = "completed"
    FAILED = "failed"


class SnapshotState(str, Enum):
    """Lifecycle states of a snapshot call.

    IDLE -> BUILDING -> SWAPPED -> EXECUTING -> RESTORING -> IDLE
    """

    IDLE = "idle"
    BUILDING = "building"
    SWAPPED = "swapped"
    EXECUTING = "executing"
    RESTORING = "restoring"


class Determinism(str, Enum):
    """Plugin determinism classification.

    DETERMINISTIC: Same input always produces same output
    IO_READ: Reads external state (sources)
    IO_WRITE: Writes external state (sinks)
    """

    DETERMINISTIC = "deterministic"
    IO_READ = "io_read"
    IO_WRITE = "io_write"
