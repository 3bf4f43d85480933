"""Error taxonomy for flow construction, snapshots and execution.

Every error raised across a subsystem boundary derives from SluiceError so
callers can catch the whole family, while the concrete classes let them
tell "the computation failed" apart from "the result was too large".
"""

from typing import Any


class SluiceError(Exception):
    """Base class for all Sluice errors."""


class UnknownNodeError(SluiceError, LookupError):
    """Raised when a pipe is not registered in the flow being consulted."""

    def __init__(self, pipe: Any, message: str | None = None) -> None:
        self.pipe = pipe
        super().__init__(message or f"Pipe {pipe!r} is not part of the active flow")


class InvalidTerminalError(SluiceError):
    """Raised when the lineage of a terminal pipe cannot be executed.

    Examples: a head pipe that is neither bound to a source nor a literal,
    or a terminal that is itself an unbound head.
    """

    def __init__(self, pipe: Any, reason: str) -> None:
        self.pipe = pipe
        self.reason = reason
        super().__init__(f"Cannot snapshot {pipe!r}: {reason}")


class ExecutionError(SluiceError):
    """Raised by an executor when a flow fails to run to completion."""

    def __init__(self, message: str, *, node: str | None = None) -> None:
        self.node = node
        super().__init__(f"[{node}] {message}" if node else message)


class SnapshotExecutionError(SluiceError):
    """Raised when executing a snapshot sub-flow fails.

    The active flow has always been restored by the time this reaches the
    caller. The underlying failure is available as ``__cause__``.
    """

    def __init__(self, pipe: Any, sink_path: str, cause: BaseException) -> None:
        self.pipe = pipe
        self.sink_path = sink_path
        super().__init__(f"Snapshot of {pipe!r} into {sink_path} failed: {cause}")


class SnapshotInProgressError(SluiceError):
    """Raised when a snapshot is requested while another one is swapped in."""


class SnapshotReadError(SluiceError):
    """Raised when a materialized snapshot cannot be read back.

    The snapshot run itself succeeded; the underlying failure is ``__cause__``.
    """

    def __init__(self, path: str, cause: BaseException) -> None:
        self.path = path
        super().__init__(f"Cannot read snapshot {path}: {cause}")


class ResultTooLargeError(SluiceError):
    """Raised when eager read-back of a snapshot exceeds the row limit.

    The snapshot itself succeeded; ``path`` still points at the data.
    """

    def __init__(self, path: str, limit: int) -> None:
        self.path = path
        self.limit = limit
        super().__init__(
            f"Snapshot {path} holds more than {limit} rows; "
            "read it as a source instead of collecting it"
        )
