"""Operation outcomes and results.

These types answer: "What did an operation produce?"

IMPORTANT:
- TransformResult.status uses Literal["success", "error"], NOT an enum
- A successful TransformResult with row=None means the row was dropped
- ArtifactDescriptor.content_hash and size_bytes are always populated
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from sluice.contracts.enums import RunStatus


@dataclass
class TransformResult:
    """Result of a transform operation.

    Use the factory methods to create instances.
    """

    status: Literal["success", "error"]
    row: dict[str, Any] | None
    reason: dict[str, Any] | None

    @classmethod
    def success(cls, row: dict[str, Any] | None) -> "TransformResult":
        """Create a successful result. Pass None to drop the row."""
        return cls(status="success", row=row, reason=None)

    @classmethod
    def error(cls, reason: dict[str, Any]) -> "TransformResult":
        """Create an error result."""
        return cls(status="error", row=None, reason=reason)


@dataclass(frozen=True)
class ArtifactDescriptor:
    """Descriptor for an artifact written by a sink.

    Factory methods provide convenient construction for each artifact type.
    """

    artifact_type: Literal["file"]
    path_or_uri: str
    content_hash: str
    size_bytes: int
    metadata: dict[str, object] | None = None

    @classmethod
    def for_file(
        cls,
        path: str,
        content_hash: str,
        size_bytes: int,
    ) -> "ArtifactDescriptor":
        """Create descriptor for file-based artifacts."""
        return cls(
            artifact_type="file",
            path_or_uri=f"file://{path}",
            content_hash=content_hash,
            size_bytes=size_bytes,
        )


@dataclass
class RunResult:
    """Result of executing a flow."""

    run_id: str
    status: RunStatus
    rows_written: dict[str, int] = field(default_factory=dict)
    artifacts: dict[str, ArtifactDescriptor] = field(default_factory=dict)

    @property
    def total_rows_written(self) -> int:
        """Rows written across all sinks."""
        return sum(self.rows_written.values())
