"""Base classes for plugin implementations.

These provide common functionality and ensure proper interface compliance.
Plugins can subclass these for convenience, or implement protocols directly.

Lifecycle hooks (on_start, on_complete) are called by the executor around
each use of a plugin instance.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Any

from sluice.contracts import ArtifactDescriptor, Determinism, TransformResult
from sluice.plugins.context import PluginContext
from sluice.plugins.schemas import PluginSchema


class BaseTransform(ABC):
    """Base class for stateless row transforms.

    Subclass and implement process() to create a transform.

    Example:
        class MyTransform(BaseTransform):
            name = "my_transform"
            input_schema = InputSchema
            output_schema = OutputSchema

            def process(self, row: dict, ctx: PluginContext) -> TransformResult:
                return TransformResult.success({**row, "new_field": "value"})
    """

    name: str
    input_schema: type[PluginSchema]
    output_schema: type[PluginSchema]

    determinism: Determinism = Determinism.DETERMINISTIC
    plugin_version: str = "0.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    def process(
        self,
        row: dict[str, Any],
        ctx: PluginContext,
    ) -> TransformResult:
        """Process a single row.

        Args:
            row: Input row matching input_schema
            ctx: Plugin context

        Returns:
            TransformResult with processed row (None to drop it) or error
        """
        ...

    def close(self) -> None:  # noqa: B027
        """Release resources. Override if the transform holds any."""

    # === Lifecycle Hooks ===
    # These are intentionally empty - optional hooks for subclasses to override

    def on_start(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called before the first row of a run."""

    def on_complete(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called after the last row of a run."""


class BaseSink(ABC):
    """Base class for sink plugins.

    Subclass and implement write(), flush(), close().

    Example:
        class CSVSink(BaseSink):
            name = "csv"
            input_schema = RowSchema

            def write(self, rows: list[dict], ctx: PluginContext) -> ArtifactDescriptor:
                for row in rows:
                    self._writer.writerow(row)
                return ArtifactDescriptor.for_file(
                    path=self._path,
                    content_hash=self._compute_hash(),
                    size_bytes=self._file.tell(),
                )
    """

    name: str
    input_schema: type[PluginSchema]

    determinism: Determinism = Determinism.IO_WRITE
    plugin_version: str = "0.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    def write(
        self,
        rows: list[dict[str, Any]],
        ctx: PluginContext,
    ) -> ArtifactDescriptor:
        """Write a batch of rows to the sink.

        An empty batch still leaves a readable (empty) artifact behind.

        Returns:
            ArtifactDescriptor with content_hash and size_bytes
        """
        ...

    @abstractmethod
    def flush(self) -> None:
        """Flush buffered data."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close and release resources."""
        ...

    # === Lifecycle Hooks ===

    def on_start(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called before the first write."""

    def on_complete(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called after the last write (before close)."""


class BaseSource(ABC):
    """Base class for source plugins.

    Subclass and implement load() and close().

    Example:
        class CSVSource(BaseSource):
            name = "csv"
            output_schema = RowSchema

            def load(self, ctx: PluginContext) -> Iterator[dict]:
                with open(self.config["path"]) as f:
                    reader = csv.DictReader(f)
                    yield from reader

            def close(self) -> None:
                pass  # File already closed by context manager
    """

    name: str
    output_schema: type[PluginSchema]

    determinism: Determinism = Determinism.IO_READ
    plugin_version: str = "0.0.0"

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration."""
        self.config = config

    @abstractmethod
    def load(self, ctx: PluginContext) -> Iterator[dict[str, Any]]:
        """Load and yield rows from the source.

        Args:
            ctx: Plugin context

        Yields:
            Row dicts matching output_schema
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Clean up resources."""
        ...

    # === Lifecycle Hooks ===

    def on_start(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called before load()."""

    def on_complete(self, ctx: PluginContext) -> None:  # noqa: B027
        """Called after load() completes (before close)."""
