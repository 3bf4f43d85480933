"""Build a disposable flow holding exactly one terminal's lineage.

The sub-flow shares pipe objects and source descriptors with the flow it
was cut from; only the container and the temporary sink are new.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from sluice.contracts.enums import NodeType
from sluice.contracts.errors import InvalidTerminalError
from sluice.core.config import SinkSettings, SourceSettings
from sluice.core.flow import FlowDef, Pipe

SNAPSHOT_PREFIX = "snapshot"

# The only serialization that reads back the records it was given
SnapshotFormat = Literal["jsonl"]


@dataclass(frozen=True)
class TempSink:
    """A freshly named snapshot location.

    ``name`` is the sink/source identifier (``snapshot_<hex>``); ``path``
    follows ``<staging_dir>/snapshot-<hex>.<format>``.
    """

    name: str
    path: Path
    format: SnapshotFormat

    @classmethod
    def allocate(cls, staging_dir: Path, fmt: SnapshotFormat) -> TempSink:
        """Pick a collision-free location under ``staging_dir``."""
        unique = uuid.uuid4().hex
        return cls(
            name=f"{SNAPSHOT_PREFIX}_{unique}",
            path=Path(staging_dir) / f"{SNAPSHOT_PREFIX}-{unique}.{fmt}",
            format=fmt,
        )

    def sink_descriptor(self) -> SinkSettings:
        """Descriptor the executor writes through.

        The sink runs in strict mode: a value that would read back differently
        fails the snapshot instead of being altered.
        """
        return SinkSettings(
            plugin="json",
            options={"path": str(self.path), "format": self.format, "strict": True},
        )

    def source_descriptor(self) -> SourceSettings:
        """Descriptor that reads the written data back."""
        return SourceSettings(
            plugin="json", options={"path": str(self.path), "format": self.format}
        )


@dataclass(frozen=True)
class SubFlow:
    """A disposable flow plus the temporary sink it writes."""

    flow: FlowDef
    terminal: Pipe
    sink: TempSink
    source_ids: frozenset[str]


def build_sub_flow(
    terminal: Pipe,
    visited: Iterable[Pipe],
    sources: Iterable[str],
    flow: FlowDef,
    *,
    staging_dir: Path,
    fmt: SnapshotFormat = "jsonl",
) -> SubFlow:
    """Assemble an isolated flow: the visited pipes, their sources, one temp sink.

    Args:
        terminal: Pipe whose output is materialized
        visited: Lineage of ``terminal`` (see reachable_pipes)
        sources: Source IDs resolved for the lineage's heads
        flow: Flow the lineage was computed against
        staging_dir: Directory for the temporary sink (created if missing)
        fmt: Serialization of the temporary sink

    Raises:
        InvalidTerminalError: If the lineage cannot be executed on its own
    """
    visited_set = set(visited)
    source_ids = frozenset(sources)

    if terminal not in visited_set:
        raise InvalidTerminalError(terminal, "terminal is missing from its own lineage")

    bound_heads = {flow.sources[sid].pipe for sid in source_ids}
    for pipe in visited_set:
        if not pipe.is_head or pipe.kind is NodeType.LITERAL:
            continue
        if pipe.kind is NodeType.SOURCE and pipe in bound_heads:
            continue
        if pipe is terminal:
            raise InvalidTerminalError(terminal, "terminal is a head with no bound source")
        raise InvalidTerminalError(terminal, f"head {pipe!r} has no bound source")

    sub = FlowDef()
    # flow.pipes is in registration order, which keeps parents ahead of children
    sub.register_all(p for p in flow.pipes if p in visited_set)

    for source_id in sorted(source_ids):
        binding = flow.sources[source_id]
        sub.add_source(source_id, binding.descriptor, pipe=binding.pipe)

    sink = TempSink.allocate(staging_dir, fmt)
    sink.path.parent.mkdir(parents=True, exist_ok=True)
    sub.add_sink(sink.name, sink.sink_descriptor(), terminal)

    return SubFlow(flow=sub, terminal=terminal, sink=sink, source_ids=source_ids)
