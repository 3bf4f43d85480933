"""Operator nodes and the flow definition that owns them.

A Pipe is an immutable description of one pipeline stage. A FlowDef is the
mutable container a session builds into: it registers pipes, binds logical
source IDs to physical descriptors and entry pipes, and binds sinks.

Pipes compare by identity. Two pipes built from the same arguments are
different nodes, which is what lets a snapshot sub-flow share pipe objects
with the session's flow without confusing them with look-alikes.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from sluice.contracts.enums import NodeType
from sluice.contracts.errors import UnknownNodeError
from sluice.core.config import SinkSettings, SourceSettings
from sluice.core.dag import ExecutionGraph, GraphValidationError


def _freeze_options(options: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Deep copy and wrap in a read-only view.

    MappingProxyType only prevents mutation through the proxy; the deep
    copy cuts ties to the caller's dict and nested objects.
    """
    if options is None:
        return MappingProxyType({})
    return MappingProxyType(copy.deepcopy(dict(options)))


def _new_pipe_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True, eq=False)
class Pipe:
    """One stage of a pipeline.

    Shape rules enforced at construction:
    - source and literal pipes have no parents
    - transform pipes have exactly one parent and a plugin
    - merge pipes have at least two parents
    """

    kind: NodeType
    plugin: str | None = None
    options: Mapping[str, Any] = field(default_factory=dict)
    parents: tuple[Pipe, ...] = ()
    name: str | None = None
    pipe_id: str = field(default_factory=_new_pipe_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", NodeType(self.kind))
        object.__setattr__(self, "options", _freeze_options(self.options))
        object.__setattr__(self, "parents", tuple(self.parents))

        if self.kind in (NodeType.SOURCE, NodeType.LITERAL) and self.parents:
            raise ValueError(f"{self.kind.value} pipes cannot have parents")
        if self.kind is NodeType.TRANSFORM:
            if len(self.parents) != 1:
                raise ValueError(
                    f"transform pipes take exactly one parent, got {len(self.parents)}"
                )
            if not self.plugin:
                raise ValueError("transform pipes require a plugin")
        if self.kind is NodeType.MERGE and len(self.parents) < 2:
            raise ValueError("merge pipes need at least two parents")
        if self.kind is NodeType.SINK:
            raise ValueError("sinks are bound with FlowDef.add_sink, not built as pipes")

    @property
    def is_head(self) -> bool:
        """True if the pipe has no upstream producers."""
        return not self.parents

    @property
    def label(self) -> str:
        """Human-readable name, falling back to kind and ID."""
        return self.name or f"{self.kind.value}_{self.pipe_id}"

    def plugin_options(self) -> dict[str, Any]:
        """Fresh mutable copy of the options, safe to hand to a plugin."""
        return copy.deepcopy(dict(self.options))

    def __repr__(self) -> str:
        return f"Pipe({self.label!r}, kind={self.kind.value})"


@dataclass(frozen=True)
class SourceBinding:
    """Registry entry: physical input descriptor plus entry pipe."""

    descriptor: SourceSettings
    pipe: Pipe


@dataclass(frozen=True)
class SinkBinding:
    """Sink entry: physical output descriptor plus the pipe it writes."""

    descriptor: SinkSettings
    pipe: Pipe


class FlowDef:
    """Container of pipes, source bindings and sink bindings.

    Pipes are registered in dependency order (a pipe's parents must already
    be registered), so iteration order over ``pipes`` is topological.

    Example:
        flow = FlowDef()
        people = flow.add_source("people", SourceSettings(plugin="csv", options={"path": "p.csv"}))
        adults = flow.add_pipe(
            Pipe(NodeType.TRANSFORM, plugin="filter",
                 options={"field": "age", "greater_than": 17}, parents=(people,))
        )
        flow.add_sink("out", SinkSettings(plugin="json", options={"path": "a.json"}), adults)
    """

    def __init__(self) -> None:
        self._pipes: dict[str, Pipe] = {}
        self._names: dict[str, Pipe] = {}
        self._sources: dict[str, SourceBinding] = {}
        self._sinks: dict[str, SinkBinding] = {}

    def __contains__(self, pipe: object) -> bool:
        return isinstance(pipe, Pipe) and self.contains(pipe)

    def __len__(self) -> int:
        return len(self._pipes)

    def __repr__(self) -> str:
        return (
            f"FlowDef(pipes={len(self._pipes)}, sources={sorted(self._sources)}, "
            f"sinks={sorted(self._sinks)})"
        )

    def contains(self, pipe: Pipe) -> bool:
        """True if this exact pipe object is registered here."""
        return self._pipes.get(pipe.pipe_id) is pipe

    @property
    def pipes(self) -> tuple[Pipe, ...]:
        """Registered pipes in registration (topological) order."""
        return tuple(self._pipes.values())

    @property
    def sources(self) -> Mapping[str, SourceBinding]:
        """Read-only view of source bindings."""
        return MappingProxyType(self._sources)

    @property
    def sinks(self) -> Mapping[str, SinkBinding]:
        """Read-only view of sink bindings."""
        return MappingProxyType(self._sinks)

    def add_pipe(self, pipe: Pipe) -> Pipe:
        """Register a pipe whose parents are already registered.

        Registering the same pipe twice is a no-op.

        Raises:
            UnknownNodeError: If a parent is not registered in this flow
            GraphValidationError: If the pipe's name is already taken
        """
        if self.contains(pipe):
            return pipe
        for parent in pipe.parents:
            if not self.contains(parent):
                raise UnknownNodeError(
                    parent, f"Parent {parent!r} of {pipe!r} is not registered in this flow"
                )
        if pipe.name is not None:
            if pipe.name in self._names:
                raise GraphValidationError(f"Duplicate pipe name '{pipe.name}'")
            self._names[pipe.name] = pipe
        self._pipes[pipe.pipe_id] = pipe
        return pipe

    def add_source(
        self,
        source_id: str,
        descriptor: SourceSettings,
        *,
        pipe: Pipe | None = None,
    ) -> Pipe:
        """Bind a source ID to a descriptor and an entry pipe.

        Without ``pipe`` a new source pipe named after ``source_id`` is created
        and registered. With ``pipe`` the existing (registered) pipe becomes
        the entry point, which is how a sub-flow rebinds the session's source.

        Raises:
            GraphValidationError: If the source ID is already bound
            UnknownNodeError: If ``pipe`` is given but not registered
        """
        if source_id in self._sources:
            raise GraphValidationError(f"Source '{source_id}' is already bound")
        if pipe is None:
            pipe = self.add_pipe(
                Pipe(NodeType.SOURCE, plugin=descriptor.plugin, name=source_id)
            )
        elif not self.contains(pipe):
            raise UnknownNodeError(pipe)
        self._sources[source_id] = SourceBinding(descriptor=descriptor, pipe=pipe)
        return pipe

    def add_sink(self, sink_name: str, descriptor: SinkSettings, pipe: Pipe) -> None:
        """Bind a sink to the pipe whose rows it writes.

        Raises:
            GraphValidationError: If the sink name is already bound
            UnknownNodeError: If ``pipe`` is not registered
        """
        if sink_name in self._sinks:
            raise GraphValidationError(f"Sink '{sink_name}' is already bound")
        if not self.contains(pipe):
            raise UnknownNodeError(pipe)
        self._sinks[sink_name] = SinkBinding(descriptor=descriptor, pipe=pipe)

    def get(self, name: str) -> Pipe:
        """Look up a registered pipe by name.

        Raises:
            KeyError: If no pipe has that name
        """
        try:
            return self._names[name]
        except KeyError:
            raise KeyError(f"No pipe named '{name}'. Known: {sorted(self._names)}") from None

    def source_ids_for(self, pipe: Pipe) -> list[str]:
        """Source IDs whose entry point is ``pipe``, in binding order."""
        return [sid for sid, binding in self._sources.items() if binding.pipe is pipe]

    def register_all(self, pipes: Iterable[Pipe]) -> None:
        """Register pipes, parents first. Order of ``pipes`` does not matter."""
        pending = list(pipes)
        while pending:
            ready = [p for p in pending if all(self.contains(q) for q in p.parents)]
            if not ready:
                raise UnknownNodeError(
                    pending[0], f"Parents of {pending[0]!r} are not among the pipes given"
                )
            for pipe in ready:
                self.add_pipe(pipe)
            pending = [p for p in pending if not self.contains(p)]

    def to_graph(self) -> ExecutionGraph:
        """Structural DAG view of everything the sinks need."""
        return ExecutionGraph.from_flow(self)
