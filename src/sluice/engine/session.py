"""Interactive session: the explicit context a pipeline is built in.

A Session owns exactly one active FlowDef. Construction methods register
pipes and bindings into it; ``snapshot``/``to_list`` materialize a pipe
through the SnapshotCoordinator without leaving any trace of the temporary
sub-flow behind.

Example:
    session = Session()
    people = session.read("people", SourceSettings(plugin="csv", options={"path": "people.csv"}))
    adults = session.transform(people, "filter", {"field": "age", "greater_than": "17"})
    print(session.to_list(adults))

    # keep building on the materialized rows
    cached = session.snapshot(adults)
    renamed = session.transform(cached, "field_mapper", {"mapping": {"name": "full_name"}})
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from sluice.contracts import NodeType, RunResult
from sluice.core.config import SinkSettings, SluiceSettings, SnapshotSettings, SourceSettings
from sluice.core.flow import FlowDef, Pipe
from sluice.engine.executor import ExecutorProtocol, LocalExecutor
from sluice.engine.snapshot import SnapshotCoordinator, SnapshotSource
from sluice.plugins.manager import PluginManager

logger = structlog.get_logger(__name__)


def default_manager() -> PluginManager:
    """Plugin manager with the built-in plugins registered."""
    manager = PluginManager()
    manager.register_builtin_plugins()
    return manager


class Session:
    """Holds the active flow and the collaborators that act on it.

    Args:
        snapshot_settings: Staging configuration for snapshots
        manager: Plugin manager (built-ins registered if omitted)
        executor: Executor for runs and snapshots (LocalExecutor if omitted)
    """

    def __init__(
        self,
        *,
        snapshot_settings: SnapshotSettings | None = None,
        manager: PluginManager | None = None,
        executor: ExecutorProtocol | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._flow = FlowDef()
        self._manager = manager if manager is not None else default_manager()
        self._executor = executor if executor is not None else LocalExecutor(self._manager)
        self._coordinator = SnapshotCoordinator(
            self, self._executor, snapshot_settings or SnapshotSettings()
        )

    @classmethod
    def from_settings(
        cls,
        settings: SluiceSettings,
        *,
        manager: PluginManager | None = None,
        executor: ExecutorProtocol | None = None,
    ) -> Session:
        """Build a session whose active flow is the declared pipeline.

        Sources, nodes and sinks are registered in declaration order; the
        settings validators already guarantee inputs are declared first.
        """
        session = cls(
            snapshot_settings=settings.snapshot,
            manager=manager,
            executor=executor,
        )
        for source_id, descriptor in settings.sources.items():
            session.read(source_id, descriptor)
        for node in settings.nodes:
            parents = [session.get(name) for name in node.inputs]
            if node.type == "literal":
                session.literal(node.options["rows"], name=node.name)
            elif node.type == "merge":
                session.merge(*parents, name=node.name)
            else:
                assert node.plugin is not None
                session.transform(parents[0], node.plugin, node.options, name=node.name)
        for sink_name, sink in settings.sinks.items():
            assert sink.input is not None
            session.write(session.get(sink.input), sink_name, sink)
        return session

    # === Active flow ===

    @property
    def lock(self) -> threading.RLock:
        """Session-wide lock guarding the active flow."""
        return self._lock

    @property
    def flow(self) -> FlowDef:
        """The active flow."""
        with self._lock:
            return self._flow

    @property
    def manager(self) -> PluginManager:
        """Plugin manager used to resolve plugin names."""
        return self._manager

    @property
    def coordinator(self) -> SnapshotCoordinator:
        """Snapshot coordinator bound to this session."""
        return self._coordinator

    def swap_flow(self, flow: FlowDef) -> FlowDef:
        """Install ``flow`` as the active flow and return the previous one.

        This is the only place the active flow changes.
        """
        with self._lock:
            previous, self._flow = self._flow, flow
            return previous

    def reset(self) -> FlowDef:
        """Start over with an empty flow, returning the discarded one.

        Snapshots never reset the session on their own.
        """
        discarded = self.swap_flow(FlowDef())
        logger.info("flow_reset", pipes=len(discarded))
        return discarded

    # === Construction ===

    def read(self, source_id: str, descriptor: SourceSettings) -> Pipe:
        """Bind a source and return its entry pipe.

        Raises:
            ValueError: If no source plugin is registered under ``descriptor.plugin``
        """
        self._require_plugin(NodeType.SOURCE, descriptor.plugin)
        with self._lock:
            return self._flow.add_source(source_id, descriptor)

    def literal(self, rows: Iterable[Mapping[str, Any]], *, name: str | None = None) -> Pipe:
        """Register in-memory rows as a head pipe."""
        pipe = Pipe(NodeType.LITERAL, options={"rows": [dict(r) for r in rows]}, name=name)
        with self._lock:
            return self._flow.add_pipe(pipe)

    def transform(
        self,
        parent: Pipe,
        plugin: str,
        options: Mapping[str, Any] | None = None,
        *,
        name: str | None = None,
    ) -> Pipe:
        """Apply a transform plugin to ``parent``'s rows.

        Raises:
            ValueError: If no transform plugin is registered under ``plugin``
            UnknownNodeError: If ``parent`` is not in the active flow
        """
        self._require_plugin(NodeType.TRANSFORM, plugin)
        pipe = Pipe(
            NodeType.TRANSFORM,
            plugin=plugin,
            options=options or {},
            parents=(parent,),
            name=name,
        )
        with self._lock:
            return self._flow.add_pipe(pipe)

    def merge(self, *parents: Pipe, name: str | None = None) -> Pipe:
        """Concatenate the rows of two or more pipes, in argument order."""
        pipe = Pipe(NodeType.MERGE, parents=parents, name=name)
        with self._lock:
            return self._flow.add_pipe(pipe)

    def write(self, pipe: Pipe, sink_name: str, descriptor: SinkSettings) -> None:
        """Bind a sink to ``pipe``.

        Raises:
            ValueError: If no sink plugin is registered under ``descriptor.plugin``
        """
        self._require_plugin(NodeType.SINK, descriptor.plugin)
        with self._lock:
            self._flow.add_sink(sink_name, descriptor, pipe)

    def get(self, name: str) -> Pipe:
        """Look up a named pipe in the active flow."""
        return self.flow.get(name)

    # === Execution ===

    def run(self) -> RunResult:
        """Execute every sink of the active flow."""
        with self._lock:
            return self._executor.execute(self._flow)

    def snapshot(self, pipe: Pipe) -> Pipe:
        """Materialize ``pipe`` and register the result as a new source.

        Returns:
            Entry pipe of the snapshot source, ready for further chaining
        """
        return self.read_snapshot(self._coordinator.snapshot(pipe))

    def read_snapshot(self, snapshot: SnapshotSource) -> Pipe:
        """Register a materialized snapshot as a source in the active flow."""
        with self._lock:
            return self._flow.add_source(snapshot.source_id, snapshot.descriptor)

    def to_list(self, pipe: Pipe) -> list[dict[str, Any]]:
        """Materialize ``pipe`` and return its rows.

        Raises:
            ResultTooLargeError: If the rows exceed ``snapshot.max_collect_rows``
        """
        return self._coordinator.materialize_and_list(pipe)

    def _require_plugin(self, kind: NodeType, plugin: str) -> None:
        lookup = {
            NodeType.SOURCE: self._manager.get_source_by_name,
            NodeType.TRANSFORM: self._manager.get_transform_by_name,
            NodeType.SINK: self._manager.get_sink_by_name,
        }[kind]
        if lookup(plugin) is None:
            raise ValueError(f"Unknown {kind.value} plugin '{plugin}'")
