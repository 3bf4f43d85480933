"""Executors run a FlowDef to completion.

The snapshot machinery only depends on ExecutorProtocol. LocalExecutor is
the in-process implementation: it evaluates every pipe the sinks need, in
topological order, holding each pipe's rows in memory.
"""

import copy
import uuid
from collections.abc import Iterator
from typing import Any, Protocol

import structlog

from sluice.contracts import (
    ArtifactDescriptor,
    ExecutionError,
    NodeType,
    RunResult,
    RunStatus,
)
from sluice.core.config import SourceSettings
from sluice.core.dag import ExecutionGraph
from sluice.core.flow import FlowDef, Pipe
from sluice.plugins.context import PluginContext
from sluice.plugins.manager import PluginManager
from sluice.plugins.protocols import SinkProtocol, SourceProtocol, TransformProtocol

logger = structlog.get_logger(__name__)

Rows = list[dict[str, Any]]


class ExecutorProtocol(Protocol):
    """Anything that can run a flow."""

    def execute(self, flow: FlowDef) -> RunResult:
        """Run every sink of ``flow``.

        Raises:
            ExecutionError: If the run fails
        """
        ...


def _new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


def create_source(descriptor: SourceSettings, manager: PluginManager) -> SourceProtocol:
    """Instantiate the source plugin a descriptor names.

    Raises:
        ExecutionError: If no source plugin has that name
    """
    source_cls = manager.get_source_by_name(descriptor.plugin)
    if source_cls is None:
        raise ExecutionError(f"Unknown source plugin '{descriptor.plugin}'")
    return source_cls(copy.deepcopy(descriptor.options))


def iter_source(
    descriptor: SourceSettings,
    manager: PluginManager,
    *,
    run_id: str,
    node_id: str | None = None,
) -> Iterator[dict[str, Any]]:
    """Stream rows from a source descriptor, closing the plugin afterwards.

    The plugin is closed even when the caller stops iterating early.
    """
    source = create_source(descriptor, manager)
    ctx = PluginContext(run_id=run_id, node_id=node_id, plugin_name=descriptor.plugin)
    try:
        source.on_start(ctx)
        yield from source.load(ctx)
        source.on_complete(ctx)  # type: ignore[attr-defined]
    finally:
        source.close()


def read_source(
    descriptor: SourceSettings,
    manager: PluginManager,
    *,
    run_id: str | None = None,
    node_id: str | None = None,
) -> Rows:
    """Read every row of a source descriptor into memory."""
    return list(
        iter_source(descriptor, manager, run_id=run_id or _new_run_id(), node_id=node_id)
    )


class LocalExecutor:
    """Run flows in-process.

    Usage:
        manager = PluginManager()
        manager.register_builtin_plugins()
        result = LocalExecutor(manager).execute(flow)
    """

    def __init__(self, manager: PluginManager) -> None:
        self._manager = manager

    def execute(self, flow: FlowDef) -> RunResult:
        """Evaluate the pipes the sinks need and write every sink.

        Raises:
            GraphValidationError: If the flow's structure is unusable
            ExecutionError: If a plugin fails; ``node`` names the failing pipe or sink
        """
        graph = ExecutionGraph.from_flow(flow)
        graph.validate()

        run_id = _new_run_id()
        log = logger.bind(run_id=run_id)
        log.debug("run_started", nodes=graph.node_count, sinks=sorted(flow.sinks))

        results: dict[str, Rows] = {}
        for node_id in graph.topological_order():
            info = graph.get_node_info(node_id)
            if info.node_type is NodeType.SINK:
                continue
            assert info.pipe is not None
            try:
                results[node_id] = self._evaluate(info.pipe, flow, results, run_id)
            except ExecutionError:
                raise
            except Exception as e:
                raise ExecutionError(f"{type(e).__name__}: {e}", node=info.label) from e
            log.debug(
                "node_evaluated",
                node=info.label,
                kind=info.node_type.value,
                rows=len(results[node_id]),
            )

        run = RunResult(run_id=run_id, status=RunStatus.COMPLETED)
        for sink_name, sink_node_id in graph.get_sink_id_map().items():
            binding = flow.sinks[sink_name]
            rows = results[binding.pipe.pipe_id]
            try:
                run.artifacts[sink_name] = self._write_sink(
                    sink_name, sink_node_id, binding.descriptor.plugin,
                    dict(binding.descriptor.options), rows, run_id,
                )
            except ExecutionError:
                raise
            except Exception as e:
                raise ExecutionError(f"{type(e).__name__}: {e}", node=sink_name) from e
            run.rows_written[sink_name] = len(rows)

        log.info("run_completed", rows_written=run.rows_written)
        return run

    def _evaluate(
        self,
        pipe: Pipe,
        flow: FlowDef,
        results: dict[str, Rows],
        run_id: str,
    ) -> Rows:
        match pipe.kind:
            case NodeType.SOURCE:
                # A pipe bound under several source IDs is read through the first
                source_id = flow.source_ids_for(pipe)[0]
                return read_source(
                    flow.sources[source_id].descriptor,
                    self._manager,
                    run_id=run_id,
                    node_id=source_id,
                )
            case NodeType.LITERAL:
                return copy.deepcopy(list(pipe.options["rows"]))
            case NodeType.TRANSFORM:
                return self._apply_transform(pipe, results[pipe.parents[0].pipe_id], run_id)
            case NodeType.MERGE:
                merged: Rows = []
                for parent in pipe.parents:
                    merged.extend(results[parent.pipe_id])
                return merged
            case _:
                raise ExecutionError(f"Cannot evaluate {pipe.kind.value} pipe", node=pipe.label)

    def _apply_transform(self, pipe: Pipe, rows: Rows, run_id: str) -> Rows:
        assert pipe.plugin is not None
        transform_cls = self._manager.get_transform_by_name(pipe.plugin)
        if transform_cls is None:
            raise ExecutionError(f"Unknown transform plugin '{pipe.plugin}'", node=pipe.label)

        transform: TransformProtocol = transform_cls(pipe.plugin_options())
        ctx = PluginContext(run_id=run_id, node_id=pipe.pipe_id, plugin_name=pipe.plugin)
        output: Rows = []
        try:
            transform.on_start(ctx)
            for row in rows:
                result = transform.process(row, ctx)
                if result.status == "error":
                    raise ExecutionError(
                        f"Transform '{pipe.plugin}' rejected a row: {result.reason}",
                        node=pipe.label,
                    )
                if result.row is not None:
                    output.append(result.row)
            transform.on_complete(ctx)
        finally:
            transform.close()  # type: ignore[attr-defined]
        return output

    def _write_sink(
        self,
        sink_name: str,
        node_id: str,
        plugin: str,
        options: dict[str, Any],
        rows: Rows,
        run_id: str,
    ) -> ArtifactDescriptor:
        sink_cls = self._manager.get_sink_by_name(plugin)
        if sink_cls is None:
            raise ExecutionError(f"Unknown sink plugin '{plugin}'", node=sink_name)

        sink: SinkProtocol = sink_cls(copy.deepcopy(options))
        ctx = PluginContext(run_id=run_id, node_id=node_id, plugin_name=plugin)
        try:
            sink.on_start(ctx)  # type: ignore[attr-defined]
            artifact = sink.write(rows, ctx)
            sink.flush()
            sink.on_complete(ctx)  # type: ignore[attr-defined]
        finally:
            sink.close()
        return artifact
