"""DAG (Directed Acyclic Graph) operations for execution planning.

Uses NetworkX for graph operations including:
- Acyclicity validation
- Topological sorting
- Ancestor queries for lineage inspection

An ExecutionGraph is a structural view derived from a FlowDef. It never
owns pipes; node IDs are pipe IDs (and ``sink_<name>`` for sinks).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

import networkx as nx
from networkx import DiGraph

from sluice.contracts.enums import NodeType
from sluice.contracts.errors import SluiceError

if TYPE_CHECKING:
    from sluice.core.flow import FlowDef, Pipe


class GraphValidationError(SluiceError):
    """Raised when graph validation fails."""

    pass


@dataclass
class NodeInfo:
    """Information about a node in the execution graph."""

    node_id: str
    node_type: NodeType
    plugin_name: str
    config: dict[str, Any] = field(default_factory=dict)
    label: str = ""
    pipe: Pipe | None = None  # None for sink nodes


class ExecutionGraph:
    """Execution graph for a flow.

    Wraps NetworkX DiGraph with domain-specific operations.
    """

    def __init__(self) -> None:
        self._graph: DiGraph[str] = nx.DiGraph()
        self._sink_id_map: dict[str, str] = {}
        self._source_id_map: dict[str, list[str]] = {}  # node_id -> bound source ids

    @property
    def node_count(self) -> int:
        """Number of nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Number of edges in the graph."""
        return self._graph.number_of_edges()

    def has_node(self, node_id: str) -> bool:
        """Check if node exists."""
        return self._graph.has_node(node_id)

    def add_node(
        self,
        node_id: str,
        *,
        node_type: NodeType | str,
        plugin_name: str,
        config: dict[str, Any] | None = None,
        label: str | None = None,
        pipe: Pipe | None = None,
    ) -> None:
        """Add a node to the execution graph."""
        info = NodeInfo(
            node_id=node_id,
            node_type=NodeType(node_type),
            plugin_name=plugin_name,
            config=config or {},
            label=label or node_id,
            pipe=pipe,
        )
        self._graph.add_node(node_id, info=info)

    def add_edge(self, from_node: str, to_node: str, *, label: str) -> None:
        """Add an edge between nodes.

        Args:
            from_node: Upstream node ID
            to_node: Downstream node ID
            label: Edge label ("continue" between pipes, sink name into sinks)
        """
        self._graph.add_edge(from_node, to_node, label=label)

    def is_acyclic(self) -> bool:
        """Check if the graph is acyclic (a valid DAG)."""
        return nx.is_directed_acyclic_graph(self._graph)

    def validate(self) -> None:
        """Validate the execution graph.

        Validates:
        1. Graph is acyclic (no cycles)
        2. At least one sink node exists
        3. Every head node is a literal or a source bound in the registry

        Raises:
            GraphValidationError: If validation fails
        """
        if not self.is_acyclic():
            try:
                cycle = nx.find_cycle(self._graph)
                cycle_str = " -> ".join(f"{u}" for u, v in cycle)
                raise GraphValidationError(f"Graph contains a cycle: {cycle_str}")
            except nx.NetworkXNoCycle:
                raise GraphValidationError("Graph contains a cycle") from None

        if len(self.get_sinks()) < 1:
            raise GraphValidationError("Graph must have at least one sink")

        for node_id in self.get_heads():
            info = self.get_node_info(node_id)
            if info.node_type is NodeType.LITERAL:
                continue
            if info.node_type is NodeType.SOURCE and self._source_id_map.get(node_id):
                continue
            raise GraphValidationError(
                f"Node '{info.label}' has no inputs and no bound source"
            )

    def topological_order(self) -> list[str]:
        """Return nodes in topological order.

        Raises:
            GraphValidationError: If graph has cycles
        """
        try:
            return list(nx.topological_sort(self._graph))
        except nx.NetworkXUnfeasible as e:
            raise GraphValidationError(f"Cannot sort graph: {e}") from e

    def get_heads(self) -> list[str]:
        """Get node IDs with no incoming edges."""
        return [node_id for node_id, degree in self._graph.in_degree() if degree == 0]

    def get_sinks(self) -> list[str]:
        """Get all sink node IDs."""
        return [
            node_id
            for node_id, data in self._graph.nodes(data=True)
            if data["info"].node_type is NodeType.SINK
        ]

    def get_node_info(self, node_id: str) -> NodeInfo:
        """Get NodeInfo for a node.

        Raises:
            KeyError: If node doesn't exist
        """
        if not self._graph.has_node(node_id):
            raise KeyError(f"Node not found: {node_id}")
        return cast(NodeInfo, self._graph.nodes[node_id]["info"])

    def get_edges(self) -> list[tuple[str, str, dict[str, Any]]]:
        """Get all edges with their data.

        Returns:
            List of (from_node, to_node, edge_data) tuples
        """
        return [(u, v, dict(data)) for u, v, data in self._graph.edges(data=True)]

    def ancestors(self, node_id: str) -> set[str]:
        """Node IDs upstream of ``node_id``."""
        return set(nx.ancestors(self._graph, node_id))

    def get_sink_id_map(self) -> dict[str, str]:
        """Get explicit sink_name -> node_id mapping."""
        return dict(self._sink_id_map)

    def get_source_ids(self, node_id: str) -> list[str]:
        """Source IDs bound to a head node, in registration order."""
        return list(self._source_id_map.get(node_id, []))

    @classmethod
    def from_flow(cls, flow: FlowDef) -> ExecutionGraph:
        """Build the graph a FlowDef's sinks actually need.

        Creates one node per pipe upstream of any sink plus one node per
        sink. Pipes that feed no sink are pruned.
        """
        graph = cls()

        for pipe in flow.pipes:
            config: dict[str, Any] = dict(pipe.options)
            plugin_name = pipe.plugin or pipe.kind.value
            source_ids = flow.source_ids_for(pipe)
            if source_ids:
                descriptor = flow.sources[source_ids[0]].descriptor
                plugin_name = descriptor.plugin
                config = dict(descriptor.options)
                graph._source_id_map[pipe.pipe_id] = source_ids
            graph.add_node(
                pipe.pipe_id,
                node_type=pipe.kind,
                plugin_name=plugin_name,
                config=config,
                label=pipe.label,
                pipe=pipe,
            )
            for parent in pipe.parents:
                graph.add_edge(parent.pipe_id, pipe.pipe_id, label="continue")

        keep: set[str] = set()
        for sink_name, binding in flow.sinks.items():
            sid = f"sink_{sink_name}"
            graph.add_node(
                sid,
                node_type=NodeType.SINK,
                plugin_name=binding.descriptor.plugin,
                config=dict(binding.descriptor.options),
                label=sink_name,
            )
            graph.add_edge(binding.pipe.pipe_id, sid, label=sink_name)
            graph._sink_id_map[sink_name] = sid
            keep.add(sid)
            keep |= graph.ancestors(sid)

        graph._graph.remove_nodes_from([n for n in list(graph._graph) if n not in keep])
        graph._source_id_map = {
            k: v for k, v in graph._source_id_map.items() if k in keep
        }
        return graph
