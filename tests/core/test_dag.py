# tests/core/test_dag.py
"""Tests for DAG validation and operations."""

import pytest


class TestDAGBuilder:
    """Building execution graphs by hand."""

    def test_empty_dag(self) -> None:
        from sluice.core.dag import ExecutionGraph

        graph = ExecutionGraph()
        assert graph.node_count == 0
        assert graph.edge_count == 0

    def test_add_node_and_edge(self) -> None:
        from sluice.contracts import NodeType
        from sluice.core.dag import ExecutionGraph

        graph = ExecutionGraph()
        graph.add_node("seed", node_type="literal", plugin_name="literal")
        graph.add_node("out", node_type="sink", plugin_name="json")
        graph.add_edge("seed", "out", label="out")

        assert graph.has_node("seed")
        assert graph.get_node_info("seed").node_type is NodeType.LITERAL
        assert graph.get_edges() == [("seed", "out", {"label": "out"})]

    def test_get_node_info_missing(self) -> None:
        from sluice.core.dag import ExecutionGraph

        with pytest.raises(KeyError):
            ExecutionGraph().get_node_info("nope")


class TestDAGValidation:
    """Validation of execution graphs."""

    def test_cycle_rejected(self) -> None:
        from sluice.core.dag import ExecutionGraph, GraphValidationError

        graph = ExecutionGraph()
        graph.add_node("a", node_type="transform", plugin_name="x")
        graph.add_node("b", node_type="transform", plugin_name="y")
        graph.add_edge("a", "b", label="continue")
        graph.add_edge("b", "a", label="continue")

        assert graph.is_acyclic() is False
        with pytest.raises(GraphValidationError, match="cycle"):
            graph.validate()
        with pytest.raises(GraphValidationError):
            graph.topological_order()

    def test_requires_sink(self) -> None:
        from sluice.core.dag import ExecutionGraph, GraphValidationError

        graph = ExecutionGraph()
        graph.add_node("seed", node_type="literal", plugin_name="literal")

        with pytest.raises(GraphValidationError, match="at least one sink"):
            graph.validate()

    def test_unbound_head_rejected(self) -> None:
        from sluice.contracts import NodeType
        from sluice.core.config import SinkSettings
        from sluice.core.dag import GraphValidationError
        from sluice.core.flow import FlowDef, Pipe

        flow = FlowDef()
        orphan = flow.add_pipe(Pipe(NodeType.SOURCE, plugin="csv", name="orphan"))
        flow.add_sink("out", SinkSettings(plugin="json", options={"path": "o.json"}), orphan)

        with pytest.raises(GraphValidationError, match="orphan"):
            flow.to_graph().validate()


class TestFromFlow:
    """Deriving the structural view from a FlowDef."""

    def _flow(self):
        from sluice.contracts import NodeType
        from sluice.core.config import SinkSettings, SourceSettings
        from sluice.core.flow import FlowDef, Pipe

        flow = FlowDef()
        a = flow.add_source("A", SourceSettings(plugin="csv", options={"path": "input.csv"}))
        b = flow.add_pipe(Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(a,), name="B"))
        d = flow.add_pipe(Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(a,), name="D"))
        c = flow.add_pipe(Pipe(NodeType.MERGE, parents=(b, d), name="C"))
        dangling = flow.add_pipe(
            Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(a,), name="dangling")
        )
        flow.add_sink("out", SinkSettings(plugin="json", options={"path": "o.json"}), c)
        return flow, a, c, dangling

    def test_nodes_and_edges(self) -> None:
        flow, a, c, _ = self._flow()
        graph = flow.to_graph()
        graph.validate()

        # A, B, D, C and the sink; dangling is pruned
        assert graph.node_count == 5
        assert graph.edge_count == 5
        assert graph.get_sink_id_map() == {"out": "sink_out"}
        assert graph.get_heads() == [a.pipe_id]

    def test_prunes_pipes_feeding_no_sink(self) -> None:
        flow, _, _, dangling = self._flow()

        assert not flow.to_graph().has_node(dangling.pipe_id)

    def test_source_node_uses_descriptor(self) -> None:
        flow, a, _, _ = self._flow()
        info = flow.to_graph().get_node_info(a.pipe_id)

        assert info.plugin_name == "csv"
        assert info.config == {"path": "input.csv"}
        assert info.pipe is a
        assert flow.to_graph().get_source_ids(a.pipe_id) == ["A"]

    def test_topological_order_puts_parents_first(self) -> None:
        flow, a, c, _ = self._flow()
        order = flow.to_graph().topological_order()

        assert order.index(a.pipe_id) < order.index(c.pipe_id) < order.index("sink_out")
