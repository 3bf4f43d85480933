# tests/core/test_lineage.py
"""Tests for upstream traversal and source resolution."""

from typing import Any

import pytest
from hypothesis import given
from hypothesis import strategies as st


def _diamond() -> tuple[Any, dict[str, Any]]:
    """A -> B -> C and A -> D -> C, with A bound to input.csv."""
    from sluice.contracts import NodeType
    from sluice.core.config import SourceSettings
    from sluice.core.flow import FlowDef, Pipe

    flow = FlowDef()
    a = flow.add_source("A", SourceSettings(plugin="csv", options={"path": "input.csv"}))
    b = flow.add_pipe(Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(a,), name="B"))
    d = flow.add_pipe(Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(a,), name="D"))
    c = flow.add_pipe(Pipe(NodeType.MERGE, parents=(b, d), name="C"))
    return flow, {"A": a, "B": b, "C": c, "D": d}


@st.composite
def random_dags(draw: st.DrawFn) -> tuple[Any, list[Any]]:
    """Random flows: literal heads, then merges/transforms over earlier pipes."""
    from sluice.contracts import NodeType
    from sluice.core.flow import FlowDef, Pipe

    flow = FlowDef()
    pipes: list[Any] = []
    for i in range(draw(st.integers(min_value=1, max_value=4))):
        pipes.append(flow.add_pipe(Pipe(NodeType.LITERAL, options={"rows": [{"i": i}]})))

    for _ in range(draw(st.integers(min_value=0, max_value=12))):
        if len(pipes) >= 2 and draw(st.booleans()):
            idx = draw(
                st.lists(
                    st.integers(min_value=0, max_value=len(pipes) - 1),
                    min_size=2,
                    max_size=3,
                    unique=True,
                )
            )
            pipe = Pipe(NodeType.MERGE, parents=tuple(pipes[i] for i in idx))
        else:
            parent = pipes[draw(st.integers(min_value=0, max_value=len(pipes) - 1))]
            pipe = Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(parent,))
        pipes.append(flow.add_pipe(pipe))
    return flow, pipes


class TestReachablePipes:
    """Lineage walker."""

    def test_diamond_visits_every_upstream_pipe_once(self) -> None:
        from sluice.core.lineage import reachable_pipes

        flow, p = _diamond()
        lineage = reachable_pipes(p["C"], flow)

        assert lineage.visited == frozenset(p.values())
        assert lineage.heads == frozenset({p["A"]})
        assert lineage.terminal is p["C"]

    def test_branch_excludes_siblings(self) -> None:
        from sluice.core.lineage import reachable_pipes

        flow, p = _diamond()
        lineage = reachable_pipes(p["B"], flow)

        assert lineage.visited == frozenset({p["A"], p["B"]})

    def test_head_terminal(self) -> None:
        from sluice.core.lineage import reachable_pipes

        flow, p = _diamond()
        lineage = reachable_pipes(p["A"], flow)

        assert lineage.visited == lineage.heads == frozenset({p["A"]})

    def test_unknown_terminal(self) -> None:
        from sluice.contracts import NodeType, UnknownNodeError
        from sluice.core.flow import Pipe
        from sluice.core.lineage import reachable_pipes

        flow, _ = _diamond()
        stranger = Pipe(NodeType.LITERAL, options={"rows": []})

        with pytest.raises(UnknownNodeError):
            reachable_pipes(stranger, flow)

    def test_does_not_modify_flow(self) -> None:
        from sluice.core.lineage import reachable_pipes

        flow, p = _diamond()
        before = (flow.pipes, dict(flow.sources), dict(flow.sinks))
        reachable_pipes(p["C"], flow)

        assert (flow.pipes, dict(flow.sources), dict(flow.sinks)) == before

    def test_deep_chain_does_not_recurse(self) -> None:
        import sys

        from sluice.contracts import NodeType
        from sluice.core.flow import FlowDef, Pipe
        from sluice.core.lineage import reachable_pipes

        flow = FlowDef()
        pipe = flow.add_pipe(Pipe(NodeType.LITERAL, options={"rows": []}))
        for _ in range(sys.getrecursionlimit() + 100):
            pipe = flow.add_pipe(Pipe(NodeType.TRANSFORM, plugin="passthrough", parents=(pipe,)))

        assert len(reachable_pipes(pipe, flow).visited) == len(flow)

    @given(random_dags())
    def test_visited_matches_graph_ancestors(self, dag: tuple[Any, list[Any]]) -> None:
        from sluice.core.dag import ExecutionGraph
        from sluice.core.lineage import reachable_pipes

        flow, pipes = dag
        terminal = pipes[-1]

        # Independent oracle: networkx ancestors over every registered pipe
        graph = ExecutionGraph()
        for pipe in flow.pipes:
            graph.add_node(pipe.pipe_id, node_type=pipe.kind, plugin_name="x")
            for parent in pipe.parents:
                graph.add_edge(parent.pipe_id, pipe.pipe_id, label="continue")
        expected = graph.ancestors(terminal.pipe_id) | {terminal.pipe_id}

        lineage = reachable_pipes(terminal, flow)

        assert {p.pipe_id for p in lineage.visited} == expected
        assert all(p.is_head for p in lineage.heads)
        assert lineage.heads == {p for p in lineage.visited if not p.parents}


class TestResolveSources:
    """Mapping heads back to source IDs."""

    def test_diamond_resolves_single_source(self) -> None:
        from sluice.core.lineage import reachable_pipes, resolve_sources

        flow, p = _diamond()
        lineage = reachable_pipes(p["C"], flow)

        assert resolve_sources(lineage.heads, flow) == frozenset({"A"})

    def test_literal_head_is_not_an_error(self) -> None:
        from sluice.contracts import NodeType
        from sluice.core.flow import FlowDef, Pipe
        from sluice.core.lineage import resolve_sources

        flow = FlowDef()
        head = flow.add_pipe(Pipe(NodeType.LITERAL, options={"rows": []}))

        assert resolve_sources([head], flow) == frozenset()

    def test_pipe_bound_twice_yields_both_ids(self) -> None:
        from sluice.core.config import SourceSettings
        from sluice.core.flow import FlowDef
        from sluice.core.lineage import resolve_sources

        flow = FlowDef()
        pipe = flow.add_source("first", SourceSettings(plugin="csv", options={"path": "a.csv"}))
        flow.add_source("second", SourceSettings(plugin="csv", options={"path": "a.csv"}), pipe=pipe)

        assert resolve_sources([pipe], flow) == frozenset({"first", "second"})

    def test_unrelated_sources_are_excluded(self) -> None:
        from sluice.core.config import SourceSettings
        from sluice.core.flow import FlowDef
        from sluice.core.lineage import resolve_sources

        flow = FlowDef()
        used = flow.add_source("used", SourceSettings(plugin="csv", options={"path": "a.csv"}))
        flow.add_source("unused", SourceSettings(plugin="csv", options={"path": "b.csv"}))

        assert resolve_sources([used], flow) == frozenset({"used"})
