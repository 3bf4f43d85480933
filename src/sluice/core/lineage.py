"""Upstream traversal of a flow.

reachable_pipes() walks parent pointers from a terminal pipe with an
explicit work stack, so deep pipelines cannot hit the recursion limit and
fan-in is visited once per pipe. resolve_sources() maps the heads it finds
back to the logical source IDs registered in the flow.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sluice.contracts.errors import UnknownNodeError
from sluice.core.flow import FlowDef, Pipe


@dataclass(frozen=True)
class Lineage:
    """Result of walking upstream from a terminal pipe.

    Attributes:
        terminal: The pipe the walk started from
        visited: Every pipe reachable upstream, terminal included
        heads: Visited pipes with no parents
    """

    terminal: Pipe
    visited: frozenset[Pipe]
    heads: frozenset[Pipe]


def reachable_pipes(terminal: Pipe, flow: FlowDef) -> Lineage:
    """Collect the terminal's ancestors and the heads among them.

    Pure read: ``flow`` is not modified.

    Raises:
        UnknownNodeError: If ``terminal`` is not registered in ``flow``
    """
    if not flow.contains(terminal):
        raise UnknownNodeError(terminal)

    visited: set[Pipe] = set()
    heads: set[Pipe] = set()
    stack: list[Pipe] = [terminal]

    while stack:
        pipe = stack.pop()
        if pipe in visited:
            continue
        visited.add(pipe)
        if pipe.is_head:
            heads.add(pipe)
        else:
            stack.extend(p for p in pipe.parents if p not in visited)

    return Lineage(terminal=terminal, visited=frozenset(visited), heads=frozenset(heads))


def resolve_sources(heads: Iterable[Pipe], flow: FlowDef) -> frozenset[str]:
    """Source IDs whose entry pipe is one of ``heads``.

    Heads without a binding (literal pipes) are simply absent from the
    result. A pipe bound under several source IDs yields every one of them.
    """
    head_set = set(heads)
    return frozenset(
        source_id
        for source_id, binding in flow.sources.items()
        if binding.pipe in head_set
    )
