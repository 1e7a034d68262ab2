"""Structural checks run once when a scenario graph is loaded.

``validate`` is the gate: a graph that fails it must never be played.
``lint`` reports authoring smells that do not break traversal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .errors import DanglingReference, GraphError, MalformedNode, UnknownEntry
from .models import OutcomeKind, ScenarioGraph
from .pathfinding import cycle_members, max_total_score, reachable_from

__all__ = ["iter_graph_errors", "lint", "validate"]

logger = logging.getLogger(__name__)


def iter_graph_errors(graph: ScenarioGraph) -> Iterator[GraphError]:
    if graph.entry_id not in graph.nodes:
        yield UnknownEntry(graph.entry_id)

    for key, node in graph.nodes.items():
        if node.id != key:
            yield MalformedNode(key, f"stored under key '{key}' but declares id '{node.id}'")
        if node.is_terminal:
            if node.choices:
                yield MalformedNode(key, "terminal node has choices")
            if node.outcome is None:
                yield MalformedNode(key, "terminal node has no outcome")
        elif not node.choices:
            yield MalformedNode(key, "non-terminal node has no choices")

        for idx, choice in enumerate(node.choices):
            if choice.next_node_id not in graph.nodes:
                yield DanglingReference(key, idx, choice.next_node_id)


def validate(graph: ScenarioGraph) -> None:
    for error in iter_graph_errors(graph):
        raise error
    logger.debug("Graph validated", extra={"entry_id": graph.entry_id, "nodes": len(graph.nodes)})


def lint(graph: ScenarioGraph) -> list[str]:
    """Return human-readable warnings for a graph that already passed ``validate``."""

    warnings: list[str] = []

    if graph.entry_id in graph.nodes and graph.entry.is_terminal:
        warnings.append(f"entry node '{graph.entry_id}' is terminal; the drill ends before any choice")

    unreachable = sorted(set(graph.nodes) - reachable_from(graph))
    if unreachable:
        warnings.append(f"{len(unreachable)} node(s) unreachable from '{graph.entry_id}': {', '.join(unreachable[:5])}")

    looped = cycle_members(graph)
    if looped:
        warnings.append(f"choices form a cycle among {len(looped)} node(s): {', '.join(sorted(looped)[:5])}")

    successes = [
        node_id
        for node_id in reachable_from(graph)
        if graph.nodes[node_id].is_terminal and graph.nodes[node_id].outcome is OutcomeKind.SUCCESS
    ]
    if not successes:
        warnings.append("no success ending is reachable from the entry")

    best = max_total_score(graph)
    if best is not None and best != graph.max_possible_score:
        warnings.append(f"declared max_possible_score {graph.max_possible_score} differs from best achievable total {best}")

    for message in warnings:
        logger.warning("Graph lint: %s", message, extra={"entry_id": graph.entry_id})
    return warnings
