"""Reference paths through a scenario graph.

``find_best_path`` reproduces the greedy walk learners are shown after a
drill: at every node take the choice with the largest immediate ``xp_delta``.
That is a local heuristic.  A choice worth less now can lead to a richer
branch later, so the greedy total may be lower than the best achievable one.
``find_max_score_path`` and ``max_total_score`` compute the global optimum
over simple paths; ``reference_path`` picks between the two through the
``pathfinding.global_optimum`` feature flag and keeps the greedy walk as the
default.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterator

from . import feature_flags
from .models import OptimalPathStep, OutcomeKind, ScenarioGraph, ScenarioNode

__all__ = [
    "cycle_members",
    "find_best_path",
    "find_max_score_path",
    "max_total_score",
    "reachable_from",
    "reference_path",
]

logger = logging.getLogger(__name__)

GLOBAL_OPTIMUM_FLAG = "pathfinding.global_optimum"

# (total xp, choice indices from the node to a success ending)
_Suffix = tuple[int, tuple[int, ...]]


def _best_choice_index(node: ScenarioNode) -> int:
    best = 0
    for idx, choice in enumerate(node.choices):
        if choice.xp_delta > node.choices[best].xp_delta:
            best = idx
    return best


def find_best_path(graph: ScenarioGraph) -> list[OptimalPathStep]:
    path: list[OptimalPathStep] = []
    current = graph.entry_id
    visited: set[str] = set()

    while True:
        node = graph.nodes.get(current)
        if node is None or node.is_terminal or not node.choices or current in visited:
            path.append(OptimalPathStep(node_id=current))
            return path
        visited.add(current)
        idx = _best_choice_index(node)
        choice = node.choices[idx]
        path.append(
            OptimalPathStep(
                node_id=current,
                choice_text=choice.text,
                choice_index=idx,
                xp_delta=choice.xp_delta,
            )
        )
        current = choice.next_node_id


def _successors(node: ScenarioNode) -> Iterator[str]:
    for choice in node.choices:
        yield choice.next_node_id


def reachable_from(graph: ScenarioGraph, start: str | None = None) -> set[str]:
    origin = graph.entry_id if start is None else start
    if origin not in graph.nodes:
        return set()
    seen: set[str] = {origin}
    queue: deque[str] = deque([origin])
    while queue:
        node_id = queue.popleft()
        for target in _successors(graph.nodes[node_id]):
            if target in graph.nodes and target not in seen:
                seen.add(target)
                queue.append(target)
    return seen


def cycle_members(graph: ScenarioGraph) -> set[str]:
    """Return ids of nodes on a cycle or downstream of one (Kahn's algorithm).

    An empty set means the choice edges form a DAG.
    """

    in_degree: dict[str, int] = dict.fromkeys(graph.nodes, 0)
    for node in graph.nodes.values():
        for target in _successors(node):
            if target in in_degree:
                in_degree[target] += 1

    queue = [node_id for node_id, degree in in_degree.items() if degree == 0]
    while queue:
        node_id = queue.pop()
        for target in _successors(graph.nodes[node_id]):
            if target not in in_degree:
                continue
            in_degree[target] -= 1
            if in_degree[target] == 0:
                queue.append(target)
    return {node_id for node_id, degree in in_degree.items() if degree > 0}


def _suffix_dag(graph: ScenarioGraph, node_id: str, memo: dict[str, _Suffix | None]) -> _Suffix | None:
    if node_id in memo:
        return memo[node_id]
    node = graph.nodes[node_id]
    result: _Suffix | None = None
    if node.is_terminal:
        result = (0, ()) if node.outcome is OutcomeKind.SUCCESS else None
    else:
        for idx, choice in enumerate(node.choices):
            if choice.next_node_id not in graph.nodes:
                continue
            tail = _suffix_dag(graph, choice.next_node_id, memo)
            if tail is None:
                continue
            total = choice.xp_delta + tail[0]
            if result is None or total > result[0]:
                result = (total, (idx, *tail[1]))
    memo[node_id] = result
    return result


def _suffix_simple(graph: ScenarioGraph, node_id: str, on_path: set[str]) -> _Suffix | None:
    node = graph.nodes[node_id]
    if node.is_terminal:
        return (0, ()) if node.outcome is OutcomeKind.SUCCESS else None
    on_path.add(node_id)
    result: _Suffix | None = None
    try:
        for idx, choice in enumerate(node.choices):
            target = choice.next_node_id
            if target not in graph.nodes or target in on_path:
                continue
            tail = _suffix_simple(graph, target, on_path)
            if tail is None:
                continue
            total = choice.xp_delta + tail[0]
            if result is None or total > result[0]:
                result = (total, (idx, *tail[1]))
    finally:
        on_path.discard(node_id)
    return result


def _best_suffix(graph: ScenarioGraph) -> _Suffix | None:
    if graph.entry_id not in graph.nodes:
        return None
    if cycle_members(graph):
        # Memoisation is unsound once a node's best suffix depends on the
        # path that reached it; fall back to enumerating simple paths.
        return _suffix_simple(graph, graph.entry_id, set())
    return _suffix_dag(graph, graph.entry_id, {})


def max_total_score(graph: ScenarioGraph) -> int | None:
    """Best total xp of any simple path from the entry to a success ending."""

    suffix = _best_suffix(graph)
    return None if suffix is None else suffix[0]


def find_max_score_path(graph: ScenarioGraph) -> list[OptimalPathStep]:
    suffix = _best_suffix(graph)
    if suffix is None:
        logger.warning("No success ending reachable; using greedy path", extra={"entry_id": graph.entry_id})
        return find_best_path(graph)

    path: list[OptimalPathStep] = []
    current = graph.entry_id
    for idx in suffix[1]:
        choice = graph.nodes[current].choices[idx]
        path.append(
            OptimalPathStep(
                node_id=current,
                choice_text=choice.text,
                choice_index=idx,
                xp_delta=choice.xp_delta,
            )
        )
        current = choice.next_node_id
    path.append(OptimalPathStep(node_id=current))
    return path


def reference_path(graph: ScenarioGraph) -> list[OptimalPathStep]:
    if feature_flags.is_enabled(GLOBAL_OPTIMUM_FLAG):
        return find_max_score_path(graph)
    return find_best_path(graph)
