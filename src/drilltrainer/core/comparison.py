from __future__ import annotations

from collections.abc import Sequence

from .models import OptimalPathStep, StepStatus

__all__ = ["diff"]


def diff(best_path: Sequence[OptimalPathStep], user_path: Sequence[str]) -> list[StepStatus]:
    """Classify every reference step against the node ids a learner visited.

    A step counts as deviated only when the learner stood on its node and then
    moved somewhere other than the next reference node.  The learner's first
    visit to a node is the one compared.
    """

    first_seen: dict[str, int] = {}
    for position, node_id in enumerate(user_path):
        first_seen.setdefault(node_id, position)

    statuses: list[StepStatus] = []
    last = len(best_path) - 1
    for index, step in enumerate(best_path):
        position = first_seen.get(step.node_id)
        if position is None:
            statuses.append(StepStatus.MISSED)
            continue
        if index < last and position < len(user_path) - 1:
            if user_path[position + 1] != best_path[index + 1].node_id:
                statuses.append(StepStatus.DEVIATED)
                continue
        statuses.append(StepStatus.FOLLOWED)
    return statuses
