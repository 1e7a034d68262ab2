"""Traversal engine: walks one learner session through a scenario graph.

Sessions are immutable snapshots.  ``apply_choice`` never touches the session
it is given; it returns the next snapshot inside a ``ChoiceOutcome`` so callers
can keep history, replay, or discard attempts freely.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from .errors import InvalidChoiceIndex, SessionTerminated
from .models import ScenarioGraph, Session, SessionStatus, StepRecord
from .validation import validate

__all__ = ["ChoiceOutcome", "apply_choice", "replay", "start"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChoiceOutcome:
    feedback: str
    xp_delta: int
    next_node_id: str
    session: Session


def start(graph: ScenarioGraph) -> Session:
    if __debug__:
        validate(graph)
    # A terminal entry is a drill with no decisions; the attempt ends at once.
    status = SessionStatus.FINISHED if graph.entry.is_terminal else SessionStatus.IN_PROGRESS
    if status is SessionStatus.FINISHED:
        logger.debug("Session started on terminal entry", extra={"node_id": graph.entry_id})
    return Session(
        graph=graph,
        current_node_id=graph.entry_id,
        accumulated_score=0,
        path=(graph.entry_id,),
        status=status,
    )


def apply_choice(session: Session, choice_index: int) -> ChoiceOutcome:
    if session.finished:
        raise SessionTerminated(session.current_node_id)

    node = session.current_node
    available = len(node.choices)
    if (
        node.is_terminal
        or isinstance(choice_index, bool)
        or not isinstance(choice_index, int)
        or not 0 <= choice_index < available
    ):
        raise InvalidChoiceIndex(node.id, choice_index, available)

    choice = node.choices[choice_index]
    target = session.graph.node(choice.next_node_id)
    status = SessionStatus.FINISHED if target.is_terminal else SessionStatus.IN_PROGRESS
    record = StepRecord(
        node_id=node.id,
        choice_index=choice_index,
        choice_text=choice.text,
        xp_delta=choice.xp_delta,
        next_node_id=target.id,
    )
    updated = replace(
        session,
        current_node_id=target.id,
        accumulated_score=session.accumulated_score + choice.xp_delta,
        path=(*session.path, target.id),
        steps=(*session.steps, record),
        status=status,
    )
    if status is SessionStatus.FINISHED:
        logger.debug(
            "Session reached terminal node",
            extra={"node_id": target.id, "score": updated.accumulated_score, "steps": len(updated.steps)},
        )
    return ChoiceOutcome(
        feedback=choice.feedback,
        xp_delta=choice.xp_delta,
        next_node_id=target.id,
        session=updated,
    )


def replay(graph: ScenarioGraph, choice_indices: Iterable[int]) -> Session:
    session = start(graph)
    for index in choice_indices:
        session = apply_choice(session, index).session
    return session
