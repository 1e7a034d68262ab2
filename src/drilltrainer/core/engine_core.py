from __future__ import annotations

import logging

from .comparison import diff
from .engine import apply_choice, start
from .interfaces import CompletionCallback, Presenter
from .models import Drill, Session
from .pathfinding import reference_path
from .scoring import finalize

logger = logging.getLogger(__name__)


def run_core(
    drill: Drill,
    presenter: Presenter,
    *,
    on_complete: CompletionCallback | None = None,
) -> Session:
    session = start(drill.graph)
    presenter.start_drill(drill)

    while not session.finished:
        node = session.current_node
        presenter.show_node(node, session)
        choice = presenter.prompt_choice(len(node.choices))
        if choice == -1:
            logger.debug("Drill abandoned", extra={"drill_id": drill.id, "node_id": node.id})
            presenter.summary(drill, session, None, [])
            return session
        outcome = apply_choice(session, choice)
        presenter.step_feedback(node, node.choices[choice], outcome)
        session = outcome.session

    final = finalize(session)
    best_path = reference_path(drill.graph)
    statuses = diff(best_path, session.path)
    presenter.summary(drill, session, final, list(zip(best_path, statuses, strict=True)))
    if on_complete is not None:
        on_complete(final.percentage, final.passed)
    return session
