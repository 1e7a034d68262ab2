from __future__ import annotations

import logging
import secrets
import string
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ...core.comparison import diff
from ...core.engine import apply_choice, start
from ...core.errors import SessionNotFinished
from ...core.interfaces import CompletionCallback
from ...core.models import Choice, Drill, OutcomeKind, ScenarioNode, Session
from ...core.pathfinding import reference_path
from ...core.scoring import FinalScore, choice_quality, finalize
from ...data.content_loader import DrillRepository
from .schemas import (
    BadgePayload,
    ChoicePayload,
    ChoiceResult,
    FeedbackPayload,
    NodePayload,
    NodeResponse,
    PathReportPayload,
    PathStepPayload,
    SummaryPayload,
)

__all__ = [
    "SessionConfig",
    "SessionManager",
    "SessionState",
    "_summary_payload",
]

logger = logging.getLogger(__name__)

Chooser = Callable[[ScenarioNode, Sequence[Choice]], int]


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for a drill attempt."""

    drill_id: str


@dataclass
class SessionState:
    drill: Drill
    session: Session
    final: FinalScore | None = None


class SessionManager:
    """Owns drill attempts independent of the presentation layer.

    Attempts live in memory only.  Each call that advances an attempt swaps in
    the next immutable ``Session`` snapshot under the registry lock.
    """

    def __init__(
        self,
        repository: DrillRepository | None = None,
        *,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self._repository = repository if repository is not None else DrillRepository()
        self._on_complete = on_complete
        self._sessions: dict[str, SessionState] = {}
        self._lock = threading.Lock()

    @property
    def repository(self) -> DrillRepository:
        return self._repository

    def create_session(self, config: SessionConfig) -> str:
        drill = self._repository.get(config.drill_id)
        state = SessionState(drill=drill, session=start(drill.graph))
        if state.session.finished:
            state.final = finalize(state.session)
        session_id = _sid()
        with self._lock:
            self._sessions[session_id] = state
        logger.debug("Session created", extra={"session_id": session_id, "drill_id": drill.id})
        if state.final is not None:
            self._notify_complete(session_id, state.final)
        return session_id

    def get_node(self, session_id: str) -> NodeResponse:
        with self._lock:
            state = self._require_session(session_id)
            return _node_response(state)

    def choose(self, session_id: str, choice_index: int) -> ChoiceResult:
        with self._lock:
            state = self._require_session(session_id)
            outcome = apply_choice(state.session, choice_index)
            state.session = outcome.session
            if outcome.session.finished:
                state.final = finalize(outcome.session)
            final = state.final
            next_payload = _node_response(state)

        feedback = FeedbackPayload(
            feedback=outcome.feedback,
            xp_delta=outcome.xp_delta,
            quality=choice_quality(outcome.xp_delta).value,
            score=outcome.session.accumulated_score,
            next_node_id=outcome.next_node_id,
            ended=outcome.session.finished,
        )
        if outcome.session.finished and final is not None:
            self._notify_complete(session_id, final)
        return ChoiceResult(feedback=feedback, next_payload=next_payload)

    def _notify_complete(self, session_id: str, final: FinalScore) -> None:
        logger.debug(
            "Session finished",
            extra={"session_id": session_id, "percentage": final.percentage, "passed": final.passed},
        )
        if self._on_complete is not None:
            self._on_complete(final.percentage, final.passed)

    def drive_session(self, session_id: str, chooser: Chooser, *, cleanup: bool = False) -> SummaryPayload:
        """Play out a session by delegating choice selection to ``chooser``.

        ``chooser`` receives the current node and its choices and returns the
        index to apply.
        """

        while True:
            with self._lock:
                state = self._require_session(session_id)
                if state.session.finished:
                    summary = _summary_payload(state)
                    if cleanup:
                        self._sessions.pop(session_id, None)
                    logger.debug("drive_session completed", extra={"session_id": session_id})
                    return summary
                node = state.session.current_node

            self.choose(session_id, chooser(node, node.choices))

    def summary(self, session_id: str) -> SummaryPayload:
        with self._lock:
            state = self._require_session(session_id)
            if state.final is None:
                raise SessionNotFinished(state.session.current_node_id)
            return _summary_payload(state)

    def path_report(self, session_id: str) -> PathReportPayload:
        with self._lock:
            state = self._require_session(session_id)
            return _path_report(state)

    def session(self, session_id: str) -> Session:
        with self._lock:
            return self._require_session(session_id).session

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def _require_session(self, session_id: str) -> SessionState:
        state = self._sessions.get(session_id)
        if state is None:
            raise KeyError(f"session '{session_id}' not found")
        return state


def _sid(length: int = 10) -> str:
    alphabet = string.ascii_lowercase + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


def _node_response(state: SessionState) -> NodeResponse:
    if state.session.finished:
        return NodeResponse(done=True, summary=_summary_payload(state))
    session = state.session
    node = session.current_node
    payload = NodePayload(
        drill_id=state.drill.id,
        node_id=node.id,
        description=node.description,
        media=node.media,
        step=session.step_number,
        score=session.accumulated_score,
    )
    choices = [ChoicePayload(index=idx, text=choice.text) for idx, choice in enumerate(node.choices)]
    return NodeResponse(done=False, node=payload, choices=choices)


def _summary_payload(state: SessionState) -> SummaryPayload:
    final = state.final if state.final is not None else finalize(state.session)
    drill = state.drill
    label = drill.badge_label(final.badge)
    verdict = "Complete" if final.outcome is OutcomeKind.SUCCESS else "Failed"
    return SummaryPayload(
        drill_id=drill.id,
        headline=f"{drill.title} {verdict}",
        ending=drill.graph.node(final.end_node_id).description,
        outcome=final.outcome.value,
        xp=final.xp,
        max_possible_score=final.max_possible_score,
        percentage=final.percentage,
        passed=final.passed,
        badge=BadgePayload(tier=final.badge.value, name=label.name, icon=label.icon, color=label.color),
    )


def _path_report(state: SessionState) -> PathReportPayload:
    graph = state.drill.graph
    best_path = reference_path(graph)
    user_path = list(state.session.path)
    statuses = diff(best_path, user_path)
    steps = [
        PathStepPayload(
            step=index,
            node_id=step.node_id,
            description=graph.node(step.node_id).description,
            choice_text=step.choice_text,
            xp_delta=step.xp_delta,
            status=status.value,
        )
        for index, (step, status) in enumerate(zip(best_path, statuses, strict=True), start=1)
    ]
    show = state.final is None or state.final.percentage < 100
    return PathReportPayload(drill_id=state.drill.id, show_optimal_path=show, user_path=user_path, steps=steps)
