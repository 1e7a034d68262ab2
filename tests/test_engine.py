from __future__ import annotations

import pytest

from drilltrainer.core.engine import apply_choice, replay, start
from drilltrainer.core.errors import EngineError, InvalidChoiceIndex, SessionTerminated
from drilltrainer.core.models import OutcomeKind, ScenarioGraph, ScenarioNode, SessionStatus, StepRecord
from drilltrainer.core.scoring import finalize


def test_start_places_session_at_entry(example_graph) -> None:
    session = start(example_graph)
    assert session.current_node_id == "START"
    assert session.accumulated_score == 0
    assert session.path == ("START",)
    assert session.steps == ()
    assert session.status is SessionStatus.IN_PROGRESS


def test_apply_choice_returns_new_snapshot(example_graph) -> None:
    session = start(example_graph)
    outcome = apply_choice(session, 0)

    assert outcome.feedback == "Good call."
    assert outcome.xp_delta == 15
    assert outcome.next_node_id == "N1"
    assert outcome.session.accumulated_score == 15
    assert outcome.session.path == ("START", "N1")
    assert outcome.session.steps == (
        StepRecord(node_id="START", choice_index=0, choice_text="A", xp_delta=15, next_node_id="N1"),
    )
    # Original snapshot is untouched.
    assert session.current_node_id == "START"
    assert session.accumulated_score == 0
    assert session.path == ("START",)


def test_terminal_node_finishes_session(example_graph) -> None:
    session = replay(example_graph, [0, 0])
    assert session.finished
    assert session.current_node_id == "ENDOK"
    assert session.accumulated_score == 35
    assert session.path == ("START", "N1", "ENDOK")


def test_choice_after_finish_is_rejected(example_graph) -> None:
    session = replay(example_graph, [0, 0])
    with pytest.raises(SessionTerminated) as excinfo:
        apply_choice(session, 0)
    assert excinfo.value.node_id == "ENDOK"


@pytest.mark.parametrize("index", [5, 2, -1, True, "0", 1.0])
def test_invalid_choice_index(example_graph, index) -> None:
    session = start(example_graph)
    with pytest.raises(InvalidChoiceIndex) as excinfo:
        apply_choice(session, index)  # type: ignore[arg-type]
    assert excinfo.value.available == 2
    assert excinfo.value.node_id == "START"


def test_engine_errors_are_value_errors(example_graph) -> None:
    session = start(example_graph)
    with pytest.raises(EngineError):
        apply_choice(session, 9)
    with pytest.raises(ValueError):
        apply_choice(session, 9)


def test_score_is_sum_of_applied_deltas(example_graph) -> None:
    session = replay(example_graph, [0, 1])
    assert session.accumulated_score == sum(step.xp_delta for step in session.steps) == 5
    assert session.current_node_id == "ENDFAIL2"


def test_replay_is_deterministic(example_graph) -> None:
    first = replay(example_graph, [0, 1])
    second = replay(example_graph, [0, 1])
    assert first == second
    assert first.path == second.path


def test_terminal_entry_starts_finished() -> None:
    graph = ScenarioGraph(
        nodes={"START": ScenarioNode(id="START", description="All clear.", is_terminal=True, outcome=OutcomeKind.SUCCESS)},
        entry_id="START",
        max_possible_score=10,
    )
    session = start(graph)
    assert session.finished
    assert session.path == ("START",)
    with pytest.raises(SessionTerminated):
        apply_choice(session, 0)

    final = finalize(session)
    assert final.outcome is OutcomeKind.SUCCESS
    assert final.xp == 0
    assert final.percentage == 0
    assert final.passed is False
