from __future__ import annotations

from dataclasses import replace

import pytest

from drilltrainer.core import feature_flags
from drilltrainer.core.engine import replay, start
from drilltrainer.core.errors import SessionNotFinished
from drilltrainer.core.models import BadgeTier, OutcomeKind
from drilltrainer.core.pathfinding import find_best_path
from drilltrainer.core.scoring import (
    COMPUTED_MAX_FLAG,
    ChoiceQuality,
    badge_for,
    choice_quality,
    finalize,
    normalization_bound,
    normalize_score,
)
from drilltrainer.data.content_loader import DrillRepository


def test_perfect_run_reaches_top_tier(example_graph) -> None:
    final = finalize(replay(example_graph, [0, 0]))
    assert final.percentage == 100
    assert final.passed is True
    assert final.badge in {BadgeTier.CHAMPION, BadgeTier.HERO}
    assert final.outcome is OutcomeKind.SUCCESS
    assert final.xp == 35
    assert final.end_node_id == "ENDOK"


def test_failure_ending_zeroes_percentage_despite_earned_xp(example_graph) -> None:
    final = finalize(replay(example_graph, [0, 1]))
    assert final.xp == 5
    assert final.percentage == 0
    assert final.passed is False
    assert final.outcome is OutcomeKind.FAILURE
    assert final.badge is BadgeTier.REMEDIAL


def test_immediate_failure(example_graph) -> None:
    final = finalize(replay(example_graph, [1]))
    assert final.xp == -15
    assert final.percentage == 0
    assert final.passed is False


def test_finalize_requires_finished_session(example_graph) -> None:
    with pytest.raises(SessionNotFinished):
        finalize(start(example_graph))


@pytest.mark.parametrize(
    ("xp", "max_score", "expected"),
    [
        (35, 35, 100),
        (70, 35, 100),
        (-5, 35, 0),
        (0, 35, 0),
        (1, 8, 13),
        (5, 8, 63),
        (90, 115, 78),
    ],
)
def test_normalize_score_rounds_half_up_and_clamps(xp: int, max_score: int, expected: int) -> None:
    assert normalize_score(xp, max_score) == expected


def test_normalize_score_rejects_non_positive_bound() -> None:
    with pytest.raises(ValueError):
        normalize_score(10, 0)


@pytest.mark.parametrize(
    ("percentage", "tier"),
    [
        (100, BadgeTier.CHAMPION),
        (95, BadgeTier.CHAMPION),
        (94, BadgeTier.HERO),
        (80, BadgeTier.HERO),
        (79, BadgeTier.RESPONDER),
        (60, BadgeTier.RESPONDER),
        (59, BadgeTier.TRAINEE),
        (1, BadgeTier.TRAINEE),
        (0, BadgeTier.REMEDIAL),
    ],
)
def test_badge_thresholds(percentage: int, tier: BadgeTier) -> None:
    assert badge_for(percentage) is tier


def test_badge_tiers_are_monotonic() -> None:
    order = list(BadgeTier)
    ranks = [order.index(badge_for(p)) for p in range(0, 101)]
    assert ranks == sorted(ranks, reverse=True)


def test_choice_quality_grades() -> None:
    assert choice_quality(20) is ChoiceQuality.BEST
    assert choice_quality(15) is ChoiceQuality.BEST
    assert choice_quality(14) is ChoiceQuality.GOOD
    assert choice_quality(1) is ChoiceQuality.GOOD
    assert choice_quality(0) is ChoiceQuality.POOR
    assert choice_quality(-10) is ChoiceQuality.POOR


def test_declared_bound_is_default_and_computed_bound_is_flagged(example_graph) -> None:
    generous = replace(example_graph, max_possible_score=50)
    session = replay(generous, [0, 0])

    with feature_flags.override(disable={COMPUTED_MAX_FLAG}):
        declared = finalize(session)
    assert declared.max_possible_score == 50
    assert declared.percentage == 70
    assert declared.badge is BadgeTier.RESPONDER

    with feature_flags.override(enable={COMPUTED_MAX_FLAG}):
        assert normalization_bound(generous) == 35
        computed = finalize(session)
    assert computed.max_possible_score == 35
    assert computed.percentage == 100


def test_flood_greedy_run_exceeds_declared_bound() -> None:
    graph = DrillRepository().get("flood").graph
    indices = [step.choice_index for step in find_best_path(graph) if not step.is_final]
    session = replay(graph, indices)
    assert session.accumulated_score == 350

    with feature_flags.override(disable={COMPUTED_MAX_FLAG}):
        assert finalize(session).percentage == 100

    with feature_flags.override(enable={COMPUTED_MAX_FLAG}):
        final = finalize(session)
    assert final.max_possible_score == 355
    assert final.percentage == 99
