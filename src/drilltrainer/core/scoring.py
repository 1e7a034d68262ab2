from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

from . import feature_flags
from .errors import SessionNotFinished
from .models import BadgeTier, OutcomeKind, ScenarioGraph, Session
from .pathfinding import max_total_score

__all__ = [
    "BADGE_THRESHOLDS",
    "ChoiceQuality",
    "FinalScore",
    "PASS_THRESHOLD",
    "badge_for",
    "choice_quality",
    "finalize",
    "normalize_score",
    "normalization_bound",
]

logger = logging.getLogger(__name__)

COMPUTED_MAX_FLAG = "scoring.computed_max"

PASS_THRESHOLD = 60

# Checked in order; the first threshold the percentage reaches wins.
BADGE_THRESHOLDS: tuple[tuple[int, BadgeTier], ...] = (
    (95, BadgeTier.CHAMPION),
    (80, BadgeTier.HERO),
    (PASS_THRESHOLD, BadgeTier.RESPONDER),
)

# Choice grading used when highlighting a selected answer.
BEST_CHOICE_XP = 15


class ChoiceQuality(str, Enum):
    BEST = "best"
    GOOD = "good"
    POOR = "poor"


@dataclass(frozen=True)
class FinalScore:
    percentage: int
    passed: bool
    badge: BadgeTier
    xp: int
    max_possible_score: int
    outcome: OutcomeKind
    end_node_id: str


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def normalize_score(xp: int, max_score: int) -> int:
    if max_score <= 0:
        raise ValueError(f"max score must be positive, got {max_score}")
    percentage = _round_half_up(xp / max_score * 100)
    return max(0, min(100, percentage))


def badge_for(percentage: int) -> BadgeTier:
    for threshold, tier in BADGE_THRESHOLDS:
        if percentage >= threshold:
            return tier
    if percentage > 0:
        return BadgeTier.TRAINEE
    return BadgeTier.REMEDIAL


def choice_quality(xp_delta: int) -> ChoiceQuality:
    if xp_delta >= BEST_CHOICE_XP:
        return ChoiceQuality.BEST
    if xp_delta > 0:
        return ChoiceQuality.GOOD
    return ChoiceQuality.POOR


def normalization_bound(graph: ScenarioGraph) -> int:
    """Return the score that maps to 100%.

    The author-declared bound is used unless ``scoring.computed_max`` is on,
    in which case the best achievable total replaces it when positive.
    """

    if feature_flags.is_enabled(COMPUTED_MAX_FLAG):
        computed = max_total_score(graph)
        if computed is not None and computed > 0:
            return computed
        logger.warning(
            "Computed max unavailable; using declared bound",
            extra={"entry_id": graph.entry_id, "computed": computed},
        )
    return graph.max_possible_score


def finalize(session: Session) -> FinalScore:
    if not session.finished:
        raise SessionNotFinished(session.current_node_id)

    end_node = session.current_node
    bound = normalization_bound(session.graph)
    outcome = end_node.outcome or OutcomeKind.FAILURE
    if outcome is OutcomeKind.FAILURE:
        # One disqualifying mistake zeroes the attempt regardless of xp earned.
        percentage = 0
    else:
        percentage = normalize_score(session.accumulated_score, bound)

    return FinalScore(
        percentage=percentage,
        passed=percentage >= PASS_THRESHOLD,
        badge=badge_for(percentage),
        xp=session.accumulated_score,
        max_possible_score=bound,
        outcome=outcome,
        end_node_id=end_node.id,
    )
