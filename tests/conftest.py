from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure "src" is on sys.path for imports in tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from drilltrainer.core.models import Choice, OutcomeKind, ScenarioGraph, ScenarioNode  # noqa: E402


@pytest.fixture
def example_graph() -> ScenarioGraph:
    """Two-decision drill: A then C is the only perfect run."""

    nodes = {
        "START": ScenarioNode(
            id="START",
            description="Smoke in the corridor.",
            choices=(
                Choice(text="A", xp_delta=15, feedback="Good call.", next_node_id="N1"),
                Choice(text="B", xp_delta=-15, feedback="Never ignore smoke.", next_node_id="ENDFAIL"),
            ),
        ),
        "N1": ScenarioNode(
            id="N1",
            description="The stairwell is clear.",
            choices=(
                Choice(text="C", xp_delta=20, feedback="Safe exit.", next_node_id="ENDOK"),
                Choice(text="D", xp_delta=-10, feedback="Lifts fail in a fire.", next_node_id="ENDFAIL2"),
            ),
        ),
        "ENDOK": ScenarioNode(id="ENDOK", description="Everyone is out.", is_terminal=True, outcome=OutcomeKind.SUCCESS),
        "ENDFAIL": ScenarioNode(id="ENDFAIL", description="Trapped.", is_terminal=True, outcome=OutcomeKind.FAILURE),
        "ENDFAIL2": ScenarioNode(id="ENDFAIL2", description="Stuck in the lift.", is_terminal=True, outcome=OutcomeKind.FAILURE),
    }
    return ScenarioGraph(nodes=nodes, entry_id="START", max_possible_score=35)


@pytest.fixture
def drill_document() -> dict:
    """Minimal valid drill document in the bundled JSON format."""

    return {
        "id": "tiny",
        "title": "Tiny Drill",
        "max_possible_score": 20,
        "nodes": {
            "START": {
                "description": "Alarm rings.",
                "choices": [
                    {"text": "Walk out", "xp": 20, "feedback": "Calm and quick.", "next": "END_SAFE"},
                    {"text": "Keep working", "xp": -10, "feedback": "Alarms are not drills to ignore.", "next": "END_FAIL_STAYED"},
                ],
            },
            "END_SAFE": {"description": "You reached the assembly point."},
            "END_FAIL_STAYED": {"description": "You stayed inside."},
        },
    }
