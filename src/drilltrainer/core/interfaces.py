from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from .engine import ChoiceOutcome
from .models import Choice, Drill, OptimalPathStep, ScenarioNode, Session, StepStatus
from .scoring import FinalScore

# Receives (percentage, passed) once a drill finishes.
CompletionCallback = Callable[[int, bool], None]

PathReport = Sequence[tuple[OptimalPathStep, StepStatus]]


class Presenter(Protocol):
    def start_drill(self, drill: Drill) -> None: ...

    def show_node(self, node: ScenarioNode, session: Session) -> None: ...

    def prompt_choice(self, n: int) -> int:
        """Return a 0-based choice index, or -1 to quit."""
        ...

    def step_feedback(self, node: ScenarioNode, choice: Choice, outcome: ChoiceOutcome) -> None: ...

    def summary(self, drill: Drill, session: Session, final: FinalScore | None, report: PathReport) -> None: ...
