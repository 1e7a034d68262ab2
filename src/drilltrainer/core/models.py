from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class SessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class StepStatus(str, Enum):
    FOLLOWED = "followed"
    DEVIATED = "deviated"
    MISSED = "missed"


class BadgeTier(str, Enum):
    """Badge tiers, highest first."""

    CHAMPION = "champion"
    HERO = "hero"
    RESPONDER = "responder"
    TRAINEE = "trainee"
    REMEDIAL = "remedial"


@dataclass(frozen=True)
class Choice:
    text: str
    xp_delta: int
    feedback: str
    next_node_id: str


@dataclass(frozen=True)
class ScenarioNode:
    id: str
    description: str
    choices: tuple[Choice, ...] = ()
    is_terminal: bool = False
    # Only meaningful on terminal nodes.
    outcome: OutcomeKind | None = None
    # Opaque reference to illustrative content (image path, URL, ...).
    media: str | None = None


@dataclass(frozen=True)
class ScenarioGraph:
    """Declarative drill content: nodes keyed by id plus the entry point.

    ``max_possible_score`` is declared by the content author and used to
    normalise percentages; it is not derived from the graph.
    """

    nodes: Mapping[str, ScenarioNode]
    entry_id: str
    max_possible_score: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))

    def node(self, node_id: str) -> ScenarioNode:
        return self.nodes[node_id]

    @property
    def entry(self) -> ScenarioNode:
        return self.nodes[self.entry_id]


@dataclass(frozen=True)
class StepRecord:
    """One applied choice, in the order the learner made it."""

    node_id: str
    choice_index: int
    choice_text: str
    xp_delta: int
    next_node_id: str


@dataclass(frozen=True)
class Session:
    graph: ScenarioGraph = field(repr=False, compare=False)
    current_node_id: str
    accumulated_score: int = 0
    path: tuple[str, ...] = ()
    steps: tuple[StepRecord, ...] = ()
    status: SessionStatus = SessionStatus.IN_PROGRESS

    @property
    def current_node(self) -> ScenarioNode:
        return self.graph.node(self.current_node_id)

    @property
    def finished(self) -> bool:
        return self.status is SessionStatus.FINISHED

    @property
    def step_number(self) -> int:
        """1-based number of the prompt the learner is looking at."""
        return len(self.steps) + 1


@dataclass(frozen=True)
class OptimalPathStep:
    node_id: str
    # ``None`` on the final step of a path.
    choice_text: str | None = None
    choice_index: int | None = None
    xp_delta: int | None = None

    @property
    def is_final(self) -> bool:
        return self.choice_text is None


@dataclass(frozen=True)
class BadgeLabel:
    name: str
    icon: str = ""
    color: str = ""


@dataclass(frozen=True)
class Drill:
    """A playable catalog entry: the graph plus its presentation metadata."""

    id: str
    title: str
    graph: ScenarioGraph = field(repr=False)
    badges: Mapping[BadgeTier, BadgeLabel] = field(default_factory=dict, repr=False)
    description: str = ""
    difficulty: str = "beginner"
    duration: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "badges", MappingProxyType(dict(self.badges)))

    def badge_label(self, tier: BadgeTier) -> BadgeLabel:
        label = self.badges.get(tier)
        if label is None:
            return BadgeLabel(name=tier.value.title())
        return label
