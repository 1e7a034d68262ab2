from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from ..core.models import (
    BadgeLabel,
    BadgeTier,
    Choice,
    Drill,
    OutcomeKind,
    ScenarioGraph,
    ScenarioNode,
)
from ..core.validation import validate

__all__ = [
    "ContentLoaderConfig",
    "DrillDocument",
    "DrillRepository",
    "default_directory",
    "drill_from_mapping",
    "load_drill",
]

logger = logging.getLogger(__name__)

_ENV_VAR = "DRILLTRAINER_CONTENT_DIR"
_FAILURE_MARKER = "FAIL"


class _Document(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class ChoiceDocument(_Document):
    text: str
    xp: int = 0
    feedback: str = ""
    next: str


class NodeDocument(_Document):
    description: str
    media: str | None = None
    choices: list[ChoiceDocument] = Field(default_factory=list)
    # Defaults to "no choices" when omitted.
    terminal: bool | None = None
    outcome: Literal["success", "failure"] | None = None


class BadgeDocument(_Document):
    name: str
    icon: str = ""
    color: str = ""


class DrillDocument(_Document):
    id: str = Field(min_length=1)
    title: str
    description: str = ""
    difficulty: Literal["beginner", "intermediate", "advanced"] = "beginner"
    duration: str = ""
    entry: str = "START"
    max_possible_score: PositiveInt
    badges: list[BadgeDocument] = Field(default_factory=list)
    nodes: dict[str, NodeDocument]

    @field_validator("badges")
    @classmethod
    def _five_tiers(cls, value: list[BadgeDocument]) -> list[BadgeDocument]:
        if value and len(value) != len(BadgeTier):
            raise ValueError(f"expected {len(BadgeTier)} badges (top tier first), got {len(value)}")
        return value

    @model_validator(mode="after")
    def _has_nodes(self) -> DrillDocument:
        if not self.nodes:
            raise ValueError("drill has no nodes")
        return self

    def to_drill(self) -> Drill:
        nodes = {node_id: _build_node(node_id, doc) for node_id, doc in self.nodes.items()}
        graph = ScenarioGraph(nodes=nodes, entry_id=self.entry, max_possible_score=self.max_possible_score)
        badges = {
            tier: BadgeLabel(name=badge.name, icon=badge.icon, color=badge.color)
            for tier, badge in zip(BadgeTier, self.badges, strict=False)
        }
        return Drill(
            id=self.id,
            title=self.title,
            graph=graph,
            badges=badges,
            description=self.description,
            difficulty=self.difficulty,
            duration=self.duration,
        )


def _infer_outcome(node_id: str) -> OutcomeKind:
    return OutcomeKind.FAILURE if _FAILURE_MARKER in node_id else OutcomeKind.SUCCESS


def _build_node(node_id: str, doc: NodeDocument) -> ScenarioNode:
    is_terminal = doc.terminal if doc.terminal is not None else not doc.choices
    outcome: OutcomeKind | None = None
    if doc.outcome is not None:
        outcome = OutcomeKind(doc.outcome)
    elif is_terminal:
        outcome = _infer_outcome(node_id)
        logger.debug("Inferred outcome from node id", extra={"node_id": node_id, "outcome": outcome.value})
    return ScenarioNode(
        id=node_id,
        description=doc.description,
        choices=tuple(
            Choice(text=c.text, xp_delta=c.xp, feedback=c.feedback, next_node_id=c.next) for c in doc.choices
        ),
        is_terminal=is_terminal,
        outcome=outcome,
        media=doc.media,
    )


def drill_from_mapping(data: Mapping[str, Any]) -> Drill:
    """Parse and validate one drill document.

    Raises ``pydantic.ValidationError`` for documents of the wrong shape and a
    ``GraphError`` subclass for graphs that break structural invariants.
    """

    drill = DrillDocument.model_validate(data).to_drill()
    validate(drill.graph)
    return drill


def load_drill(path: Path) -> Drill:
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"Invalid drill payload in {path}")
    drill = drill_from_mapping(data)
    logger.debug("Loaded drill", extra={"drill_id": drill.id, "path": str(path)})
    return drill


def default_directory() -> Path:
    override = os.environ.get(_ENV_VAR)
    if override:
        return Path(override)
    return Path(__file__).with_name("drills")


@dataclass(frozen=True, slots=True)
class ContentLoaderConfig:
    """Where drill documents are read from."""

    directory: Path


class DrillRepository:
    """Load and validate every drill document in a directory once."""

    def __init__(self, config: ContentLoaderConfig | None = None) -> None:
        directory = config.directory if config else default_directory()
        self._config = ContentLoaderConfig(directory=directory)
        self._drills = self._load_directory(directory)

    @property
    def config(self) -> ContentLoaderConfig:
        return self._config

    @staticmethod
    def _load_directory(directory: Path) -> dict[str, Drill]:
        if not directory.is_dir():
            raise FileNotFoundError(f"drill content directory not found: {directory}")
        drills: dict[str, Drill] = {}
        for path in sorted(directory.glob("*.json")):
            drill = load_drill(path)
            if drill.id in drills:
                raise ValueError(f"duplicate drill id '{drill.id}' in {path}")
            drills[drill.id] = drill
        logger.debug("Drill catalog loaded", extra={"directory": str(directory), "drills": len(drills)})
        return drills

    def ids(self) -> list[str]:
        return list(self._drills)

    def get(self, drill_id: str) -> Drill:
        drill = self._drills.get(drill_id)
        if drill is None:
            raise KeyError(f"drill '{drill_id}' not found")
        return drill

    def all(self) -> list[Drill]:
        return list(self._drills.values())

    def __contains__(self, drill_id: object) -> bool:
        return drill_id in self._drills

    def __len__(self) -> int:
        return len(self._drills)
