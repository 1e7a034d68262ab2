from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "BadgePayload",
    "ChoicePayload",
    "ChoiceResult",
    "FeedbackPayload",
    "NodePayload",
    "NodeResponse",
    "PathReportPayload",
    "PathStepPayload",
    "SummaryPayload",
]


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ChoicePayload(_APIModel):
    index: int
    text: str


class NodePayload(_APIModel):
    drill_id: str
    node_id: str
    description: str
    media: str | None = None
    step: int
    score: int


class BadgePayload(_APIModel):
    tier: str
    name: str
    icon: str = ""
    color: str = ""


class SummaryPayload(_APIModel):
    drill_id: str
    headline: str
    ending: str
    outcome: str
    xp: int
    max_possible_score: int
    percentage: int
    passed: bool
    badge: BadgePayload


class FeedbackPayload(_APIModel):
    feedback: str
    xp_delta: int
    quality: str
    score: int
    next_node_id: str
    ended: bool


class NodeResponse(_APIModel):
    done: bool
    node: NodePayload | None = None
    choices: list[ChoicePayload] | None = None
    summary: SummaryPayload | None = None


class ChoiceResult(_APIModel):
    feedback: FeedbackPayload
    next_payload: NodeResponse = Field(..., alias="next")


class PathStepPayload(_APIModel):
    step: int
    node_id: str
    description: str
    choice_text: str | None = None
    xp_delta: int | None = None
    status: str


class PathReportPayload(_APIModel):
    drill_id: str
    show_optimal_path: bool
    user_path: list[str]
    steps: list[PathStepPayload]
