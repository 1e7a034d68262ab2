"""Session feature: service layer and payload schemas."""

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
from .service import SessionConfig, SessionManager

__all__ = [
    "BadgePayload",
    "ChoicePayload",
    "ChoiceResult",
    "FeedbackPayload",
    "NodePayload",
    "NodeResponse",
    "PathReportPayload",
    "PathStepPayload",
    "SessionConfig",
    "SessionManager",
    "SummaryPayload",
]
