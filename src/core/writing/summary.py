# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Session summaries for instructors and gentle feedback for students."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.core.writing.models import AnomalyType, WritingSession

HEAVY_REVISION_RATIO = 0.5
MODERATE_REVISION_RATIO = 0.2
STRUGGLING_DELETION_RATIO = 0.7
FREQUENT_COPY_PASTE = 5
FREQUENT_BULK_ADDITIONS = 2
INDICATORS_FOR_REVIEW = 2


class WritingBehavior(str, Enum):
    """How a student wrote during a session."""

    HEAVY_REVISION = "heavy-revision"
    MODERATE_REVISION = "moderate-revision"
    LINEAR_WRITING = "linear-writing"


class FeedbackType(str, Enum):
    """Kinds of gentle in-editor feedback."""

    PACE = "pace"
    REVISION = "revision"
    STYLE = "style"


GENTLE_FEEDBACK: dict[FeedbackType, tuple[str, str]] = {
    FeedbackType.PACE: (
        "Take Your Time",
        "Remember, good writing often comes from thoughtful reflection. "
        "Take breaks when needed!",
    ),
    FeedbackType.REVISION: (
        "Revision is Part of Writing",
        "Great writers revise often. Your editing shows careful thinking!",
    ),
    FeedbackType.STYLE: (
        "Finding Your Voice",
        "Your writing style is evolving. Keep developing your unique perspective!",
    ),
}


@dataclass(frozen=True)
class SessionSummary:
    """Instructor dashboard view of one writing session."""

    session_id: str
    writing_behavior: WritingBehavior
    anomaly_count: int
    ai_risk_indicators: list[str] = field(default_factory=list)
    recommended_actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "writing_behavior": self.writing_behavior.value,
            "anomaly_count": self.anomaly_count,
            "ai_risk_indicators": list(self.ai_risk_indicators),
            "recommended_actions": list(self.recommended_actions),
        }


def summarize_session(session: WritingSession) -> SessionSummary:
    """Classify a session's writing behavior and collect risk indicators.

    Args:
        session: Session to summarize.

    Returns:
        SessionSummary instance.
    """
    ratio = session.deletion_ratio
    if ratio > HEAVY_REVISION_RATIO:
        behavior = WritingBehavior.HEAVY_REVISION
    elif ratio > MODERATE_REVISION_RATIO:
        behavior = WritingBehavior.MODERATE_REVISION
    else:
        behavior = WritingBehavior.LINEAR_WRITING

    indicators: list[str] = []
    if session.copy_paste_count > FREQUENT_COPY_PASTE:
        indicators.append("frequent-copy-paste")
    if session.bulk_additions > FREQUENT_BULK_ADDITIONS:
        indicators.append("bulk-text-additions")
    if any(a.type == AnomalyType.STYLE_CHANGE for a in session.anomalies):
        indicators.append("style-inconsistency")

    actions: list[str] = []
    if len(indicators) > INDICATORS_FOR_REVIEW:
        actions = [
            "Review submission for authenticity",
            "Consider one-on-one discussion about writing process",
        ]
    elif ratio > STRUGGLING_DELETION_RATIO:
        actions = [
            "Check in with student about assignment clarity",
            "Offer additional writing support",
        ]

    return SessionSummary(
        session_id=session.id,
        writing_behavior=behavior,
        anomaly_count=len(session.anomalies),
        ai_risk_indicators=indicators,
        recommended_actions=actions,
    )
