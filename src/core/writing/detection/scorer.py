# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""AI-risk scoring.

Combines the three sub-analyses into a single 0-100 risk score:

    risk = 40 * (1 - exp(-deviation / 100))   (stylometric, approaches 40)
         + behavioral_flags * 8                (behavioral, 5 flags give 40)
         + structural_indicators * 20 / 6      (structural, 6 indicators give 20)

Each component is bounded and strictly increasing over every value its
input can take, so more evidence always raises the score. Confidence is
reported separately and never exceeds the configured maximum.

Every assessment carries an educational response. The tone is always
supportive: the score starts a reflection, it is not a verdict.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.core.writing.config import WritingAnalysisConfig
from src.core.writing.detection.analyzers import (
    BehavioralAnalyzer,
    BehavioralResult,
    PatternAnalyzer,
    PatternResult,
    PausePattern,
    RevisionPattern,
    StylometricAnalyzer,
    StylometricResult,
)
from src.core.writing.models import WritingBaseline, WritingSession

logger = logging.getLogger(__name__)

STYLOMETRIC_MAX = 40.0
STYLOMETRIC_SCALE = 100.0
BEHAVIORAL_MAX = 40.0
BEHAVIORAL_FLAG_COUNT = 5
STRUCTURAL_MAX = 20.0
STRUCTURAL_INDICATOR_COUNT = 6

BASE_CONFIDENCE = 50.0


class RiskLevel(str, Enum):
    """Band of an AI-risk score."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResponseAction(str, Enum):
    """Educational response suggested to the student."""

    NONE = "none"
    GENTLE_REMINDER = "gentle_reminder"
    REFLECTION_PROMPT = "reflection_prompt"


@dataclass(frozen=True)
class EducationalResponse:
    """Student-facing follow-up for an assessment."""

    risk_level: RiskLevel
    suggested_action: ResponseAction
    message: str
    reflection_prompts: list[str] = field(default_factory=list)
    resource_links: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_level": self.risk_level.value,
            "suggested_action": self.suggested_action.value,
            "message": self.message,
            "reflection_prompts": list(self.reflection_prompts),
            "resource_links": list(self.resource_links),
        }


@dataclass(frozen=True)
class AIRiskAssessment:
    """Result of a deep AI-risk analysis of one text.

    Attributes:
        risk_score: 0-100.
        confidence: 0 to the configured maximum.
        detection_method: Always "combined".
        stylometric: Stylometric sub-result.
        behavioral: Behavioral sub-result.
        patterns: Structural pattern sub-result.
        behavioral_flags: Number of behavioral red flags.
        structural_indicators: Number of structural indicators.
        educational_response: Student-facing follow-up.
    """

    risk_score: float
    confidence: float
    stylometric: StylometricResult
    behavioral: BehavioralResult
    patterns: PatternResult
    behavioral_flags: int
    structural_indicators: int
    educational_response: EducationalResponse
    detection_method: str = "combined"

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_score": self.risk_score,
            "confidence": self.confidence,
            "detection_method": self.detection_method,
            "stylometric": self.stylometric.to_dict(),
            "behavioral": self.behavioral.to_dict(),
            "patterns": self.patterns.to_dict(),
            "behavioral_flags": self.behavioral_flags,
            "structural_indicators": self.structural_indicators,
            "educational_response": self.educational_response.to_dict(),
        }


def combine_risk_score(deviation: float, behavioral_flags: int, structural_indicators: int) -> float:
    """Weighted combination of the three sub-scores.

    Deviation saturates smoothly instead of being clipped. Flag and
    indicator counts are bounded by the number of checks that produce them.
    """
    stylometric = STYLOMETRIC_MAX * (1 - math.exp(-max(deviation, 0.0) / STYLOMETRIC_SCALE))
    flags = min(max(behavioral_flags, 0), BEHAVIORAL_FLAG_COUNT)
    indicators = min(max(structural_indicators, 0), STRUCTURAL_INDICATOR_COUNT)
    return (
        stylometric
        + flags * BEHAVIORAL_MAX / BEHAVIORAL_FLAG_COUNT
        + indicators * STRUCTURAL_MAX / STRUCTURAL_INDICATOR_COUNT
    )


def educational_response_for(risk_score: float) -> EducationalResponse:
    """Pick the student-facing response band for a score."""
    if risk_score <= 30:
        return EducationalResponse(
            risk_level=RiskLevel.LOW,
            suggested_action=ResponseAction.NONE,
            message="Your writing shows authentic personal engagement. Keep it up!",
        )

    if risk_score <= 60:
        return EducationalResponse(
            risk_level=RiskLevel.MEDIUM,
            suggested_action=ResponseAction.GENTLE_REMINDER,
            message=(
                "Your writing style seems different than usual. Remember that "
                "authentic writing helps you learn better."
            ),
            reflection_prompts=[
                "How did you approach this writing task?",
                "What challenges did you face while writing?",
                "What resources did you use to help you?",
            ],
            resource_links=[
                "/resources/academic-integrity",
                "/resources/writing-authentically",
            ],
        )

    return EducationalResponse(
        risk_level=RiskLevel.HIGH,
        suggested_action=ResponseAction.REFLECTION_PROMPT,
        message=(
            "We noticed some unusual patterns in your writing. Let's reflect on "
            "your writing process."
        ),
        reflection_prompts=[
            "Describe your writing process for this assignment step by step.",
            "What tools or resources did you use while writing?",
            "How does this piece represent your own thinking and voice?",
            "What did you learn from writing this?",
        ],
        resource_links=[
            "/resources/academic-integrity",
            "/resources/ai-tools-responsibly",
            "/resources/developing-your-voice",
        ],
    )


class AIRiskScorer:
    """Runs the sub-analyses and combines them into an assessment."""

    def __init__(self, config: WritingAnalysisConfig) -> None:
        self.config = config
        self.stylometric = StylometricAnalyzer(config.markers)
        self.behavioral = BehavioralAnalyzer(config.risk)
        self.patterns = PatternAnalyzer(config.markers)

    def assess(
        self,
        content: str,
        baseline: WritingBaseline,
        session: WritingSession | None = None,
    ) -> AIRiskAssessment:
        """Assess a text against its author's baseline and writing session.

        Args:
            content: Text to assess.
            baseline: Author's writing baseline.
            session: Session that produced the text, if known.

        Returns:
            AIRiskAssessment instance.
        """
        stylometric = self.stylometric.analyze(content, baseline)
        behavioral = self.behavioral.analyze(session)
        patterns = self.patterns.analyze(content)

        flags = self.count_behavioral_flags(behavioral)
        indicators = self.count_structural_indicators(patterns, stylometric)
        risk_score = combine_risk_score(stylometric.deviation_from_baseline, flags, indicators)

        logger.debug(
            "AI risk for %s: score=%.1f deviation=%.1f flags=%d indicators=%d",
            baseline.student_id,
            risk_score,
            stylometric.deviation_from_baseline,
            flags,
            indicators,
        )

        return AIRiskAssessment(
            risk_score=risk_score,
            confidence=self.confidence(stylometric, behavioral, patterns),
            stylometric=stylometric,
            behavioral=behavioral,
            patterns=patterns,
            behavioral_flags=flags,
            structural_indicators=indicators,
            educational_response=educational_response_for(risk_score),
        )

    def count_behavioral_flags(self, behavioral: BehavioralResult) -> int:
        risk = self.config.risk
        speed = behavioral.typing_speed
        return sum(
            (
                speed > risk.fast_typing_wpm or 0 < speed < risk.slow_typing_wpm,
                behavioral.pause_pattern != PausePattern.NATURAL,
                behavioral.copy_paste_events > risk.copy_paste_flag,
                behavioral.bulk_text_additions > 0,
                behavioral.revision_pattern == RevisionPattern.NONE,
            )
        )

    def count_structural_indicators(
        self, patterns: PatternResult, stylometric: StylometricResult
    ) -> int:
        risk = self.config.risk
        return sum(
            (
                patterns.formulaic_structure,
                patterns.overly_polished,
                patterns.lack_of_personal_voice,
                patterns.uniform_sentence_starts,
                patterns.hedging_count > risk.hedging_flag,
                len(stylometric.unusual_phrases) > risk.unusual_phrase_flag,
            )
        )

    def confidence(
        self,
        stylometric: StylometricResult,
        behavioral: BehavioralResult,
        patterns: PatternResult,
    ) -> float:
        """How strongly the signals agree, capped at the configured maximum."""
        confidence = BASE_CONFIDENCE

        if stylometric.deviation_from_baseline > 70:
            confidence += 20
        elif stylometric.deviation_from_baseline > 50:
            confidence += 10

        if behavioral.copy_paste_events > 5:
            confidence += 15
        if behavioral.typing_speed > 100 or 0 < behavioral.typing_speed < 10:
            confidence += 10

        pattern_count = sum(
            (
                patterns.formulaic_structure,
                patterns.overly_polished,
                patterns.lack_of_personal_voice,
                patterns.uniform_sentence_starts,
                patterns.hedging_count > self.config.risk.hedging_flag,
            )
        )
        confidence += pattern_count * 5

        return min(confidence, self.config.risk.max_confidence)
