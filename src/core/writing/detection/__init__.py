# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Deep AI-risk analysis of student writing."""

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
from src.core.writing.detection.baseline import BaselineBuilder
from src.core.writing.detection.scorer import (
    AIRiskAssessment,
    AIRiskScorer,
    EducationalResponse,
    ResponseAction,
    RiskLevel,
    combine_risk_score,
    educational_response_for,
)

__all__ = [
    "AIRiskAssessment",
    "AIRiskScorer",
    "BaselineBuilder",
    "BehavioralAnalyzer",
    "BehavioralResult",
    "EducationalResponse",
    "PatternAnalyzer",
    "PatternResult",
    "PausePattern",
    "ResponseAction",
    "RevisionPattern",
    "RiskLevel",
    "StylometricAnalyzer",
    "StylometricResult",
    "combine_risk_score",
    "educational_response_for",
]
