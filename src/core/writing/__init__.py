# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Writing-behavior analysis for ScribeSignal.

Watches live writing sessions for anomalies, escalates severe ones to a
deep AI-risk analysis, scans writing history for longitudinal patterns
and turns findings into instructor intervention alerts.

Example:
    >>> from src.core.writing import WritingAnalysisService
    >>> service = WritingAnalysisService.in_memory()
    >>> await service.process_session_update(update)
    >>> alerts = await service.run_course_intervention_analysis("course-1")
"""

from src.core.writing.alerts import (
    AlertContext,
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionAlertBuilder,
    InterventionSummary,
    InterventionType,
    TrendDirection,
    summarize_interventions,
)
from src.core.writing.config import (
    WritingAnalysisConfig,
    build_config,
    get_writing_analysis_config,
    load_writing_analysis_config,
)
from src.core.writing.errors import (
    CollaboratorUnavailableError,
    DocumentNotFoundError,
    InvalidSessionUpdateError,
    SessionNotFoundError,
    TrendAnalysisError,
    WritingAnalysisError,
)
from src.core.writing.integrity import (
    AcademicIntegrityService,
    IntegrityInterventionResult,
    IntegrityInterventionType,
)
from src.core.writing.models import (
    AIUsageDeclaration,
    AnomalyRecord,
    AnomalySeverity,
    AnomalyType,
    WritingSession,
    WritingSessionUpdate,
)
from src.core.writing.service import (
    WritingAnalysisService,
    configure_writing_analysis_service,
    get_writing_analysis_service,
)
from src.core.writing.summary import FeedbackType, SessionSummary, WritingBehavior

__all__ = [
    # Service
    "WritingAnalysisService",
    "configure_writing_analysis_service",
    "get_writing_analysis_service",
    # Config
    "WritingAnalysisConfig",
    "build_config",
    "get_writing_analysis_config",
    "load_writing_analysis_config",
    # Models
    "AIUsageDeclaration",
    "AnomalyRecord",
    "AnomalySeverity",
    "AnomalyType",
    "WritingSession",
    "WritingSessionUpdate",
    # Alerts
    "AlertContext",
    "AlertMetrics",
    "AlertSeverity",
    "InterventionAlert",
    "InterventionAlertBuilder",
    "InterventionSummary",
    "InterventionType",
    "TrendDirection",
    "summarize_interventions",
    # Integrity
    "AcademicIntegrityService",
    "IntegrityInterventionResult",
    "IntegrityInterventionType",
    # Summaries
    "FeedbackType",
    "SessionSummary",
    "WritingBehavior",
    # Errors
    "WritingAnalysisError",
    "InvalidSessionUpdateError",
    "SessionNotFoundError",
    "DocumentNotFoundError",
    "CollaboratorUnavailableError",
    "TrendAnalysisError",
]
