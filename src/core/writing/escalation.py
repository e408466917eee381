# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Escalation from real-time anomalies to deep AI-risk analysis.

Only high severity anomalies trigger deep analysis; any anomaly at all
is persisted. Every deep analysis is stored with the document.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from src.core.writing.detection.baseline import BaselineBuilder
from src.core.writing.detection.scorer import AIRiskAssessment, AIRiskScorer, ResponseAction
from src.core.writing.errors import DocumentNotFoundError
from src.core.writing.models import (
    AIDetectionRecord,
    AnomalyRecord,
    AnomalySeverity,
    DocumentRecord,
    WritingSession,
)
from src.core.writing.stores import DocumentStore, collaborator_call
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EscalationDecision:
    """What to do with the anomalies of one update."""

    deep_analysis: bool
    persist: bool


class EscalationGate:
    """Decides whether anomalies are persisted and escalated."""

    def evaluate(self, anomalies: list[AnomalyRecord]) -> EscalationDecision:
        return EscalationDecision(
            deep_analysis=any(a.severity == AnomalySeverity.HIGH for a in anomalies),
            persist=bool(anomalies),
        )


class DeepAnalyzer:
    """Runs a full AI-risk assessment of a session's document.

    Attributes:
        documents: Document store.
        baselines: Baseline builder for the author.
        scorer: AI-risk scorer.
    """

    def __init__(
        self,
        documents: DocumentStore,
        baselines: BaselineBuilder,
        scorer: AIRiskScorer,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.documents = documents
        self.baselines = baselines
        self.scorer = scorer
        self._clock = clock

    async def analyze(
        self, session: WritingSession
    ) -> tuple[DocumentRecord, AIRiskAssessment]:
        """Assess the current content of the session's document.

        Args:
            session: Session whose document is analyzed.

        Returns:
            Tuple of (document, assessment).

        Raises:
            DocumentNotFoundError: If the document does not exist.
            CollaboratorUnavailableError: If a store fails.
        """
        with collaborator_call("document store"):
            document = await self.documents.get_document(session.document_id)
        if document is None:
            raise DocumentNotFoundError(session.document_id)

        baseline = await self.baselines.get_or_build(document.author_id)
        assessment = self.scorer.assess(document.content, baseline, session)

        record = AIDetectionRecord(
            document_id=document.id,
            risk_score=assessment.risk_score,
            confidence=assessment.confidence,
            intervention_deployed=(
                assessment.educational_response.suggested_action != ResponseAction.NONE
            ),
            assessed_at=self._clock(),
        )
        with collaborator_call("document store"):
            await self.documents.save_assessment(record)

        logger.info(
            "Deep analysis of document %s: risk %.1f, confidence %.0f",
            document.id,
            assessment.risk_score,
            assessment.confidence,
        )
        return document, assessment
