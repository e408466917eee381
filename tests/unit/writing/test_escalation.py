# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for anomaly escalation and deep analysis."""

from datetime import datetime, timezone

import pytest

from src.core.writing.detection import AIRiskScorer, BaselineBuilder
from src.core.writing.errors import DocumentNotFoundError
from src.core.writing.escalation import DeepAnalyzer, EscalationGate
from src.core.writing.models import AnomalyRecord, AnomalySeverity, AnomalyType

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def anomaly(severity: AnomalySeverity) -> AnomalyRecord:
    return AnomalyRecord(
        type=AnomalyType.STYLE_CHANGE,
        severity=severity,
        description="Significant writing style change detected",
        timestamp=NOW,
        requires_review=severity != AnomalySeverity.LOW,
    )


class TestEscalationGate:
    """Tests for EscalationGate."""

    def test_no_anomalies(self) -> None:
        """Test that an empty list is neither persisted nor escalated."""
        decision = EscalationGate().evaluate([])

        assert decision.persist is False
        assert decision.deep_analysis is False

    def test_medium_anomalies_only_persist(self) -> None:
        """Test that medium anomalies are stored without deep analysis."""
        decision = EscalationGate().evaluate(
            [anomaly(AnomalySeverity.LOW), anomaly(AnomalySeverity.MEDIUM)]
        )

        assert decision.persist is True
        assert decision.deep_analysis is False

    def test_high_anomaly_escalates(self) -> None:
        """Test that any high anomaly triggers deep analysis."""
        decision = EscalationGate().evaluate(
            [anomaly(AnomalySeverity.MEDIUM), anomaly(AnomalySeverity.HIGH)]
        )

        assert decision.persist is True
        assert decision.deep_analysis is True


class TestDeepAnalyzer:
    """Tests for DeepAnalyzer."""

    @pytest.fixture
    def analyzer(
        self, analysis_config, document_store, submission_store, baseline_store, clock
    ) -> DeepAnalyzer:
        baselines = BaselineBuilder(
            analysis_config.risk, submission_store, baseline_store, clock=clock
        )
        return DeepAnalyzer(
            document_store, baselines, AIRiskScorer(analysis_config), clock=clock
        )

    @pytest.mark.asyncio
    async def test_assesses_current_document(
        self, analyzer, document_store, baseline_store, make_document, make_session
    ) -> None:
        """Test that the session's document is assessed against its author."""
        document_store.add_document(
            make_document(content="My essay about the river near my home. I think it matters.")
        )

        document, assessment = await analyzer.analyze(make_session())

        assert document.id == "doc-1"
        assert 0 <= assessment.risk_score <= 100
        assert await baseline_store.get("student-1") is not None

    @pytest.mark.asyncio
    async def test_stores_assessment(
        self, analyzer, document_store, make_document, make_session, clock
    ) -> None:
        """Test that every deep analysis is recorded against the document."""
        document_store.add_document(
            make_document(content="My essay about the river near my home. I think it matters.")
        )

        _, assessment = await analyzer.analyze(make_session())

        record = document_store.assessment_for("doc-1")
        assert record is not None
        assert record.risk_score == assessment.risk_score
        assert record.confidence == assessment.confidence
        assert record.assessed_at == clock.now
        assert record.intervention_deployed is (assessment.risk_score > 30)

    @pytest.mark.asyncio
    async def test_missing_document_raises(self, analyzer, make_session) -> None:
        """Test that a session pointing at an unknown document fails."""
        with pytest.raises(DocumentNotFoundError):
            await analyzer.analyze(make_session(document_id="missing"))
