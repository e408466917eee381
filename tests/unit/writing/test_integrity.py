# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for academic integrity handling."""

from dataclasses import replace
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.core.writing.alerts import AlertSeverity, InterventionType
from src.core.writing.config import RiskThresholds
from src.core.writing.detection import AIRiskAssessment, AIRiskScorer
from src.core.writing.errors import CollaboratorUnavailableError
from src.core.writing.integrity import (
    AcademicIntegrityService,
    IntegrityInterventionType,
    PlanReason,
    StudentResponse,
)
from src.core.writing.models import (
    AIUsageDeclaration,
    DeclarationTiming,
    IntegrityProfile,
    WritingBaseline,
)


@pytest.fixture
def integrity(integrity_store, clock) -> AcademicIntegrityService:
    return AcademicIntegrityService(integrity_store, RiskThresholds(), clock=clock)


@pytest.fixture
def assess(analysis_config):
    """Build an assessment with a chosen risk score."""
    base = AIRiskScorer(analysis_config).assess(
        "A short essay about rivers.",
        WritingBaseline(
            student_id="student-1",
            avg_word_length=4.5,
            avg_sentence_length=15.0,
            vocabulary_diversity=0.4,
        ),
    )

    def _assess(risk_score: float) -> AIRiskAssessment:
        return replace(base, risk_score=risk_score)

    return _assess


def declaration(**kwargs) -> AIUsageDeclaration:
    kwargs.setdefault("student_id", "student-1")
    kwargs.setdefault("document_id", "doc-1")
    return AIUsageDeclaration(**kwargs)


class TestHandleDetectedAIUsage:
    """Tests for AcademicIntegrityService.handle_detected_ai_usage."""

    @pytest.mark.asyncio
    async def test_undeclared_high_score_escalates(
        self, integrity, assess, make_document, clock
    ) -> None:
        """Test that an undeclared score above 50 leads to reflection."""
        result = await integrity.handle_detected_ai_usage(make_document(), assess(72))

        assert result.intervention_type == IntegrityInterventionType.EDUCATIONAL
        assert result.escalated is True
        assert result.student_response == StudentResponse.NEUTRAL
        assert result.follow_up_date == clock.now + timedelta(days=7)
        assert "Complete reflection on writing process" in result.next_steps
        assert result.alert is not None
        assert result.alert.alert_type == InterventionType.AI_USAGE_REFLECTION
        assert result.alert.severity == AlertSeverity.WARNING
        assert result.alert.student_id == "student-1"
        assert result.alert.context.document_id == "doc-1"
        assert "72" in result.alert.message

    @pytest.mark.asyncio
    async def test_escalation_lowers_integrity_profile(
        self, integrity, integrity_store, assess, make_document, clock
    ) -> None:
        """Test that an undeclared high score counts against the student."""
        result = await integrity.handle_detected_ai_usage(make_document(), assess(72))

        profile = await integrity_store.get_profile("student-1")
        assert profile is result.integrity_profile
        assert profile.integrity_score == 65
        assert profile.undeclared_detections == 1
        assert profile.honest_declarations == 0
        assert profile.last_incident == clock.now
        assert profile.risk_level == "medium"
        assert result.to_dict()["integrity_score"] == 65

    @pytest.mark.asyncio
    @pytest.mark.parametrize("declared", [True, False])
    async def test_no_escalation_leaves_profile_alone(
        self, integrity, integrity_store, assess, make_document, declared
    ) -> None:
        """Test that declared or low-risk documents do not move the profile."""
        if declared:
            await integrity_store.save_declaration(declaration())
        before = await integrity_store.get_profile("student-1")

        result = await integrity.handle_detected_ai_usage(
            make_document(), assess(95 if declared else 20)
        )

        assert result.integrity_profile is None
        assert await integrity_store.get_profile("student-1") is before

    @pytest.mark.asyncio
    async def test_threshold_is_exclusive(self, integrity, assess, make_document) -> None:
        """Test that a score of exactly 50 needs no intervention."""
        result = await integrity.handle_detected_ai_usage(make_document(), assess(50))

        assert result.escalated is False
        assert result.intervention_type == IntegrityInterventionType.SUPPORTIVE
        assert result.alert is None
        assert result.follow_up_date is None

    @pytest.mark.asyncio
    async def test_declaration_suppresses_escalation(
        self, integrity, integrity_store, assess, make_document
    ) -> None:
        """Test that declared AI use is acknowledged whatever the score."""
        await integrity_store.save_declaration(declaration(tools_used=["ChatGPT"]))

        result = await integrity.handle_detected_ai_usage(make_document(), assess(95))

        assert result.escalated is False
        assert result.intervention_type == IntegrityInterventionType.SUPPORTIVE
        assert result.student_response == StudentResponse.POSITIVE
        assert result.next_steps == ["Continue building on your honest approach"]
        assert result.alert.alert_type == InterventionType.AI_DECLARATION_ACKNOWLEDGED
        assert result.alert.severity == AlertSeverity.INFO
        assert '"Persuasive Essay"' in result.alert.message

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, assess, make_document) -> None:
        """Test that declaration store failures surface as collaborator errors."""
        store = AsyncMock()
        store.get_declaration.side_effect = OSError("disk unavailable")
        integrity = AcademicIntegrityService(store, RiskThresholds())

        with pytest.raises(CollaboratorUnavailableError):
            await integrity.handle_detected_ai_usage(make_document(), assess(80))


class TestProcessSelfDeclaration:
    """Tests for AcademicIntegrityService.process_self_declaration."""

    @pytest.mark.asyncio
    async def test_records_declaration(self, integrity, integrity_store, clock) -> None:
        """Test that the declaration is stored with a 14 day follow-up."""
        result = await integrity.process_self_declaration(declaration(percentage_ai_generated=10))

        assert await integrity_store.get_declaration("student-1", "doc-1") is not None
        assert result.intervention_type == IntegrityInterventionType.EDUCATIONAL
        assert result.student_response == StudentResponse.POSITIVE
        assert result.escalated is False
        assert result.follow_up_date == clock.now + timedelta(days=14)
        assert result.next_steps == []
        assert result.alert is None

    @pytest.mark.asyncio
    async def test_heavy_usage_recommends_modules(self, integrity) -> None:
        """Test module recommendations for heavy, multi-tool usage."""
        result = await integrity.process_self_declaration(
            declaration(
                percentage_ai_generated=60,
                tools_used=["ChatGPT", "Grammarly", "Quillbot"],
            )
        )

        assert result.next_steps == [
            "Complete module: Developing Original Thought",
            "Complete module: Understanding AI Tools in Academic Writing",
        ]

    @pytest.mark.asyncio
    async def test_instructor_told_above_thirty_percent(
        self, integrity, make_document
    ) -> None:
        """Test that substantial declared use produces an acknowledgement alert."""
        result = await integrity.process_self_declaration(
            declaration(percentage_ai_generated=31, usage_description="Outline help"),
            make_document(),
        )

        assert result.alert is not None
        assert result.alert.alert_type == InterventionType.AI_DECLARATION_ACKNOWLEDGED
        assert result.alert.details["usage_description"] == "Outline help"
        assert result.alert.context.course_id == "course-1"

    @pytest.mark.asyncio
    async def test_alert_without_document(self, integrity) -> None:
        """Test the acknowledgement wording when the document is unknown."""
        result = await integrity.process_self_declaration(declaration(percentage_ai_generated=45))

        assert "their document" in result.alert.message
        assert result.alert.context.document_id == "doc-1"

    @pytest.mark.asyncio
    async def test_to_dict(self, integrity) -> None:
        """Test JSON-friendly conversion of the result."""
        result = await integrity.process_self_declaration(declaration())

        data = result.to_dict()

        assert data["intervention_type"] == "educational"
        assert data["follow_up_date"] == "2025-03-24T12:00:00+00:00"
        assert data["alert"] is None

    @pytest.mark.asyncio
    async def test_policy_confusion_recommends_attribution(self, integrity) -> None:
        """Test that a student unsure of the policy is pointed at attribution."""
        result = await integrity.process_self_declaration(
            declaration(percentage_ai_generated=10, understands_policy=False)
        )

        assert result.next_steps == ["Complete module: Citing and Attributing AI Assistance"]


class TestIntegrityProfile:
    """Tests for integrity profile tracking."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("timing", "expected"),
        [
            (DeclarationTiming.BEFORE, 85),
            (DeclarationTiming.DURING, 80),
            (DeclarationTiming.AFTER, 77),
            (DeclarationTiming.PROMPTED, 77),
        ],
    )
    async def test_declaration_rewards_honesty(
        self, integrity, integrity_store, timing, expected
    ) -> None:
        """Test that earlier declarations earn a larger honesty bonus."""
        result = await integrity.process_self_declaration(declaration(declaration_time=timing))

        profile = await integrity_store.get_profile("student-1")
        assert profile.integrity_score == expected
        assert profile.honest_declarations == 1
        assert profile.undeclared_detections == 0
        assert profile.trend == "improving"
        assert result.integrity_profile is profile

    @pytest.mark.asyncio
    async def test_score_clamped_to_hundred(self, integrity, integrity_store) -> None:
        """Test that repeated honesty cannot push the score past 100."""
        await integrity_store.save_profile(
            IntegrityProfile(student_id="student-1", integrity_score=95)
        )

        await integrity.process_self_declaration(
            declaration(declaration_time=DeclarationTiming.BEFORE)
        )

        profile = await integrity_store.get_profile("student-1")
        assert profile.integrity_score == 100
        assert profile.risk_level == "low"

    @pytest.mark.asyncio
    async def test_score_clamped_to_zero(self, integrity, integrity_store) -> None:
        """Test that detections cannot push the score below 0."""
        await integrity_store.save_profile(
            IntegrityProfile(student_id="student-1", integrity_score=3)
        )

        profile = await integrity.update_integrity_profile("student-1", honest=False)

        assert profile.integrity_score == 0
        assert profile.risk_level == "high"

    @pytest.mark.asyncio
    async def test_unknown_student_gets_default_profile(self, integrity, clock) -> None:
        """Test that a student with no history starts at the default score."""
        profile = await integrity.get_integrity_profile("student-9")

        assert profile.integrity_score == 70
        assert profile.risk_level == "medium"
        assert profile.trend == "stable"
        assert profile.updated_at == clock.now

    @pytest.mark.asyncio
    async def test_profile_store_failure_wrapped(self) -> None:
        """Test that profile store failures surface as collaborator errors."""
        store = AsyncMock()
        store.get_profile.side_effect = ConnectionError("connection reset")
        integrity = AcademicIntegrityService(store, RiskThresholds())

        with pytest.raises(CollaboratorUnavailableError):
            await integrity.process_self_declaration(declaration())


class TestCreateIntegrityPlan:
    """Tests for AcademicIntegrityService.create_integrity_plan."""

    @pytest.mark.asyncio
    async def test_proactive_plan_for_new_student(
        self, integrity, integrity_store, clock
    ) -> None:
        """Test a proactive plan for a medium-risk student."""
        plan = await integrity.create_integrity_plan("student-1", PlanReason.PROACTIVE)

        assert plan.required_modules == ["understanding-ai-tools"]
        assert plan.risk_level == "medium"
        assert plan.reason == "proactive"
        assert plan.scheduled_check_ins == [
            clock.now + timedelta(weeks=1),
            clock.now + timedelta(weeks=2),
        ]
        assert integrity_store.plans["student-1"] is plan

    @pytest.mark.asyncio
    async def test_repeated_incident_for_low_score(self, integrity, integrity_store) -> None:
        """Test that a low score adds attribution and four weekly check-ins."""
        await integrity_store.save_profile(
            IntegrityProfile(
                student_id="student-1", integrity_score=55, undeclared_detections=3
            )
        )

        plan = await integrity.create_integrity_plan("student-1", PlanReason.REPEATED_INCIDENT)

        assert plan.required_modules == [
            "developing-original-thought",
            "growth-through-challenge",
            "collaborative-vs-copying",
            "citation-attribution",
        ]
        assert plan.risk_level == "high"
        assert plan.suspicious_submissions == 3
        assert plan.improvement_trend == "stable"
        assert len(plan.scheduled_check_ins) == 4

    @pytest.mark.asyncio
    async def test_low_risk_student_has_no_check_ins(self, integrity, integrity_store) -> None:
        """Test that students in good standing get no scheduled check-ins."""
        await integrity_store.save_profile(
            IntegrityProfile(student_id="student-1", integrity_score=90, honest_declarations=4)
        )

        plan = await integrity.create_integrity_plan("student-1", PlanReason.FIRST_INCIDENT)

        assert plan.required_modules == ["understanding-ai-tools", "developing-original-thought"]
        assert plan.scheduled_check_ins == []
        assert plan.improvement_trend == "improving"
