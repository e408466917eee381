# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Academic integrity handling for AI-risk findings.

The response to a high AI-risk score is educational, never punitive:

- A student who declared AI assistance on the document gets a supportive
  acknowledgement, whatever the score.
- An undeclared high score leads to a reflection opportunity with a
  follow-up date, and an instructor alert recommending a conversation.
- Anything else needs no intervention.

Every declaration and every undeclared high-risk detection moves the
student's integrity profile. The profile drives supportive education
plans.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from src.core.writing.alerts import (
    AlertContext,
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
    TrendDirection,
)
from src.core.writing.config import RiskThresholds
from src.core.writing.detection.scorer import AIRiskAssessment
from src.core.writing.models import (
    AIUsageDeclaration,
    DeclarationTiming,
    DocumentRecord,
    IntegrityEducationPlan,
    IntegrityProfile,
)
from src.core.writing.stores import IntegrityStore, collaborator_call
from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)

DECLARATION_NOTIFY_PERCENT = 30.0
ORIGINAL_THOUGHT_PERCENT = 50.0
MANY_TOOLS = 2
DECLARATION_FOLLOW_UP_DAYS = 14

HONESTY_BONUS = {DeclarationTiming.BEFORE: 10.0, DeclarationTiming.DURING: 5.0}
DEFAULT_HONESTY_BONUS = 2.0
PROFILE_ADJUSTMENT = 5.0
LOW_INTEGRITY_SCORE = 60.0
CHECK_INS_BY_RISK = {"high": 4, "medium": 2}

EDUCATIONAL_MODULES = {
    "understanding-ai-tools": "Understanding AI Tools in Academic Writing",
    "citation-attribution": "Citing and Attributing AI Assistance",
    "developing-original-thought": "Developing Original Thought",
    "collaborative-vs-copying": "Collaboration vs. Copying",
    "growth-through-challenge": "Growth Through Academic Challenge",
}

HONEST_APPROACH_STEP = "Continue building on your honest approach"
REFLECTION_STEPS = [
    "Complete reflection on writing process",
    "Review academic integrity resources",
    "Schedule optional consultation",
]


class IntegrityInterventionType(str, Enum):
    """Kind of integrity intervention."""

    SUPPORTIVE = "supportive"
    EDUCATIONAL = "educational"


class StudentResponse(str, Enum):
    """Expected framing of the student's response."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"


class PlanReason(str, Enum):
    """Why an integrity education plan is created."""

    PROACTIVE = "proactive"
    FIRST_INCIDENT = "first_incident"
    REPEATED_INCIDENT = "repeated_incident"


PLAN_MODULES = {
    PlanReason.PROACTIVE: ["understanding-ai-tools"],
    PlanReason.FIRST_INCIDENT: ["understanding-ai-tools", "developing-original-thought"],
    PlanReason.REPEATED_INCIDENT: [
        "developing-original-thought",
        "growth-through-challenge",
        "collaborative-vs-copying",
    ],
}


@dataclass
class IntegrityInterventionResult:
    """Outcome of integrity handling for one document.

    Attributes:
        intervention_type: Supportive or educational.
        escalated: Whether the finding was escalated to the instructor.
        student_response: Expected framing of the student's response.
        next_steps: Steps suggested to the student.
        follow_up_date: When to follow up, if at all.
        alert: Instructor alert to publish, if any.
        integrity_profile: Student profile after this intervention, if it changed.
        success: Whether handling completed.
    """

    intervention_type: IntegrityInterventionType
    escalated: bool = False
    student_response: StudentResponse = StudentResponse.POSITIVE
    next_steps: list[str] = field(default_factory=list)
    follow_up_date: datetime | None = None
    alert: InterventionAlert | None = None
    integrity_profile: IntegrityProfile | None = None
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "intervention_type": self.intervention_type.value,
            "escalated": self.escalated,
            "student_response": self.student_response.value,
            "next_steps": list(self.next_steps),
            "follow_up_date": format_iso(self.follow_up_date),
            "alert": self.alert.to_dict() if self.alert else None,
            "integrity_score": (
                self.integrity_profile.integrity_score if self.integrity_profile else None
            ),
            "success": self.success,
        }


def _context_for(document: DocumentRecord) -> AlertContext:
    return AlertContext(
        course_id=document.course_id,
        assignment_id=document.assignment_id,
        document_id=document.id,
    )


class AcademicIntegrityService:
    """Turns AI-risk assessments and declarations into supportive interventions.

    Attributes:
        store: Declaration store.
        thresholds: Risk thresholds (escalation score, follow-up days).
    """

    def __init__(
        self,
        store: IntegrityStore,
        thresholds: RiskThresholds,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.thresholds = thresholds
        self._clock = clock

    async def handle_detected_ai_usage(
        self,
        document: DocumentRecord,
        assessment: AIRiskAssessment,
    ) -> IntegrityInterventionResult:
        """Decide the intervention for an assessed document.

        Args:
            document: The assessed document.
            assessment: Its AI-risk assessment.

        Returns:
            IntegrityInterventionResult instance.

        Raises:
            CollaboratorUnavailableError: If the declaration store fails.
        """
        with collaborator_call("integrity store"):
            declaration = await self.store.get_declaration(document.author_id, document.id)

        if declaration is not None:
            logger.info(
                "Document %s has an AI usage declaration, acknowledging (score %.1f)",
                document.id,
                assessment.risk_score,
            )
            return IntegrityInterventionResult(
                intervention_type=IntegrityInterventionType.SUPPORTIVE,
                escalated=False,
                student_response=StudentResponse.POSITIVE,
                next_steps=[HONEST_APPROACH_STEP],
                alert=self._acknowledgement_alert(document, declaration),
            )

        if assessment.risk_score > self.thresholds.escalation_score:
            logger.info(
                "Document %s: AI risk %.1f without declaration, recommending reflection",
                document.id,
                assessment.risk_score,
            )
            profile = await self.update_integrity_profile(document.author_id, honest=False)
            return IntegrityInterventionResult(
                intervention_type=IntegrityInterventionType.EDUCATIONAL,
                escalated=True,
                student_response=StudentResponse.NEUTRAL,
                next_steps=list(REFLECTION_STEPS),
                follow_up_date=self._clock() + timedelta(days=self.thresholds.follow_up_days),
                alert=self._reflection_alert(document, assessment),
                integrity_profile=profile,
            )

        return IntegrityInterventionResult(
            intervention_type=IntegrityInterventionType.SUPPORTIVE,
            escalated=False,
            student_response=StudentResponse.POSITIVE,
        )

    async def process_self_declaration(
        self,
        declaration: AIUsageDeclaration,
        document: DocumentRecord | None = None,
    ) -> IntegrityInterventionResult:
        """Record a student's declaration and recommend learning modules.

        The instructor is told about substantial declared usage, framed
        positively.

        Args:
            declaration: The declaration.
            document: The declared document, for alert context.

        Returns:
            IntegrityInterventionResult instance.
        """
        with collaborator_call("integrity store"):
            await self.store.save_declaration(declaration)

        modules: list[str] = []
        if declaration.percentage_ai_generated > ORIGINAL_THOUGHT_PERCENT:
            modules.append("developing-original-thought")
        if len(declaration.tools_used) > MANY_TOOLS:
            modules.append("understanding-ai-tools")
        if not declaration.understands_policy:
            modules.append("citation-attribution")

        profile = await self.update_integrity_profile(
            declaration.student_id,
            honest=True,
            bonus=HONESTY_BONUS.get(declaration.declaration_time, DEFAULT_HONESTY_BONUS),
        )

        alert = None
        if declaration.percentage_ai_generated > DECLARATION_NOTIFY_PERCENT:
            alert = self._acknowledgement_alert(document, declaration)

        logger.info(
            "Recorded AI usage declaration for document %s (%.0f%% generated)",
            declaration.document_id,
            declaration.percentage_ai_generated,
        )
        return IntegrityInterventionResult(
            intervention_type=IntegrityInterventionType.EDUCATIONAL,
            escalated=False,
            student_response=StudentResponse.POSITIVE,
            next_steps=[f"Complete module: {EDUCATIONAL_MODULES[m]}" for m in modules],
            follow_up_date=self._clock() + timedelta(days=DECLARATION_FOLLOW_UP_DAYS),
            alert=alert,
            integrity_profile=profile,
        )

    async def get_integrity_profile(self, student_id: str) -> IntegrityProfile:
        """Get the student's profile, or a fresh one for a new student."""
        with collaborator_call("integrity store"):
            profile = await self.store.get_profile(student_id)
        return profile or IntegrityProfile(student_id=student_id, updated_at=self._clock())

    async def update_integrity_profile(
        self,
        student_id: str,
        *,
        honest: bool,
        bonus: float = 0.0,
    ) -> IntegrityProfile:
        """Record an honest declaration or an undeclared detection.

        Args:
            student_id: Student whose profile changes.
            honest: True for a declaration, False for an undeclared detection.
            bonus: Extra points for an honest declaration.

        Returns:
            The saved profile.
        """
        profile = await self.get_integrity_profile(student_id)
        now = self._clock()

        if honest:
            adjustment = bonus + PROFILE_ADJUSTMENT
            profile.honest_declarations += 1
        else:
            adjustment = -PROFILE_ADJUSTMENT
            profile.undeclared_detections += 1
            profile.last_incident = now

        profile.integrity_score = min(100.0, max(0.0, profile.integrity_score + adjustment))
        profile.updated_at = now

        with collaborator_call("integrity store"):
            await self.store.save_profile(profile)

        logger.info(
            "Integrity score for student %s is now %.0f (%+.0f)",
            student_id,
            profile.integrity_score,
            adjustment,
        )
        return profile

    async def create_integrity_plan(
        self, student_id: str, reason: PlanReason
    ) -> IntegrityEducationPlan:
        """Build and store a supportive education plan for a student.

        Modules follow the reason for the plan; a low integrity score adds
        the attribution module. Weekly check-ins are scheduled for medium
        and high risk students.
        """
        profile = await self.get_integrity_profile(student_id)

        modules = list(PLAN_MODULES[reason])
        if profile.integrity_score < LOW_INTEGRITY_SCORE:
            modules.append("citation-attribution")

        now = self._clock()
        check_ins = CHECK_INS_BY_RISK.get(profile.risk_level, 0)
        plan = IntegrityEducationPlan(
            student_id=student_id,
            reason=reason.value,
            integrity_score=profile.integrity_score,
            risk_level=profile.risk_level,
            honest_declarations=profile.honest_declarations,
            suspicious_submissions=profile.undeclared_detections,
            improvement_trend=profile.trend,
            required_modules=list(dict.fromkeys(modules)),
            scheduled_check_ins=[now + timedelta(weeks=i) for i in range(1, check_ins + 1)],
            created_at=now,
        )

        with collaborator_call("integrity store"):
            await self.store.save_plan(plan)

        logger.info(
            "Created %s integrity plan for student %s with %d modules",
            reason.value,
            student_id,
            len(plan.required_modules),
        )
        return plan

    def _acknowledgement_alert(
        self,
        document: DocumentRecord | None,
        declaration: AIUsageDeclaration,
    ) -> InterventionAlert:
        title = document.assignment_title if document and document.assignment_title else None
        target = f'"{title}"' if title else "their document"
        return InterventionAlert(
            alert_type=InterventionType.AI_DECLARATION_ACKNOWLEDGED,
            severity=AlertSeverity.INFO,
            title="Student AI Usage Declaration",
            message=(
                f"The student proactively declared using AI tools for {target}. "
                "They have included a reflection on their learning process."
            ),
            student_id=declaration.student_id,
            suggested_actions=[
                "Acknowledge the student's transparency",
                "Discuss how AI assistance supported their learning",
            ],
            context=(
                _context_for(document)
                if document
                else AlertContext(document_id=declaration.document_id)
            ),
            details={
                "tools_used": list(declaration.tools_used),
                "percentage_ai_generated": declaration.percentage_ai_generated,
                "usage_description": declaration.usage_description,
            },
        )

    def _reflection_alert(
        self,
        document: DocumentRecord,
        assessment: AIRiskAssessment,
    ) -> InterventionAlert:
        return InterventionAlert(
            alert_type=InterventionType.AI_USAGE_REFLECTION,
            severity=AlertSeverity.WARNING,
            title="Writing Process Reflection Recommended",
            message=(
                "Recent writing shows patterns that differ from the student's usual "
                f"style (risk score {round(assessment.risk_score)}). A supportive "
                "conversation about their writing process is recommended."
            ),
            student_id=document.author_id,
            suggested_actions=[
                "Invite the student to reflect on their writing process",
                "Share academic integrity and AI use resources",
                "Offer an optional one-on-one consultation",
            ],
            context=_context_for(document),
            metrics=AlertMetrics(
                current_value=assessment.risk_score,
                threshold=self.thresholds.escalation_score,
                trend=TrendDirection.STABLE,
            ),
            details={"assessment": assessment.to_dict()},
        )
