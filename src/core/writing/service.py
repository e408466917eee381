# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Writing analysis service.

Public entry point of the writing-behavior analysis pipeline. It wires
the components together:

Real-time path (one editor update):
    normalizer -> anomaly detector -> escalation gate
    -> (background) deep analysis -> integrity handling -> notification

Batch path (scheduled or on demand):
    trend analyzer -> alert builder -> notification

Updates for the same session are processed one at a time; different
sessions run independently. Deep analysis runs as a background task so
it never delays the next update.

Usage:
    service = WritingAnalysisService.in_memory()

    await service.process_session_update(update)
    alerts = await service.analyze_student_writing_progress("student-1")
    await service.drain_background_tasks()
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any
from weakref import WeakValueDictionary

from src.core.writing.alerts import (
    InterventionAlert,
    InterventionAlertBuilder,
    InterventionSummary,
    summarize_interventions,
)
from src.core.writing.anomaly import AnomalyDetector
from src.core.writing.config import WritingAnalysisConfig, get_writing_analysis_config
from src.core.writing.detection import AIRiskAssessment, AIRiskScorer, BaselineBuilder
from src.core.writing.errors import (
    DocumentNotFoundError,
    SessionNotFoundError,
    TrendAnalysisError,
    WritingAnalysisError,
)
from src.core.writing.escalation import DeepAnalyzer, EscalationGate
from src.core.writing.integrity import (
    AcademicIntegrityService,
    IntegrityInterventionResult,
    PlanReason,
)
from src.core.writing.models import (
    AIUsageDeclaration,
    DocumentRecord,
    IntegrityEducationPlan,
    WritingSession,
    WritingSessionUpdate,
)
from src.core.writing.normalizer import SignalNormalizer
from src.core.writing.stores import (
    BaselineStore,
    DocumentStore,
    InMemoryBaselineStore,
    InMemoryDocumentStore,
    InMemoryIntegrityStore,
    InMemoryProfileSink,
    InMemorySessionStore,
    InMemorySubmissionStore,
    IntegrityStore,
    ProfileSink,
    SessionStore,
    SubmissionStore,
    collaborator_call,
)
from src.core.writing.summary import (
    GENTLE_FEEDBACK,
    FeedbackType,
    SessionSummary,
    summarize_session,
)
from src.core.writing.trends import TrendAnalyzer
from src.infrastructure.notifications import (
    BaseNotificationSink,
    InMemoryNotificationSink,
    NotificationPayload,
    NotificationPriority,
)
from src.utils.datetime import utc_now
from src.utils.logging import log_context

logger = logging.getLogger(__name__)


class WritingAnalysisService:
    """Facade over the real-time and batch writing analysis paths.

    Attributes:
        config: Writing analysis policy.
        sessions: Session store.
        documents: Document store.
        submissions: Submission store.
        notifications: Notification sink.
    """

    def __init__(
        self,
        sessions: SessionStore,
        documents: DocumentStore,
        submissions: SubmissionStore,
        integrity_store: IntegrityStore,
        baselines: BaselineStore,
        notifications: BaseNotificationSink,
        profiles: ProfileSink | None = None,
        config: WritingAnalysisConfig | None = None,
        max_concurrent_student_scans: int = 8,
        default_timeframe_days: int = 7,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            sessions: Session store.
            documents: Document store.
            submissions: Submission store.
            integrity_store: AI usage declaration store.
            baselines: Writing baseline cache.
            notifications: Notification sink.
            profiles: Optional student behavior profile sink.
            config: Analysis policy, defaults to the loaded YAML config.
            max_concurrent_student_scans: Bound on parallel student scans
                during a course scan.
            default_timeframe_days: Trend window when none is given.
            clock: Time source.
        """
        self.config = config or get_writing_analysis_config()
        self.sessions = sessions
        self.documents = documents
        self.submissions = submissions
        self.notifications = notifications
        self.max_concurrent_student_scans = max_concurrent_student_scans
        self.default_timeframe_days = default_timeframe_days
        self._clock = clock

        self.normalizer = SignalNormalizer(sessions, profiles)
        self.detector = AnomalyDetector.default(self.config.anomaly, sessions, documents, clock=clock)
        self.gate = EscalationGate()
        self.deep_analyzer = DeepAnalyzer(
            documents,
            BaselineBuilder(self.config.risk, submissions, baselines, clock=clock),
            AIRiskScorer(self.config),
            clock=clock,
        )
        self.integrity = AcademicIntegrityService(integrity_store, self.config.risk, clock=clock)
        self.trends = TrendAnalyzer.default(self.config.trends, sessions, submissions, clock=clock)
        self.alert_builder = InterventionAlertBuilder(self.config.alerts, clock=clock)

        self._session_locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()
        self._background_tasks: set[asyncio.Task[None]] = set()

        logger.info(
            "WritingAnalysisService initialized (scan concurrency %d, window %d days)",
            max_concurrent_student_scans,
            default_timeframe_days,
        )

    @classmethod
    def in_memory(
        cls,
        config: WritingAnalysisConfig | None = None,
        **kwargs: Any,
    ) -> "WritingAnalysisService":
        """Build a service backed entirely by in-memory collaborators."""
        return cls(
            sessions=InMemorySessionStore(),
            documents=InMemoryDocumentStore(),
            submissions=InMemorySubmissionStore(),
            integrity_store=InMemoryIntegrityStore(),
            baselines=InMemoryBaselineStore(),
            notifications=InMemoryNotificationSink(),
            profiles=InMemoryProfileSink(),
            config=config,
            **kwargs,
        )

    # =========================================================================
    # Real-time path
    # =========================================================================

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._session_locks[session_id] = lock
        return lock

    async def process_session_update(
        self, update: WritingSessionUpdate | dict[str, Any]
    ) -> None:
        """Process one editor telemetry update.

        Args:
            update: Validated update or raw payload.

        Raises:
            InvalidSessionUpdateError: If the payload is malformed.
            SessionNotFoundError: If the session is unknown.
            CollaboratorUnavailableError: If a store fails.
        """
        session_id = (
            update.session_id
            if isinstance(update, WritingSessionUpdate)
            else str(update.get("sessionId") or update.get("session_id") or "")
        )

        lock = self._lock_for(session_id)
        async with lock:
            session, snapshot = await self.normalizer.normalize(update)

            with log_context(session_id=session.id, user_id=session.user_id):
                anomalies = await self.detector.detect(session, snapshot)
                decision = self.gate.evaluate(anomalies)

                if decision.persist:
                    with collaborator_call("session store"):
                        await self.sessions.append_anomalies(session.id, anomalies)

                if decision.deep_analysis:
                    self._schedule_deep_analysis(session)

    def _schedule_deep_analysis(self, session: WritingSession) -> None:
        task = asyncio.create_task(
            self._run_deep_analysis(session),
            name=f"deep-analysis-{session.id}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        logger.info("Scheduled deep analysis for session %s", session.id)

    async def _run_deep_analysis(self, session: WritingSession) -> None:
        with log_context(session_id=session.id, user_id=session.user_id):
            try:
                document, assessment = await self.deep_analyzer.analyze(session)
                if assessment.risk_score <= self.config.risk.escalation_score:
                    return

                result = await self.integrity.handle_detected_ai_usage(document, assessment)
                if result.alert is not None:
                    await self._notify_instructor(document, result.alert)
            except Exception as e:
                logger.error(
                    "Deep analysis failed for session %s: %s",
                    session.id,
                    str(e),
                    exc_info=True,
                )

    async def drain_background_tasks(self) -> None:
        """Wait for all outstanding deep analyses to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _notify_instructor(
        self, document: DocumentRecord, alert: InterventionAlert
    ) -> str | None:
        if not document.instructor_id:
            logger.warning(
                "Document %s has no instructor, skipping %s alert",
                document.id,
                alert.alert_type.value,
            )
            return None
        return await self.create_intervention_notification(alert, document.instructor_id)

    async def _get_document(self, document_id: str) -> DocumentRecord:
        with collaborator_call("document store"):
            document = await self.documents.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def handle_detected_ai_usage(
        self, document_id: str, assessment: AIRiskAssessment
    ) -> IntegrityInterventionResult:
        """Run integrity handling for an assessed document.

        Raises:
            DocumentNotFoundError: If the document does not exist.
        """
        document = await self._get_document(document_id)
        return await self.integrity.handle_detected_ai_usage(document, assessment)

    async def process_self_declaration(
        self, declaration: AIUsageDeclaration
    ) -> IntegrityInterventionResult:
        """Record a student's AI usage declaration.

        Substantial declared usage is shared with the instructor as a
        positive acknowledgement.
        """
        with collaborator_call("document store"):
            document = await self.documents.get_document(declaration.document_id)

        result = await self.integrity.process_self_declaration(declaration, document)
        if result.alert is not None and document is not None:
            await self._notify_instructor(document, result.alert)
        return result

    async def create_integrity_plan(
        self, student_id: str, reason: PlanReason
    ) -> IntegrityEducationPlan:
        """Create a supportive integrity education plan for a student."""
        return await self.integrity.create_integrity_plan(student_id, reason)

    async def generate_session_summary(self, session_id: str) -> SessionSummary:
        """Summarize a session for the instructor dashboard.

        Raises:
            SessionNotFoundError: If the session is unknown.
        """
        with collaborator_call("session store"):
            session = await self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return summarize_session(session)

    async def provide_gentle_feedback(
        self,
        user_id: str,
        document_id: str,
        feedback_type: FeedbackType | str,
    ) -> str:
        """Send a low-priority supportive message to the student.

        Returns:
            Notification ID.

        Raises:
            ValueError: If the feedback type is unknown.
        """
        feedback_type = FeedbackType(feedback_type)
        title, message = GENTLE_FEEDBACK[feedback_type]

        payload = NotificationPayload(
            notification_type="writing_feedback",
            title=title,
            message=message,
            recipient_id=user_id,
            priority=NotificationPriority.LOW,
            category="supportive",
            student_id=user_id,
            data={
                "document_id": document_id,
                "feedback_type": feedback_type.value,
                "supportive": True,
            },
        )
        with collaborator_call("notification sink"):
            return await self.notifications.send(payload)

    # =========================================================================
    # Batch path
    # =========================================================================

    async def analyze_student_writing_progress(
        self,
        user_id: str,
        course_id: str | None = None,
        timeframe_days: int | None = None,
    ) -> list[InterventionAlert]:
        """Scan one student's writing history for intervention needs.

        Args:
            user_id: Student to scan.
            course_id: Restrict to one course.
            timeframe_days: Window length, defaults to the configured window.

        Returns:
            Finalized alerts, each with a response deadline.

        Raises:
            TrendAnalysisError: If the scan fails.
        """
        with log_context(user_id=user_id, course_id=course_id):
            now = self._clock()
            alerts = await self.trends.analyze(
                user_id,
                course_id=course_id,
                timeframe_days=(
                    self.default_timeframe_days if timeframe_days is None else timeframe_days
                ),
                now=now,
            )
            return self.alert_builder.finalize_all(alerts, now)

    async def run_course_intervention_analysis(self, course_id: str) -> list[InterventionAlert]:
        """Scan every active student of a course.

        Student scans run concurrently, bounded by
        ``max_concurrent_student_scans``. A failing student is logged and
        skipped.

        Args:
            course_id: Course to scan.

        Returns:
            Alerts for all students, deduplicated within this run.
        """
        with collaborator_call("submission store"):
            student_ids = await self.submissions.list_active_students(course_id)

        semaphore = asyncio.Semaphore(self.max_concurrent_student_scans)

        async def scan(student_id: str) -> list[InterventionAlert]:
            async with semaphore:
                try:
                    return await self.analyze_student_writing_progress(student_id, course_id)
                except TrendAnalysisError as e:
                    logger.error(
                        "Intervention scan failed for student %s in course %s: %s",
                        student_id,
                        course_id,
                        str(e),
                    )
                    return []

        with log_context(course_id=course_id):
            results = await asyncio.gather(*(scan(s) for s in dict.fromkeys(student_ids)))
            alerts = self.alert_builder.dedupe(a for batch in results for a in batch)

            logger.info(
                "Course %s intervention scan: %d students, %d alerts",
                course_id,
                len(student_ids),
                len(alerts),
            )
            return alerts

    async def create_intervention_notification(
        self, alert: InterventionAlert, instructor_id: str
    ) -> str:
        """Send an intervention alert to an instructor.

        Returns:
            Notification ID.

        Raises:
            CollaboratorUnavailableError: If the sink fails.
        """
        payload = self.alert_builder.build_notification(alert, instructor_id)
        with collaborator_call("notification sink"):
            notification_id = await self.notifications.send(payload)

        logger.info(
            "Sent %s alert for student %s to instructor %s",
            alert.alert_type.value,
            alert.student_id,
            instructor_id,
        )
        return notification_id

    def get_intervention_summary(self, alerts: list[InterventionAlert]) -> InterventionSummary:
        """Roll a set of alerts up for the instructor dashboard."""
        return summarize_interventions(alerts)


# Process-wide instance used by background workers
_service_instance: WritingAnalysisService | None = None


def configure_writing_analysis_service(service: WritingAnalysisService | None) -> None:
    """Install (or clear, with None) the process-wide service.

    Args:
        service: Service instance workers should use.
    """
    global _service_instance
    _service_instance = service


def get_writing_analysis_service() -> WritingAnalysisService:
    """Get the process-wide service.

    Returns:
        WritingAnalysisService instance.

    Raises:
        WritingAnalysisError: If no service was configured.
    """
    if _service_instance is None:
        raise WritingAnalysisError(
            "Writing analysis service is not configured; "
            "call configure_writing_analysis_service() at startup"
        )
    return _service_instance
