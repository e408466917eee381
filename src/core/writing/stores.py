# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Collaborator interfaces consumed by the writing analysis core.

Persistence is owned by other services. The core reaches it only
through these narrow abstract interfaces, injected into each component.
In-memory implementations are provided for tests, local development
and single-process deployments.

Failures raised by an implementation are wrapped into
CollaboratorUnavailableError by ``collaborator_call`` so callers see a
single error type for store outages.
"""

import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime

from src.core.writing.errors import (
    CollaboratorUnavailableError,
    SessionNotFoundError,
    WritingAnalysisError,
)
from src.core.writing.models import (
    AIDetectionRecord,
    AIUsageDeclaration,
    AnomalyRecord,
    DocumentRecord,
    DocumentVersion,
    IntegrityEducationPlan,
    IntegrityProfile,
    RealTimeWritingMetrics,
    Submission,
    WritingBaseline,
    WritingSession,
    WritingSessionUpdate,
)
from src.utils.datetime import ensure_utc

logger = logging.getLogger(__name__)


@contextmanager
def collaborator_call(collaborator: str) -> Iterator[None]:
    """Wrap unexpected collaborator failures into CollaboratorUnavailableError.

    Domain errors (unknown session, invalid input) pass through unchanged.

    Args:
        collaborator: Name used in the error message, e.g. "session store".

    Raises:
        CollaboratorUnavailableError: If the wrapped block raised anything
            other than a WritingAnalysisError.
    """
    try:
        yield
    except WritingAnalysisError:
        raise
    except Exception as e:
        logger.error("%s call failed: %s", collaborator, e, exc_info=True)
        raise CollaboratorUnavailableError(
            f"{collaborator} unavailable: {e}", original_error=e
        ) from e


# =============================================================================
# Interfaces
# =============================================================================


class SessionStore(ABC):
    """Durable record of writing sessions and their cumulative counters."""

    @abstractmethod
    async def get(self, session_id: str) -> WritingSession | None:
        """Get a session by ID, or None if unknown."""
        ...

    @abstractmethod
    async def apply_activity(
        self, session_id: str, update: WritingSessionUpdate
    ) -> WritingSession:
        """Add an update's deltas to the session's cumulative state.

        Counters are incremented, pause and bulk histories are appended,
        duration is accumulated and last activity replaced.

        Returns:
            The updated session.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        ...

    @abstractmethod
    async def mark_style_check(self, session_id: str, checked_at: datetime) -> None:
        """Record when the style drift check last ran for a session."""
        ...

    @abstractmethod
    async def append_anomalies(
        self, session_id: str, anomalies: list[AnomalyRecord]
    ) -> None:
        """Append anomalies to the session's anomaly list."""
        ...

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        course_id: str | None = None,
    ) -> list[WritingSession]:
        """List a user's sessions that started in [start, end)."""
        ...


class DocumentStore(ABC):
    """Documents, their persisted versions and their AI-risk results."""

    @abstractmethod
    async def get_document(self, document_id: str) -> DocumentRecord | None:
        """Get the current document, or None if unknown."""
        ...

    @abstractmethod
    async def get_recent_versions(
        self, document_id: str, limit: int = 2
    ) -> list[DocumentVersion]:
        """Get the most recent versions, newest first."""
        ...

    @abstractmethod
    async def save_assessment(self, record: AIDetectionRecord) -> None:
        """Store the latest AI-risk result on the document."""
        ...


class SubmissionStore(ABC):
    """Read-only access to submissions and course enrollment."""

    @abstractmethod
    async def list_for_student(
        self,
        user_id: str,
        since: datetime,
        course_id: str | None = None,
    ) -> list[Submission]:
        """List submissions the student authored or collaborates on,
        saved at or after ``since``."""
        ...

    @abstractmethod
    async def list_active_students(self, course_id: str) -> list[str]:
        """List student IDs with an active enrollment in the course."""
        ...

    @abstractmethod
    async def list_recent_contents(self, user_id: str, limit: int) -> list[str]:
        """Get the text of the student's most recent submissions."""
        ...


class IntegrityStore(ABC):
    """AI-usage declarations, integrity profiles and education plans."""

    @abstractmethod
    async def get_declaration(
        self, student_id: str, document_id: str
    ) -> AIUsageDeclaration | None:
        """Get the student's declaration for a document, if any."""
        ...

    @abstractmethod
    async def save_declaration(self, declaration: AIUsageDeclaration) -> None:
        """Persist a declaration, replacing any earlier one."""
        ...

    @abstractmethod
    async def get_profile(self, student_id: str) -> IntegrityProfile | None:
        """Get the student's integrity profile, if one exists."""
        ...

    @abstractmethod
    async def save_profile(self, profile: IntegrityProfile) -> None:
        """Persist an integrity profile, replacing any earlier one."""
        ...

    @abstractmethod
    async def save_plan(self, plan: IntegrityEducationPlan) -> None:
        """Persist the student's current education plan."""
        ...


class BaselineStore(ABC):
    """Cache of computed writing baselines."""

    @abstractmethod
    async def get(self, student_id: str) -> WritingBaseline | None:
        """Get the stored baseline for a student."""
        ...

    @abstractmethod
    async def save(self, baseline: WritingBaseline) -> None:
        """Store a baseline, replacing any earlier one."""
        ...


class ProfileSink(ABC):
    """Write-only sink for the student behavior profile."""

    @abstractmethod
    async def update_real_time_state(self, metrics: RealTimeWritingMetrics) -> None:
        """Forward real-time writing metrics to the profile owner."""
        ...


# =============================================================================
# In-memory implementations
# =============================================================================


class InMemorySessionStore(SessionStore):
    """Dictionary-backed session store."""

    def __init__(self, sessions: list[WritingSession] | None = None) -> None:
        self._sessions: dict[str, WritingSession] = {}
        for session in sessions or []:
            self.add(session)

    def add(self, session: WritingSession) -> WritingSession:
        """Register a session (used when a student opens a document)."""
        self._sessions[session.id] = session
        return session

    async def get(self, session_id: str) -> WritingSession | None:
        return self._sessions.get(session_id)

    async def apply_activity(
        self, session_id: str, update: WritingSessionUpdate
    ) -> WritingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        session.chars_added += update.chars_added
        session.chars_deleted += update.chars_deleted
        session.words_added += update.words_added
        session.words_deleted += update.words_deleted
        session.copy_paste_count += update.copy_paste_events
        session.bulk_additions += update.bulk_text_additions
        session.pause_durations.extend(update.pause_durations)
        session.bulk_addition_history.extend(update.bulk_addition_sizes)
        session.duration_minutes += update.duration
        session.last_activity = update.last_activity
        return session

    async def mark_style_check(self, session_id: str, checked_at: datetime) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.last_style_check = checked_at

    async def append_anomalies(
        self, session_id: str, anomalies: list[AnomalyRecord]
    ) -> None:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.anomalies.extend(anomalies)

    async def list_for_user(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        course_id: str | None = None,
    ) -> list[WritingSession]:
        return [
            s
            for s in self._sessions.values()
            if s.user_id == user_id
            and ensure_utc(start) <= ensure_utc(s.start_time) < ensure_utc(end)
            and (course_id is None or s.course_id == course_id)
        ]


class InMemoryDocumentStore(DocumentStore):
    """Dictionary-backed document and version store."""

    def __init__(self) -> None:
        self._documents: dict[str, DocumentRecord] = {}
        self._versions: dict[str, list[DocumentVersion]] = defaultdict(list)
        self._assessments: dict[str, AIDetectionRecord] = {}

    def add_document(self, document: DocumentRecord) -> DocumentRecord:
        """Register a document."""
        self._documents[document.id] = document
        return document

    def add_version(self, document_id: str, content: str, created_at: datetime) -> DocumentVersion:
        """Append a new version and make it the document's current content."""
        versions = self._versions[document_id]
        version = DocumentVersion(
            document_id=document_id,
            version=len(versions) + 1,
            content=content,
            created_at=created_at,
        )
        versions.append(version)
        if document_id in self._documents:
            self._documents[document_id] = replace(self._documents[document_id], content=content)
        return version

    async def get_document(self, document_id: str) -> DocumentRecord | None:
        return self._documents.get(document_id)

    async def get_recent_versions(
        self, document_id: str, limit: int = 2
    ) -> list[DocumentVersion]:
        versions = sorted(
            self._versions.get(document_id, []),
            key=lambda v: v.version,
            reverse=True,
        )
        return versions[:limit]

    async def save_assessment(self, record: AIDetectionRecord) -> None:
        self._assessments[record.document_id] = record

    def assessment_for(self, document_id: str) -> AIDetectionRecord | None:
        """Get the stored AI-risk result of a document."""
        return self._assessments.get(document_id)


class InMemorySubmissionStore(SubmissionStore):
    """List-backed submission and enrollment store."""

    def __init__(self) -> None:
        self._submissions: list[Submission] = []
        self._enrollments: dict[str, list[str]] = defaultdict(list)
        self._contents: dict[str, list[str]] = defaultdict(list)

    def add_submission(self, submission: Submission, content: str | None = None) -> Submission:
        """Register a submission, optionally with its text for baselines."""
        self._submissions.append(submission)
        if content is not None:
            self._contents[submission.author_id].append(content)
        return submission

    def enroll(self, course_id: str, student_id: str) -> None:
        """Add an active enrollment."""
        self._enrollments[course_id].append(student_id)

    async def list_for_student(
        self,
        user_id: str,
        since: datetime,
        course_id: str | None = None,
    ) -> list[Submission]:
        return [
            s
            for s in self._submissions
            if s.involves(user_id)
            and ensure_utc(s.last_saved_at) >= ensure_utc(since)
            and (course_id is None or s.course_id == course_id)
        ]

    async def list_active_students(self, course_id: str) -> list[str]:
        return list(self._enrollments.get(course_id, []))

    async def list_recent_contents(self, user_id: str, limit: int) -> list[str]:
        return list(reversed(self._contents.get(user_id, [])))[:limit]


class InMemoryIntegrityStore(IntegrityStore):
    """Dictionary-backed declaration store keyed by (student, document)."""

    def __init__(self) -> None:
        self._declarations: dict[tuple[str, str], AIUsageDeclaration] = {}
        self._profiles: dict[str, IntegrityProfile] = {}
        self.plans: dict[str, IntegrityEducationPlan] = {}

    async def get_declaration(
        self, student_id: str, document_id: str
    ) -> AIUsageDeclaration | None:
        return self._declarations.get((student_id, document_id))

    async def save_declaration(self, declaration: AIUsageDeclaration) -> None:
        key = (declaration.student_id, declaration.document_id)
        self._declarations[key] = declaration

    async def get_profile(self, student_id: str) -> IntegrityProfile | None:
        return self._profiles.get(student_id)

    async def save_profile(self, profile: IntegrityProfile) -> None:
        self._profiles[profile.student_id] = profile

    async def save_plan(self, plan: IntegrityEducationPlan) -> None:
        self.plans[plan.student_id] = plan


class InMemoryBaselineStore(BaselineStore):
    """Dictionary-backed baseline cache."""

    def __init__(self) -> None:
        self._baselines: dict[str, WritingBaseline] = {}

    async def get(self, student_id: str) -> WritingBaseline | None:
        return self._baselines.get(student_id)

    async def save(self, baseline: WritingBaseline) -> None:
        self._baselines[baseline.student_id] = baseline


class InMemoryProfileSink(ProfileSink):
    """Records every forwarded metrics update in arrival order; used in tests."""

    def __init__(self) -> None:
        self.updates: list[RealTimeWritingMetrics] = []

    async def update_real_time_state(self, metrics: RealTimeWritingMetrics) -> None:
        self.updates.append(metrics)
