# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- In-memory collaborators (stores, notification sink)
- A controllable clock
- A writing analysis service wired to both
- Factories for sessions, documents and submissions
"""

import os

# Background actors must bind to the stub broker, never to Redis
os.environ.setdefault("DRAMATIQ_TEST_MODE", "true")

from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from src.core.config import clear_settings_cache
from src.core.writing.config import WritingAnalysisConfig, build_config
from src.core.writing.models import (
    DocumentRecord,
    Submission,
    WritingSession,
)
from src.core.writing.service import (
    WritingAnalysisService,
    configure_writing_analysis_service,
)
from src.core.writing.stores import (
    InMemoryBaselineStore,
    InMemoryDocumentStore,
    InMemoryIntegrityStore,
    InMemoryProfileSink,
    InMemorySessionStore,
    InMemorySubmissionStore,
)
from src.infrastructure.notifications import InMemoryNotificationSink

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Provide a clock fixed at NOW."""
    return FakeClock()


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def fresh_settings() -> Generator[None, None, None]:
    """Clear the settings cache before and after a test that patches env."""
    clear_settings_cache()
    yield
    clear_settings_cache()


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def analysis_config() -> WritingAnalysisConfig:
    """Provide the default analysis policy, independent of YAML on disk."""
    return build_config()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def document_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def submission_store() -> InMemorySubmissionStore:
    return InMemorySubmissionStore()


@pytest.fixture
def integrity_store() -> InMemoryIntegrityStore:
    return InMemoryIntegrityStore()


@pytest.fixture
def baseline_store() -> InMemoryBaselineStore:
    return InMemoryBaselineStore()


@pytest.fixture
def notification_sink() -> InMemoryNotificationSink:
    return InMemoryNotificationSink()


@pytest.fixture
def profile_sink() -> InMemoryProfileSink:
    return InMemoryProfileSink()


@pytest.fixture
def service(
    session_store: InMemorySessionStore,
    document_store: InMemoryDocumentStore,
    submission_store: InMemorySubmissionStore,
    integrity_store: InMemoryIntegrityStore,
    baseline_store: InMemoryBaselineStore,
    notification_sink: InMemoryNotificationSink,
    profile_sink: InMemoryProfileSink,
    analysis_config: WritingAnalysisConfig,
    clock: FakeClock,
) -> WritingAnalysisService:
    """Provide a service wired to the in-memory collaborators."""
    return WritingAnalysisService(
        sessions=session_store,
        documents=document_store,
        submissions=submission_store,
        integrity_store=integrity_store,
        baselines=baseline_store,
        notifications=notification_sink,
        profiles=profile_sink,
        config=analysis_config,
        clock=clock,
    )


@pytest.fixture
def configured_service(
    service: WritingAnalysisService,
) -> Generator[WritingAnalysisService, None, None]:
    """Install the service as the process-wide instance for the test."""
    configure_writing_analysis_service(service)
    yield service
    configure_writing_analysis_service(None)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_session() -> Callable[..., WritingSession]:
    """Factory for writing sessions with sensible defaults."""

    def _make(
        session_id: str = "session-1",
        user_id: str = "student-1",
        document_id: str = "doc-1",
        start_time: datetime | None = None,
        **kwargs: Any,
    ) -> WritingSession:
        return WritingSession(
            id=session_id,
            user_id=user_id,
            document_id=document_id,
            start_time=start_time or NOW - timedelta(hours=1),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_document() -> Callable[..., DocumentRecord]:
    """Factory for documents with sensible defaults."""

    def _make(
        document_id: str = "doc-1",
        author_id: str = "student-1",
        content: str = "",
        **kwargs: Any,
    ) -> DocumentRecord:
        kwargs.setdefault("course_id", "course-1")
        kwargs.setdefault("assignment_id", "assignment-1")
        kwargs.setdefault("assignment_title", "Persuasive Essay")
        kwargs.setdefault("instructor_id", "teacher-1")
        return DocumentRecord(id=document_id, author_id=author_id, content=content, **kwargs)

    return _make


@pytest.fixture
def make_submission() -> Callable[..., Submission]:
    """Factory for submissions saved within the default window."""

    def _make(
        submission_id: str = "sub-1",
        author_id: str = "student-1",
        created_at: datetime | None = None,
        **kwargs: Any,
    ) -> Submission:
        kwargs.setdefault("assignment_id", f"assignment-{submission_id}")
        kwargs.setdefault("assignment_title", f"Assignment {submission_id}")
        kwargs.setdefault("course_id", "course-1")
        kwargs.setdefault("last_saved_at", NOW - timedelta(hours=2))
        return Submission(
            id=submission_id,
            author_id=author_id,
            created_at=created_at or NOW - timedelta(days=2),
            **kwargs,
        )

    return _make

