# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the writing analysis pipeline.

Failures fall into three groups:
- Input errors (malformed update, unknown session or document). These
  are rejected synchronously and never retried.
- Collaborator errors (a store read or write failed). The triggering
  call fails; a course-wide scan isolates them per student.
- Trend analysis errors wrapping either of the above for one student.

Insufficient history is never an error; analyzers report no finding.
"""


class WritingAnalysisError(Exception):
    """Base exception for writing analysis operations."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class InvalidSessionUpdateError(WritingAnalysisError):
    """Raised when a raw session update fails validation."""


class SessionNotFoundError(WritingAnalysisError):
    """Raised when an update references a session the store does not know."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Writing session not found: {session_id}")


class DocumentNotFoundError(WritingAnalysisError):
    """Raised when a document referenced by an analysis does not exist."""

    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class CollaboratorUnavailableError(WritingAnalysisError):
    """Raised when a persistence collaborator fails unexpectedly."""


class TrendAnalysisError(WritingAnalysisError):
    """Raised when a single student's longitudinal scan fails."""

    def __init__(
        self,
        student_id: str,
        original_error: Exception | None = None,
    ):
        self.student_id = student_id
        super().__init__(
            f"Trend analysis failed for student {student_id}",
            original_error,
        )
