# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for instructor session summaries."""

from datetime import datetime, timezone

import pytest

from src.core.writing.models import AnomalyRecord, AnomalySeverity, AnomalyType
from src.core.writing.summary import WritingBehavior, summarize_session

WHEN = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def style_change() -> AnomalyRecord:
    return AnomalyRecord(
        type=AnomalyType.STYLE_CHANGE,
        severity=AnomalySeverity.HIGH,
        description="Significant writing style change detected",
        timestamp=WHEN,
        requires_review=True,
    )


class TestSummarizeSession:
    """Tests for summarize_session."""

    @pytest.mark.parametrize(
        ("chars_deleted", "behavior"),
        [
            (600, WritingBehavior.HEAVY_REVISION),
            (500, WritingBehavior.MODERATE_REVISION),
            (300, WritingBehavior.MODERATE_REVISION),
            (200, WritingBehavior.LINEAR_WRITING),
        ],
    )
    def test_writing_behavior(self, make_session, chars_deleted, behavior) -> None:
        """Test the revision bands over 1000 added characters."""
        session = make_session(chars_added=1000, chars_deleted=chars_deleted)

        assert summarize_session(session).writing_behavior == behavior

    def test_clean_session(self, make_session) -> None:
        """Test a session with no indicators or actions."""
        summary = summarize_session(make_session(chars_added=1000, chars_deleted=100))

        assert summary.session_id == "session-1"
        assert summary.anomaly_count == 0
        assert summary.ai_risk_indicators == []
        assert summary.recommended_actions == []

    def test_two_indicators_do_not_trigger_review(self, make_session) -> None:
        """Test that review needs more than two indicators."""
        session = make_session(chars_added=1000, copy_paste_count=6, bulk_additions=3)

        summary = summarize_session(session)

        assert summary.ai_risk_indicators == ["frequent-copy-paste", "bulk-text-additions"]
        assert summary.recommended_actions == []

    def test_all_indicators_recommend_review(self, make_session) -> None:
        """Test the authenticity review recommendation."""
        session = make_session(
            chars_added=1000,
            copy_paste_count=6,
            bulk_additions=3,
            anomalies=[style_change()],
        )

        summary = summarize_session(session)

        assert summary.ai_risk_indicators == [
            "frequent-copy-paste",
            "bulk-text-additions",
            "style-inconsistency",
        ]
        assert summary.anomaly_count == 1
        assert summary.recommended_actions[0] == "Review submission for authenticity"

    def test_struggling_student_gets_support(self, make_session) -> None:
        """Test that very heavy deletion suggests checking in."""
        summary = summarize_session(make_session(chars_added=1000, chars_deleted=800))

        assert summary.recommended_actions == [
            "Check in with student about assignment clarity",
            "Offer additional writing support",
        ]

    def test_to_dict(self, make_session) -> None:
        data = summarize_session(make_session(chars_added=100, chars_deleted=60)).to_dict()

        assert data["writing_behavior"] == "heavy-revision"
        assert data["anomaly_count"] == 0
