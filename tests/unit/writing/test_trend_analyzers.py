# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for longitudinal trend analyzers."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from src.core.writing.alerts import AlertSeverity, InterventionType, TrendDirection
from src.core.writing.config import TrendThresholds
from src.core.writing.errors import CollaboratorUnavailableError, TrendAnalysisError
from src.core.writing.models import ContributorStat
from src.core.writing.trends import (
    BaseTrendAnalyzer,
    CollaborationAnalyzer,
    ProcrastinationAnalyzer,
    ProductivityAnalyzer,
    QualityAnalyzer,
    TimeManagementAnalyzer,
    TrendAnalyzer,
    TrendInputs,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def thresholds() -> TrendThresholds:
    return TrendThresholds()


def inputs(sessions=(), prior_sessions=(), submissions=(), course_id="course-1") -> TrendInputs:
    return TrendInputs(
        user_id="student-1",
        course_id=course_id,
        timeframe_days=7,
        window_start=NOW - timedelta(days=7),
        now=NOW,
        sessions=list(sessions),
        prior_sessions=list(prior_sessions),
        submissions=list(submissions),
    )


class TestProductivityAnalyzer:
    """Tests for ProductivityAnalyzer."""

    @pytest.mark.asyncio
    async def test_no_sessions(self, thresholds) -> None:
        """Test that a window without sessions reports inactivity."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(inputs())

        assert len(alerts) == 1
        assert alerts[0].alert_type == InterventionType.NO_RECENT_ACTIVITY
        assert alerts[0].severity == AlertSeverity.WARNING
        assert "7 days" in alerts[0].message
        assert alerts[0].context.course_id == "course-1"

    @pytest.mark.asyncio
    async def test_sharp_low_decline(self, thresholds, make_session) -> None:
        """Test a 90% decline down to a low word count."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(
            inputs(
                sessions=[make_session(words_added=100, duration_minutes=30)],
                prior_sessions=[make_session("old", words_added=1000)],
            )
        )

        assert [a.alert_type for a in alerts] == [InterventionType.WRITING_PRODUCTIVITY_DECLINE]
        assert "decreased by 90%" in alerts[0].message
        assert alerts[0].metrics.previous_value == 1000
        assert alerts[0].metrics.trend == TrendDirection.DECLINING

    @pytest.mark.asyncio
    async def test_decline_boundary_is_inclusive(self, thresholds, make_session) -> None:
        """Test that exactly 40% decline below the floor is reported."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(
            inputs(
                sessions=[make_session(words_added=180, duration_minutes=30)],
                prior_sessions=[make_session("old", words_added=300)],
            )
        )

        assert [a.alert_type for a in alerts] == [InterventionType.WRITING_PRODUCTIVITY_DECLINE]

    @pytest.mark.asyncio
    async def test_decline_needs_low_output(self, thresholds, make_session) -> None:
        """Test that a relative drop alone is not enough."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(
            inputs(
                sessions=[make_session(words_added=250, duration_minutes=30)],
                prior_sessions=[make_session("old", words_added=1000)],
            )
        )

        assert alerts == []

    @pytest.mark.asyncio
    async def test_decline_above_floor_is_ignored(self, thresholds, make_session) -> None:
        """Test a 45% decline that still leaves 550 words."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(
            inputs(
                sessions=[make_session(words_added=550, duration_minutes=30)],
                prior_sessions=[make_session("old", words_added=1000)],
            )
        )

        assert alerts == []

    @pytest.mark.asyncio
    async def test_low_output_for_effort(self, thresholds, make_session) -> None:
        """Test many minutes with few words per session."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(
            inputs(
                sessions=[
                    make_session("s-1", words_added=10, duration_minutes=80),
                    make_session("s-2", words_added=10, duration_minutes=70),
                ]
            )
        )

        assert [a.alert_type for a in alerts] == [InterventionType.WORD_COUNT_BELOW_EXPECTED]
        assert "2.5 hours" in alerts[0].message

    @pytest.mark.asyncio
    async def test_decline_takes_precedence_over_effort(self, thresholds, make_session) -> None:
        """Test that at most one productivity alert is emitted."""
        alerts = await ProductivityAnalyzer(thresholds).analyze(
            inputs(
                sessions=[
                    make_session("s-1", words_added=5, duration_minutes=100),
                    make_session("s-2", words_added=5, duration_minutes=100),
                ],
                prior_sessions=[make_session("old", words_added=1000)],
            )
        )

        assert [a.alert_type for a in alerts] == [InterventionType.WRITING_PRODUCTIVITY_DECLINE]


class TestProcrastinationAnalyzer:
    """Tests for ProcrastinationAnalyzer."""

    @pytest.mark.asyncio
    async def test_habitual_last_minute_starts(self, thresholds, make_submission) -> None:
        """Test that two of three last-minute starts are critical."""
        submissions = [
            make_submission("sub-1", due_date=NOW - timedelta(days=2) + timedelta(hours=12)),
            make_submission("sub-2", due_date=NOW - timedelta(days=2) + timedelta(hours=24)),
            make_submission("sub-3", due_date=NOW + timedelta(days=3)),
        ]

        alerts = await ProcrastinationAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert len(alerts) == 1
        assert alerts[0].alert_type == InterventionType.ASSIGNMENT_PROCRASTINATION
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert "(2 out of 3 assignments)" in alerts[0].message
        assert alerts[0].metrics.trend == TrendDirection.STABLE

    @pytest.mark.asyncio
    async def test_needs_two_submissions(self, thresholds, make_submission) -> None:
        """Test that one late start is not a pattern."""
        submission = make_submission(due_date=NOW - timedelta(days=2) + timedelta(hours=1))

        alerts = await ProcrastinationAnalyzer(thresholds).analyze(inputs(submissions=[submission]))

        assert alerts == []

    @pytest.mark.asyncio
    async def test_undated_submissions_count_in_denominator(
        self, thresholds, make_submission
    ) -> None:
        """Test that submissions without a due date dilute the rate."""
        submissions = [
            make_submission("sub-1", due_date=NOW - timedelta(days=2) + timedelta(hours=1)),
            make_submission("sub-2", due_date=NOW - timedelta(days=2) + timedelta(hours=1)),
            make_submission("sub-3"),
            make_submission("sub-4"),
        ]

        alerts = await ProcrastinationAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert alerts == []

    @pytest.mark.asyncio
    async def test_severe_rate_is_declining(self, thresholds, make_submission) -> None:
        """Test that a rate above 80% is reported as declining."""
        due = NOW - timedelta(days=2) + timedelta(hours=2)
        submissions = [make_submission(f"sub-{i}", due_date=due) for i in range(3)]

        alerts = await ProcrastinationAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert alerts[0].metrics.current_value == pytest.approx(100)
        assert alerts[0].metrics.trend == TrendDirection.DECLINING


def group_submission(make_submission, own_words: int, other_words: list[int], **kwargs):
    stats = [ContributorStat("student-1", own_words)] + [
        ContributorStat(f"peer-{i}", words) for i, words in enumerate(other_words)
    ]
    return make_submission(
        author_id="peer-0",
        is_collaborative=True,
        collaborator_ids=["student-1"],
        contributor_stats=stats,
        **kwargs,
    )


class TestCollaborationAnalyzer:
    """Tests for CollaborationAnalyzer."""

    @pytest.mark.asyncio
    async def test_low_participation(self, thresholds, make_submission) -> None:
        """Test a share below half of an even split."""
        submission = group_submission(make_submission, 10, [100, 100])

        alerts = await CollaborationAnalyzer(thresholds).analyze(inputs(submissions=[submission]))

        assert len(alerts) == 1
        assert alerts[0].alert_type == InterventionType.LOW_COLLABORATION_PARTICIPATION
        assert alerts[0].severity == AlertSeverity.WARNING
        assert alerts[0].context.submission_id == "sub-1"
        assert "(expected ~33%)" in alerts[0].message

    @pytest.mark.asyncio
    async def test_over_contribution(self, thresholds, make_submission) -> None:
        """Test a share far above an even split."""
        submission = group_submission(make_submission, 300, [50, 50])

        alerts = await CollaborationAnalyzer(thresholds).analyze(inputs(submissions=[submission]))

        assert alerts[0].alert_type == InterventionType.COLLABORATION_IMBALANCE
        assert alerts[0].severity == AlertSeverity.INFO
        assert alerts[0].metrics.current_value == pytest.approx(75)

    @pytest.mark.asyncio
    async def test_even_split_is_fine(self, thresholds, make_submission) -> None:
        submission = group_submission(make_submission, 100, [100, 100])

        alerts = await CollaborationAnalyzer(thresholds).analyze(inputs(submissions=[submission]))

        assert alerts == []

    @pytest.mark.asyncio
    async def test_skips_unusable_submissions(self, thresholds, make_submission) -> None:
        """Test that solo, unattributed and empty submissions are skipped."""
        submissions = [
            make_submission("solo"),
            make_submission(
                "unattributed",
                is_collaborative=True,
                contributor_stats=[ContributorStat("peer-0", 100)],
            ),
            group_submission(make_submission, 0, [0], submission_id="empty"),
        ]

        alerts = await CollaborationAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert alerts == []

    @pytest.mark.asyncio
    async def test_one_alert_per_submission(self, thresholds, make_submission) -> None:
        """Test that every imbalanced submission is reported separately."""
        submissions = [
            group_submission(make_submission, 10, [100, 100], submission_id="sub-1"),
            group_submission(make_submission, 5, [100], submission_id="sub-2"),
        ]

        alerts = await CollaborationAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert [a.context.submission_id for a in alerts] == ["sub-1", "sub-2"]


class TestQualityAnalyzer:
    """Tests for QualityAnalyzer."""

    @pytest.mark.asyncio
    async def test_frequent_deletions(self, thresholds, make_session) -> None:
        """Test that deleting most of the written words is reported."""
        alerts = await QualityAnalyzer(thresholds).analyze(
            inputs(sessions=[make_session(words_added=200, words_deleted=170)])
        )

        assert len(alerts) == 1
        assert alerts[0].alert_type == InterventionType.FREQUENT_DELETIONS
        assert alerts[0].severity == AlertSeverity.INFO
        assert "deleting 85%" in alerts[0].message

    @pytest.mark.asyncio
    async def test_needs_enough_deleted_words(self, thresholds, make_session) -> None:
        """Test that high ratios over few words are ignored."""
        alerts = await QualityAnalyzer(thresholds).analyze(
            inputs(sessions=[make_session(words_added=100, words_deleted=90)])
        )

        assert alerts == []

    @pytest.mark.asyncio
    async def test_no_words_added(self, thresholds, make_session) -> None:
        assert await QualityAnalyzer(thresholds).analyze(inputs(sessions=[make_session()])) == []


class TestTimeManagementAnalyzer:
    """Tests for TimeManagementAnalyzer."""

    @pytest.mark.asyncio
    async def test_deadline_crunch(self, thresholds, make_submission) -> None:
        """Test several near deadlines with little written."""
        submissions = [
            make_submission("sub-1", due_date=NOW + timedelta(days=1), word_count=50),
            make_submission("sub-2", due_date=NOW + timedelta(days=2), word_count=0),
        ]

        alerts = await TimeManagementAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert len(alerts) == 1
        assert alerts[0].alert_type == InterventionType.TIME_MANAGEMENT_ISSUE
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert alerts[0].deadline == NOW + timedelta(hours=24)
        assert "2 assignments due within 3 days" in alerts[0].message

    @pytest.mark.asyncio
    async def test_ignores_past_far_and_progressing(self, thresholds, make_submission) -> None:
        """Test that only future, near and short submissions count."""
        submissions = [
            make_submission("past", due_date=NOW - timedelta(hours=1), word_count=0),
            make_submission("far", due_date=NOW + timedelta(days=5), word_count=0),
            make_submission("done", due_date=NOW + timedelta(days=1), word_count=800),
            make_submission("near", due_date=NOW + timedelta(days=1), word_count=10),
        ]

        alerts = await TimeManagementAnalyzer(thresholds).analyze(inputs(submissions=submissions))

        assert alerts == []


class FailingAnalyzer(BaseTrendAnalyzer):
    """Analyzer that always fails."""

    @property
    def name(self) -> str:
        return "failing"

    @property
    def alert_types(self) -> tuple[InterventionType, ...]:
        return ()

    async def analyze(self, inputs: TrendInputs):
        raise RuntimeError("analyzer bug")


class TestTrendAnalyzer:
    """Tests for the per-student TrendAnalyzer."""

    @pytest.mark.asyncio
    async def test_inactive_student(
        self, thresholds, session_store, submission_store, clock
    ) -> None:
        """Test that a student with no history gets only the inactivity alert."""
        analyzer = TrendAnalyzer.default(thresholds, session_store, submission_store, clock=clock)

        alerts = await analyzer.analyze("student-1", "course-1")

        assert [a.alert_type for a in alerts] == [InterventionType.NO_RECENT_ACTIVITY]

    @pytest.mark.asyncio
    async def test_windows_split_by_start_time(
        self, thresholds, session_store, submission_store, make_session, clock
    ) -> None:
        """Test that sessions fall into the current or prior window by start time."""
        for session_id, words, age in (("recent", 50, 1), ("earlier", 900, 10)):
            session_store.add(
                make_session(
                    session_id,
                    course_id="course-1",
                    words_added=words,
                    start_time=NOW - timedelta(days=age),
                )
            )
        analyzer = TrendAnalyzer.default(thresholds, session_store, submission_store, clock=clock)

        alerts = await analyzer.analyze("student-1", "course-1", timeframe_days=7)

        assert [a.alert_type for a in alerts] == [InterventionType.WRITING_PRODUCTIVITY_DECLINE]

    @pytest.mark.asyncio
    async def test_course_filter(
        self, thresholds, session_store, submission_store, make_session, clock
    ) -> None:
        """Test that sessions in other courses are not counted."""
        session_store.add(make_session(course_id="course-2", words_added=300))
        analyzer = TrendAnalyzer.default(thresholds, session_store, submission_store, clock=clock)

        alerts = await analyzer.analyze("student-1", "course-1")

        assert [a.alert_type for a in alerts] == [InterventionType.NO_RECENT_ACTIVITY]

    @pytest.mark.asyncio
    async def test_analyzer_failure_fails_scan(
        self, thresholds, session_store, submission_store, clock
    ) -> None:
        """Test that one failing analyzer fails the whole scan."""
        analyzer = TrendAnalyzer(
            session_store,
            submission_store,
            [ProductivityAnalyzer(thresholds), FailingAnalyzer(thresholds)],
            clock=clock,
        )

        with pytest.raises(TrendAnalysisError) as exc_info:
            await analyzer.analyze("student-1")

        assert exc_info.value.student_id == "student-1"
        assert isinstance(exc_info.value.original_error, RuntimeError)

    @pytest.mark.asyncio
    async def test_store_failure_fails_scan(self, thresholds, submission_store, clock) -> None:
        """Test that a session store outage becomes a trend analysis error."""
        sessions = AsyncMock()
        sessions.list_for_user.side_effect = ConnectionError("connection refused")
        analyzer = TrendAnalyzer.default(thresholds, sessions, submission_store, clock=clock)

        with pytest.raises(TrendAnalysisError) as exc_info:
            await analyzer.analyze("student-1")

        assert isinstance(exc_info.value.original_error, CollaboratorUnavailableError)
