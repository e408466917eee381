# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Per-student longitudinal trend scan.

Fetches the student's sessions and submissions once, then runs every
trend analyzer concurrently over the same inputs. A failure in any
analyzer fails the whole scan: there are no partial results.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from src.core.writing.alerts import InterventionAlert
from src.core.writing.config import TrendThresholds
from src.core.writing.errors import TrendAnalysisError, WritingAnalysisError
from src.core.writing.stores import SessionStore, SubmissionStore, collaborator_call
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs
from src.core.writing.trends.collaboration import CollaborationAnalyzer
from src.core.writing.trends.procrastination import ProcrastinationAnalyzer
from src.core.writing.trends.productivity import ProductivityAnalyzer
from src.core.writing.trends.quality import QualityAnalyzer
from src.core.writing.trends.time_management import TimeManagementAnalyzer
from src.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class TrendAnalyzer:
    """Runs all trend analyzers for one student.

    Attributes:
        sessions: Session store.
        submissions: Submission store.
        analyzers: Trend analyzers, run concurrently.
    """

    def __init__(
        self,
        sessions: SessionStore,
        submissions: SubmissionStore,
        analyzers: list[BaseTrendAnalyzer],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.sessions = sessions
        self.submissions = submissions
        self.analyzers = analyzers
        self._clock = clock

    @classmethod
    def default(
        cls,
        thresholds: TrendThresholds,
        sessions: SessionStore,
        submissions: SubmissionStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> "TrendAnalyzer":
        """Build a trend analyzer with the standard analyzer set."""
        return cls(
            sessions=sessions,
            submissions=submissions,
            analyzers=[
                ProductivityAnalyzer(thresholds),
                ProcrastinationAnalyzer(thresholds),
                CollaborationAnalyzer(thresholds),
                QualityAnalyzer(thresholds),
                TimeManagementAnalyzer(thresholds),
            ],
            clock=clock,
        )

    async def collect_inputs(
        self,
        user_id: str,
        course_id: str | None,
        timeframe_days: int,
        now: datetime,
    ) -> TrendInputs:
        """Fetch the current window, the prior window and recent submissions."""
        window = timedelta(days=timeframe_days)
        window_start = now - window
        prior_start = window_start - window

        with collaborator_call("session store"):
            sessions, prior_sessions = await asyncio.gather(
                self.sessions.list_for_user(user_id, window_start, now, course_id),
                self.sessions.list_for_user(user_id, prior_start, window_start, course_id),
            )
        with collaborator_call("submission store"):
            submissions = await self.submissions.list_for_student(
                user_id, window_start, course_id
            )

        return TrendInputs(
            user_id=user_id,
            course_id=course_id,
            timeframe_days=timeframe_days,
            window_start=window_start,
            now=now,
            sessions=sessions,
            prior_sessions=prior_sessions,
            submissions=submissions,
        )

    async def analyze(
        self,
        user_id: str,
        course_id: str | None = None,
        timeframe_days: int = 7,
        now: datetime | None = None,
    ) -> list[InterventionAlert]:
        """Scan one student's writing history.

        Args:
            user_id: Student to scan.
            course_id: Restrict to one course.
            timeframe_days: Length of the current window.
            now: End of the window, defaults to the clock.

        Returns:
            Alerts from all analyzers, in analyzer order.

        Raises:
            TrendAnalysisError: If fetching inputs or any analyzer fails.
        """
        now = ensure_utc(now) or self._clock()

        try:
            inputs = await self.collect_inputs(user_id, course_id, timeframe_days, now)
            results = await asyncio.gather(
                *(analyzer.analyze(inputs) for analyzer in self.analyzers)
            )
        except WritingAnalysisError as e:
            raise TrendAnalysisError(user_id, original_error=e) from e
        except Exception as e:
            logger.error("Trend analysis failed for student %s: %s", user_id, e, exc_info=True)
            raise TrendAnalysisError(user_id, original_error=e) from e

        alerts = [alert for batch in results for alert in batch]
        logger.info(
            "Trend analysis for student %s: %d sessions, %d submissions, %d alerts",
            user_id,
            len(inputs.sessions),
            len(inputs.submissions),
            len(alerts),
        )
        return alerts
