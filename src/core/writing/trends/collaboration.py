# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Collaboration balance trend."""

from src.core.writing.alerts import (
    AlertContext,
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
    TrendDirection,
)
from src.core.writing.models import Submission
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs


class CollaborationAnalyzer(BaseTrendAnalyzer):
    """Compares the student's share of each collaborative submission to an even split.

    Submissions without contribution stats for the student, or with no
    words at all, are skipped.
    """

    @property
    def name(self) -> str:
        return "collaboration"

    @property
    def alert_types(self) -> tuple[InterventionType, ...]:
        return (
            InterventionType.LOW_COLLABORATION_PARTICIPATION,
            InterventionType.COLLABORATION_IMBALANCE,
        )

    async def analyze(self, inputs: TrendInputs) -> list[InterventionAlert]:
        alerts: list[InterventionAlert] = []
        for submission in inputs.submissions:
            if not submission.is_collaborative:
                continue
            alert = self._check_submission(inputs, submission)
            if alert is not None:
                alerts.append(alert)
        return alerts

    def _check_submission(
        self, inputs: TrendInputs, submission: Submission
    ) -> InterventionAlert | None:
        own = next(
            (c for c in submission.contributor_stats if c.user_id == inputs.user_id),
            None,
        )
        total_words = sum(c.words_contributed for c in submission.contributor_stats)
        if own is None or total_words <= 0:
            return None

        share = own.words_contributed / total_words * 100
        expected = 100 / len(submission.contributor_stats)
        context = AlertContext(
            course_id=submission.course_id or inputs.course_id,
            assignment_id=submission.assignment_id,
            submission_id=submission.id,
        )

        low_threshold = expected * self.thresholds.under_participation_factor
        high_threshold = expected * self.thresholds.over_participation_factor

        if share < low_threshold:
            return self.create_alert(
                inputs,
                alert_type=InterventionType.LOW_COLLABORATION_PARTICIPATION,
                severity=AlertSeverity.WARNING,
                title="Low Collaboration Participation",
                message=(
                    f"Student contributed only {round(share)}% to collaborative "
                    f'assignment "{submission.assignment_title}" '
                    f"(expected ~{round(expected)}%)."
                ),
                suggested_actions=[
                    "Facilitate team meeting to discuss role distribution",
                    "Provide collaboration guidelines and expectations",
                    "Assign specific responsibilities to each team member",
                    "Check for interpersonal conflicts or technical barriers",
                ],
                metrics=AlertMetrics(
                    current_value=share,
                    threshold=low_threshold,
                    trend=TrendDirection.DECLINING,
                ),
                context=context,
            )

        if share > high_threshold:
            return self.create_alert(
                inputs,
                alert_type=InterventionType.COLLABORATION_IMBALANCE,
                severity=AlertSeverity.INFO,
                title="Collaboration Imbalance Detected",
                message=(
                    f"Student contributed {round(share)}% to collaborative assignment, "
                    "significantly more than teammates."
                ),
                suggested_actions=[
                    "Monitor for potential burnout or team conflicts",
                    "Encourage more equitable task distribution",
                    "Provide team communication strategies",
                    "Consider individual recognition for extra effort",
                ],
                metrics=AlertMetrics(
                    current_value=share,
                    threshold=high_threshold,
                    trend=TrendDirection.STABLE,
                ),
                context=context,
            )

        return None
