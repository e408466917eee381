# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assignment procrastination trend."""

from src.core.writing.alerts import (
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
    TrendDirection,
)
from src.core.writing.models import Submission
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs
from src.utils.datetime import hours_between

SEVERE_PROCRASTINATION_RATE = 0.8


class ProcrastinationAnalyzer(BaseTrendAnalyzer):
    """Detects a habit of starting assignments right before the deadline.

    The rate is last-minute starts over all submissions in the window,
    including those without a due date.
    """

    @property
    def name(self) -> str:
        return "procrastination"

    @property
    def alert_types(self) -> tuple[InterventionType, ...]:
        return (InterventionType.ASSIGNMENT_PROCRASTINATION,)

    def is_last_minute(self, submission: Submission) -> bool:
        """Started within the last-minute window before its due date."""
        if submission.due_date is None:
            return False
        lead_hours = hours_between(submission.created_at, submission.due_date)
        return lead_hours <= self.thresholds.last_minute_hours

    async def analyze(self, inputs: TrendInputs) -> list[InterventionAlert]:
        total = len(inputs.submissions)
        if total < self.thresholds.procrastination_min_submissions:
            return []

        last_minute = sum(1 for s in inputs.submissions if self.is_last_minute(s))
        rate = last_minute / total
        if rate < self.thresholds.procrastination_rate:
            return []

        return [
            self.create_alert(
                inputs,
                alert_type=InterventionType.ASSIGNMENT_PROCRASTINATION,
                severity=AlertSeverity.CRITICAL,
                title="Consistent Assignment Procrastination",
                message=(
                    "Student consistently starts assignments within "
                    f"{round(self.thresholds.last_minute_hours)} hours of the deadline "
                    f"({last_minute} out of {total} assignments)."
                ),
                suggested_actions=[
                    "Implement milestone check-ins and interim deadlines",
                    "Teach time management and planning strategies",
                    "Create assignment timeline templates",
                    "Set up automated progress reminders",
                    "Consider anxiety assessment if pattern persists",
                ],
                metrics=AlertMetrics(
                    current_value=rate * 100,
                    threshold=self.thresholds.procrastination_rate * 100,
                    trend=(
                        TrendDirection.DECLINING
                        if rate > SEVERE_PROCRASTINATION_RATE
                        else TrendDirection.STABLE
                    ),
                ),
            )
        ]
