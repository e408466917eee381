# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Approaching-deadline crisis trend."""

from datetime import timedelta

from src.core.writing.alerts import (
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
    TrendDirection,
)
from src.core.writing.models import Submission
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs
from src.utils.datetime import ensure_utc


class TimeManagementAnalyzer(BaseTrendAnalyzer):
    """Flags several deadlines close together with little written for any of them.

    The alert carries an explicit response deadline, so the alert
    builder keeps it instead of the severity default.
    """

    @property
    def name(self) -> str:
        return "time_management"

    @property
    def alert_types(self) -> tuple[InterventionType, ...]:
        return (InterventionType.TIME_MANAGEMENT_ISSUE,)

    def is_at_risk(self, submission: Submission, inputs: TrendInputs) -> bool:
        """Due within the crisis window and still below the word floor."""
        if submission.due_date is None:
            return False
        remaining = ensure_utc(submission.due_date) - ensure_utc(inputs.now)  # type: ignore[operator]
        return (
            timedelta(0) < remaining <= timedelta(days=self.thresholds.crisis_window_days)
            and submission.word_count < self.thresholds.crisis_word_floor
        )

    async def analyze(self, inputs: TrendInputs) -> list[InterventionAlert]:
        at_risk = [s for s in inputs.submissions if self.is_at_risk(s, inputs)]
        if len(at_risk) < self.thresholds.crisis_min_submissions:
            return []

        return [
            self.create_alert(
                inputs,
                alert_type=InterventionType.TIME_MANAGEMENT_ISSUE,
                severity=AlertSeverity.CRITICAL,
                title="Multiple Deadlines Approaching with Minimal Progress",
                message=(
                    f"Student has {len(at_risk)} assignments due within "
                    f"{round(self.thresholds.crisis_window_days)} days with minimal "
                    f"progress (< {self.thresholds.crisis_word_floor} words each)."
                ),
                suggested_actions=[
                    "Schedule urgent academic support meeting",
                    "Help prioritize assignments by importance and time required",
                    "Consider deadline extensions if appropriate",
                    "Provide crisis time management strategies",
                    "Connect with academic advisor or counseling services",
                ],
                metrics=AlertMetrics(
                    current_value=len(at_risk),
                    threshold=1,
                    trend=TrendDirection.DECLINING,
                ),
                deadline=ensure_utc(inputs.now)
                + timedelta(hours=self.thresholds.crisis_response_hours),
            )
        ]
