# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Writing productivity trends.

Emits at most one alert, checked in order:
1. no sessions at all in the window
2. output declined sharply versus the prior window AND is low in absolute terms
3. lots of time spent for very few words per session
"""

from src.core.writing.alerts import (
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
    TrendDirection,
)
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs


class ProductivityAnalyzer(BaseTrendAnalyzer):
    """Detects inactivity, productivity decline and low output for effort."""

    @property
    def name(self) -> str:
        return "productivity"

    @property
    def alert_types(self) -> tuple[InterventionType, ...]:
        return (
            InterventionType.NO_RECENT_ACTIVITY,
            InterventionType.WRITING_PRODUCTIVITY_DECLINE,
            InterventionType.WORD_COUNT_BELOW_EXPECTED,
        )

    async def analyze(self, inputs: TrendInputs) -> list[InterventionAlert]:
        if not inputs.sessions:
            return [self._no_activity(inputs)]

        alert = self._check_decline(inputs) or self._check_effort(inputs)
        return [alert] if alert else []

    def _no_activity(self, inputs: TrendInputs) -> InterventionAlert:
        return self.create_alert(
            inputs,
            alert_type=InterventionType.NO_RECENT_ACTIVITY,
            severity=AlertSeverity.WARNING,
            title="No Recent Writing Activity",
            message=(
                "Student has not engaged in any writing activities for "
                f"{inputs.timeframe_days} days."
            ),
            suggested_actions=[
                "Schedule one-on-one check-in meeting",
                "Send encouraging message with assignment reminders",
                "Provide writing support resources",
                "Consider extending deadlines if appropriate",
            ],
            metrics=AlertMetrics(
                current_value=0,
                threshold=1,
                trend=TrendDirection.DECLINING,
            ),
        )

    def _check_decline(self, inputs: TrendInputs) -> InterventionAlert | None:
        """Both the relative decline and the absolute floor must hold.

        No prior sessions, or no prior words, means there is nothing to
        compare against.
        """
        prior_words = sum(s.words_added for s in inputs.prior_sessions)
        if prior_words <= 0:
            return None

        current_words = sum(s.words_added for s in inputs.sessions)
        decline = (prior_words - current_words) / prior_words * 100

        if (
            decline < self.thresholds.productivity_decline_percent
            or current_words >= self.thresholds.productivity_floor_words
        ):
            return None

        self.logger.debug(
            "Student %s: %d words vs %d prior (%.0f%% decline)",
            inputs.user_id,
            current_words,
            prior_words,
            decline,
        )
        return self.create_alert(
            inputs,
            alert_type=InterventionType.WRITING_PRODUCTIVITY_DECLINE,
            severity=AlertSeverity.WARNING,
            title="Writing Productivity Declining",
            message=(
                f"Student's writing output has decreased by {round(decline)}% compared "
                f"to the previous {inputs.timeframe_days} days."
            ),
            suggested_actions=[
                "Schedule writing conference to understand barriers",
                "Break assignments into smaller, manageable chunks",
                "Provide writing process scaffolding",
                "Recommend time management strategies",
            ],
            metrics=AlertMetrics(
                current_value=current_words,
                previous_value=prior_words,
                threshold=prior_words * (1 - self.thresholds.productivity_decline_percent / 100),
                trend=TrendDirection.DECLINING,
            ),
        )

    def _check_effort(self, inputs: TrendInputs) -> InterventionAlert | None:
        total_minutes = sum(s.duration_minutes for s in inputs.sessions)
        avg_words = sum(s.words_added for s in inputs.sessions) / len(inputs.sessions)

        if (
            total_minutes <= self.thresholds.effort_minutes
            or avg_words >= self.thresholds.effort_min_avg_words
        ):
            return None

        return self.create_alert(
            inputs,
            alert_type=InterventionType.WORD_COUNT_BELOW_EXPECTED,
            severity=AlertSeverity.WARNING,
            title="Low Writing Output Despite Time Investment",
            message=(
                "Student is spending significant time writing "
                f"({round(total_minutes / 60, 1)} hours) but producing few words "
                f"({round(avg_words)} per session)."
            ),
            suggested_actions=[
                "Investigate potential writing blocks or anxiety",
                "Provide pre-writing strategies and outlining tools",
                "Consider alternative assignment formats",
                "Offer writing center resources",
            ],
            metrics=AlertMetrics(
                current_value=avg_words,
                threshold=self.thresholds.effort_min_avg_words,
                trend=TrendDirection.STABLE,
            ),
        )
