# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Revision quality trend."""

from src.core.writing.alerts import (
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
    TrendDirection,
)
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs


class QualityAnalyzer(BaseTrendAnalyzer):
    """Flags students who delete most of what they write."""

    @property
    def name(self) -> str:
        return "quality"

    @property
    def alert_types(self) -> tuple[InterventionType, ...]:
        return (InterventionType.FREQUENT_DELETIONS,)

    async def analyze(self, inputs: TrendInputs) -> list[InterventionAlert]:
        words_added = sum(s.words_added for s in inputs.sessions)
        words_deleted = sum(s.words_deleted for s in inputs.sessions)
        if words_added <= 0:
            return []

        ratio = words_deleted / words_added
        if ratio <= self.thresholds.deletion_ratio or words_deleted <= self.thresholds.deletion_min_words:
            return []

        return [
            self.create_alert(
                inputs,
                alert_type=InterventionType.FREQUENT_DELETIONS,
                severity=AlertSeverity.INFO,
                title="High Revision Activity Detected",
                message=(
                    f"Student is deleting {round(ratio * 100)}% of written content, "
                    "suggesting potential writing confidence or quality concerns."
                ),
                suggested_actions=[
                    "Encourage freewriting and first-draft completion",
                    "Provide revision strategies focused on content before editing",
                    "Offer writing confidence building exercises",
                    "Suggest outlining before drafting to reduce uncertainty",
                ],
                metrics=AlertMetrics(
                    current_value=ratio * 100,
                    threshold=self.thresholds.deletion_ratio * 100,
                    trend=TrendDirection.STABLE,
                ),
            )
        ]
