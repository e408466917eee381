# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Intervention alerts and the builder that prepares them for dispatch.

Both the real-time path (deep AI-risk analysis) and the batch path
(trend analyzers) produce InterventionAlert objects. Before an alert is
handed to notification dispatch, the builder:

- assigns a response deadline from its severity when none is set
  (critical 24h, warning 72h, info 168h by default), never replacing a
  deadline an analyzer set explicitly;
- maps severity to dispatch priority (critical urgent, warning high,
  info normal);
- shapes the notification payload.

Repeated identical findings across scheduled runs are standing alerts
and are not deduplicated across calls. ``dedupe`` only collapses
duplicates within one result list.
"""

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from src.core.writing.config import AlertPolicy
from src.infrastructure.notifications.base import NotificationPayload, NotificationPriority
from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class InterventionType(str, Enum):
    """Types of instructor intervention alerts."""

    NO_RECENT_ACTIVITY = "no_recent_activity"
    WRITING_PRODUCTIVITY_DECLINE = "writing_productivity_decline"
    WORD_COUNT_BELOW_EXPECTED = "word_count_below_expected"
    ASSIGNMENT_PROCRASTINATION = "assignment_procrastination"
    LOW_COLLABORATION_PARTICIPATION = "low_collaboration_participation"
    COLLABORATION_IMBALANCE = "collaboration_imbalance"
    FREQUENT_DELETIONS = "frequent_deletions"
    TIME_MANAGEMENT_ISSUE = "time_management_issue"
    AI_USAGE_REFLECTION = "ai_usage_reflection"
    AI_DECLARATION_ACKNOWLEDGED = "ai_declaration_acknowledged"


class TrendDirection(str, Enum):
    """Direction of the metric behind an alert."""

    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


@dataclass(frozen=True)
class AlertContext:
    """Where an alert applies."""

    course_id: str | None = None
    assignment_id: str | None = None
    submission_id: str | None = None
    document_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "assignment_id": self.assignment_id,
            "submission_id": self.submission_id,
            "document_id": self.document_id,
        }


@dataclass(frozen=True)
class AlertMetrics:
    """The measurement that triggered an alert."""

    current_value: float
    threshold: float
    trend: TrendDirection
    previous_value: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_value": self.current_value,
            "previous_value": self.previous_value,
            "threshold": self.threshold,
            "trend": self.trend.value,
        }


@dataclass
class InterventionAlert:
    """Instructor-facing finding about one student.

    Attributes:
        alert_type: Type of intervention.
        severity: Severity level.
        title: Alert title (human-readable).
        message: Detailed alert message.
        student_id: Student this alert is about.
        suggested_actions: Recommended instructor actions.
        context: Course, assignment, submission or document in scope.
        deadline: When the instructor should respond by.
        metrics: Measurement behind the alert.
        details: Additional alert details.
    """

    alert_type: InterventionType
    severity: AlertSeverity
    title: str
    message: str
    student_id: str
    suggested_actions: list[str] = field(default_factory=list)
    context: AlertContext | None = None
    deadline: datetime | None = None
    metrics: AlertMetrics | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def dedupe_key(self) -> tuple[str, str, str | None]:
        """Identity of the finding: student, type and submission."""
        submission_id = self.context.submission_id if self.context else None
        return (self.student_id, self.alert_type.value, submission_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "student_id": self.student_id,
            "suggested_actions": list(self.suggested_actions),
            "context": self.context.to_dict() if self.context else None,
            "deadline": format_iso(self.deadline),
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "details": self.details,
        }


class InterventionAlertBuilder:
    """Finalizes alerts and converts them into notification payloads.

    Attributes:
        policy: Deadline, priority and routing policy.
    """

    def __init__(
        self,
        policy: AlertPolicy,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.policy = policy
        self._clock = clock

    def response_deadline(self, severity: AlertSeverity, now: datetime | None = None) -> datetime:
        """Compute the response deadline for a severity."""
        hours = self.policy.response_hours[severity.value]
        return (now or self._clock()) + timedelta(hours=hours)

    def finalize(self, alert: InterventionAlert, now: datetime | None = None) -> InterventionAlert:
        """Return the alert with a deadline, keeping an explicit one.

        Args:
            alert: Alert to finalize.
            now: Reference time, defaults to the builder clock.

        Returns:
            The same alert if it already has a deadline, else a copy
            with the severity-based deadline.
        """
        if alert.deadline is not None:
            return alert
        return replace(alert, deadline=self.response_deadline(alert.severity, now))

    def finalize_all(
        self, alerts: Iterable[InterventionAlert], now: datetime | None = None
    ) -> list[InterventionAlert]:
        """Finalize every alert against one reference time."""
        reference = now or self._clock()
        return [self.finalize(alert, reference) for alert in alerts]

    def priority_for(self, severity: AlertSeverity) -> NotificationPriority:
        """Map alert severity to dispatch priority."""
        return NotificationPriority(self.policy.priority_by_severity[severity.value])

    def build_notification(
        self, alert: InterventionAlert, instructor_id: str
    ) -> NotificationPayload:
        """Shape a finalized alert into an instructor notification.

        Args:
            alert: Alert to send.
            instructor_id: Recipient instructor.

        Returns:
            NotificationPayload for the sink.
        """
        alert = self.finalize(alert)
        return NotificationPayload(
            notification_type=alert.alert_type.value,
            title=alert.title,
            message=alert.message,
            recipient_id=instructor_id,
            priority=self.priority_for(alert.severity),
            category=self.policy.category,
            student_id=alert.student_id,
            data={
                "context": alert.context.to_dict() if alert.context else None,
                "intervention": {
                    "type": alert.alert_type.value,
                    "severity": alert.severity.value,
                    "suggested_actions": list(alert.suggested_actions),
                    "deadline": format_iso(alert.deadline),
                },
                "related_metrics": (
                    {
                        "student_id": alert.student_id,
                        "metric_type": "writing_progress",
                        **alert.metrics.to_dict(),
                    }
                    if alert.metrics
                    else None
                ),
                "details": alert.details,
            },
            action_url=self.policy.action_url_template.format(student_id=alert.student_id),
            action_required=True,
        )

    @staticmethod
    def dedupe(alerts: Iterable[InterventionAlert]) -> list[InterventionAlert]:
        """Collapse identical findings within one result, keeping order.

        Two alerts are identical when student, type and submission match.
        """
        seen: set[tuple[str, str, str | None]] = set()
        unique: list[InterventionAlert] = []
        for alert in alerts:
            if alert.dedupe_key in seen:
                continue
            seen.add(alert.dedupe_key)
            unique.append(alert)
        return unique


@dataclass(frozen=True)
class InterventionSummary:
    """Dashboard roll-up of a set of intervention alerts.

    Attributes:
        total_interventions: Number of alerts.
        critical_interventions: Number of critical alerts.
        common_issues: Up to five (type, count) pairs, most frequent first.
        students_at_risk: Number of distinct students with an alert.
        trends: Count of alerts per metric trend direction.
    """

    total_interventions: int
    critical_interventions: int
    common_issues: list[tuple[str, int]]
    students_at_risk: int
    trends: dict[str, int]


def summarize_interventions(alerts: Iterable[InterventionAlert]) -> InterventionSummary:
    """Summarize alerts for an instructor dashboard.

    Args:
        alerts: Alerts to summarize.

    Returns:
        InterventionSummary instance.
    """
    alerts = list(alerts)
    issue_counts = Counter(alert.alert_type.value for alert in alerts)
    trend_counts = Counter(
        alert.metrics.trend.value for alert in alerts if alert.metrics is not None
    )

    return InterventionSummary(
        total_interventions=len(alerts),
        critical_interventions=sum(
            1 for alert in alerts if alert.severity == AlertSeverity.CRITICAL
        ),
        common_issues=issue_counts.most_common(5),
        students_at_risk=len({alert.student_id for alert in alerts}),
        trends={direction.value: trend_counts.get(direction.value, 0) for direction in TrendDirection},
    )
