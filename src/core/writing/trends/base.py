# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base class for longitudinal trend analyzers."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from src.core.writing.alerts import (
    AlertContext,
    AlertMetrics,
    AlertSeverity,
    InterventionAlert,
    InterventionType,
)
from src.core.writing.config import TrendThresholds
from src.core.writing.models import Submission, WritingSession


@dataclass(frozen=True)
class TrendInputs:
    """Everything one student scan reads, fetched once and shared.

    Attributes:
        user_id: Student being analyzed.
        course_id: Course filter, if any.
        timeframe_days: Window length in days.
        window_start: Start of the current window.
        now: End of the current window.
        sessions: Sessions in the current window.
        prior_sessions: Sessions in the equally long preceding window.
        submissions: Submissions involving the student saved since window_start.
    """

    user_id: str
    course_id: str | None
    timeframe_days: int
    window_start: datetime
    now: datetime
    sessions: list[WritingSession] = field(default_factory=list)
    prior_sessions: list[WritingSession] = field(default_factory=list)
    submissions: list[Submission] = field(default_factory=list)


class BaseTrendAnalyzer(ABC):
    """Abstract base class for trend analyzers.

    All trend analyzers must implement the analyze method and the name
    and alert_types properties. Analyzers are pure over their inputs:
    they never call stores.

    Attributes:
        thresholds: Trend thresholds from the analysis config.
    """

    def __init__(self, thresholds: TrendThresholds) -> None:
        """Initialize the analyzer."""
        self.thresholds = thresholds
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the analyzer name."""
        ...

    @property
    @abstractmethod
    def alert_types(self) -> tuple[InterventionType, ...]:
        """Return the alert types this analyzer can emit."""
        ...

    @abstractmethod
    async def analyze(self, inputs: TrendInputs) -> list[InterventionAlert]:
        """Analyze one student's history.

        Args:
            inputs: Shared scan inputs.

        Returns:
            Alerts found, possibly empty.
        """
        ...

    def create_alert(
        self,
        inputs: TrendInputs,
        alert_type: InterventionType,
        severity: AlertSeverity,
        title: str,
        message: str,
        suggested_actions: list[str],
        metrics: AlertMetrics | None = None,
        context: AlertContext | None = None,
        deadline: datetime | None = None,
    ) -> InterventionAlert:
        """Helper method to create an alert for the scanned student.

        Context defaults to the scan's course.
        """
        return InterventionAlert(
            alert_type=alert_type,
            severity=severity,
            title=title,
            message=message,
            student_id=inputs.user_id,
            suggested_actions=suggested_actions,
            context=context or AlertContext(course_id=inputs.course_id),
            deadline=deadline,
            metrics=metrics,
        )
