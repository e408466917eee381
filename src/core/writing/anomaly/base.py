# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base class for real-time anomaly rules.

Each rule inspects one ActivitySnapshot (plus the cumulative session it
belongs to) and returns at most one AnomalyRecord. Rules hold no state
between calls; anything that must persist (such as the last style check
time) is written back through the session store.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime

from src.core.writing.config import AnomalyThresholds
from src.core.writing.models import (
    ActivitySnapshot,
    AnomalyRecord,
    AnomalySeverity,
    AnomalyType,
    WritingSession,
)
from src.utils.datetime import utc_now


class BaseAnomalyRule(ABC):
    """Abstract base class for anomaly rules.

    Attributes:
        thresholds: Anomaly thresholds from the analysis config.
    """

    def __init__(self, thresholds: AnomalyThresholds) -> None:
        """Initialize the rule."""
        self.thresholds = thresholds
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the rule name."""
        ...

    @property
    @abstractmethod
    def anomaly_type(self) -> AnomalyType:
        """Return the type of anomaly this rule emits."""
        ...

    @abstractmethod
    async def evaluate(
        self,
        session: WritingSession,
        snapshot: ActivitySnapshot,
    ) -> AnomalyRecord | None:
        """Evaluate one update.

        Args:
            session: Cumulative session state, already including the update.
            snapshot: Deltas of the update.

        Returns:
            AnomalyRecord if the rule fires, None otherwise.
        """
        ...

    def create_anomaly(
        self,
        severity: AnomalySeverity,
        description: str,
        requires_review: bool = False,
        timestamp: datetime | None = None,
    ) -> AnomalyRecord:
        """Helper method to create an anomaly of this rule's type.

        Args:
            severity: Anomaly severity.
            description: Human-readable description.
            requires_review: Whether an instructor should review it.
            timestamp: Detection time, defaults to now.

        Returns:
            AnomalyRecord instance.
        """
        return AnomalyRecord(
            type=self.anomaly_type,
            severity=severity,
            description=description,
            timestamp=timestamp or utc_now(),
            requires_review=requires_review,
        )
