# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Anomaly detector running the configured rules in order."""

import logging
from collections.abc import Callable
from datetime import datetime

from src.core.writing.anomaly.base import BaseAnomalyRule
from src.core.writing.anomaly.rules import (
    BulkAdditionRule,
    CopyPasteRule,
    StyleDriftRule,
    TypingSpeedRule,
)
from src.core.writing.config import AnomalyThresholds
from src.core.writing.models import ActivitySnapshot, AnomalyRecord, WritingSession
from src.core.writing.stores import DocumentStore, SessionStore
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class AnomalyDetector:
    """Evaluates an activity snapshot against every rule.

    A single update may yield several anomalies. The returned list keeps
    rule order; an empty list is the common case.
    """

    def __init__(self, rules: list[BaseAnomalyRule]) -> None:
        self.rules = rules

    @classmethod
    def default(
        cls,
        thresholds: AnomalyThresholds,
        sessions: SessionStore,
        documents: DocumentStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> "AnomalyDetector":
        """Build a detector with the standard rule set.

        Args:
            thresholds: Anomaly thresholds.
            sessions: Session store, used to record style check times.
            documents: Document store, used to read recent versions.
            clock: Time source for style check throttling.

        Returns:
            AnomalyDetector instance.
        """
        return cls(
            rules=[
                BulkAdditionRule(thresholds),
                TypingSpeedRule(thresholds),
                CopyPasteRule(thresholds),
                StyleDriftRule(thresholds, sessions, documents, clock=clock),
            ]
        )

    async def detect(
        self,
        session: WritingSession,
        snapshot: ActivitySnapshot,
    ) -> list[AnomalyRecord]:
        """Run all rules against one update.

        Args:
            session: Cumulative session state.
            snapshot: The update's deltas.

        Returns:
            Ordered list of anomalies.
        """
        anomalies: list[AnomalyRecord] = []
        for rule in self.rules:
            anomaly = await rule.evaluate(session, snapshot)
            if anomaly is not None:
                anomalies.append(anomaly)

        if anomalies:
            logger.info(
                "Session %s: %d anomalies (%s)",
                session.id,
                len(anomalies),
                ", ".join(f"{a.type.value}:{a.severity.value}" for a in anomalies),
            )
        return anomalies
