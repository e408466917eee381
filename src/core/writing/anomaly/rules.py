# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Anomaly rules evaluated on every writing-session update.

All comparisons against thresholds are exclusive: a value equal to the
threshold never fires.
"""

from collections.abc import Callable
from datetime import datetime

from src.core.writing.anomaly.base import BaseAnomalyRule
from src.core.writing.config import AnomalyThresholds
from src.core.writing.models import (
    ActivitySnapshot,
    AnomalyRecord,
    AnomalySeverity,
    AnomalyType,
    WritingSession,
)
from src.core.writing.stores import DocumentStore, SessionStore, collaborator_call
from src.core.writing.text_metrics import complexity_score
from src.utils.datetime import ensure_utc, utc_now


class BulkAdditionRule(BaseAnomalyRule):
    """Flags a single bulk insertion larger than the character threshold."""

    @property
    def name(self) -> str:
        return "bulk_addition"

    @property
    def anomaly_type(self) -> AnomalyType:
        return AnomalyType.SUSPICIOUS_ADDITION

    async def evaluate(
        self,
        session: WritingSession,
        snapshot: ActivitySnapshot,
    ) -> AnomalyRecord | None:
        if snapshot.bulk_text_additions <= 0 or snapshot.last_bulk_addition is None:
            return None

        size = snapshot.last_bulk_addition
        if size <= self.thresholds.bulk_text_chars:
            return None

        return self.create_anomaly(
            severity=AnomalySeverity.MEDIUM,
            description=f"Large text addition detected ({size} characters)",
            requires_review=True,
            timestamp=snapshot.observed_at,
        )


class TypingSpeedRule(BaseAnomalyRule):
    """Flags typing speed above the WPM threshold.

    Informational only: fast typists exist, so the anomaly is low
    severity and never requires review.
    """

    @property
    def name(self) -> str:
        return "typing_speed"

    @property
    def anomaly_type(self) -> AnomalyType:
        return AnomalyType.AI_PATTERN

    async def evaluate(
        self,
        session: WritingSession,
        snapshot: ActivitySnapshot,
    ) -> AnomalyRecord | None:
        wpm = snapshot.typing_speed_wpm
        if wpm <= self.thresholds.suspicious_typing_wpm:
            return None

        return self.create_anomaly(
            severity=AnomalySeverity.LOW,
            description=f"Unusually fast typing speed ({round(wpm)} WPM)",
            requires_review=False,
            timestamp=snapshot.observed_at,
        )


class CopyPasteRule(BaseAnomalyRule):
    """Flags more paste events in one update than the threshold allows."""

    @property
    def name(self) -> str:
        return "copy_paste"

    @property
    def anomaly_type(self) -> AnomalyType:
        return AnomalyType.COPY_PASTE

    async def evaluate(
        self,
        session: WritingSession,
        snapshot: ActivitySnapshot,
    ) -> AnomalyRecord | None:
        if snapshot.copy_paste_events <= self.thresholds.copy_paste_events:
            return None

        return self.create_anomaly(
            severity=AnomalySeverity.MEDIUM,
            description=f"Frequent copy-paste activity ({snapshot.copy_paste_events} events)",
            requires_review=True,
            timestamp=snapshot.observed_at,
        )


class StyleDriftRule(BaseAnomalyRule):
    """Flags a complexity shift between the two latest document versions.

    Runs at most once per ``style_check_interval_seconds`` per session and
    never on idle updates. The check time is recorded whenever the rule
    runs, whether or not it fires. Fewer than two versions means there is
    nothing to compare and the rule reports no finding.
    """

    def __init__(
        self,
        thresholds: AnomalyThresholds,
        sessions: SessionStore,
        documents: DocumentStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        super().__init__(thresholds)
        self.sessions = sessions
        self.documents = documents
        self._clock = clock

    @property
    def name(self) -> str:
        return "style_drift"

    @property
    def anomaly_type(self) -> AnomalyType:
        return AnomalyType.STYLE_CHANGE

    def is_due(self, session: WritingSession, now: datetime) -> bool:
        """Check whether the throttling interval has elapsed."""
        last_check = ensure_utc(session.last_style_check)
        if last_check is None:
            return True
        elapsed = (ensure_utc(now) - last_check).total_seconds()  # type: ignore[operator]
        return elapsed > self.thresholds.style_check_interval_seconds

    async def evaluate(
        self,
        session: WritingSession,
        snapshot: ActivitySnapshot,
    ) -> AnomalyRecord | None:
        if snapshot.is_idle:
            return None

        now = self._clock()
        if not self.is_due(session, now):
            return None

        with collaborator_call("session store"):
            await self.sessions.mark_style_check(session.id, now)
        session.last_style_check = now

        with collaborator_call("document store"):
            versions = await self.documents.get_recent_versions(session.document_id, limit=2)

        if len(versions) < 2:
            self.logger.debug(
                "Skipping style check for document %s: %d version(s)",
                session.document_id,
                len(versions),
            )
            return None

        current, previous = versions[0], versions[1]
        delta = abs(complexity_score(current.content) - complexity_score(previous.content))

        if delta > self.thresholds.style_change_high:
            severity = AnomalySeverity.HIGH
        elif delta > self.thresholds.style_change_medium:
            severity = AnomalySeverity.MEDIUM
        else:
            return None

        return self.create_anomaly(
            severity=severity,
            description=f"Significant writing style change detected ({round(delta)} point complexity shift)",
            requires_review=severity == AnomalySeverity.HIGH,
            timestamp=now,
        )
