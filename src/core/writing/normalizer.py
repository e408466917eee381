# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Signal normalizer for raw writing-session telemetry.

Turns one raw editor update into:
1. an additive change to the session's cumulative counters (persisted
   through the session store),
2. an immutable ActivitySnapshot of the update's deltas for the anomaly
   rules,
3. a real-time metrics record of the update for the student behavior
   profile.

Zero-valued updates are valid idle ticks and flow through unchanged.
"""

import logging
from typing import Any

from pydantic import ValidationError

from src.core.writing.errors import InvalidSessionUpdateError, SessionNotFoundError
from src.core.writing.models import (
    ActivitySnapshot,
    RealTimeWritingMetrics,
    WritingSession,
    WritingSessionUpdate,
)
from src.core.writing.stores import ProfileSink, SessionStore, collaborator_call

logger = logging.getLogger(__name__)


def parse_update(raw: WritingSessionUpdate | dict[str, Any]) -> WritingSessionUpdate:
    """Validate a raw update payload.

    Args:
        raw: Already-parsed update or a raw mapping (camelCase or snake_case).

    Returns:
        Validated update.

    Raises:
        InvalidSessionUpdateError: If the payload fails validation.
    """
    if isinstance(raw, WritingSessionUpdate):
        return raw

    try:
        return WritingSessionUpdate.model_validate(raw)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidSessionUpdateError(
            f"Invalid session update ({fields})", original_error=e
        ) from e


class SignalNormalizer:
    """Applies raw updates to session state and derives activity snapshots.

    Attributes:
        sessions: Session store holding cumulative counters.
        profiles: Optional sink for the student behavior profile.
    """

    def __init__(
        self,
        sessions: SessionStore,
        profiles: ProfileSink | None = None,
    ) -> None:
        self.sessions = sessions
        self.profiles = profiles

    async def normalize(
        self, raw: WritingSessionUpdate | dict[str, Any]
    ) -> tuple[WritingSession, ActivitySnapshot]:
        """Validate, persist and snapshot one update.

        Args:
            raw: The raw update.

        Returns:
            Tuple of (updated session, snapshot of this update's deltas).

        Raises:
            InvalidSessionUpdateError: If the payload is malformed.
            SessionNotFoundError: If the session ID is unknown.
            CollaboratorUnavailableError: If the session store fails.
        """
        update = parse_update(raw)

        with collaborator_call("session store"):
            existing = await self.sessions.get(update.session_id)
            if existing is None:
                raise SessionNotFoundError(update.session_id)
            if existing.user_id != update.user_id or existing.document_id != update.document_id:
                raise InvalidSessionUpdateError(
                    f"Update for session {update.session_id} does not match its "
                    "user or document"
                )
            session = await self.sessions.apply_activity(update.session_id, update)

        snapshot = self.build_snapshot(update)

        if self.profiles is not None:
            with collaborator_call("profile sink"):
                await self.profiles.update_real_time_state(self.build_metrics(update))

        logger.debug(
            "Normalized update for session %s: +%d/-%d chars, %.2f min, idle=%s",
            session.id,
            snapshot.chars_added,
            snapshot.chars_deleted,
            snapshot.elapsed_minutes,
            snapshot.is_idle,
        )
        return session, snapshot

    @staticmethod
    def build_snapshot(update: WritingSessionUpdate) -> ActivitySnapshot:
        """Build the snapshot of one update's deltas."""
        sizes = update.bulk_addition_sizes
        return ActivitySnapshot(
            session_id=update.session_id,
            user_id=update.user_id,
            document_id=update.document_id,
            chars_added=update.chars_added,
            chars_deleted=update.chars_deleted,
            words_added=update.words_added,
            words_deleted=update.words_deleted,
            copy_paste_events=update.copy_paste_events,
            bulk_text_additions=update.bulk_text_additions,
            pause_durations=tuple(update.pause_durations),
            elapsed_minutes=update.duration,
            last_bulk_addition=sizes[-1] if sizes else None,
            observed_at=update.last_activity,
        )

    @staticmethod
    def build_metrics(update: WritingSessionUpdate) -> RealTimeWritingMetrics:
        """Derive the real-time profile metrics of a single update."""
        return RealTimeWritingMetrics(
            user_id=update.user_id,
            session_id=update.session_id,
            document_id=update.document_id,
            duration_minutes=update.duration,
            words_written=update.words_added,
            deletion_ratio=update.chars_deleted / max(1, update.chars_added),
            pause_count=len(update.pause_durations),
            revision_cycles=update.chars_deleted // 100,
            recorded_at=update.last_activity,
        )
