# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the session signal normalizer."""

from unittest.mock import AsyncMock

import pytest

from src.core.writing.errors import (
    CollaboratorUnavailableError,
    InvalidSessionUpdateError,
    SessionNotFoundError,
)
from src.core.writing.normalizer import SignalNormalizer, parse_update


def raw_update(**overrides):
    payload = {
        "sessionId": "session-1",
        "documentId": "doc-1",
        "userId": "student-1",
    }
    payload.update(overrides)
    return payload


class TestParseUpdate:
    """Tests for parse_update."""

    def test_invalid_payload_lists_fields(self) -> None:
        """Test that validation errors name the offending fields."""
        with pytest.raises(InvalidSessionUpdateError) as exc_info:
            parse_update(raw_update(charsAdded=-1))

        assert "chars_added" in str(exc_info.value) or "charsAdded" in str(exc_info.value)
        assert exc_info.value.original_error is not None

    def test_missing_session_id_rejected(self) -> None:
        """Test that a payload without a session is rejected."""
        with pytest.raises(InvalidSessionUpdateError):
            parse_update({"documentId": "doc-1", "userId": "student-1"})


class TestSignalNormalizer:
    """Tests for SignalNormalizer."""

    @pytest.mark.asyncio
    async def test_accumulates_counters(self, session_store, make_session) -> None:
        """Test that deltas are added to the session's cumulative state."""
        session_store.add(make_session(chars_added=100, words_added=20, duration_minutes=5))
        normalizer = SignalNormalizer(session_store)

        session, snapshot = await normalizer.normalize(
            raw_update(
                charsAdded=50,
                wordsAdded=10,
                copyPasteEvents=2,
                pauseDurations=[3.5],
                duration=2.5,
            )
        )

        assert session.chars_added == 150
        assert session.words_added == 30
        assert session.copy_paste_count == 2
        assert session.pause_durations == [3.5]
        assert session.duration_minutes == pytest.approx(7.5)
        assert snapshot.chars_added == 50
        assert snapshot.words_added == 10
        assert snapshot.elapsed_minutes == 2.5

    @pytest.mark.asyncio
    async def test_snapshot_carries_latest_bulk_addition(
        self, session_store, make_session
    ) -> None:
        """Test that the snapshot exposes the newest bulk insertion size."""
        session_store.add(make_session(bulk_addition_history=[120]))
        normalizer = SignalNormalizer(session_store)

        session, snapshot = await normalizer.normalize(
            raw_update(bulkTextAdditions=1, bulkAdditionSizes=[900])
        )

        assert session.bulk_addition_history == [120, 900]
        assert snapshot.last_bulk_addition == 900

    @pytest.mark.asyncio
    async def test_idle_update_flows_through(self, session_store, make_session) -> None:
        """Test that an all-zero update is accepted as an idle tick."""
        session_store.add(make_session())
        normalizer = SignalNormalizer(session_store)

        session, snapshot = await normalizer.normalize(raw_update(duration=1))

        assert snapshot.is_idle is True
        assert session.duration_minutes == 1

    @pytest.mark.asyncio
    async def test_unknown_session_rejected(self, session_store) -> None:
        """Test that updates for unknown sessions are rejected."""
        normalizer = SignalNormalizer(session_store)

        with pytest.raises(SessionNotFoundError):
            await normalizer.normalize(raw_update())

    @pytest.mark.asyncio
    async def test_mismatched_user_rejected(self, session_store, make_session) -> None:
        """Test that an update cannot write into another student's session."""
        session_store.add(make_session(user_id="student-2"))
        normalizer = SignalNormalizer(session_store)

        with pytest.raises(InvalidSessionUpdateError):
            await normalizer.normalize(raw_update())

    @pytest.mark.asyncio
    async def test_forwards_profile_metrics(
        self, session_store, profile_sink, make_session
    ) -> None:
        """Test that each update's own metrics reach the profile sink."""
        session_store.add(make_session(chars_added=500, words_added=90, chars_deleted=400))
        normalizer = SignalNormalizer(session_store, profile_sink)

        await normalizer.normalize(
            raw_update(
                charsAdded=200,
                charsDeleted=100,
                wordsAdded=40,
                pauseDurations=[1.0, 45.0],
                duration=3,
            )
        )
        await normalizer.normalize(
            raw_update(charsAdded=50, charsDeleted=250, wordsAdded=5, duration=1.5)
        )

        first, second = profile_sink.updates
        assert first.words_written == 40
        assert first.duration_minutes == 3
        assert first.deletion_ratio == pytest.approx(0.5)
        assert first.pause_count == 2
        assert first.revision_cycles == 1
        assert second.words_written == 5
        assert second.duration_minutes == 1.5
        assert second.deletion_ratio == pytest.approx(5.0)
        assert second.pause_count == 0
        assert second.revision_cycles == 2

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self) -> None:
        """Test that unexpected store failures surface as collaborator errors."""
        store = AsyncMock()
        store.get.side_effect = ConnectionError("connection reset")
        normalizer = SignalNormalizer(store)

        with pytest.raises(CollaboratorUnavailableError) as exc_info:
            await normalizer.normalize(raw_update())

        assert isinstance(exc_info.value.original_error, ConnectionError)
