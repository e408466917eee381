# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the Dramatiq broker manager."""

from collections.abc import Generator

import dramatiq
import pytest
from dramatiq.brokers.stub import StubBroker
from dramatiq.results.backends.stub import StubBackend

from src.infrastructure.background.broker import BrokerManager, is_test_mode, setup_dramatiq


@pytest.fixture
def manager() -> Generator[BrokerManager, None, None]:
    """Provide a separate manager and restore the process broker afterwards."""
    manager = BrokerManager()
    yield manager
    manager.shutdown()
    dramatiq.set_broker(setup_dramatiq())


class TestIsTestMode:
    """Tests for is_test_mode."""

    def test_enabled(self, monkeypatch) -> None:
        monkeypatch.setenv("DRAMATIQ_TEST_MODE", "TRUE")

        assert is_test_mode() is True

    def test_disabled_by_default(self, monkeypatch) -> None:
        monkeypatch.delenv("DRAMATIQ_TEST_MODE", raising=False)

        assert is_test_mode() is False


class TestBrokerManager:
    """Tests for BrokerManager."""

    def test_uninitialized(self, manager) -> None:
        """Test the state before setup."""
        assert manager.is_initialized is False
        assert manager.results_backend is None
        assert manager.get_queue_stats() == {"status": "not_initialized"}

        with pytest.raises(RuntimeError):
            _ = manager.broker

    def test_stub_broker_in_test_mode(self, manager) -> None:
        """Test that test mode uses the stub broker and result backend."""
        broker = manager.setup()

        assert isinstance(broker, StubBroker)
        assert isinstance(manager.results_backend, StubBackend)
        assert manager.is_initialized is True
        assert manager.setup() is broker

    def test_queue_stats(self, manager) -> None:
        """Test stub queue statistics."""
        manager.setup()

        stats = manager.get_queue_stats()

        assert stats["broker_type"] == "stub"
        assert stats["status"] == "healthy"

    def test_shutdown_resets(self, manager) -> None:
        manager.setup()

        manager.shutdown()

        assert manager.is_initialized is False
        assert manager.results_backend is None
