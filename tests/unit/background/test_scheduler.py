# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the intervention scheduler."""

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from apscheduler.triggers.cron import CronTrigger

from src.infrastructure.background.scheduler import (
    COURSE_SCAN_ACTOR,
    InterventionScheduler,
    build_cron_trigger,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)


@pytest_asyncio.fixture
async def scheduler() -> AsyncGenerator[InterventionScheduler, None]:
    scheduler = InterventionScheduler()
    yield scheduler
    await scheduler.stop()


class TestBuildCronTrigger:
    """Tests for build_cron_trigger."""

    def test_five_fields(self) -> None:
        assert isinstance(build_cron_trigger("30 7 * * 1-5"), CronTrigger)

    @pytest.mark.parametrize("expression", ["", "0 6 * *", "0 6 * * * *"])
    def test_wrong_field_count(self, expression) -> None:
        with pytest.raises(ValueError):
            build_cron_trigger(expression)


class TestInterventionScheduler:
    """Tests for InterventionScheduler."""

    @pytest.mark.asyncio
    async def test_add_course_scan(self, scheduler) -> None:
        """Test that a course scan targets the course scan actor."""
        task = scheduler.add_course_scan("course-1", "0 6 * * *", instructor_id="teacher-1")

        assert task.actor_name == COURSE_SCAN_ACTOR
        assert task.args == ("course-1",)
        assert task.kwargs == {"instructor_id": "teacher-1"}
        assert scheduler.get_task(task.id) is task

    @pytest.mark.asyncio
    async def test_tasks_added_before_start_are_registered(self, scheduler) -> None:
        """Test that pending tasks become jobs when the scheduler starts."""
        scheduler.add_course_scan("course-1", "0 6 * * *")
        scheduler.add_course_scan("course-2", "0 7 * * *")

        await scheduler.start()

        stats = scheduler.get_stats()
        assert stats["is_running"] is True
        assert stats["task_count"] == 2
        assert stats["job_count"] == 2

    @pytest.mark.asyncio
    async def test_invalid_cron_rejected(self, scheduler) -> None:
        with pytest.raises(ValueError):
            scheduler.add_course_scan("course-1", "every morning")

        assert scheduler.list_tasks() == []

    @pytest.mark.asyncio
    async def test_execute_enqueues_actor_message(self, scheduler, monkeypatch) -> None:
        """Test that a run only sends a message to the actor."""
        actor = MagicMock()
        monkeypatch.setattr(scheduler, "_get_actor", lambda name: actor)
        task = scheduler.add_course_scan("course-1", "0 6 * * *", instructor_id="teacher-1")

        await scheduler._execute_task(task.id)

        actor.send.assert_called_once_with("course-1", instructor_id="teacher-1")
        assert task.run_count == 1
        assert task.last_run is not None
        assert task.error_count == 0

    @pytest.mark.asyncio
    async def test_execute_unknown_actor_counts_error(self, scheduler) -> None:
        """Test that a missing actor is recorded as a failed run."""
        task = scheduler.add_cron_task("Broken", "no_such_actor", "0 6 * * *")

        await scheduler._execute_task(task.id)

        assert task.error_count == 1
        assert task.run_count == 0

    @pytest.mark.asyncio
    async def test_disabled_task_not_executed(self, scheduler, monkeypatch) -> None:
        actor = MagicMock()
        monkeypatch.setattr(scheduler, "_get_actor", lambda name: actor)
        task = scheduler.add_cron_task(
            "Paused", COURSE_SCAN_ACTOR, "0 6 * * *", args=("course-1",), enabled=False
        )

        await scheduler._execute_task(task.id)

        actor.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_task(self, scheduler) -> None:
        """Test removing a registered task and its job."""
        await scheduler.start()
        task = scheduler.add_course_scan("course-1", "0 6 * * *")

        assert scheduler.remove_task(task.id) is True
        assert scheduler.remove_task(task.id) is False
        assert scheduler.get_stats()["job_count"] == 0

    def test_to_dict(self) -> None:
        task = InterventionScheduler().add_course_scan("course-1", "0 6 * * *")

        data = task.to_dict()

        assert data["actor_name"] == "run_course_intervention_scan"
        assert data["args"] == ["course-1"]
        assert data["last_run"] is None


class TestStartScheduler:
    """Tests for the module-level scheduler lifecycle."""

    @pytest_asyncio.fixture(autouse=True)
    async def reset_scheduler(self, fresh_settings) -> AsyncGenerator[None, None]:
        await stop_scheduler()
        yield
        await stop_scheduler()

    @pytest.mark.asyncio
    async def test_registers_configured_courses(self, monkeypatch, fresh_settings) -> None:
        """Test that one course scan is scheduled per configured course."""
        monkeypatch.setenv("SCHEDULER_COURSE_IDS", "course-1, course-2")
        monkeypatch.setenv("SCHEDULER_COURSE_SCAN_CRON", "15 5 * * *")

        scheduler = await start_scheduler()

        assert scheduler is get_scheduler()
        assert scheduler.is_running is True
        assert [t.args for t in scheduler.list_tasks()] == [("course-1",), ("course-2",)]
        assert {t.cron_expression for t in scheduler.list_tasks()} == {"15 5 * * *"}
        assert scheduler.get_stats()["job_count"] == 2

    @pytest.mark.asyncio
    async def test_disabled(self, monkeypatch, fresh_settings) -> None:
        """Test that a disabled scheduler registers nothing."""
        monkeypatch.setenv("SCHEDULER_ENABLED", "false")
        monkeypatch.setenv("SCHEDULER_COURSE_IDS", "course-1")

        scheduler = await start_scheduler()

        assert scheduler.is_running is False
        assert scheduler.list_tasks() == []

    @pytest.mark.asyncio
    async def test_stop_resets_singleton(self) -> None:
        first = await start_scheduler()

        await stop_scheduler()

        assert get_scheduler() is not first
