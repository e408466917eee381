# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Scheduler for periodic intervention scans.

Uses APScheduler for cron-style job scheduling integrated with Dramatiq
actors. The scheduler itself never analyzes anything: each run only
enqueues one run_course_intervention_scan message per configured course.

Example:
    from src.infrastructure.background.scheduler import get_scheduler

    scheduler = get_scheduler()

    # Scan one course every weekday at 07:30
    scheduler.add_cron_task(
        name="Course Scan course-1",
        actor_name="run_course_intervention_scan",
        cron_expression="30 7 * * 1-5",
        args=("course-1",),
    )

    # Start scheduler
    await scheduler.start()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable
from uuid import uuid4

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.core.config import get_settings
from src.utils.datetime import format_iso, utc_now

logger = logging.getLogger(__name__)

COURSE_SCAN_ACTOR = "run_course_intervention_scan"


def build_cron_trigger(cron_expression: str) -> CronTrigger:
    """Build a trigger from a five-field cron expression.

    Args:
        cron_expression: minute hour day month weekday.

    Raises:
        ValueError: If the expression does not have five fields.
    """
    parts = cron_expression.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron expression: {cron_expression}")

    return CronTrigger(
        minute=parts[0],
        hour=parts[1],
        day=parts[2],
        month=parts[3],
        day_of_week=parts[4],
    )


@dataclass
class ScheduledTask:
    """Configuration for a scheduled Dramatiq task.

    Attributes:
        id: Unique task identifier.
        name: Human-readable task name.
        actor_name: Name of the Dramatiq actor to call.
        cron_expression: Five-field cron expression.
        args: Positional arguments for the actor.
        kwargs: Keyword arguments for the actor.
        enabled: Whether the task is enabled.
        last_run: Last run timestamp.
        run_count: Total number of runs.
        error_count: Number of failed runs.
    """

    name: str
    actor_name: str
    cron_expression: str
    args: tuple = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid4()))
    enabled: bool = True
    last_run: datetime | None = None
    run_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "actor_name": self.actor_name,
            "cron_expression": self.cron_expression,
            "args": list(self.args),
            "enabled": self.enabled,
            "last_run": format_iso(self.last_run) if self.last_run else None,
            "run_count": self.run_count,
            "error_count": self.error_count,
        }


class InterventionScheduler:
    """Scheduler for periodic course intervention scans.

    Tasks may be added before or after start(); tasks added earlier are
    registered with APScheduler when it starts.

    Attributes:
        _scheduler: APScheduler instance.
        _tasks: Dictionary of scheduled tasks.
        _running: Whether scheduler is running.
    """

    def __init__(self) -> None:
        """Initialize the scheduler."""
        self._scheduler: AsyncIOScheduler | None = None
        self._tasks: dict[str, ScheduledTask] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running."""
        return self._running

    def _get_actor(self, actor_name: str) -> Callable[..., Any] | None:
        """Get a Dramatiq actor by name."""
        from src.infrastructure.background import tasks

        return getattr(tasks, actor_name, None)

    def _register_job(self, task: ScheduledTask) -> None:
        if self._scheduler is None or not task.enabled:
            return

        self._scheduler.add_job(
            self._execute_task,
            trigger=build_cron_trigger(task.cron_expression),
            args=[task.id],
            id=task.id,
            name=task.name,
        )

    def add_cron_task(
        self,
        name: str,
        actor_name: str,
        cron_expression: str,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        enabled: bool = True,
    ) -> ScheduledTask:
        """Add a cron-scheduled task.

        Args:
            name: Task name.
            actor_name: Dramatiq actor to call.
            cron_expression: Cron expression (minute hour day month weekday).
            args: Actor arguments.
            kwargs: Actor keyword arguments.
            enabled: Whether task is enabled.

        Returns:
            Created ScheduledTask.

        Raises:
            ValueError: If the cron expression is invalid.
        """
        build_cron_trigger(cron_expression)

        task = ScheduledTask(
            name=name,
            actor_name=actor_name,
            cron_expression=cron_expression,
            args=args,
            kwargs=kwargs or {},
            enabled=enabled,
        )
        self._tasks[task.id] = task
        self._register_job(task)

        logger.info("Added cron task: %s (%s)", name, cron_expression)
        return task

    def add_course_scan(
        self,
        course_id: str,
        cron_expression: str,
        instructor_id: str | None = None,
    ) -> ScheduledTask:
        """Schedule the intervention scan of one course.

        Args:
            course_id: Course to scan.
            cron_expression: When to enqueue the scan.
            instructor_id: Instructor notified of each alert, if any.

        Returns:
            Created ScheduledTask.
        """
        kwargs = {"instructor_id": instructor_id} if instructor_id else {}
        return self.add_cron_task(
            name=f"Course Intervention Scan {course_id}",
            actor_name=COURSE_SCAN_ACTOR,
            cron_expression=cron_expression,
            args=(course_id,),
            kwargs=kwargs,
        )

    async def _execute_task(self, task_id: str) -> None:
        """Execute a scheduled task.

        Args:
            task_id: ID of the task to execute.
        """
        task = self._tasks.get(task_id)
        if not task or not task.enabled:
            return

        logger.debug("Executing scheduled task: %s", task.name)

        try:
            actor = self._get_actor(task.actor_name)
            if actor is None:
                raise ValueError(f"Actor not found: {task.actor_name}")

            # Send the task to Dramatiq
            actor.send(*task.args, **task.kwargs)

            task.last_run = utc_now()
            task.run_count += 1

            logger.debug("Scheduled task %s sent to queue", task.name)

        except Exception as e:
            task.error_count += 1
            logger.error("Scheduled task %s failed: %s", task.name, str(e))

    def remove_task(self, task_id: str) -> bool:
        """Remove a scheduled task.

        Args:
            task_id: Task ID to remove.

        Returns:
            True if removed.
        """
        task = self._tasks.pop(task_id, None)
        if task is None:
            return False

        if self._scheduler is not None and self._scheduler.get_job(task_id):
            self._scheduler.remove_job(task_id)

        logger.info("Removed scheduled task: %s", task_id)
        return True

    def get_task(self, task_id: str) -> ScheduledTask | None:
        """Get a scheduled task by ID."""
        return self._tasks.get(task_id)

    def list_tasks(self) -> list[ScheduledTask]:
        """List all scheduled tasks."""
        return list(self._tasks.values())

    async def start(self) -> None:
        """Start the scheduler."""
        if self._running:
            return

        self._scheduler = AsyncIOScheduler()
        for task in self._tasks.values():
            self._register_job(task)
        self._scheduler.start()
        self._running = True

        logger.info("Intervention scheduler started")

    async def stop(self) -> None:
        """Stop the scheduler."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._running = False
        logger.info("Intervention scheduler stopped")

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics.

        Returns:
            Statistics dictionary.
        """
        return {
            "is_running": self._running,
            "task_count": len(self._tasks),
            "enabled_count": sum(1 for t in self._tasks.values() if t.enabled),
            "job_count": len(self._scheduler.get_jobs()) if self._scheduler else 0,
            "total_runs": sum(t.run_count for t in self._tasks.values()),
            "total_errors": sum(t.error_count for t in self._tasks.values()),
            "tasks": [t.to_dict() for t in self._tasks.values()],
        }


# Singleton instance
_scheduler: InterventionScheduler | None = None


def get_scheduler() -> InterventionScheduler:
    """Get the singleton scheduler instance.

    Returns:
        InterventionScheduler instance.
    """
    global _scheduler
    if _scheduler is None:
        _scheduler = InterventionScheduler()
    return _scheduler


async def start_scheduler() -> InterventionScheduler:
    """Start the scheduler and register the configured course scans.

    Nothing is registered when the scheduler is disabled in settings.

    Returns:
        Scheduler instance.
    """
    scheduler = get_scheduler()
    settings = get_settings().scheduler

    if not settings.enabled:
        logger.info("Intervention scheduler disabled, no jobs registered")
        return scheduler

    await scheduler.start()

    for course_id in settings.course_ids:
        scheduler.add_course_scan(course_id, settings.course_scan_cron)

    logger.info("Registered %d course scan tasks", len(scheduler.list_tasks()))
    return scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler."""
    global _scheduler
    if _scheduler is not None:
        await _scheduler.stop()
        _scheduler = None
