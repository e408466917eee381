# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task infrastructure module for ScribeSignal.

Provides background intervention scans with Dramatiq:
- Redis broker for message persistence and durability
- Actors for student and course intervention scans
- APScheduler integration for the periodic course scan

Quick Start:
    # Setup broker (call once at startup)
    from src.infrastructure.background import setup_dramatiq
    setup_dramatiq()

    # Send tasks
    from src.infrastructure.background.tasks import run_course_intervention_scan

    run_course_intervention_scan.send("course-1", instructor_id="teacher-1")

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 2 --threads 4

Scheduler:
    from src.infrastructure.background import start_scheduler, stop_scheduler

    # Start scheduler with the configured course scans
    await start_scheduler()

    # Stop at shutdown
    await stop_scheduler()
"""

# Re-export from broker module
from src.infrastructure.background.broker import (
    BrokerManager,
    Priority,
    Queues,
    get_broker,
    get_broker_manager,
    is_test_mode,
    setup_dramatiq,
    shutdown_dramatiq,
)

# Re-export from scheduler module
from src.infrastructure.background.scheduler import (
    InterventionScheduler,
    ScheduledTask,
    get_scheduler,
    start_scheduler,
    stop_scheduler,
)

# Task actors are imported lazily to avoid broker setup on package import
# Use: from src.infrastructure.background.tasks import run_course_intervention_scan

__all__ = [
    # Broker
    "BrokerManager",
    "Priority",
    "Queues",
    "get_broker",
    "get_broker_manager",
    "is_test_mode",
    "setup_dramatiq",
    "shutdown_dramatiq",
    # Scheduler
    "InterventionScheduler",
    "ScheduledTask",
    "get_scheduler",
    "start_scheduler",
    "stop_scheduler",
]
