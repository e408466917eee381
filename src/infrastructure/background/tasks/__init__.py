# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Background task actors for ScribeSignal.

Usage:
    from src.infrastructure.background.tasks import (
        analyze_student_writing,
        run_course_intervention_scan,
        get_all_actors,
    )

    # Send a task
    run_course_intervention_scan.send("course-1", instructor_id="teacher-1")

Running Workers:
    dramatiq src.infrastructure.background.tasks --processes 2 --threads 4
"""

from src.infrastructure.background.tasks.base import run_async
from src.infrastructure.background.tasks.writing_analysis import (
    analyze_student_writing,
    get_writing_analysis_actors,
    run_course_intervention_scan,
)

__all__ = [
    # Writing analysis
    "analyze_student_writing",
    "run_course_intervention_scan",
    # Utilities
    "run_async",
    "get_all_actors",
]


def get_all_actors() -> list:
    """Get list of all defined actors.

    Returns:
        List of all Dramatiq actors.
    """
    return list(get_writing_analysis_actors())
