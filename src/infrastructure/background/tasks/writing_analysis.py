# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Writing analysis background tasks for ScribeSignal.

Tasks run longitudinal intervention scans outside the request path.
They use the process-wide service installed at worker startup with
configure_writing_analysis_service().

Available actors:
- analyze_student_writing: Trend scan for one student
- run_course_intervention_scan: Trend scan for every active student of a
  course, optionally notifying the instructor of each alert
"""

import logging
from typing import Any

import dramatiq

from src.core.config import get_settings
from src.core.writing.errors import TrendAnalysisError
from src.core.writing.service import get_writing_analysis_service
from src.infrastructure.background.broker import Priority, Queues, setup_dramatiq
from src.infrastructure.background.tasks.base import run_async
from src.utils.datetime import format_iso, utc_now

# Setup broker before defining actors
setup_dramatiq()

logger = logging.getLogger(__name__)

_SCAN_TIME_LIMIT_MS = get_settings().worker.scan_time_limit_ms


@dramatiq.actor(
    queue_name=Queues.WRITING_ANALYSIS,
    max_retries=2,
    time_limit=_SCAN_TIME_LIMIT_MS,
    priority=Priority.ANALYSIS,
    store_results=True,
)
def analyze_student_writing(
    user_id: str,
    course_id: str | None = None,
    timeframe_days: int | None = None,
) -> dict[str, Any]:
    """Run a trend scan for one student.

    Args:
        user_id: Student to scan.
        course_id: Restrict to one course.
        timeframe_days: Window length, defaults to the configured window.

    Returns:
        Scan result with the alerts as dictionaries.

    Example:
        analyze_student_writing.send("student-1", course_id="course-1")
    """

    async def _scan() -> dict[str, Any]:
        service = get_writing_analysis_service()
        try:
            alerts = await service.analyze_student_writing_progress(
                user_id,
                course_id=course_id,
                timeframe_days=timeframe_days,
            )
        except TrendAnalysisError as e:
            logger.error(
                "Writing scan failed: student=%s, error=%s",
                user_id,
                str(e),
                exc_info=True,
            )
            raise

        logger.info(
            "Writing scan completed: student=%s, course=%s, alerts=%d",
            user_id,
            course_id,
            len(alerts),
        )
        return {
            "user_id": user_id,
            "course_id": course_id,
            "status": "completed",
            "alerts": [alert.to_dict() for alert in alerts],
            "completed_at": format_iso(utc_now()),
        }

    return run_async(_scan())


@dramatiq.actor(
    queue_name=Queues.WRITING_ANALYSIS,
    max_retries=1,
    time_limit=_SCAN_TIME_LIMIT_MS,
    priority=Priority.LOW,
    store_results=True,
)
def run_course_intervention_scan(
    course_id: str,
    instructor_id: str | None = None,
) -> dict[str, Any]:
    """Run trend scans for every active student of a course.

    Failing students are skipped. When an instructor is given, each alert
    is sent to them as an intervention notification.

    Args:
        course_id: Course to scan.
        instructor_id: Instructor to notify, if any.

    Returns:
        Scan summary with alert counts and notification IDs.

    Example:
        run_course_intervention_scan.send("course-1", instructor_id="teacher-1")
    """

    async def _scan() -> dict[str, Any]:
        service = get_writing_analysis_service()
        alerts = await service.run_course_intervention_analysis(course_id)

        notification_ids: list[str] = []
        if instructor_id:
            for alert in alerts:
                notification_ids.append(
                    await service.create_intervention_notification(alert, instructor_id)
                )

        summary = service.get_intervention_summary(alerts)
        logger.info(
            "Course scan completed: course=%s, alerts=%d, critical=%d, notified=%d",
            course_id,
            summary.total_interventions,
            summary.critical_interventions,
            len(notification_ids),
        )
        return {
            "course_id": course_id,
            "status": "completed",
            "total_interventions": summary.total_interventions,
            "critical_interventions": summary.critical_interventions,
            "students_at_risk": summary.students_at_risk,
            "common_issues": [list(issue) for issue in summary.common_issues],
            "notification_ids": notification_ids,
            "completed_at": format_iso(utc_now()),
        }

    return run_async(_scan())


def get_writing_analysis_actors() -> list:
    """Get all writing analysis actors.

    Returns:
        List of writing analysis actor functions.
    """
    return [
        analyze_student_writing,
        run_course_intervention_scan,
    ]
