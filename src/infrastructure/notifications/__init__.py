# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Notification dispatch boundary for ScribeSignal.

The analysis core hands intervention alerts and student feedback to a
write-only sink. Delivery is the notification service's concern.

Usage:
    from src.infrastructure.notifications import (
        InMemoryNotificationSink,
        NotificationPayload,
        NotificationPriority,
    )

    sink = InMemoryNotificationSink()
    notification_id = await sink.send(payload)
"""

from src.infrastructure.notifications.base import (
    BaseNotificationSink,
    NotificationPayload,
    NotificationPriority,
)
from src.infrastructure.notifications.memory import InMemoryNotificationSink

__all__ = [
    "BaseNotificationSink",
    "InMemoryNotificationSink",
    "NotificationPayload",
    "NotificationPriority",
]
