# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Base classes for notification dispatch.

Delivery (queuing, paging, templating, channels) is owned by the
notification service. The analysis core only hands over a
NotificationPayload through a write-only sink and receives the ID of
the created notification.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from src.utils.datetime import format_iso, utc_now


class NotificationPriority(str, Enum):
    """Dispatch priority levels."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class NotificationPayload:
    """Payload handed to the notification sink.

    Attributes:
        notification_type: Type of notification (maps to the alert type).
        title: Notification title.
        message: Notification message body.
        recipient_id: User ID of the recipient.
        priority: Dispatch priority.
        category: Notification category used for routing and filtering.
        student_id: Student this notification is about.
        data: Additional structured data (intervention details, metrics).
        action_url: URL to open when the notification is clicked.
        action_required: Whether the recipient is expected to act.
        created_at: When the payload was built.
    """

    notification_type: str
    title: str
    message: str
    recipient_id: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    category: str = "general"
    student_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    action_url: str | None = None
    action_required: bool = False
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for transport or storage."""
        return {
            "notification_type": self.notification_type,
            "title": self.title,
            "message": self.message,
            "recipient_id": self.recipient_id,
            "priority": self.priority.value,
            "category": self.category,
            "student_id": self.student_id,
            "data": self.data,
            "action_url": self.action_url,
            "action_required": self.action_required,
            "created_at": format_iso(self.created_at),
        }


class BaseNotificationSink(ABC):
    """Abstract write-only notification sink.

    Implementations persist or enqueue the payload and return an ID.
    Failures propagate to the caller.
    """

    def __init__(self) -> None:
        """Initialize the sink."""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def send(self, payload: NotificationPayload) -> str:
        """Hand one notification to the dispatch mechanism.

        Args:
            payload: Notification content.

        Returns:
            ID of the created notification.
        """
        ...
