# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""In-memory notification sink for tests and local development."""

from uuid import uuid4

from src.infrastructure.notifications.base import BaseNotificationSink, NotificationPayload


class InMemoryNotificationSink(BaseNotificationSink):
    """Keeps every payload it receives, keyed by generated ID."""

    def __init__(self) -> None:
        super().__init__()
        self.sent: dict[str, NotificationPayload] = {}

    async def send(self, payload: NotificationPayload) -> str:
        notification_id = str(uuid4())
        self.sent[notification_id] = payload
        self.logger.debug(
            "Stored notification %s (%s) for %s",
            notification_id,
            payload.notification_type,
            payload.recipient_id,
        )
        return notification_id

    def for_recipient(self, recipient_id: str) -> list[NotificationPayload]:
        """Payloads sent to one recipient, in send order."""
        return [p for p in self.sent.values() if p.recipient_id == recipient_id]
