# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Real-time anomaly detection over writing-session updates.

Rules are evaluated independently and in a fixed order:
- BulkAdditionRule: large single insertions
- TypingSpeedRule: implausibly fast typing (informational)
- CopyPasteRule: frequent paste events
- StyleDriftRule: complexity shift between document versions (throttled)
"""

from src.core.writing.anomaly.base import BaseAnomalyRule
from src.core.writing.anomaly.detector import AnomalyDetector
from src.core.writing.anomaly.rules import (
    BulkAdditionRule,
    CopyPasteRule,
    StyleDriftRule,
    TypingSpeedRule,
)

__all__ = [
    "AnomalyDetector",
    "BaseAnomalyRule",
    "BulkAdditionRule",
    "TypingSpeedRule",
    "CopyPasteRule",
    "StyleDriftRule",
]
