"""ScribeSignal Backend.

Writing-behavior analysis for education platforms: real-time anomaly
detection over live writing telemetry and longitudinal trend analysis
that turn student writing activity into instructor intervention alerts.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
