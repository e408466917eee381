# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for ScribeSignal.

This package contains process plumbing around the analysis core:
- Background task processing (Dramatiq) and scheduling (APScheduler)
- Notification sinks
"""
