# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for ScribeSignal.

This package contains the core business logic:
- config: Application settings and YAML loading
- writing: Writing-behavior analysis (anomalies, AI risk, trends, alerts)
"""
