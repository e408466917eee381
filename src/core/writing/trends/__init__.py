# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Longitudinal trend analysis of student writing history.

Analyzers:
- ProductivityAnalyzer: inactivity, productivity decline, low output for effort
- ProcrastinationAnalyzer: last-minute assignment starts
- CollaborationAnalyzer: under- and over-participation in group work
- QualityAnalyzer: excessive deletion
- TimeManagementAnalyzer: several near deadlines with little progress
"""

from src.core.writing.trends.analyzer import TrendAnalyzer
from src.core.writing.trends.base import BaseTrendAnalyzer, TrendInputs
from src.core.writing.trends.collaboration import CollaborationAnalyzer
from src.core.writing.trends.procrastination import ProcrastinationAnalyzer
from src.core.writing.trends.productivity import ProductivityAnalyzer
from src.core.writing.trends.quality import QualityAnalyzer
from src.core.writing.trends.time_management import TimeManagementAnalyzer

__all__ = [
    "BaseTrendAnalyzer",
    "CollaborationAnalyzer",
    "ProcrastinationAnalyzer",
    "ProductivityAnalyzer",
    "QualityAnalyzer",
    "TimeManagementAnalyzer",
    "TrendAnalyzer",
    "TrendInputs",
]
