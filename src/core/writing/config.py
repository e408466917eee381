# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Writing analysis policy configuration.

All heuristic thresholds used by the anomaly rules, the AI-risk scorer
and the trend analyzers are policy values, not derived constants. They
are defined here with their defaults and can be overridden by YAML:

- thresholds.yaml: sections ``anomaly``, ``risk``, ``trends``, ``alerts``
- markers.yaml: phrase and pattern lists for structural heuristics

Usage:
    from src.core.writing.config import get_writing_analysis_config

    config = get_writing_analysis_config()
    print(config.anomaly.bulk_text_chars)
"""

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

from src.core.config.yaml_loader import deep_merge, load_optional_yaml

logger = logging.getLogger(__name__)

# Default config directory - can be overridden by WRITING_ANALYSIS_CONFIG_DIR env var
CONFIG_DIR = Path(
    os.environ.get(
        "WRITING_ANALYSIS_CONFIG_DIR",
        Path(__file__).parents[3] / "config" / "writing_analysis",
    )
)


@dataclass(frozen=True)
class AnomalyThresholds:
    """Thresholds for the real-time anomaly rules.

    Attributes:
        bulk_text_chars: Largest bulk insertion that is not suspicious.
        suspicious_typing_wpm: Highest typing speed that is not flagged.
        copy_paste_events: Paste events per update tolerated before flagging.
        style_check_interval_seconds: Minimum spacing of style drift checks.
        style_change_medium: Complexity delta above which drift is medium.
        style_change_high: Complexity delta above which drift is high.
    """

    bulk_text_chars: int = 500
    suspicious_typing_wpm: float = 120.0
    copy_paste_events: int = 5
    style_check_interval_seconds: int = 300
    style_change_medium: float = 30.0
    style_change_high: float = 50.0


@dataclass(frozen=True)
class RiskThresholds:
    """Thresholds for the deep AI-risk analysis.

    Attributes:
        escalation_score: Risk score above which integrity handling runs.
        baseline_sample_size: Historical submissions used for a baseline.
        default_avg_word_length: Baseline word length with no history.
        default_avg_sentence_length: Baseline sentence length with no history.
        default_vocabulary_diversity: Baseline type/token ratio with no history.
        fast_typing_wpm: Session typing speed treated as a red flag.
        slow_typing_wpm: Session typing speed treated as a red flag.
        long_pause_seconds: Pause length counted as long.
        short_pause_seconds: Pause length counted as short.
        long_pause_ratio: Share of long pauses that makes pacing suspicious.
        short_pause_ratio: Share of short pauses that makes pacing unnatural.
        organic_revision_ratio: Deletion ratio indicating organic revision.
        minimal_revision_ratio: Deletion ratio indicating minimal revision.
        copy_paste_flag: Session paste count above which a flag is raised.
        hedging_flag: Hedging phrase count above which a flag is raised.
        unusual_phrase_flag: Unusual phrase count above which a flag is raised.
        max_confidence: Upper bound on reported confidence.
        follow_up_days: Days until an educational follow-up is due.
    """

    escalation_score: float = 50.0
    baseline_sample_size: int = 10
    default_avg_word_length: float = 4.5
    default_avg_sentence_length: float = 15.0
    default_vocabulary_diversity: float = 0.4
    fast_typing_wpm: float = 80.0
    slow_typing_wpm: float = 20.0
    long_pause_seconds: float = 30.0
    short_pause_seconds: float = 2.0
    long_pause_ratio: float = 0.3
    short_pause_ratio: float = 0.8
    organic_revision_ratio: float = 0.3
    minimal_revision_ratio: float = 0.1
    copy_paste_flag: int = 1
    hedging_flag: int = 3
    unusual_phrase_flag: int = 2
    max_confidence: float = 95.0
    follow_up_days: int = 7


@dataclass(frozen=True)
class TrendThresholds:
    """Thresholds for the longitudinal trend analyzers.

    Percentages are expressed on a 0-100 scale, rates on a 0-1 scale.
    """

    productivity_decline_percent: float = 40.0
    productivity_floor_words: int = 200
    effort_minutes: float = 120.0
    effort_min_avg_words: float = 20.0
    last_minute_hours: float = 24.0
    procrastination_rate: float = 0.6
    procrastination_min_submissions: int = 2
    under_participation_factor: float = 0.5
    over_participation_factor: float = 1.8
    deletion_ratio: float = 0.8
    deletion_min_words: int = 100
    crisis_window_days: float = 3.0
    crisis_word_floor: int = 100
    crisis_min_submissions: int = 2
    crisis_response_hours: int = 24


@dataclass(frozen=True)
class AlertPolicy:
    """How alerts are finalized and handed to notification dispatch.

    Attributes:
        response_hours: Response deadline by severity when none is set.
        priority_by_severity: Dispatch priority by alert severity.
        category: Notification category for intervention alerts.
        action_url_template: Instructor link, formatted with student_id.
    """

    response_hours: dict[str, int] = field(
        default_factory=lambda: {"critical": 24, "warning": 72, "info": 168}
    )
    priority_by_severity: dict[str, str] = field(
        default_factory=lambda: {
            "critical": "urgent",
            "warning": "high",
            "info": "normal",
        }
    )
    category: str = "educational_intervention"
    action_url_template: str = "/students/{student_id}/intervention"


@dataclass(frozen=True)
class MarkerLexicon:
    """Phrase lists and regex patterns for structural AI-pattern heuristics.

    Phrases are matched case-insensitively as substrings. Personal voice
    patterns compile with re.IGNORECASE; informal patterns are case-sensitive
    unless they carry an inline (?i) flag.
    """

    hedging_phrases: tuple[str, ...] = (
        "it is important to note",
        "it should be mentioned",
        "one might argue",
        "it could be said",
        "generally speaking",
        "in many cases",
        "to some extent",
    )
    formulaic_transitions: tuple[str, ...] = (
        "furthermore",
        "moreover",
        "additionally",
        "in conclusion",
        "to summarize",
        "in essence",
    )
    ai_style_markers: tuple[str, ...] = (
        "comprehensive understanding",
        "multifaceted approach",
        "nuanced perspective",
        "various stakeholders",
        "significant implications",
    )
    personal_voice_patterns: tuple[str, ...] = (
        r"\bI (think|believe|feel|remember|wonder)\b",
        r"\b(my|our) (experience|opinion|view|perspective)\b",
        r"\b(personally|honestly|frankly)\b",
        r"\b(maybe|perhaps|probably)\b",
    )
    informal_patterns: tuple[str, ...] = (
        r"(?i)\b(gonna|wanna|gotta|kinda|sorta)\b",
        r"(?i)\b(lol|omg|btw)\b",
        r"[.!?]\s*[a-z]",
        r"[ \t]{2,}",
        r"[,;]\s*[,;]",
    )
    intro_pattern: str = r"introduction|firstly|to begin"
    conclusion_pattern: str = r"conclusion|in conclusion|to summarize"


@dataclass(frozen=True)
class WritingAnalysisConfig:
    """Complete writing analysis policy."""

    anomaly: AnomalyThresholds = field(default_factory=AnomalyThresholds)
    risk: RiskThresholds = field(default_factory=RiskThresholds)
    trends: TrendThresholds = field(default_factory=TrendThresholds)
    alerts: AlertPolicy = field(default_factory=AlertPolicy)
    markers: MarkerLexicon = field(default_factory=MarkerLexicon)


def _build_section(cls: type, data: dict[str, Any]) -> Any:
    """Instantiate a config dataclass from a mapping, ignoring unknown keys.

    List values are converted to tuples for tuple-typed fields so the
    resulting dataclass stays hashable.
    """
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(
            "Ignoring unknown %s keys: %s", cls.__name__, ", ".join(sorted(unknown))
        )

    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            continue
        kwargs[key] = tuple(value) if isinstance(value, list) else value
    return cls(**kwargs)


def build_config(
    thresholds: dict[str, Any] | None = None,
    markers: dict[str, Any] | None = None,
) -> WritingAnalysisConfig:
    """Build a config from override mappings merged over defaults.

    Args:
        thresholds: Mapping with optional ``anomaly``, ``risk``, ``trends``
            and ``alerts`` sections.
        markers: Mapping of MarkerLexicon fields.

    Returns:
        WritingAnalysisConfig instance.
    """
    defaults = WritingAnalysisConfig()
    thresholds = thresholds or {}

    def section(name: str, cls: type, current: Any) -> Any:
        merged = deep_merge(asdict(current), thresholds.get(name) or {})
        return _build_section(cls, merged)

    return WritingAnalysisConfig(
        anomaly=section("anomaly", AnomalyThresholds, defaults.anomaly),
        risk=section("risk", RiskThresholds, defaults.risk),
        trends=section("trends", TrendThresholds, defaults.trends),
        alerts=section("alerts", AlertPolicy, defaults.alerts),
        markers=_build_section(
            MarkerLexicon, deep_merge(asdict(defaults.markers), markers or {})
        ),
    )


@lru_cache(maxsize=1)
def load_writing_analysis_config(config_dir: str | None = None) -> WritingAnalysisConfig:
    """Load writing analysis configuration from YAML files.

    Uses LRU cache to avoid reloading on every access.
    Call `load_writing_analysis_config.cache_clear()` to reload.

    Args:
        config_dir: Optional config directory override (as string for caching).

    Returns:
        WritingAnalysisConfig instance.

    Raises:
        YAMLLoadError: If a present file cannot be parsed.
    """
    dir_path = CONFIG_DIR if config_dir is None else Path(config_dir)
    logger.debug("Loading writing analysis config from: %s", dir_path)

    thresholds_data = load_optional_yaml(dir_path / "thresholds.yaml")
    markers_data = load_optional_yaml(dir_path / "markers.yaml")

    config = build_config(
        thresholds=thresholds_data.get("writing_analysis", thresholds_data),
        markers=markers_data.get("markers", markers_data),
    )

    logger.info(
        "Loaded writing analysis config: bulk=%d chars, speed=%.0f wpm, escalation=%.0f",
        config.anomaly.bulk_text_chars,
        config.anomaly.suspicious_typing_wpm,
        config.risk.escalation_score,
    )
    return config


def get_writing_analysis_config() -> WritingAnalysisConfig:
    """Get the cached writing analysis configuration.

    Honors WRITING_ANALYSIS_CONFIG_DIR through the application settings.

    Returns:
        WritingAnalysisConfig instance.
    """
    from src.core.config import get_settings

    return load_writing_analysis_config(get_settings().writing_analysis.config_dir)
