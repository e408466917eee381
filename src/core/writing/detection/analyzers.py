# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sub-analyses feeding the AI-risk score.

- StylometricAnalyzer: deviation of a text from the student's baseline.
- BehavioralAnalyzer: how the text was produced in the writing session.
- PatternAnalyzer: structural markers typical of generated text.

All three are heuristics over surface features. They produce signals for
an educational conversation, not proof of misconduct.
"""

import re
import statistics
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.core.writing.config import MarkerLexicon, RiskThresholds
from src.core.writing.models import WritingBaseline, WritingSession
from src.core.writing.text_metrics import (
    profile_text,
    split_sentences,
    split_words,
    tokenize,
    word_trigrams,
)

UNUSUAL_PHRASE_LIMIT = 10
FORMULAIC_TRANSITION_LIMIT = 4
FIVE_PARAGRAPHS = 5
POLISHED_MIN_WORDS = 200
PERSONAL_MARKERS_PER_100_WORDS = 0.5
UNIFORM_START_VARIETY = 0.7
UNIFORM_START_MIN_SENTENCES = 5

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")


class PausePattern(str, Enum):
    """Shape of the pauses in a writing session."""

    NATURAL = "natural"
    UNNATURAL = "unnatural"
    SUSPICIOUS = "suspicious"


class RevisionPattern(str, Enum):
    """Amount of revision in a writing session."""

    ORGANIC = "organic"
    MINIMAL = "minimal"
    NONE = "none"


@dataclass(frozen=True)
class StylometricResult:
    """Comparison of a text against the author's baseline.

    Attributes:
        vocabulary_complexity: 0-100, from word length and long words.
        sentence_variability: 0-100, coefficient of variation of sentence
            lengths. 50 when there are fewer than two sentences.
        style_consistency: 100 minus the deviation.
        unusual_phrases: AI style markers and unfamiliar formulaic phrases.
        deviation_from_baseline: Mean relative deviation, in percent.
    """

    vocabulary_complexity: float
    sentence_variability: float
    style_consistency: float
    unusual_phrases: list[str] = field(default_factory=list)
    deviation_from_baseline: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "vocabulary_complexity": self.vocabulary_complexity,
            "sentence_variability": self.sentence_variability,
            "style_consistency": self.style_consistency,
            "unusual_phrases": list(self.unusual_phrases),
            "deviation_from_baseline": self.deviation_from_baseline,
        }


@dataclass(frozen=True)
class BehavioralResult:
    """Writing-process signals from the session that produced a text."""

    typing_speed: float
    pause_pattern: PausePattern
    copy_paste_events: int
    bulk_text_additions: int
    revision_pattern: RevisionPattern

    def to_dict(self) -> dict[str, Any]:
        return {
            "typing_speed": self.typing_speed,
            "pause_pattern": self.pause_pattern.value,
            "copy_paste_events": self.copy_paste_events,
            "bulk_text_additions": self.bulk_text_additions,
            "revision_pattern": self.revision_pattern.value,
        }


@dataclass(frozen=True)
class PatternResult:
    """Structural markers found in a text."""

    formulaic_structure: bool
    overly_polished: bool
    lack_of_personal_voice: bool
    uniform_sentence_starts: bool
    hedging_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "formulaic_structure": self.formulaic_structure,
            "overly_polished": self.overly_polished,
            "lack_of_personal_voice": self.lack_of_personal_voice,
            "uniform_sentence_starts": self.uniform_sentence_starts,
            "hedging_count": self.hedging_count,
        }


def _relative_deviation(current: float, baseline: float) -> float:
    if baseline <= 0:
        return 0.0
    return abs(current - baseline) / baseline


class StylometricAnalyzer:
    """Measures how far a text departs from the author's baseline."""

    def __init__(self, markers: MarkerLexicon) -> None:
        self.markers = markers

    def analyze(self, content: str, baseline: WritingBaseline) -> StylometricResult:
        profile = profile_text(content)
        if profile.word_count == 0:
            return StylometricResult(
                vocabulary_complexity=0.0,
                sentence_variability=50.0,
                style_consistency=100.0,
            )

        deviation = (
            _relative_deviation(profile.avg_word_length, baseline.avg_word_length)
            + _relative_deviation(profile.avg_sentence_length, baseline.avg_sentence_length)
            + _relative_deviation(profile.vocabulary_diversity, baseline.vocabulary_diversity)
        ) / 3 * 100

        return StylometricResult(
            vocabulary_complexity=self.vocabulary_complexity(content),
            sentence_variability=self.sentence_variability(content),
            style_consistency=100 - deviation,
            unusual_phrases=self.find_unusual_phrases(content, baseline),
            deviation_from_baseline=deviation,
        )

    @staticmethod
    def vocabulary_complexity(content: str) -> float:
        tokens = tokenize(content)
        if not tokens:
            return 0.0
        avg_length = sum(len(t) for t in tokens) / len(tokens)
        long_words = sum(1 for t in tokens if len(t) > 8)
        score = (avg_length / 6) * 50 + (long_words / len(tokens)) * 50
        return min(score * 100, 100.0)

    @staticmethod
    def sentence_variability(content: str) -> float:
        sentences = split_sentences(content)
        if len(sentences) < 2:
            return 50.0
        lengths = [len(split_words(s)) for s in sentences]
        mean = statistics.fmean(lengths)
        return min(statistics.pstdev(lengths) / mean * 100, 100.0)

    def find_unusual_phrases(self, content: str, baseline: WritingBaseline) -> list[str]:
        """AI style markers present, plus unfamiliar trigrams with a formulaic transition.

        Unique, in order of discovery, at most UNUSUAL_PHRASE_LIMIT.
        """
        lowered = content.lower()
        found = [m for m in self.markers.ai_style_markers if m.lower() in lowered]

        familiar = set(baseline.common_phrases)
        transitions = [t.lower() for t in self.markers.formulaic_transitions]
        for phrase in word_trigrams(content):
            if phrase not in familiar and any(t in phrase for t in transitions):
                found.append(phrase)

        return list(dict.fromkeys(found))[:UNUSUAL_PHRASE_LIMIT]


class BehavioralAnalyzer:
    """Reads production signals off the session that wrote the text.

    Without a session, the result is neutral and raises no flags.
    """

    def __init__(self, thresholds: RiskThresholds) -> None:
        self.thresholds = thresholds

    def analyze(self, session: WritingSession | None) -> BehavioralResult:
        if session is None:
            return BehavioralResult(
                typing_speed=0.0,
                pause_pattern=PausePattern.NATURAL,
                copy_paste_events=0,
                bulk_text_additions=0,
                revision_pattern=RevisionPattern.ORGANIC,
            )

        return BehavioralResult(
            typing_speed=session.typing_speed_wpm,
            pause_pattern=self.pause_pattern(session.pause_durations),
            copy_paste_events=session.copy_paste_count,
            bulk_text_additions=session.bulk_additions,
            revision_pattern=self.revision_pattern(session.deletion_ratio),
        )

    def pause_pattern(self, pauses: list[float]) -> PausePattern:
        if not pauses:
            return PausePattern.NATURAL

        long_pauses = sum(1 for p in pauses if p > self.thresholds.long_pause_seconds)
        short_pauses = sum(1 for p in pauses if p < self.thresholds.short_pause_seconds)

        if long_pauses > len(pauses) * self.thresholds.long_pause_ratio:
            return PausePattern.SUSPICIOUS
        if short_pauses > len(pauses) * self.thresholds.short_pause_ratio:
            return PausePattern.UNNATURAL
        return PausePattern.NATURAL

    def revision_pattern(self, deletion_ratio: float) -> RevisionPattern:
        if deletion_ratio > self.thresholds.organic_revision_ratio:
            return RevisionPattern.ORGANIC
        if deletion_ratio > self.thresholds.minimal_revision_ratio:
            return RevisionPattern.MINIMAL
        return RevisionPattern.NONE


class PatternAnalyzer:
    """Detects structural markers of generated text."""

    def __init__(self, markers: MarkerLexicon) -> None:
        self.markers = markers
        self._intro_re = re.compile(markers.intro_pattern, re.IGNORECASE)
        self._conclusion_re = re.compile(markers.conclusion_pattern, re.IGNORECASE)
        self._personal_res = [
            re.compile(p, re.IGNORECASE) for p in markers.personal_voice_patterns
        ]
        self._informal_res = [re.compile(p) for p in markers.informal_patterns]

    def analyze(self, content: str) -> PatternResult:
        return PatternResult(
            formulaic_structure=self.has_formulaic_structure(content),
            overly_polished=self.is_overly_polished(content),
            lack_of_personal_voice=self.lacks_personal_voice(content),
            uniform_sentence_starts=self.has_uniform_starts(content),
            hedging_count=self.count_hedging(content),
        )

    def count_hedging(self, content: str) -> int:
        lowered = content.lower()
        return sum(lowered.count(p.lower()) for p in self.markers.hedging_phrases)

    def has_formulaic_structure(self, content: str) -> bool:
        """Five-paragraph essay shape, or heavy use of stock transitions."""
        paragraphs = _PARAGRAPH_SPLIT_RE.split(content)
        if len(paragraphs) == FIVE_PARAGRAPHS:
            if self._intro_re.search(paragraphs[0]) and self._conclusion_re.search(paragraphs[-1]):
                return True

        lowered = content.lower()
        transitions = sum(lowered.count(t.lower()) for t in self.markers.formulaic_transitions)
        return transitions > FORMULAIC_TRANSITION_LIMIT

    def is_overly_polished(self, content: str) -> bool:
        """A long text without a single informal marker."""
        if len(split_words(content)) <= POLISHED_MIN_WORDS:
            return False
        return not any(pattern.search(content) for pattern in self._informal_res)

    def lacks_personal_voice(self, content: str) -> bool:
        word_count = len(split_words(content))
        if word_count == 0:
            return False
        personal = sum(len(pattern.findall(content)) for pattern in self._personal_res)
        return personal / (word_count / 100) < PERSONAL_MARKERS_PER_100_WORDS

    @staticmethod
    def has_uniform_starts(content: str) -> bool:
        sentences = split_sentences(content)
        if len(sentences) <= UNIFORM_START_MIN_SENTENCES:
            return False
        starts = {split_words(s)[0].lower() for s in sentences}
        return len(starts) / len(sentences) < UNIFORM_START_VARIETY
