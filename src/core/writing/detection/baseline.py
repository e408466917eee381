# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student writing baselines.

A baseline is built from the student's most recent historical
submissions and cached through the BaselineStore. Students without any
history get the default baseline from the risk thresholds.
"""

import logging
from collections import Counter
from collections.abc import Callable
from datetime import datetime

from src.core.writing.config import RiskThresholds
from src.core.writing.models import WritingBaseline
from src.core.writing.stores import BaselineStore, SubmissionStore, collaborator_call
from src.core.writing.text_metrics import split_sentences, tokenize, word_trigrams
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

COMMON_PHRASE_LIMIT = 10


class BaselineBuilder:
    """Builds and caches per-student writing baselines.

    Attributes:
        thresholds: Risk thresholds (sample size and default values).
        submissions: Source of historical submission texts.
        baselines: Baseline cache.
    """

    def __init__(
        self,
        thresholds: RiskThresholds,
        submissions: SubmissionStore,
        baselines: BaselineStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.thresholds = thresholds
        self.submissions = submissions
        self.baselines = baselines
        self._clock = clock

    def default_baseline(self, student_id: str) -> WritingBaseline:
        """Baseline for a student with no writing history."""
        return WritingBaseline(
            student_id=student_id,
            avg_word_length=self.thresholds.default_avg_word_length,
            avg_sentence_length=self.thresholds.default_avg_sentence_length,
            vocabulary_diversity=self.thresholds.default_vocabulary_diversity,
            common_phrases=(),
            samples_analyzed=0,
            updated_at=self._clock(),
        )

    def build(self, student_id: str, contents: list[str]) -> WritingBaseline:
        """Build a baseline from historical submission texts.

        Word statistics are pooled over all texts. Common phrases are the
        most frequent word trigrams.

        Args:
            student_id: Student the texts belong to.
            contents: Submission texts, most recent first.

        Returns:
            WritingBaseline instance, the default one when the texts
            contain no words.
        """
        samples = [c for c in contents[: self.thresholds.baseline_sample_size] if c and c.strip()]

        words: list[str] = []
        sentence_count = 0
        phrases: Counter[str] = Counter()
        for content in samples:
            words.extend(t.lower() for t in tokenize(content))
            sentence_count += len(split_sentences(content))
            phrases.update(word_trigrams(content))

        if not words:
            return self.default_baseline(student_id)

        return WritingBaseline(
            student_id=student_id,
            avg_word_length=sum(len(w) for w in words) / len(words),
            avg_sentence_length=len(words) / max(1, sentence_count),
            vocabulary_diversity=len(set(words)) / len(words),
            common_phrases=tuple(p for p, _ in phrases.most_common(COMMON_PHRASE_LIMIT)),
            samples_analyzed=len(samples),
            updated_at=self._clock(),
        )

    async def get_or_build(self, student_id: str) -> WritingBaseline:
        """Return the cached baseline, building and caching it if absent.

        Raises:
            CollaboratorUnavailableError: If a store fails.
        """
        with collaborator_call("baseline store"):
            cached = await self.baselines.get(student_id)
        if cached is not None:
            return cached

        with collaborator_call("submission store"):
            contents = await self.submissions.list_recent_contents(
                student_id, self.thresholds.baseline_sample_size
            )

        baseline = self.build(student_id, contents)
        with collaborator_call("baseline store"):
            await self.baselines.save(baseline)

        logger.info(
            "Built writing baseline for student %s from %d samples",
            student_id,
            baseline.samples_analyzed,
        )
        return baseline
