# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Data models for writing-behavior analysis.

Raw telemetry enters as a pydantic ``WritingSessionUpdate`` (validated at
the boundary). Everything past validation is a plain dataclass:

- WritingSession: cumulative state of one editing session, owned by the
  session store and mutated additively.
- ActivitySnapshot: immutable per-update deltas, the unit the anomaly
  rules evaluate.
- AnomalyRecord: one rule-triggered observation, never mutated.
- Document, version and submission records read from collaborators.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.utils.datetime import format_iso, utc_now


class AnomalyType(str, Enum):
    """Types of real-time writing anomalies."""

    SUSPICIOUS_ADDITION = "suspicious_addition"
    STYLE_CHANGE = "style_change"
    AI_PATTERN = "ai_pattern"
    COPY_PASTE = "copy_paste"


class AnomalySeverity(str, Enum):
    """Anomaly severity levels, ordered low < medium < high."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Numeric rank for ordering comparisons."""
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AnomalySeverity.LOW: 0,
    AnomalySeverity.MEDIUM: 1,
    AnomalySeverity.HIGH: 2,
}


@dataclass(frozen=True)
class AnomalyRecord:
    """A single rule-triggered observation about one session update.

    Attributes:
        type: Anomaly type.
        severity: Severity level.
        description: Human-readable description.
        timestamp: When the anomaly was detected.
        requires_review: Whether an instructor should review it.
            Only medium or high anomalies may require review.
    """

    type: AnomalyType
    severity: AnomalySeverity
    description: str
    timestamp: datetime
    requires_review: bool = False

    def __post_init__(self) -> None:
        if self.requires_review and self.severity.rank < AnomalySeverity.MEDIUM.rank:
            raise ValueError(
                f"Anomaly {self.type.value} requires review but severity is "
                f"{self.severity.value}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "timestamp": format_iso(self.timestamp),
            "requires_review": self.requires_review,
        }


NonNegativeInt = Annotated[int, Field(ge=0)]
NonNegativeFloat = Annotated[float, Field(ge=0)]


class WritingSessionUpdate(BaseModel):
    """Raw telemetry update sent by the editor for one writing session.

    Field names accept both snake_case and the editor's camelCase
    (``charsAdded``). Counts must be non-negative; ``duration`` is the
    editing time in minutes covered by this update and is clamped at 0.
    ``bulk_addition_sizes`` carries one character size per bulk insertion
    reported in ``bulk_text_additions``; the two must agree.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    session_id: str = Field(min_length=1)
    document_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    chars_added: NonNegativeInt = 0
    chars_deleted: NonNegativeInt = 0
    words_added: NonNegativeInt = 0
    words_deleted: NonNegativeInt = 0
    copy_paste_events: NonNegativeInt = 0
    bulk_text_additions: NonNegativeInt = 0
    bulk_addition_sizes: list[NonNegativeInt] = Field(default_factory=list)
    pause_durations: list[NonNegativeFloat] = Field(default_factory=list)
    duration: float = 0.0
    last_activity: datetime = Field(default_factory=utc_now)

    @field_validator("duration")
    @classmethod
    def clamp_duration(cls, value: float) -> float:
        """Clamp negative durations (clock skew) to zero."""
        return max(0.0, value)

    @model_validator(mode="after")
    def check_bulk_sizes(self) -> "WritingSessionUpdate":
        """Require one size per reported bulk insertion."""
        if len(self.bulk_addition_sizes) != self.bulk_text_additions:
            raise ValueError(
                f"bulk_addition_sizes has {len(self.bulk_addition_sizes)} entries "
                f"for {self.bulk_text_additions} bulk text additions"
            )
        return self


@dataclass
class WritingSession:
    """Cumulative state of one continuous editing session.

    Counters only ever grow; pause and bulk histories are append-only.
    """

    id: str
    user_id: str
    document_id: str
    start_time: datetime
    course_id: str | None = None
    duration_minutes: float = 0.0
    chars_added: int = 0
    chars_deleted: int = 0
    words_added: int = 0
    words_deleted: int = 0
    copy_paste_count: int = 0
    bulk_additions: int = 0
    pause_durations: list[float] = field(default_factory=list)
    bulk_addition_history: list[int] = field(default_factory=list)
    last_activity: datetime | None = None
    last_style_check: datetime | None = None
    anomalies: list[AnomalyRecord] = field(default_factory=list)

    @property
    def deletion_ratio(self) -> float:
        """Characters deleted per character added."""
        return self.chars_deleted / max(1, self.chars_added)

    @property
    def typing_speed_wpm(self) -> float:
        """Average words per minute over the whole session."""
        if self.duration_minutes <= 0:
            return 0.0
        return self.words_added / self.duration_minutes * 60

    @property
    def revision_cycles(self) -> int:
        """Rough count of revision passes, one per 100 deleted characters."""
        return self.chars_deleted // 100


@dataclass(frozen=True)
class ActivitySnapshot:
    """Immutable per-update deltas derived from one session update.

    Attributes:
        session_id: Session the update belongs to.
        user_id: Writing student.
        document_id: Document being edited.
        chars_added: Characters added in this update.
        chars_deleted: Characters deleted in this update.
        words_added: Words added in this update.
        words_deleted: Words deleted in this update.
        copy_paste_events: Paste events in this update.
        bulk_text_additions: Bulk insertions in this update.
        pause_durations: Pauses (seconds) observed in this update.
        elapsed_minutes: Editing time covered by this update.
        last_bulk_addition: Size of the last bulk insertion in this update,
            if any.
        observed_at: Last activity timestamp of the update.
    """

    session_id: str
    user_id: str
    document_id: str
    chars_added: int = 0
    chars_deleted: int = 0
    words_added: int = 0
    words_deleted: int = 0
    copy_paste_events: int = 0
    bulk_text_additions: int = 0
    pause_durations: tuple[float, ...] = ()
    elapsed_minutes: float = 0.0
    last_bulk_addition: int | None = None
    observed_at: datetime = field(default_factory=utc_now)

    @property
    def typing_speed_wpm(self) -> float:
        """Words per minute for this update, 0 when no time elapsed."""
        if self.elapsed_minutes <= 0:
            return 0.0
        return self.words_added / self.elapsed_minutes * 60

    @property
    def is_idle(self) -> bool:
        """True when the update carries no writing activity."""
        return not any(
            (
                self.chars_added,
                self.chars_deleted,
                self.words_added,
                self.words_deleted,
                self.copy_paste_events,
                self.bulk_text_additions,
            )
        )


@dataclass(frozen=True)
class RealTimeWritingMetrics:
    """Real-time writing state forwarded to the student behavior profile."""

    user_id: str
    session_id: str
    document_id: str
    duration_minutes: float
    words_written: int
    deletion_ratio: float
    pause_count: int
    revision_cycles: int
    ai_interaction_count: int = 0
    recorded_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class DocumentVersion:
    """A persisted snapshot of document content."""

    document_id: str
    version: int
    content: str
    created_at: datetime


@dataclass
class DocumentRecord:
    """Current state of a student document."""

    id: str
    author_id: str
    content: str = ""
    title: str | None = None
    course_id: str | None = None
    assignment_id: str | None = None
    assignment_title: str | None = None
    instructor_id: str | None = None


@dataclass(frozen=True)
class ContributorStat:
    """Words contributed by one participant to a collaborative submission."""

    user_id: str
    words_contributed: int


@dataclass
class Submission:
    """An assignment submission as seen by the trend analyzers.

    Attributes:
        id: Submission identifier.
        author_id: Primary author.
        assignment_id: Assignment the submission answers.
        assignment_title: Assignment title for alert messages.
        course_id: Course the assignment belongs to.
        created_at: First edit time.
        last_saved_at: Most recent save.
        due_date: Assignment deadline, if any.
        word_count: Current length of the submission.
        is_collaborative: Whether several students write it together.
        collaborator_ids: Non-author participants.
        contributor_stats: Per-participant contributions.
    """

    id: str
    author_id: str
    assignment_id: str
    created_at: datetime
    last_saved_at: datetime
    assignment_title: str = ""
    course_id: str | None = None
    due_date: datetime | None = None
    word_count: int = 0
    is_collaborative: bool = False
    collaborator_ids: list[str] = field(default_factory=list)
    contributor_stats: list[ContributorStat] = field(default_factory=list)

    def involves(self, user_id: str) -> bool:
        """Check whether the user authored or collaborates on this submission."""
        return self.author_id == user_id or user_id in self.collaborator_ids


class DeclarationTiming(str, Enum):
    """When in the writing process AI use was declared."""

    BEFORE = "before"
    DURING = "during"
    AFTER = "after"
    PROMPTED = "prompted"


@dataclass
class AIUsageDeclaration:
    """A student's self-declaration of AI assistance on a document.

    Attributes:
        student_id: Declaring student.
        document_id: Document the declaration covers.
        tools_used: AI tools named by the student.
        usage_description: How the tools were used.
        percentage_ai_generated: Student's estimate, 0-100.
        declaration_time: Point in the writing process the declaration was made.
        understands_policy: Whether the student confirmed the AI use policy.
        declared_at: Declaration time.
    """

    student_id: str
    document_id: str
    tools_used: list[str] = field(default_factory=list)
    usage_description: str = ""
    percentage_ai_generated: float = 0.0
    declaration_time: DeclarationTiming = DeclarationTiming.AFTER
    understands_policy: bool = True
    declared_at: datetime = field(default_factory=utc_now)


@dataclass
class IntegrityProfile:
    """Running academic integrity standing of one student.

    Honest declarations raise the score, undeclared high-risk detections
    lower it. The score is kept within 0-100.
    """

    student_id: str
    integrity_score: float = 70.0
    honest_declarations: int = 0
    undeclared_detections: int = 0
    last_incident: datetime | None = None
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def risk_level(self) -> str:
        if self.integrity_score >= 80:
            return "low"
        if self.integrity_score >= 60:
            return "medium"
        return "high"

    @property
    def trend(self) -> str:
        return "improving" if self.honest_declarations > self.undeclared_detections else "stable"

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "integrity_score": self.integrity_score,
            "risk_level": self.risk_level,
            "honest_declarations": self.honest_declarations,
            "undeclared_detections": self.undeclared_detections,
            "trend": self.trend,
            "last_incident": format_iso(self.last_incident),
            "updated_at": format_iso(self.updated_at),
        }


@dataclass
class IntegrityEducationPlan:
    """Supportive learning plan built from a student's integrity profile."""

    student_id: str
    reason: str
    integrity_score: float
    risk_level: str
    honest_declarations: int
    suspicious_submissions: int
    improvement_trend: str
    required_modules: list[str] = field(default_factory=list)
    scheduled_check_ins: list[datetime] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "student_id": self.student_id,
            "reason": self.reason,
            "integrity_score": self.integrity_score,
            "risk_level": self.risk_level,
            "honest_declarations": self.honest_declarations,
            "suspicious_submissions": self.suspicious_submissions,
            "improvement_trend": self.improvement_trend,
            "required_modules": list(self.required_modules),
            "scheduled_check_ins": [format_iso(d) for d in self.scheduled_check_ins],
            "created_at": format_iso(self.created_at),
        }


@dataclass(frozen=True)
class AIDetectionRecord:
    """Stored outcome of one deep AI-risk analysis of a document."""

    document_id: str
    risk_score: float
    confidence: float
    intervention_deployed: bool
    assessed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "document_id": self.document_id,
            "risk_score": self.risk_score,
            "confidence": self.confidence,
            "intervention_deployed": self.intervention_deployed,
            "assessed_at": format_iso(self.assessed_at),
        }


@dataclass(frozen=True)
class WritingBaseline:
    """A student's established writing-style profile.

    Attributes:
        student_id: Student the baseline describes.
        avg_word_length: Mean characters per word.
        avg_sentence_length: Mean words per sentence.
        vocabulary_diversity: Unique words divided by total words.
        common_phrases: Frequent word trigrams from past submissions.
        samples_analyzed: Number of submissions the baseline was built from.
        updated_at: When the baseline was computed.
    """

    student_id: str
    avg_word_length: float
    avg_sentence_length: float
    vocabulary_diversity: float
    common_phrases: tuple[str, ...] = ()
    samples_analyzed: int = 0
    updated_at: datetime = field(default_factory=utc_now)
