"""
Recommendation Models

Session input, per-mode and cross-mode analysis results, difficulty and
practice-habit recommendations, and the report that bundles them.
"""

import enum
import datetime
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from practice_core.common.exceptions import ValidationError
from practice_core.common.serialization import SerializableMixin


class PracticeMode(enum.Enum):
    """
    Dictation practice modes.

    Declaration order is the fixed priority order used to break ties.
    """
    NUMBER = "number"
    TIME = "time"
    DIRECTION = "direction"
    LENGTH = "length"

    @property
    def priority(self) -> int:
        """Position in the tie-break order (0 is highest)."""
        return list(PracticeMode).index(self)

    @property
    def display_name(self) -> str:
        """Human readable mode name."""
        return f"{self.value} dictation"


class DifficultyTier(enum.Enum):
    """Ordered difficulty tiers."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"

    @classmethod
    def from_numeric(cls, value: int) -> 'DifficultyTier':
        """Convert a numeric value (1-4) to a tier, clamping out-of-range values."""
        mapping = {
            1: cls.BEGINNER,
            2: cls.INTERMEDIATE,
            3: cls.ADVANCED,
            4: cls.EXPERT
        }
        return mapping[max(1, min(4, int(value)))]

    def to_numeric(self) -> int:
        """Convert the tier to a numeric value (1-4)."""
        return {
            DifficultyTier.BEGINNER: 1,
            DifficultyTier.INTERMEDIATE: 2,
            DifficultyTier.ADVANCED: 3,
            DifficultyTier.EXPERT: 4
        }[self]

    def step(self, delta: int) -> 'DifficultyTier':
        """Move ``delta`` tiers up (or down), staying inside the range."""
        return DifficultyTier.from_numeric(self.to_numeric() + delta)


class Trend(enum.Enum):
    """Direction of recent performance."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class OverallProgress(enum.Enum):
    """Overall progress grade across practiced modes."""
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    NEEDS_IMPROVEMENT = "needs_improvement"


class LearningStyle(enum.Enum):
    BALANCED = "balanced"
    FOCUSED = "focused"
    EXPLORER = "explorer"
    BEGINNER = "beginner"


class ConsistencyLevel(enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ChallengePreference(enum.Enum):
    COMFORT_ZONE = "comfort_zone"
    MODERATE_CHALLENGE = "moderate_challenge"
    HIGH_CHALLENGE = "high_challenge"


class TimeOfDay(enum.Enum):
    """Time-of-day buckets; declaration order is the bucket order."""
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> 'TimeOfDay':
        """
        Bucket an hour of the day.

        Morning is 5-12, afternoon 12-17, evening 17-21 and night 21-5.
        """
        if 5 <= hour < 12:
            return cls.MORNING
        elif 12 <= hour < 17:
            return cls.AFTERNOON
        elif 17 <= hour < 21:
            return cls.EVENING
        else:
            return cls.NIGHT


class DataQuality(enum.Enum):
    """Grade of the data a report is based on."""
    EXCELLENT = "excellent"
    GOOD = "good"
    LIMITED = "limited"
    INSUFFICIENT = "insufficient"

    def downgrade(self) -> 'DataQuality':
        """Return the next lower grade."""
        order = list(DataQuality)
        return order[min(order.index(self) + 1, len(order) - 1)]

    @property
    def is_reliable(self) -> bool:
        """Whether the grade supports milestone and mastery projections."""
        return self in (DataQuality.EXCELLENT, DataQuality.GOOD)


def to_naive_utc(value: datetime.datetime) -> datetime.datetime:
    """
    Normalize a timestamp for comparison.

    Aware values are converted to UTC and made naive; naive values are taken
    to be UTC already.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(datetime.timezone.utc).replace(tzinfo=None)


@dataclass
class ModeSession(SerializableMixin):
    """One completed practice session in a single mode."""

    __serializable_fields__ = [
        "mode", "timestamp", "correct", "total", "duration_seconds", "difficulty", "sub_type"
    ]

    __optional_fields__ = ["duration_seconds", "difficulty", "sub_type"]

    mode: PracticeMode
    timestamp: datetime.datetime
    correct: int
    total: int
    duration_seconds: float = 0.0
    difficulty: Optional[DifficultyTier] = None
    # Content type inside the mode, e.g. "year" for time or "meter" for length
    sub_type: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.mode, str):
            self.mode = PracticeMode(self.mode)
        if isinstance(self.difficulty, str):
            self.difficulty = DifficultyTier(self.difficulty)
        if isinstance(self.timestamp, str):
            self.timestamp = datetime.datetime.fromisoformat(self.timestamp)
        self.timestamp = to_naive_utc(self.timestamp)

        errors = {}
        if self.total < 0:
            errors["total"] = f"must be >= 0, got {self.total}"
        if self.correct < 0 or self.correct > max(self.total, 0):
            errors["correct"] = f"must be between 0 and total, got {self.correct}"
        if self.duration_seconds < 0:
            errors["duration_seconds"] = f"must be >= 0, got {self.duration_seconds}"
        if errors:
            raise ValidationError("invalid practice session", errors)

    @property
    def accuracy(self) -> float:
        """Fraction of correct answers, 0 for an empty session."""
        if self.total == 0:
            return 0.0
        return self.correct / self.total

    @property
    def duration_minutes(self) -> float:
        return self.duration_seconds / 60.0


def group_sessions_by_mode(sessions: Iterable[ModeSession]) -> Dict[PracticeMode, List[ModeSession]]:
    """
    Group sessions by mode.

    Every mode gets an entry (possibly empty); each list is ordered by
    timestamp.
    """
    grouped: Dict[PracticeMode, List[ModeSession]] = {mode: [] for mode in PracticeMode}
    for session in sessions:
        grouped[session.mode].append(session)
    for mode_sessions in grouped.values():
        mode_sessions.sort(key=lambda s: s.timestamp)
    return grouped


@dataclass
class SubTypePerformance(SerializableMixin):
    """Results for one content type within a mode."""

    __serializable_fields__ = ["sub_type", "accuracy", "sessions", "total_questions"]

    sub_type: str
    accuracy: float
    sessions: int
    total_questions: int


@dataclass
class ModePerformanceAnalysis(SerializableMixin):
    """Performance summary for one mode."""

    __serializable_fields__ = [
        "mode", "accuracy", "trend", "session_count", "confidence",
        "total_questions", "total_correct", "average_accuracy", "best_accuracy",
        "recent_accuracy", "previous_accuracy", "improvement_rate_per_day",
        "last_played", "experience_gained", "favorite_sub_type", "sub_type_performance"
    ]

    __optional_fields__ = [
        "previous_accuracy", "improvement_rate_per_day", "last_played", "favorite_sub_type"
    ]

    mode: PracticeMode
    accuracy: float = 0.0
    trend: Trend = Trend.STABLE
    session_count: int = 0
    confidence: float = 0.0
    total_questions: int = 0
    total_correct: int = 0
    average_accuracy: float = 0.0
    best_accuracy: float = 0.0
    recent_accuracy: float = 0.0
    previous_accuracy: Optional[float] = None
    improvement_rate_per_day: Optional[float] = None
    last_played: Optional[datetime.datetime] = None
    experience_gained: int = 0
    favorite_sub_type: Optional[str] = None
    sub_type_performance: List[SubTypePerformance] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        """Whether the mode has been practiced at all."""
        return self.session_count > 0


@dataclass
class ModeRanking(SerializableMixin):
    """Composite ranking entry for one mode."""

    __serializable_fields__ = ["mode", "rank", "score", "accuracy", "session_count"]

    mode: PracticeMode
    rank: int
    score: float
    accuracy: float
    session_count: int


@dataclass
class CrossModeAnalysis(SerializableMixin):
    """Comparison across all modes."""

    __serializable_fields__ = [
        "strongest_mode", "weakest_mode", "balance_score", "diversity_score",
        "overall_progress", "mode_rankings", "recommended_focus_mode"
    ]

    __optional_fields__ = ["recommended_focus_mode"]

    strongest_mode: PracticeMode
    weakest_mode: PracticeMode
    balance_score: float
    diversity_score: float
    overall_progress: OverallProgress
    mode_rankings: List[ModeRanking] = field(default_factory=list)
    recommended_focus_mode: Optional[PracticeMode] = None

    def ranking_for(self, mode: PracticeMode) -> Optional[ModeRanking]:
        for ranking in self.mode_rankings:
            if ranking.mode == mode:
                return ranking
        return None


@dataclass
class LearningPattern(SerializableMixin):
    """Inferred learning behaviour."""

    __serializable_fields__ = [
        "preferred_modes", "learning_style", "consistency_level", "challenge_preference"
    ]

    preferred_modes: List[PracticeMode]
    learning_style: LearningStyle
    consistency_level: ConsistencyLevel
    challenge_preference: ChallengePreference


@dataclass
class DifficultyRecommendation(SerializableMixin):
    """
    Recommended difficulty for one mode.

    ``next_milestone`` and ``estimated_days_to_mastery`` are present only
    when progress data supports a projection.
    """

    __serializable_fields__ = [
        "mode", "current_level", "recommended_difficulty", "recommended_setting",
        "reason", "confidence", "next_milestone", "estimated_days_to_mastery"
    ]

    __optional_fields__ = ["next_milestone", "estimated_days_to_mastery"]

    mode: PracticeMode
    current_level: DifficultyTier
    recommended_difficulty: DifficultyTier
    recommended_setting: str
    reason: str
    confidence: float
    next_milestone: Optional[str] = None
    estimated_days_to_mastery: Optional[int] = None


@dataclass
class EffectivenessSummary(SerializableMixin):
    """Where practice is paying off and where it is not."""

    __serializable_fields__ = [
        "overall_trend", "strength_areas", "improvement_areas", "recommendations"
    ]

    overall_trend: Trend
    strength_areas: List[str] = field(default_factory=list)
    improvement_areas: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


@dataclass
class PracticeAnalysis(SerializableMixin):
    """Practice habits over a trailing window."""

    __serializable_fields__ = [
        "window_days", "active_days", "daily_average_minutes", "weekly_frequency",
        "consistency_score", "effectiveness_score",
        "recommended_sessions_per_week", "recommended_frequency",
        "recommended_duration_minutes", "recommended_duration",
        "best_performance_time_of_day", "optimal_practice_time", "best_practice_day",
        "effectiveness_summary"
    ]

    __optional_fields__ = [
        "recommended_duration_minutes", "best_performance_time_of_day", "best_practice_day",
        "effectiveness_summary"
    ]

    window_days: int
    active_days: int
    daily_average_minutes: float
    weekly_frequency: float
    consistency_score: float
    effectiveness_score: float
    recommended_sessions_per_week: int
    recommended_frequency: str
    recommended_duration: str
    optimal_practice_time: str
    recommended_duration_minutes: Optional[str] = None
    best_performance_time_of_day: Optional[TimeOfDay] = None
    best_practice_day: Optional[str] = None
    effectiveness_summary: Optional[EffectivenessSummary] = None


@dataclass
class PrimaryRecommendation(SerializableMixin):
    """Headline recommendation of a report."""

    __serializable_fields__ = ["text", "difficulty", "reason", "focus_mode"]
    __optional_fields__ = ["focus_mode"]

    text: str
    difficulty: DifficultyTier
    reason: str
    focus_mode: Optional[PracticeMode] = None


@dataclass
class Suggestions(SerializableMixin):
    """Advice grouped by horizon."""

    __serializable_fields__ = ["immediate", "short_term", "long_term"]

    immediate: List[str] = field(default_factory=list)
    short_term: List[str] = field(default_factory=list)
    long_term: List[str] = field(default_factory=list)


@dataclass
class RecommendationReport(SerializableMixin):
    """
    Versioned bundle of every analysis for one user.

    A failed report carries ``success=False`` and ``error`` and leaves the
    analysis sections out.
    """

    __serializable_fields__ = [
        "report_version", "generated_at", "success", "error", "data_quality",
        "primary_recommendation", "mode_analyses", "cross_mode_analysis",
        "learning_pattern", "difficulty_recommendations", "practice_analysis",
        "suggestions"
    ]

    __optional_fields__ = [
        "error", "cross_mode_analysis", "learning_pattern", "practice_analysis"
    ]

    report_version: str
    generated_at: datetime.datetime
    success: bool
    data_quality: DataQuality
    primary_recommendation: PrimaryRecommendation
    suggestions: Suggestions
    mode_analyses: Dict[PracticeMode, ModePerformanceAnalysis] = field(default_factory=dict)
    difficulty_recommendations: List[DifficultyRecommendation] = field(default_factory=list)
    cross_mode_analysis: Optional[CrossModeAnalysis] = None
    learning_pattern: Optional[LearningPattern] = None
    practice_analysis: Optional[PracticeAnalysis] = None
    error: Optional[str] = None
