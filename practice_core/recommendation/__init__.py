"""
Recommendation

Per-mode and cross-mode performance analysis, difficulty recommendations,
practice-habit analysis and the engine that assembles them into a report.
"""

from practice_core.recommendation.models import (
    ChallengePreference,
    ConsistencyLevel,
    CrossModeAnalysis,
    DataQuality,
    DifficultyRecommendation,
    DifficultyTier,
    EffectivenessSummary,
    LearningPattern,
    LearningStyle,
    ModePerformanceAnalysis,
    ModeRanking,
    ModeSession,
    OverallProgress,
    PracticeAnalysis,
    PracticeMode,
    PrimaryRecommendation,
    RecommendationReport,
    SubTypePerformance,
    Suggestions,
    TimeOfDay,
    Trend,
    group_sessions_by_mode,
    to_naive_utc,
)
from practice_core.recommendation.mode_analysis import ModePerformanceAnalyzer
from practice_core.recommendation.cross_mode import CrossModeComparator
from practice_core.recommendation.difficulty import MODE_PRESETS, DifficultyRecommender
from practice_core.recommendation.practice import PracticeHabitAnalyzer
from practice_core.recommendation.engine import REPORT_VERSION, RecommendationEngine

__all__ = [
    "ChallengePreference",
    "ConsistencyLevel",
    "CrossModeAnalysis",
    "DataQuality",
    "DifficultyRecommendation",
    "DifficultyTier",
    "EffectivenessSummary",
    "LearningPattern",
    "LearningStyle",
    "ModePerformanceAnalysis",
    "ModeRanking",
    "ModeSession",
    "OverallProgress",
    "PracticeAnalysis",
    "PracticeMode",
    "PrimaryRecommendation",
    "RecommendationReport",
    "SubTypePerformance",
    "Suggestions",
    "TimeOfDay",
    "Trend",
    "group_sessions_by_mode",
    "to_naive_utc",
    "ModePerformanceAnalyzer",
    "CrossModeComparator",
    "MODE_PRESETS",
    "DifficultyRecommender",
    "PracticeHabitAnalyzer",
    "REPORT_VERSION",
    "RecommendationEngine",
]
