"""
Recommendation Engine

Single entry point of the recommendation pipeline. Runs the per-mode
analysis, the cross-mode comparison, difficulty recommendations and
practice-habit analysis, grades the data behind them and assembles one
versioned report.

The engine never raises: any internal fault produces a fallback report with
``success=False``.
"""

import datetime
import dataclasses
from typing import Callable, Dict, Iterable, List, Optional

from practice_core.common.config import AppConfig, get_config
from practice_core.common.logger import app_logger, log_execution_time
from practice_core.recommendation.cross_mode import CrossModeComparator
from practice_core.recommendation.difficulty import DifficultyRecommender
from practice_core.recommendation.mode_analysis import ModePerformanceAnalyzer
from practice_core.recommendation.models import (
    CrossModeAnalysis,
    DataQuality,
    DifficultyRecommendation,
    DifficultyTier,
    LearningPattern,
    LearningStyle,
    ModePerformanceAnalysis,
    ModeSession,
    OverallProgress,
    PracticeAnalysis,
    PracticeMode,
    PrimaryRecommendation,
    RecommendationReport,
    Suggestions,
    to_naive_utc,
)
from practice_core.recommendation.practice import PracticeHabitAnalyzer

# Module logger
logger = app_logger.getChild("recommendation.engine")

REPORT_VERSION = "1.0.0"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class RecommendationEngine:
    """
    Orchestrates the analysis components into a recommendation report.

    Components can be injected; by default each is built from the matching
    configuration section.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        mode_analyzer: Optional[ModePerformanceAnalyzer] = None,
        comparator: Optional[CrossModeComparator] = None,
        difficulty_recommender: Optional[DifficultyRecommender] = None,
        practice_analyzer: Optional[PracticeHabitAnalyzer] = None,
        clock: Optional[Callable[[], datetime.datetime]] = None
    ):
        """
        Initialize the engine.

        Args:
            config: Application configuration
            mode_analyzer: Per-mode analyzer
            comparator: Cross-mode comparator
            difficulty_recommender: Difficulty recommender
            practice_analyzer: Practice-habit analyzer
            clock: Source of the report timestamp when ``now`` is not given
        """
        self.config = config or get_config()
        self.mode_analyzer = mode_analyzer or ModePerformanceAnalyzer(self.config.analysis)
        self.comparator = comparator or CrossModeComparator(self.config.cross_mode)
        self.difficulty_recommender = difficulty_recommender or DifficultyRecommender(self.config.difficulty)
        self.practice_analyzer = practice_analyzer or PracticeHabitAnalyzer(self.config.practice)
        self.clock = clock or _utcnow

    def grade_data_quality(
        self,
        sessions: List[ModeSession],
        analyses: Dict[PracticeMode, ModePerformanceAnalysis],
        reference_time: Optional[datetime.datetime] = None
    ) -> DataQuality:
        """
        Grade how much the report can be trusted.

        Args:
            sessions: All sessions
            analyses: Per-mode analyses of those sessions
            reference_time: Time against which staleness is judged

        Returns:
            Data quality grade, one step lower when the newest session is stale
        """
        settings = self.config.data_quality
        total_sessions = len(sessions)
        total_questions = sum(s.total for s in sessions)
        active_modes = sum(1 for a in analyses.values() if a.is_active)

        if (total_sessions >= settings.excellent_sessions
                and total_questions >= settings.excellent_questions
                and active_modes >= settings.excellent_active_modes):
            quality = DataQuality.EXCELLENT
        elif total_sessions >= settings.good_sessions and total_questions >= settings.good_questions:
            quality = DataQuality.GOOD
        elif total_sessions >= settings.limited_sessions and total_questions >= settings.limited_questions:
            quality = DataQuality.LIMITED
        else:
            quality = DataQuality.INSUFFICIENT

        if sessions and reference_time is not None:
            newest = max(s.timestamp for s in sessions)
            if to_naive_utc(reference_time) - newest > datetime.timedelta(days=settings.stale_after_days):
                quality = quality.downgrade()

        return quality

    @staticmethod
    def primary_recommendation(
        cross: CrossModeAnalysis,
        recommendations: List[DifficultyRecommendation],
        quality: DataQuality
    ) -> PrimaryRecommendation:
        """
        Headline recommendation from the overall progress grade.

        Unreliable data always yields the habit-building recommendation, and
        the suggested difficulty never exceeds the highest per-mode
        recommendation, so too few sessions cannot earn a harder tier.
        """
        weakest = cross.weakest_mode.display_name
        focus = cross.recommended_focus_mode

        if not quality.is_reliable:
            return PrimaryRecommendation(
                text="Start from the basics and build a practice habit in each mode",
                difficulty=DifficultyTier.BEGINNER,
                reason="There is not enough practice data yet for a tailored recommendation",
                focus_mode=focus
            )

        ceiling = max(
            (r.recommended_difficulty for r in recommendations),
            key=lambda tier: tier.to_numeric(),
            default=DifficultyTier.BEGINNER
        )

        def capped(tier: DifficultyTier) -> DifficultyTier:
            return DifficultyTier.from_numeric(min(tier.to_numeric(), ceiling.to_numeric()))

        if cross.overall_progress == OverallProgress.EXCELLENT:
            if ceiling.to_numeric() < DifficultyTier.ADVANCED.to_numeric():
                return PrimaryRecommendation(
                    text="Strong results so far; keep practicing to unlock harder settings",
                    difficulty=ceiling,
                    reason="Accuracy is excellent but more sessions are needed before raising the difficulty",
                    focus_mode=focus
                )
            return PrimaryRecommendation(
                text="Strong results across your practiced modes; try a higher difficulty or mixed practice",
                difficulty=DifficultyTier.ADVANCED,
                reason="Overall performance is excellent and ready for a bigger challenge",
                focus_mode=focus
            )
        elif cross.overall_progress == OverallProgress.GOOD:
            return PrimaryRecommendation(
                text=f"Good results; put extra practice into {weakest}",
                difficulty=capped(DifficultyTier.INTERMEDIATE),
                reason="Overall performance is good and needs balancing",
                focus_mode=focus
            )
        elif cross.overall_progress == OverallProgress.AVERAGE:
            return PrimaryRecommendation(
                text=f"Strengthen {weakest} to raise your overall level",
                difficulty=DifficultyTier.BEGINNER,
                reason="Consolidate the basics and work on weak spots",
                focus_mode=focus
            )
        else:
            return PrimaryRecommendation(
                text="Start from the basics and build a practice habit in each mode",
                difficulty=DifficultyTier.BEGINNER,
                reason="A regular practice habit comes first",
                focus_mode=focus
            )

    def suggestions(
        self,
        cross: CrossModeAnalysis,
        pattern: LearningPattern,
        recommendations: List[DifficultyRecommendation],
        practice: PracticeAnalysis,
        quality: DataQuality
    ) -> Suggestions:
        """
        Advice grouped into immediate, short-term and long-term steps.

        Low data quality yields general advice instead of specific claims.
        """
        if not quality.is_reliable:
            immediate = ["Practice a little every day to build a habit"]
            if cross.recommended_focus_mode is not None:
                immediate.append(f"Try a few sessions of {cross.recommended_focus_mode.display_name}")
            return Suggestions(
                immediate=immediate,
                short_term=["Complete more sessions so recommendations can be tailored to you"],
                long_term=["Work toward practicing every mode regularly"]
            )

        immediate = []
        short_term = []
        long_term = []

        if practice.consistency_score < 50:
            immediate.append("Build a regular habit: practice at least 5 minutes a day")
        if cross.diversity_score < 40:
            immediate.append(f"Try some {cross.weakest_mode.display_name} practice")
        if practice.effectiveness_score < 60:
            immediate.append("Focus on answering accurately rather than on volume")

        for recommendation in recommendations:
            if recommendation.mode == cross.weakest_mode and recommendation.next_milestone:
                short_term.append(f"In {recommendation.mode.display_name}: {recommendation.next_milestone}")
        if cross.balance_score < 60:
            short_term.append("Balance your practice time across modes")
        if practice.best_performance_time_of_day is not None:
            short_term.append(practice.optimal_practice_time)
        short_term.extend(self.comparator.mode_switch_suggestions(cross, pattern))

        if pattern.learning_style == LearningStyle.FOCUSED:
            long_term.append("Expand into other modes to become an all-round listener")
        elif pattern.learning_style == LearningStyle.EXPLORER:
            long_term.append("Keep your variety while deepening one specialty mode")
        long_term.append("Reach the advanced tier in every mode")
        if cross.overall_progress != OverallProgress.EXCELLENT:
            long_term.append("Set a long-term plan and keep improving steadily")

        return Suggestions(immediate=immediate, short_term=short_term, long_term=long_term)

    @log_execution_time(logger)
    def generate_report(
        self,
        sessions: Iterable[ModeSession],
        now: Optional[datetime.datetime] = None
    ) -> RecommendationReport:
        """
        Build the full recommendation report.

        Args:
            sessions: All practice sessions across modes
            now: Report time; also ends the practice window and is the
                reference for staleness (defaults to the latest session)

        Returns:
            Recommendation report; a fallback report when anything fails
        """
        generated_at = now or self.clock()

        try:
            sessions = list(sessions)

            analyses = self.mode_analyzer.analyze_all(sessions)
            cross = self.comparator.compare(analyses)
            pattern = self.comparator.identify_learning_patterns(analyses, sessions)
            recommendations = self.difficulty_recommender.recommend_all(analyses.values())
            practice = self.practice_analyzer.analyze(sessions, now=now)

            if now is not None:
                reference_time = to_naive_utc(now)
            else:
                reference_time = max(s.timestamp for s in sessions) if sessions else None
            quality = self.grade_data_quality(sessions, analyses, reference_time)

            if not quality.is_reliable:
                recommendations = [
                    dataclasses.replace(r, next_milestone=None, estimated_days_to_mastery=None)
                    for r in recommendations
                ]

            report = RecommendationReport(
                report_version=REPORT_VERSION,
                generated_at=generated_at,
                success=True,
                data_quality=quality,
                primary_recommendation=self.primary_recommendation(cross, recommendations, quality),
                suggestions=self.suggestions(cross, pattern, recommendations, practice, quality),
                mode_analyses=analyses,
                difficulty_recommendations=recommendations,
                cross_mode_analysis=cross,
                learning_pattern=pattern,
                practice_analysis=practice
            )

            logger.info(f"Generated report from {len(sessions)} sessions, data quality {quality.value}")
            return report
        except Exception as e:
            logger.error(f"Report generation failed: {str(e)}")
            return self.fallback_report(generated_at, str(e))

    @staticmethod
    def fallback_report(generated_at: datetime.datetime, error: str) -> RecommendationReport:
        """Minimal report returned when the pipeline fails."""
        return RecommendationReport(
            report_version=REPORT_VERSION,
            generated_at=generated_at,
            success=False,
            error=error,
            data_quality=DataQuality.INSUFFICIENT,
            primary_recommendation=PrimaryRecommendation(
                text="Keep practicing to improve your skills",
                difficulty=DifficultyTier.BEGINNER,
                reason="General advice while detailed analysis is unavailable"
            ),
            suggestions=Suggestions(
                immediate=["Build a regular practice habit"],
                short_term=["Practice more consistently"],
                long_term=["Work toward practicing every mode regularly"]
            )
        )
