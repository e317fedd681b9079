"""
Cross-Mode Comparator

Compares the per-mode analyses with each other: strongest and weakest mode,
how balanced accuracy is, how evenly practice is spread, and which mode to
focus on next. Also infers the learner's practice style.
"""

import math
from typing import Dict, Iterable, List, Optional

import numpy as np

from practice_core.common.config import CrossModeConfig, get_config
from practice_core.common.logger import app_logger
from practice_core.recommendation.models import (
    ChallengePreference,
    ConsistencyLevel,
    CrossModeAnalysis,
    LearningPattern,
    LearningStyle,
    ModePerformanceAnalysis,
    ModeRanking,
    ModeSession,
    OverallProgress,
    PracticeMode,
    Trend,
)

# Module logger
logger = app_logger.getChild("recommendation.cross_mode")

# Composite ranking score components
SESSION_BONUS_PER_SESSION = 2
MAX_SESSION_BONUS = 20
TREND_BONUS = 10
HIGH_BEST_ACCURACY = 0.9
BEST_ACCURACY_BONUS = 5

# Distinct active days needed for each consistency level
HIGH_CONSISTENCY_DAYS = 7
MEDIUM_CONSISTENCY_DAYS = 3

# Pearson correlation needed before difficulty/accuracy is trusted
CHALLENGE_CORRELATION = 0.3
MIN_DIFFICULTY_SAMPLES = 3


def _ordered(analyses: Dict[PracticeMode, ModePerformanceAnalysis]) -> List[ModePerformanceAnalysis]:
    return [analyses[mode] for mode in PracticeMode if mode in analyses]


def normalized_entropy(counts: np.ndarray) -> float:
    """
    Shannon entropy of a count distribution, scaled to 0-100.

    0 when there are no counts or only one category.
    """
    total = counts.sum()
    if total <= 0 or len(counts) < 2:
        return 0.0
    p = counts[counts > 0] / total
    entropy = float(-(p * np.log(p)).sum())
    return entropy / math.log(len(counts)) * 100.0


class CrossModeComparator:
    """Comparison of performance across practice modes."""

    def __init__(self, config: Optional[CrossModeConfig] = None):
        """
        Initialize the comparator.

        Args:
            config: Cross-mode configuration
        """
        self.config = config or get_config().cross_mode

    @staticmethod
    def strongest_mode(analyses: List[ModePerformanceAnalysis]) -> PracticeMode:
        """Highest accuracy; ties go to more sessions, then mode priority."""
        best = min(analyses, key=lambda a: (-a.accuracy, -a.session_count, a.mode.priority))
        return best.mode

    @staticmethod
    def weakest_mode(analyses: List[ModePerformanceAnalysis]) -> PracticeMode:
        """Lowest accuracy; ties go to more sessions, then mode priority."""
        worst = min(analyses, key=lambda a: (a.accuracy, -a.session_count, a.mode.priority))
        return worst.mode

    @staticmethod
    def balance_score(analyses: List[ModePerformanceAnalysis]) -> float:
        """100 when every mode has the same accuracy, falling with the spread."""
        accuracies = np.array([a.accuracy for a in analyses], dtype=float)
        spread = float(accuracies.max() - accuracies.min())
        return float(np.clip(100.0 * (1.0 - spread), 0.0, 100.0))

    @staticmethod
    def diversity_score(analyses: List[ModePerformanceAnalysis]) -> float:
        """Evenness of practice across modes (normalized entropy of session counts)."""
        counts = np.array([a.session_count for a in analyses], dtype=float)
        return normalized_entropy(counts)

    def overall_progress(self, analyses: List[ModePerformanceAnalysis]) -> OverallProgress:
        """Grade the mean accuracy of the modes that have been practiced."""
        active = [a.accuracy for a in analyses if a.is_active]
        if not active:
            return OverallProgress.NEEDS_IMPROVEMENT

        mean_accuracy = float(np.mean(active))
        if mean_accuracy >= self.config.excellent_accuracy:
            return OverallProgress.EXCELLENT
        elif mean_accuracy >= self.config.good_accuracy:
            return OverallProgress.GOOD
        elif mean_accuracy >= self.config.average_accuracy:
            return OverallProgress.AVERAGE
        else:
            return OverallProgress.NEEDS_IMPROVEMENT

    @staticmethod
    def mode_score(analysis: ModePerformanceAnalysis) -> float:
        """
        Composite score used for ranking modes.

        Accuracy x 100, plus a session bonus (up to 20), +/-10 for the trend,
        and 5 when the best session was above 90%. Unpracticed modes score 0.
        """
        if not analysis.is_active:
            return 0.0

        score = analysis.accuracy * 100.0
        score += min(analysis.session_count * SESSION_BONUS_PER_SESSION, MAX_SESSION_BONUS)

        if analysis.trend == Trend.IMPROVING:
            score += TREND_BONUS
        elif analysis.trend == Trend.DECLINING:
            score -= TREND_BONUS

        if analysis.best_accuracy > HIGH_BEST_ACCURACY:
            score += BEST_ACCURACY_BONUS

        return max(0.0, round(score, 2))

    def mode_rankings(self, analyses: List[ModePerformanceAnalysis]) -> List[ModeRanking]:
        """Rank modes by composite score, ties by mode priority."""
        scored = sorted(
            ((self.mode_score(a), a) for a in analyses),
            key=lambda item: (-item[0], item[1].mode.priority)
        )
        return [
            ModeRanking(
                mode=analysis.mode,
                rank=index + 1,
                score=score,
                accuracy=analysis.accuracy,
                session_count=analysis.session_count
            )
            for index, (score, analysis) in enumerate(scored)
        ]

    def recommended_focus_mode(
        self,
        analyses: List[ModePerformanceAnalysis],
        weakest: PracticeMode,
        balance: float
    ) -> Optional[PracticeMode]:
        """
        Pick the mode that most needs attention.

        In order: the weakest mode when accuracy is badly unbalanced; a mode
        never tried; a mode practiced less than half as often as average;
        the weakest mode when the accuracy gap is large; otherwise none.
        """
        if not any(a.is_active for a in analyses):
            return None

        if balance < self.config.focus_balance_threshold:
            return weakest

        for analysis in analyses:
            if not analysis.is_active:
                return analysis.mode

        average_sessions = sum(a.session_count for a in analyses) / len(analyses)
        under_practiced = [a for a in analyses if a.session_count < average_sessions * 0.5]
        if under_practiced:
            return min(under_practiced, key=lambda a: (a.session_count, a.mode.priority)).mode

        accuracies = [a.accuracy for a in analyses]
        if max(accuracies) - min(accuracies) > self.config.focus_accuracy_gap:
            return weakest

        return None

    def compare(self, analyses: Dict[PracticeMode, ModePerformanceAnalysis]) -> CrossModeAnalysis:
        """
        Compare the per-mode analyses.

        Args:
            analyses: Analysis per mode

        Returns:
            Cross-mode comparison

        Raises:
            ValueError: If no analyses are given
        """
        ordered = _ordered(analyses)
        if not ordered:
            raise ValueError("At least one mode analysis is required")

        weakest = self.weakest_mode(ordered)
        balance = self.balance_score(ordered)

        result = CrossModeAnalysis(
            strongest_mode=self.strongest_mode(ordered),
            weakest_mode=weakest,
            balance_score=round(balance, 2),
            diversity_score=round(self.diversity_score(ordered), 2),
            overall_progress=self.overall_progress(ordered),
            mode_rankings=self.mode_rankings(ordered),
            recommended_focus_mode=self.recommended_focus_mode(ordered, weakest, balance)
        )

        logger.debug(
            f"Cross-mode: strongest {result.strongest_mode.value}, weakest {result.weakest_mode.value}, "
            f"balance {result.balance_score}, diversity {result.diversity_score}"
        )
        return result

    def _challenge_preference(
        self,
        active: List[ModePerformanceAnalysis],
        sessions: List[ModeSession]
    ) -> ChallengePreference:
        rated = [s for s in sessions if s.difficulty is not None and s.total > 0]
        if len(rated) >= MIN_DIFFICULTY_SAMPLES:
            difficulty = np.array([s.difficulty.to_numeric() for s in rated], dtype=float)
            accuracy = np.array([s.accuracy for s in rated], dtype=float)
            if difficulty.std() > 0 and accuracy.std() > 0:
                r = float(np.corrcoef(difficulty, accuracy)[0, 1])
                # Accuracy holding up at harder settings means the learner seeks challenge
                if r >= CHALLENGE_CORRELATION:
                    return ChallengePreference.HIGH_CHALLENGE
                if r <= -CHALLENGE_CORRELATION:
                    return ChallengePreference.COMFORT_ZONE
                return ChallengePreference.MODERATE_CHALLENGE

        if not active:
            return ChallengePreference.MODERATE_CHALLENGE

        mean_accuracy = float(np.mean([a.accuracy for a in active]))
        if mean_accuracy > self.config.excellent_accuracy:
            return ChallengePreference.COMFORT_ZONE
        elif mean_accuracy > 0.7:
            return ChallengePreference.MODERATE_CHALLENGE
        else:
            return ChallengePreference.HIGH_CHALLENGE

    def identify_learning_patterns(
        self,
        analyses: Dict[PracticeMode, ModePerformanceAnalysis],
        sessions: Iterable[ModeSession]
    ) -> LearningPattern:
        """
        Infer how the learner practices.

        Args:
            analyses: Analysis per mode
            sessions: The raw sessions behind the analyses

        Returns:
            Preferred modes, learning style, consistency level and challenge
            preference
        """
        ordered = _ordered(analyses)
        sessions = list(sessions)
        active = [a for a in ordered if a.is_active]

        preferred = [
            a.mode for a in sorted(active, key=lambda a: (-a.session_count, a.mode.priority))
        ]

        total_sessions = sum(a.session_count for a in ordered)
        if total_sessions < self.config.beginner_total_sessions:
            style = LearningStyle.BEGINNER
        elif len(active) == 1:
            style = LearningStyle.FOCUSED
        elif len(active) == len(PracticeMode) and self.diversity_score(ordered) >= self.config.balanced_diversity:
            style = LearningStyle.BALANCED
        else:
            style = LearningStyle.EXPLORER

        active_days = len({s.timestamp.date() for s in sessions})
        if active_days >= HIGH_CONSISTENCY_DAYS:
            consistency = ConsistencyLevel.HIGH
        elif active_days >= MEDIUM_CONSISTENCY_DAYS:
            consistency = ConsistencyLevel.MEDIUM
        else:
            consistency = ConsistencyLevel.LOW

        return LearningPattern(
            preferred_modes=preferred,
            learning_style=style,
            consistency_level=consistency,
            challenge_preference=self._challenge_preference(active, sessions)
        )

    def mode_switch_suggestions(self, cross: CrossModeAnalysis, pattern: LearningPattern) -> List[str]:
        """
        Short advice on which modes to switch between.

        Args:
            cross: Cross-mode comparison
            pattern: Inferred learning pattern

        Returns:
            Advice strings, possibly empty
        """
        suggestions = []
        weakest = cross.weakest_mode.display_name
        strongest = cross.strongest_mode.display_name

        if pattern.learning_style == LearningStyle.FOCUSED and cross.diversity_score < 40:
            suggestions.append(f"Try other modes to broaden your practice, starting with {weakest}")
        if pattern.learning_style == LearningStyle.BALANCED and cross.balance_score > 80:
            suggestions.append("Keep your balanced routine and consider raising the difficulty")
        if pattern.learning_style == LearningStyle.EXPLORER and cross.balance_score < 50:
            suggestions.append(f"Spend more time on {weakest} to even out your results")

        strongest_ranking = cross.ranking_for(cross.strongest_mode)
        weakest_ranking = cross.ranking_for(cross.weakest_mode)
        if strongest_ranking and weakest_ranking:
            if strongest_ranking.accuracy - weakest_ranking.accuracy > 0.3:
                suggestions.append(
                    f"You do well in {strongest}; try a harder setting there while strengthening {weakest}"
                )

        if pattern.challenge_preference == ChallengePreference.COMFORT_ZONE:
            suggestions.append("Your results are steady; try more challenging material")
        elif pattern.challenge_preference == ChallengePreference.HIGH_CHALLENGE:
            suggestions.append("Lower the difficulty for a while and consolidate the basics")

        return suggestions
