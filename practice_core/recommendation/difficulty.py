"""
Difficulty Recommender

Turns a mode's performance analysis into a difficulty tier, a concrete
preset for that tier, and (when progress supports it) a projection of the
time needed to reach the next tier.
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple

from practice_core.common.config import DifficultyConfig, get_config
from practice_core.common.logger import app_logger
from practice_core.recommendation.models import (
    DifficultyRecommendation,
    DifficultyTier,
    ModePerformanceAnalysis,
    PracticeMode,
    Trend,
)

# Module logger
logger = app_logger.getChild("recommendation.difficulty")

# Preset settings offered by each mode, per tier
MODE_PRESETS: Dict[PracticeMode, Dict[DifficultyTier, Tuple[str, ...]]] = {
    PracticeMode.NUMBER: {
        DifficultyTier.BEGINNER: ("0-9", "0-20", "0-30"),
        DifficultyTier.INTERMEDIATE: ("0-50", "0-69", "0-99"),
        DifficultyTier.ADVANCED: ("100-199", "100-999", "200-999"),
        DifficultyTier.EXPERT: ("1000-1999", "1000-9999"),
    },
    PracticeMode.TIME: {
        DifficultyTier.BEGINNER: ("year-only", "month-only"),
        DifficultyTier.INTERMEDIATE: ("day-only", "weekday-only"),
        DifficultyTier.ADVANCED: ("full-date", "mixed-time"),
        DifficultyTier.EXPERT: ("complex-time", "historical-dates"),
    },
    PracticeMode.DIRECTION: {
        DifficultyTier.BEGINNER: ("cardinal-only",),
        DifficultyTier.INTERMEDIATE: ("relative-only", "spatial-only"),
        DifficultyTier.ADVANCED: ("mixed-directions",),
        DifficultyTier.EXPERT: ("complex-spatial", "navigation-commands"),
    },
    PracticeMode.LENGTH: {
        DifficultyTier.BEGINNER: ("metric-basic",),
        DifficultyTier.INTERMEDIATE: ("metric-advanced", "imperial-basic"),
        DifficultyTier.ADVANCED: ("imperial-advanced", "mixed-units"),
        DifficultyTier.EXPERT: ("precision-measurements", "scientific-notation"),
    },
}


class DifficultyRecommender:
    """
    Per-mode difficulty recommendations.

    Tiers come from accuracy thresholds, gated by session count so that a
    handful of lucky sessions never lands a learner in advanced material.
    """

    def __init__(self, config: Optional[DifficultyConfig] = None):
        """
        Initialize the recommender.

        Args:
            config: Difficulty configuration
        """
        self.config = config or get_config().difficulty

    def tier_threshold(self, tier: DifficultyTier) -> float:
        """Accuracy needed to enter a tier."""
        return {
            DifficultyTier.BEGINNER: 0.0,
            DifficultyTier.INTERMEDIATE: self.config.intermediate_accuracy,
            DifficultyTier.ADVANCED: self.config.advanced_accuracy,
            DifficultyTier.EXPERT: self.config.expert_accuracy,
        }[tier]

    def max_tier_for_sessions(self, session_count: int) -> DifficultyTier:
        """Highest tier the session count allows."""
        if session_count < self.config.min_sessions:
            return DifficultyTier.BEGINNER
        if session_count < self.config.expert_min_sessions:
            return DifficultyTier.ADVANCED
        return DifficultyTier.EXPERT

    def _cap(self, tier: DifficultyTier, session_count: int) -> DifficultyTier:
        cap = self.max_tier_for_sessions(session_count)
        return tier if tier.to_numeric() <= cap.to_numeric() else cap

    def current_tier(self, analysis: ModePerformanceAnalysis) -> DifficultyTier:
        """
        Tier the learner is at now.

        Args:
            analysis: Mode performance analysis

        Returns:
            Accuracy-based tier, session-gated, lifted one step when improving
        """
        accuracy = analysis.accuracy
        if accuracy >= self.config.expert_accuracy:
            tier = DifficultyTier.EXPERT
        elif accuracy >= self.config.advanced_accuracy:
            tier = DifficultyTier.ADVANCED
        elif accuracy >= self.config.intermediate_accuracy:
            tier = DifficultyTier.INTERMEDIATE
        else:
            tier = DifficultyTier.BEGINNER

        if analysis.trend == Trend.IMPROVING:
            tier = tier.step(1)

        return self._cap(tier, analysis.session_count)

    def recommended_tier(self, analysis: ModePerformanceAnalysis, current: DifficultyTier) -> DifficultyTier:
        """
        Tier to practice at next.

        Aims for accuracy inside the target band: step up when above it with
        enough sessions, step down when struggling and declining.
        """
        if (analysis.accuracy > self.config.target_band_high
                and analysis.session_count >= self.config.min_sessions):
            return self._cap(current.step(1), analysis.session_count)

        if analysis.accuracy < self.config.struggle_accuracy and analysis.trend == Trend.DECLINING:
            return current.step(-1)

        return current

    def recommended_setting(self, mode: PracticeMode, tier: DifficultyTier, session_count: int) -> str:
        """
        Concrete preset for a tier.

        Newcomers get the first (easiest) preset, others the middle one.
        """
        presets = MODE_PRESETS[mode][tier]
        if session_count < self.config.beginner_preset_sessions:
            return presets[0]
        return presets[len(presets) // 2]

    def _reason(
        self,
        analysis: ModePerformanceAnalysis,
        current: DifficultyTier,
        recommended: DifficultyTier
    ) -> str:
        percent = round(analysis.accuracy * 100)

        if analysis.session_count == 0:
            return "Start at the basic level and build confidence step by step"
        if analysis.session_count < self.config.min_sessions:
            return (
                f"Only {analysis.session_count} sessions so far; "
                f"complete {self.config.min_sessions} before moving past the basics"
            )
        if recommended.to_numeric() > current.to_numeric():
            return f"Accuracy of {percent}% is above the target range; try more challenging material"
        if recommended.to_numeric() < current.to_numeric():
            return f"Accuracy of {percent}% is falling; consolidate the basics before raising the difficulty"
        if analysis.trend == Trend.IMPROVING:
            return "Clear improvement recently; keep the challenge level up"
        if analysis.trend == Trend.DECLINING:
            return "Recent results dipped; review the basics and raise the difficulty once stable"
        return f"At {percent}% accuracy, keep practicing at the current level"

    def _confidence(self, analysis: ModePerformanceAnalysis) -> float:
        confidence = analysis.confidence
        if analysis.trend == Trend.IMPROVING:
            confidence += 10
        elif analysis.trend == Trend.DECLINING:
            confidence -= 10
        return round(max(0.0, min(100.0, confidence)), 2)

    def _projection(
        self,
        analysis: ModePerformanceAnalysis,
        current: DifficultyTier
    ) -> Tuple[Optional[str], Optional[int]]:
        rate = analysis.improvement_rate_per_day
        if (analysis.trend != Trend.IMPROVING
                or rate is None
                or rate <= 0
                or analysis.session_count < self.config.min_sessions
                or current == DifficultyTier.EXPERT):
            return None, None

        next_tier = current.step(1)
        target = self.tier_threshold(next_tier)
        gap = max(0.0, target - analysis.accuracy)
        days = math.ceil(gap / rate)
        days = max(1, min(self.config.max_mastery_days, days))

        milestone = f"Reach {round(target * 100)}% accuracy to move up to {next_tier.value}"
        return milestone, days

    def recommend(self, analysis: ModePerformanceAnalysis) -> DifficultyRecommendation:
        """
        Build the recommendation for one mode.

        Args:
            analysis: Mode performance analysis

        Returns:
            Difficulty recommendation
        """
        current = self.current_tier(analysis)
        recommended = self.recommended_tier(analysis, current)
        milestone, days = self._projection(analysis, current)

        recommendation = DifficultyRecommendation(
            mode=analysis.mode,
            current_level=current,
            recommended_difficulty=recommended,
            recommended_setting=self.recommended_setting(analysis.mode, recommended, analysis.session_count),
            reason=self._reason(analysis, current, recommended),
            confidence=self._confidence(analysis),
            next_milestone=milestone,
            estimated_days_to_mastery=days
        )

        logger.debug(
            f"{analysis.mode.value}: current {current.value}, recommended {recommended.value}"
        )
        return recommendation

    def recommend_all(self, analyses: Iterable[ModePerformanceAnalysis]) -> List[DifficultyRecommendation]:
        """Recommendations for several modes, in mode priority order."""
        return [
            self.recommend(analysis)
            for analysis in sorted(analyses, key=lambda a: a.mode.priority)
        ]
