"""
Mode Performance Analyzer

Summarizes the session history of each practice mode: pooled accuracy,
recent trend, sample-size confidence and rate of improvement.
"""

import math
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from practice_core.common.config import AnalysisConfig, get_config
from practice_core.common.logger import app_logger
from practice_core.recommendation.models import (
    ModePerformanceAnalysis,
    ModeSession,
    PracticeMode,
    SubTypePerformance,
    Trend,
    group_sessions_by_mode,
)

# Module logger
logger = app_logger.getChild("recommendation.mode_analysis")

SECONDS_PER_DAY = 86400.0


def pooled_accuracy(correct: np.ndarray, total: np.ndarray) -> float:
    """Accuracy over a group of sessions, 0 when nothing was answered."""
    answered = float(total.sum())
    if answered <= 0:
        return 0.0
    return float(correct.sum()) / answered


class ModePerformanceAnalyzer:
    """
    Per-mode performance analysis.

    Trend compares the pooled accuracy of the most recent window of sessions
    with the window before it. The window is ``trend_window`` sessions, but
    never more than half of the history.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        """
        Initialize the analyzer.

        Args:
            config: Analysis configuration
        """
        self.config = config or get_config().analysis

    def calculate_confidence(self, session_count: int) -> float:
        """
        Confidence (0-100) in an analysis built from ``session_count`` sessions.

        Saturates exponentially with sample size; small samples are capped.
        """
        if session_count <= 0:
            return 0.0

        confidence = 100.0 * (1.0 - math.exp(-session_count / self.config.confidence_scale))
        if session_count < self.config.low_sample_sessions:
            confidence = min(confidence, self.config.low_sample_confidence_cap)

        return round(min(100.0, max(0.0, confidence)), 2)

    def _window_size(self, session_count: int) -> int:
        return min(self.config.trend_window, session_count // 2)

    def _split_windows(
        self,
        correct: np.ndarray,
        total: np.ndarray,
        times: np.ndarray
    ) -> Optional[Tuple[Tuple[float, float], Tuple[float, float]]]:
        """
        Return ``(accuracy, mean time)`` for the previous and recent windows.

        None when the history is too short for a trend.
        """
        count = len(total)
        if count < self.config.min_trend_sessions:
            return None

        size = self._window_size(count)
        if size == 0:
            return None

        recent = slice(count - size, count)
        previous = slice(count - 2 * size, count - size)

        return (
            (pooled_accuracy(correct[previous], total[previous]), float(times[previous].mean())),
            (pooled_accuracy(correct[recent], total[recent]), float(times[recent].mean()))
        )

    def _classify_trend(self, delta: float) -> Trend:
        if delta > self.config.stability_threshold:
            return Trend.IMPROVING
        if delta < -self.config.stability_threshold:
            return Trend.DECLINING
        return Trend.STABLE

    @staticmethod
    def sub_type_breakdown(sessions: List[ModeSession]) -> List[SubTypePerformance]:
        """
        Results per content type, in order of first appearance.

        Sessions without a ``sub_type`` tag are left out.
        """
        grouped: Dict[str, List[ModeSession]] = {}
        for session in sessions:
            if session.sub_type:
                grouped.setdefault(session.sub_type, []).append(session)

        breakdown = []
        for sub_type, group in grouped.items():
            correct = np.array([s.correct for s in group], dtype=float)
            total = np.array([s.total for s in group], dtype=float)
            breakdown.append(SubTypePerformance(
                sub_type=sub_type,
                accuracy=pooled_accuracy(correct, total),
                sessions=len(group),
                total_questions=int(total.sum())
            ))
        return breakdown

    @staticmethod
    def favorite_sub_type(breakdown: List[SubTypePerformance]) -> Optional[str]:
        """Most practiced content type; ties go to the one practiced first."""
        if not breakdown:
            return None
        return max(breakdown, key=lambda p: p.sessions).sub_type

    def analyze(self, mode: PracticeMode, sessions: Iterable[ModeSession]) -> ModePerformanceAnalysis:
        """
        Analyze one mode's sessions.

        Args:
            mode: Mode being analyzed
            sessions: Sessions of that mode (any order)

        Returns:
            Performance analysis; an all-zero analysis when there are no sessions
        """
        ordered: List[ModeSession] = sorted(
            (s for s in sessions if s.mode == mode),
            key=lambda s: s.timestamp
        )
        if not ordered:
            return ModePerformanceAnalysis(mode=mode)

        correct = np.array([s.correct for s in ordered], dtype=float)
        total = np.array([s.total for s in ordered], dtype=float)
        times = np.array([s.timestamp.timestamp() for s in ordered], dtype=float)
        per_session = np.array([s.accuracy for s in ordered], dtype=float)

        accuracy = pooled_accuracy(correct, total)

        trend = Trend.STABLE
        recent_accuracy = accuracy
        previous_accuracy = None
        improvement_rate = None

        windows = self._split_windows(correct, total, times)
        if windows is not None:
            (previous_acc, previous_mid), (recent_acc, recent_mid) = windows
            delta = recent_acc - previous_acc
            trend = self._classify_trend(delta)
            recent_accuracy = recent_acc
            previous_accuracy = previous_acc

            span_days = (recent_mid - previous_mid) / SECONDS_PER_DAY
            if span_days >= 1.0:
                improvement_rate = delta / span_days

        total_correct = int(correct.sum())
        breakdown = self.sub_type_breakdown(ordered)

        analysis = ModePerformanceAnalysis(
            mode=mode,
            accuracy=accuracy,
            trend=trend,
            session_count=len(ordered),
            confidence=self.calculate_confidence(len(ordered)),
            total_questions=int(total.sum()),
            total_correct=total_correct,
            average_accuracy=float(per_session.mean()),
            best_accuracy=float(per_session.max()),
            recent_accuracy=recent_accuracy,
            previous_accuracy=previous_accuracy,
            improvement_rate_per_day=improvement_rate,
            last_played=ordered[-1].timestamp,
            experience_gained=total_correct * self.config.experience_per_correct,
            favorite_sub_type=self.favorite_sub_type(breakdown),
            sub_type_performance=breakdown
        )

        logger.debug(
            f"Analyzed {mode.value}: {len(ordered)} sessions, accuracy {accuracy:.3f}, trend {trend.value}"
        )
        return analysis

    def analyze_all(self, sessions: Iterable[ModeSession]) -> Dict[PracticeMode, ModePerformanceAnalysis]:
        """
        Analyze every mode from a flat session list.

        Returns:
            One analysis per mode, in mode priority order
        """
        grouped = group_sessions_by_mode(sessions)
        return {mode: self.analyze(mode, grouped[mode]) for mode in PracticeMode}
